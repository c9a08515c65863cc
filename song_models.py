# -*- coding: utf-8 -*-
########################
# song_models.py
########################
# Purpose:
# - The song and steps aggregate that the .chart and .mid loaders populate.
#
# Design notes:
# - Keep these models small. Loaders only fill the fields listed here.
# - Steps own their NoteTimeline. Song owns TimingData shared by all of its steps.
# - Plain mutable dataclasses: loaders build them up field by field.
#
########################
# Interfaces:
# Public exceptions:
# - class LoaderError(Exception)
#
# Public enums:
# - class Difficulty(enum.Enum): EASY | MEDIUM | HARD | CHALLENGE
# - class StepsType(enum.Enum): GUITAR_SOLO | GUITAR_BACKUP | GUITAR_SOLO6 | GUITAR_BACKUP6
#
# Public dataclasses:
# - Steps(steps_type, difficulty, note_data, chart_style, credit, description, music_file, meter, filename)
# - Song(main_title, artist, credit, music_file, instrument_track_files, sample_start_seconds,
#        sample_length_seconds, song_file_name, lyrics_file, timing, steps)
#   - add_steps(steps: Steps) -> None
#   - find_steps(steps_type: StepsType, difficulty: Difficulty) -> Optional[Steps]
#
# Public functions:
# - difficulty_label(difficulty: Difficulty) -> str
# - lane_count_for(steps_type: StepsType) -> int
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Dict, List, Optional

from note_timeline import NoteTimeline
from timing_data import TimingData


class LoaderError(Exception):
    """Base error for a chart or MIDI file that cannot be read at all."""


class Difficulty(enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    CHALLENGE = "challenge"


class StepsType(enum.Enum):
    GUITAR_SOLO = "guitar-solo"
    GUITAR_BACKUP = "guitar-backup"
    GUITAR_SOLO6 = "guitar-solo6"
    GUITAR_BACKUP6 = "guitar-backup6"


_DIFFICULTY_LABEL = {
    Difficulty.EASY: "Easy",
    Difficulty.MEDIUM: "Medium",
    Difficulty.HARD: "Hard",
    Difficulty.CHALLENGE: "Expert",
}

# Five fret lanes plus open, six fret lanes plus open.
_LANE_COUNT = {
    StepsType.GUITAR_SOLO: 6,
    StepsType.GUITAR_BACKUP: 6,
    StepsType.GUITAR_SOLO6: 7,
    StepsType.GUITAR_BACKUP6: 7,
}


def difficulty_label(difficulty: Difficulty) -> str:
    return _DIFFICULTY_LABEL[difficulty]


def lane_count_for(steps_type: StepsType) -> int:
    return _LANE_COUNT[steps_type]


@dataclass
class Steps:
    steps_type: StepsType
    difficulty: Difficulty
    note_data: Optional[NoteTimeline] = None
    chart_style: str = "Guitar"
    credit: str = ""
    description: str = ""
    music_file: str = ""
    meter: int = 1
    filename: str = ""


@dataclass
class Song:
    main_title: str = ""
    artist: str = ""
    credit: str = ""
    music_file: str = ""
    instrument_track_files: Dict[str, str] = field(default_factory=dict)
    sample_start_seconds: float = 0.0
    sample_length_seconds: float = 12.0
    song_file_name: str = ""
    lyrics_file: str = ""
    timing: TimingData = field(default_factory=TimingData)
    steps: List[Steps] = field(default_factory=list)

    def add_steps(self, steps: Steps) -> None:
        self.steps.append(steps)

    def find_steps(self, steps_type: StepsType, difficulty: Difficulty) -> Optional[Steps]:
        for steps in self.steps:
            if steps.steps_type is steps_type and steps.difficulty is difficulty:
                return steps
        return None
