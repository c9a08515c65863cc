# -*- coding: utf-8 -*-
########################
# song_ini.py
########################
# Purpose:
# - Read the per-song song.ini written by chart editors and FoF-style games.
# - Resolve the HOPO threshold (in ticks) for .chart and .mid parsing.
#
# Design notes:
# - The [song] section name is matched case-insensitively. Keys are case-insensitive (configparser).
# - A missing or unreadable song.ini is not an error: callers get None and use defaults.
# - Unparseable values read as absent.
# - .chart and .mid use different frequency tables and different defaults.
#
########################
# Interfaces:
# Public dataclasses:
# - SongIni(hopo_frequency: Optional[int], eighth_note_hopo: Optional[bool],
#           name: str, artist: str, charter: str)
#
# Public functions:
# - parse_song_ini(text: str) -> Optional[SongIni]
# - read_song_ini(directory: pathlib.Path, file_name: str = "song.ini") -> Optional[SongIni]
# - chart_hopo_threshold(resolution: int, ini: Optional[SongIni], *, legacy_truncation: bool = False) -> int
# - midi_hopo_threshold(resolution: int, ini: Optional[SongIni], *, legacy_truncation: bool = False) -> int
#
# Inputs:
# - Song directory, resolution in ticks per beat.
#
# Outputs:
# - HOPO threshold ticks for chart_notes.py and midi_notes.py, metadata for midi_store.py.
#
########################

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger


@dataclass(frozen=True)
class SongIni:
    hopo_frequency: Optional[int] = None
    eighth_note_hopo: Optional[bool] = None
    name: str = ""
    artist: str = ""
    charter: str = ""


_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_optional_int(raw_text: Optional[str]) -> Optional[int]:
    if raw_text is None:
        return None
    try:
        return int(str(raw_text).strip())
    except ValueError:
        return None


def _parse_optional_bool(raw_text: Optional[str]) -> Optional[bool]:
    if raw_text is None:
        return None
    value_text = str(raw_text).strip().lower()
    if value_text in _TRUTHY:
        return True
    if value_text in _FALSY:
        return False
    return None


def parse_song_ini(text: str) -> Optional[SongIni]:
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read_string(text)
    except configparser.Error as exc:
        logger.warning("Ignoring malformed song.ini: {}", exc)
        return None

    section_name = next((name for name in parser.sections() if name.strip().lower() == "song"), None)
    if section_name is None:
        return None
    section = parser[section_name]

    return SongIni(
        hopo_frequency=_parse_optional_int(section.get("hopofreq")),
        eighth_note_hopo=_parse_optional_bool(section.get("eighthnote_hopo")),
        name=str(section.get("name", "") or "").strip(),
        artist=str(section.get("artist", "") or "").strip(),
        charter=str(section.get("frets", "") or "").strip(),
    )


def read_song_ini(directory: Path, file_name: str = "song.ini") -> Optional[SongIni]:
    ini_path = Path(directory) / file_name
    if not ini_path.is_file():
        return None
    try:
        raw_bytes = ini_path.read_bytes()
    except OSError as exc:
        logger.warning("Could not read {}: {}", ini_path, exc)
        return None
    try:
        text = raw_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = raw_bytes.decode("latin-1")
    return parse_song_ini(text)


def _halve_for_eighth_notes(threshold: int, ini: SongIni) -> int:
    if ini.eighth_note_hopo:
        return threshold // 2
    return threshold


def chart_hopo_threshold(resolution: int, ini: Optional[SongIni], *, legacy_truncation: bool = False) -> int:
    """HOPO window for .chart files, in ticks.

    Example values at resolution 480: 240, 180, 120 (default), 90, 60.
    """
    res = int(resolution)
    if res <= 0:
        raise ValueError(f"resolution must be positive, got {resolution!r}")
    if ini is None:
        return res // 4

    frequency = ini.hopo_frequency
    if frequency == 0:
        threshold = res // 2
    elif frequency == 1:
        threshold = 0 if legacy_truncation else res * 3 // 8
    elif frequency == 3:
        threshold = 0 if legacy_truncation else res * 3 // 16
    elif frequency == 4:
        threshold = res // 8
    else:
        threshold = res // 4

    return _halve_for_eighth_notes(threshold, ini)


def midi_hopo_threshold(resolution: int, ini: Optional[SongIni], *, legacy_truncation: bool = False) -> int:
    """HOPO window for .mid files, in ticks.

    Example values at resolution 480: 90, 130, 170 (default), 250, 330, 490.
    """
    res = int(resolution)
    if res <= 0:
        raise ValueError(f"resolution must be positive, got {resolution!r}")
    if ini is None:
        return res // 3 + 10

    frequency = ini.hopo_frequency
    if frequency == 0:
        threshold = res // 6 + 10
    elif frequency == 1:
        threshold = res // 4 + 10
    elif frequency == 3:
        threshold = res // 2 + 10
    elif frequency == 4:
        threshold = int(res / 1.5) + 10 if legacy_truncation else int(round(res * 2 / 3)) + 10
    elif frequency == 5:
        threshold = res + 10
    else:
        threshold = res // 3 + 10

    return _halve_for_eighth_notes(threshold, ini)
