# -*- coding: utf-8 -*-
########################
# chart_models.py
########################
# Purpose:
# - Note kinds shared by the .chart and .mid front ends.
# - The single category -> tap note mapping both classification engines use.
#
# Design notes:
# - No I/O. Pure data definitions.
# - A note is tap, strum (gem) or HOPO. Each has a held variant selected by duration.
# - Keep categorize() the only place that maps a category to a TapNoteType.
#
########################
# Interfaces:
# Public enums:
# - class NoteCategory(enum.Enum): TAP | STRUM | HOPO
# - class TapNoteType(enum.Enum): EMPTY | TAP | HOLD_HEAD | GEM | GEM_HOLD | HOPO | HOPO_HOLD
# - class FretType(enum.Enum): FIVE_FRETS | SIX_FRETS
# - class HopoRules(enum.Enum): FIRST_GAME | SECOND_GAME
#
# Public dataclasses:
# - TapNote(type: TapNoteType, duration: int = 0)
#
# Public constants:
# - TAP_EMPTY: TapNote
#
# Public functions:
# - categorize(category: NoteCategory, start_row: int, end_row: int) -> TapNote
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Dict, Optional, Tuple


class NoteCategory(enum.Enum):
    TAP = "tap"
    STRUM = "strum"
    HOPO = "hopo"


class TapNoteType(enum.Enum):
    EMPTY = "empty"
    TAP = "tap"
    HOLD_HEAD = "hold_head"
    GEM = "gem"
    GEM_HOLD = "gem_hold"
    HOPO = "hopo"
    HOPO_HOLD = "hopo_hold"


class FretType(enum.Enum):
    FIVE_FRETS = 5
    SIX_FRETS = 6


class HopoRules(enum.Enum):
    # First-game charts allow a HOPO straight out of a chord, second-game charts do not.
    FIRST_GAME = "first_game"
    SECOND_GAME = "second_game"


# (single kind, held kind)
_CATEGORY_KINDS: Dict[NoteCategory, Tuple[TapNoteType, TapNoteType]] = {
    NoteCategory.TAP: (TapNoteType.TAP, TapNoteType.HOLD_HEAD),
    NoteCategory.STRUM: (TapNoteType.GEM, TapNoteType.GEM_HOLD),
    NoteCategory.HOPO: (TapNoteType.HOPO, TapNoteType.HOPO_HOLD),
}

_KIND_CATEGORY: Dict[TapNoteType, NoteCategory] = {
    kind: category for category, kinds in _CATEGORY_KINDS.items() for kind in kinds
}


@dataclass(frozen=True)
class TapNote:
    type: TapNoteType
    duration: int = 0

    @property
    def is_empty(self) -> bool:
        return self.type is TapNoteType.EMPTY

    @property
    def is_held(self) -> bool:
        return self.duration > 0 and not self.is_empty

    @property
    def is_hopo(self) -> bool:
        return self.type in (TapNoteType.HOPO, TapNoteType.HOPO_HOLD)

    @property
    def category(self) -> Optional[NoteCategory]:
        return _KIND_CATEGORY.get(self.type)


TAP_EMPTY = TapNote(TapNoteType.EMPTY)


def categorize(category: NoteCategory, start_row: int, end_row: int) -> TapNote:
    """Map a note category and its row span to the tap note to store.

    A span with end_row > start_row is held; anything else (including a
    negative span left over from sustain correction) is a single note.
    """
    single_kind, held_kind = _CATEGORY_KINDS[category]
    if int(end_row) > int(start_row):
        return TapNote(held_kind, int(end_row) - int(start_row))
    return TapNote(single_kind)


def _run_unit_tests() -> None:
    held = categorize(NoteCategory.HOPO, 48, 96)
    assert held.type is TapNoteType.HOPO_HOLD
    assert held.duration == 48
    assert held.is_hopo and held.is_held

    single = categorize(NoteCategory.STRUM, 48, 30)
    assert single == TapNote(TapNoteType.GEM)
    assert not single.is_held

    assert categorize(NoteCategory.TAP, 0, 1).type is TapNoteType.HOLD_HEAD
    assert TapNote(TapNoteType.HOLD_HEAD, 12).category is NoteCategory.TAP
    assert TAP_EMPTY.is_empty and TAP_EMPTY.category is None


if __name__ == "__main__":
    _run_unit_tests()
    print("chart_models.py: ok")
