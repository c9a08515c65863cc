# -*- coding: utf-8 -*-
########################
# chart_tokens.py
########################
# Purpose:
# - Tokenize the line-oriented .chart format.
# - Split the text into bracketed sections and section bodies into (tick, kind, args) records.
#
# Design notes:
# - Short or malformed records are skipped; bad numbers read as a default.
# - Tabs are removed before splitting on whitespace.
# - A section body ends at "}" or at end of input. "{" lines and blank lines are skipped.
#
########################
# Interfaces:
# Public dataclasses:
# - ChartLine(tick: int, kind: str, args: tuple[str, ...])
#
# Public functions:
# - line_words(line: str) -> list[str]
# - parse_int(text: str, default: int = 0) -> int
# - section_name(words: Sequence[str]) -> Optional[str]
# - iter_section(lines: Iterator[str]) -> Iterator[list[str]]
# - parse_chart_line(words: Sequence[str]) -> Optional[ChartLine]
# - join_value(words: Sequence[str]) -> str
# - unquote(text: str) -> str
#
########################

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterator, List, Optional, Sequence, Tuple


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class ChartLine:
    tick: int
    kind: str
    args: Tuple[str, ...]


def line_words(line: str) -> List[str]:
    return str(line).replace("\t", "").split()


def parse_int(text: str, default: int = 0) -> int:
    """Leading-integer parse: "96" -> 96, "12abc" -> 12, "abc" -> default."""
    match = _LEADING_INT.match(str(text or ""))
    if match is None:
        return int(default)
    return int(match.group(1))


def parse_float(text: str, default: float = 0.0) -> float:
    match = _LEADING_FLOAT.match(str(text or ""))
    if match is None:
        return float(default)
    return float(match.group(1))


def section_name(words: Sequence[str]) -> Optional[str]:
    if not words or not words[0].startswith("["):
        return None
    return " ".join(words).strip().lstrip("[").rstrip("]").strip()


def iter_section(lines: Iterator[str]) -> Iterator[List[str]]:
    """Yield the word lists of one section body, consuming lines up to and including "}"."""
    for line in lines:
        words = line_words(line)
        if not words:
            continue
        if words[0].startswith("{"):
            continue
        if words[0].startswith("}"):
            return
        yield words


def parse_chart_line(words: Sequence[str]) -> Optional[ChartLine]:
    # tick = KIND args...
    if len(words) < 3 or words[1] != "=":
        return None
    return ChartLine(tick=parse_int(words[0], -1), kind=words[2], args=tuple(words[3:]))


def join_value(words: Sequence[str]) -> str:
    """Re-join the value words of a "Key = value with spaces" line."""
    return " ".join(words[2:])


def unquote(text: str) -> str:
    value = str(text).strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value.strip('"')
