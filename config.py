"""
config.py

Typed configuration loading and validation for the fretchart loaders.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- Work with no config file at all: every field has a default

Config file location
- If FRETCHART_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./fretchart_config.json (current working directory)
  2) <user config dir>/fretchart/fretchart_config.json
  3) <user config dir>/fretchart/config.json
- If none exists, the defaults are used.

Example config file (fretchart_config.json)
{
  "chart": {
    "default_resolution": 192
  },
  "hopo": {
    "legacy_truncation": false
  },
  "files": {
    "song_ini_name": "song.ini",
    "music_extension": ".ogg",
    "lyrics_extension": ".lrc"
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator


class ChartConfig(BaseModel):
    default_resolution: int = Field(
        default=192, ge=1, description="Ticks per beat for .chart files without a Resolution line."
    )


class HopoConfig(BaseModel):
    legacy_truncation: bool = Field(
        default=False,
        description="Reproduce the integer truncation of older loaders in the song.ini HOPO frequency table.",
    )


class FilesConfig(BaseModel):
    song_ini_name: str = Field(default="song.ini", description="Per-song settings file next to the chart.")
    music_extension: str = Field(default=".ogg", description="Extension of audio stems next to a .mid file.")
    lyrics_extension: str = Field(default=".lrc", description="Extension of an existing lyrics file.")

    @field_validator("music_extension", "lyrics_extension")
    @classmethod
    def normalize_extension(cls, value: str) -> str:
        trimmed = (value or "").strip().lower()
        if not trimmed:
            raise ValueError("extension must be non-empty")
        return trimmed if trimmed.startswith(".") else "." + trimmed

    @field_validator("song_ini_name")
    @classmethod
    def validate_file_name(cls, value: str) -> str:
        trimmed = (value or "").strip()
        if not trimmed:
            raise ValueError("song_ini_name must be non-empty")
        return trimmed


class LoaderConfig(BaseModel):
    chart: ChartConfig = Field(default_factory=ChartConfig)
    hopo: HopoConfig = Field(default_factory=HopoConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("fretchart", "fretchart"))
    return [
        Path.cwd() / "fretchart_config.json",
        config_directory / "fretchart_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("FRETCHART_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        parsed = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _section(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
    section = config_root.get(section_name)
    if not isinstance(section, dict):
        section = {}
    else:
        section = dict(section)
    config_root[section_name] = section
    return section


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - FRETCHART_DEFAULT_RESOLUTION (integer; unparsable values are ignored)
    - FRETCHART_LEGACY_HOPO_TRUNCATION (1/0, true/false, yes/no, on/off)
    - FRETCHART_SONG_INI_NAME
    """
    updated_config = dict(config_dict)

    resolution_text = os.environ.get("FRETCHART_DEFAULT_RESOLUTION", "").strip()
    if resolution_text:
        try:
            _section(updated_config, "chart")["default_resolution"] = int(resolution_text)
        except ValueError:
            pass

    truncation_text = os.environ.get("FRETCHART_LEGACY_HOPO_TRUNCATION", "").strip().lower()
    if truncation_text in _TRUTHY or truncation_text in _FALSY:
        _section(updated_config, "hopo")["legacy_truncation"] = truncation_text in _TRUTHY

    song_ini_name = os.environ.get("FRETCHART_SONG_INI_NAME", "").strip()
    if song_ini_name:
        _section(updated_config, "files")["song_ini_name"] = song_ini_name

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[LoaderConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = LoaderConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "defaults"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[LoaderConfig, Optional[Path]]:
    return load_config()


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
