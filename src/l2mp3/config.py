"""Run settings for lossless-to-mp3.

Values are layered, later layers winning:

1. field defaults on `ConverterSettings`
2. `L2MP3_*` environment variables
3. the TOML settings file (`~/.config/lossless-to-mp3/config.toml` unless
   `--settings` names another)
4. command-line options

The extension blacklist is not part of these settings; `ignore_file` only
points at it.
"""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tomlkit import dumps as toml_dumps


DEFAULT_CONFIG_PATH = Path("~/.config/lossless-to-mp3/config.toml").expanduser()
# Extension blacklist shipped alongside the package modules
DEFAULT_IGNORE_PATH = Path(__file__).resolve().parent / ".ignore"
ENV_PREFIX = "L2MP3_"

# argparse dest -> settings field
_CLI_KEYS = {
    "log_level": "log_level",
    "log_json": "log_json",
    "ignore_file": "ignore_file",
}


class ConverterSettings(BaseSettings):
    log_level: str = Field(default="INFO", description="Console log level")
    log_json: Optional[str] = Field(default=None, description="JSON lines log file")

    # libmp3lame, constant bitrate
    bitrate_kbps: int = Field(default=320, description="MP3 bitrate in kbps")
    id3v2_version: int = Field(default=3, description="ID3v2 version ffmpeg writes")
    write_id3v1: bool = Field(default=True, description="Append an ID3v1 tag as well")

    image_quality: int = Field(default=95, description="JPEG quality for PNG artwork")

    ignore_file: Path = Field(default=DEFAULT_IGNORE_PATH, description="Extension blacklist file")

    tool_timeout: Optional[float] = Field(
        default=None, description="Seconds one ffmpeg/shnsplit run may take; unset waits forever"
    )
    tag_cue_tracks: bool = Field(default=True, description="Tag split cue tracks from the sheet")

    # Where this instance was loaded from; never written out
    config_path: Path = Field(default=DEFAULT_CONFIG_PATH, exclude=True)

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    @staticmethod
    def read_toml(path: Path) -> Dict[str, Any]:
        """Top-level table of a TOML file; {} when the file is absent."""
        if not path.is_file():
            return {}
        with path.open("rb") as f:
            return tomllib.load(f)

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ConverterSettings":
        """Build the effective settings; None-valued overrides are skipped."""
        path = config_path or DEFAULT_CONFIG_PATH
        # Constructor kwargs take precedence over env in pydantic-settings
        values = cls(**cls.read_toml(path)).model_dump()
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})
        values["config_path"] = path
        return cls(**values)

    def to_toml(self) -> str:
        data = self.model_dump(mode="json")
        # TOML has no null
        return toml_dumps({k: v for k, v in data.items() if v is not None})

    def write(self, path: Optional[Path] = None) -> Path:
        """Persist the effective settings as TOML and return the file written."""
        target = path or self.config_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.to_toml(), encoding="utf-8")
        return target


def cli_overrides_from_args(args: Any) -> Dict[str, Any]:
    """Settings overrides from an argparse namespace (None kept; `load` drops it)."""
    return {field: getattr(args, dest) for dest, field in _CLI_KEYS.items() if hasattr(args, dest)}
