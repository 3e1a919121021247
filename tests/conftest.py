from pathlib import Path

import pytest

from l2mp3.config import ConverterSettings
from l2mp3.ignore import ExtensionFilter


@pytest.fixture
def cfg(tmp_path: Path) -> ConverterSettings:
    # No TOML file; cue tags off unless a test asks for them
    return ConverterSettings.load(
        config_path=tmp_path / "absent.toml",
        overrides={"tag_cue_tracks": False},
    )


@pytest.fixture
def no_ignore() -> ExtensionFilter:
    return ExtensionFilter()

