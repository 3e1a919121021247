"""Extension blacklist for sidecar files.

The source is line oriented: one extension per line, without the leading
dot. Blank lines and lines starting with `#` are skipped, whitespace is
stripped everywhere in the line and case is folded.
"""
from __future__ import annotations

from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from loguru import logger


def parse_extensions(lines: Iterable[str]) -> FrozenSet[str]:
    exts = set()
    for line in lines:
        if line.lstrip().startswith("#"):
            continue
        token = "".join(line.split()).lower()
        if token:
            exts.add(token)
    return frozenset(exts)


class ExtensionFilter:
    """Case-insensitive membership test over a loaded extension set."""

    def __init__(self, extensions: Iterable[str] = ()) -> None:
        self._exts = parse_extensions(extensions)

    @classmethod
    def load(cls, source: Optional[Path]) -> "ExtensionFilter":
        """Load from a file path. A missing file yields an empty filter."""
        if source is None or not source.is_file():
            logger.info(f"Ignore list not found: {source} (optional)")
            return cls()
        with source.open("r", encoding="utf-8", errors="replace") as f:
            flt = cls(f)
        if flt.extensions:
            logger.info(f"Ignored extensions from {source}: {' '.join(sorted(flt.extensions))}")
        else:
            logger.info(f"No extensions listed in {source}")
        return flt

    @property
    def extensions(self) -> FrozenSet[str]:
        return self._exts

    def is_ignored(self, extension: str) -> bool:
        return extension.strip().lstrip(".").lower() in self._exts

    def __len__(self) -> int:
        return len(self._exts)
