"""Album tree scanner (standard library only).

Every listing is sorted so repeated scans of an unchanged tree yield the
same order.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Set

from .paths import extension_of, to_relative, to_destination


AUDIO_EXTENSIONS = frozenset({"flac", "wav", "ape", "m4a", "wv"})
IMAGE_EXTENSION = "png"

TARGET_AUDIO_EXT = "mp3"
TARGET_IMAGE_EXT = "jpg"


@dataclass(frozen=True)
class AudioFile:
    path: Path
    rel_path: Path
    dest_path: Path

    @property
    def extension(self) -> str:
        return extension_of(self.path)


@dataclass(frozen=True)
class SidecarFile:
    path: Path
    rel_path: Path
    extension: str

    @property
    def is_image(self) -> bool:
        return self.extension == IMAGE_EXTENSION

    def dest_path(self, out_root: Path) -> Path:
        new_ext = TARGET_IMAGE_EXT if self.is_image else None
        return to_destination(self.rel_path, out_root, new_ext)


def is_audio(path: Path) -> bool:
    return extension_of(path) in AUDIO_EXTENSIONS


def iter_files(root: Path) -> Iterator[Path]:
    """Yield every regular file below `root`, sorted by path."""
    found: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        d = Path(dirpath)
        for name in filenames:
            p = d / name
            if p.is_file():
                found.append(p)
    yield from sorted(found)


def scan_audio_files(root: Path, out_root: Path, exclude: Iterable[Path] = ()) -> List[AudioFile]:
    """List lossless audio under `root`, minus any path in `exclude`.

    Exclusion compares resolved paths, so a cue-referenced file reached
    through a different spelling is still dropped.
    """
    excluded: Set[Path] = {Path(p).resolve() for p in exclude}
    results: List[AudioFile] = []
    for p in iter_files(root):
        if not is_audio(p):
            continue
        if p.resolve() in excluded:
            continue
        rel = to_relative(p, root)
        results.append(AudioFile(path=p, rel_path=rel, dest_path=to_destination(rel, out_root, TARGET_AUDIO_EXT)))
    return results


def scan_sidecar_files(root: Path) -> List[SidecarFile]:
    """List every non-audio file under `root` (cue sheets included)."""
    return [
        SidecarFile(path=p, rel_path=to_relative(p, root), extension=extension_of(p))
        for p in iter_files(root)
        if not is_audio(p)
    ]
