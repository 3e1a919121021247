"""Cue sheet discovery and parsing.

Only the handful of commands needed to pair a sheet with its solid audio
file and to name the split tracks are understood: FILE, TRACK, TITLE and
PERFORMER.
"""
from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .paths import extension_of
from .scanner import iter_files


CUE_EXTENSION = "cue"
# Fallback order when the FILE reference does not resolve
FALLBACK_AUDIO_EXTENSIONS = ("flac", "wav", "ape", "m4a")

_FILE_RE = re.compile(r'^FILE\s+(?:"([^"]*)"|(\S+))', re.IGNORECASE)
_TRACK_RE = re.compile(r"^\s*TRACK\s+(\d+)", re.IGNORECASE)
_TITLE_RE = re.compile(r'^\s*TITLE\s+(.*?)\s*$', re.IGNORECASE)
_PERFORMER_RE = re.compile(r'^\s*PERFORMER\s+(.*?)\s*$', re.IGNORECASE)


@dataclass
class CueAlbumInfo:
    performer: Optional[str] = None
    title: Optional[str] = None


@dataclass
class CueUnit:
    cue_path: Path
    audio_path: Optional[Path]


def read_cue_text(cue_path: Path) -> str:
    """Decode a cue sheet, trying the encodings rippers commonly emit."""
    raw = cue_path.read_bytes()
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return raw.decode("utf-16", errors="replace")
    for enc in ("utf-8-sig", "cp1251"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("latin-1")


def _read_lines(cue_path: Path) -> List[str]:
    try:
        return read_cue_text(cue_path).splitlines()
    except OSError as e:
        logger.warning(f"Cannot read cue sheet {cue_path}: {e}")
        return []


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value.strip('"')


def find_cue_sheets(root: Path) -> List[Path]:
    """All cue sheets below `root`, recursively, in sorted order."""
    return [p for p in iter_files(root) if extension_of(p) == CUE_EXTENSION]


def referenced_file(cue_path: Path) -> Optional[str]:
    """Return the file named by the first FILE line, quoted or bare."""
    for line in _read_lines(cue_path):
        m = _FILE_RE.match(line.lstrip())
        if m:
            ref = m.group(1) if m.group(1) is not None else m.group(2)
            return ref or None
    return None


def resolve_audio_source(cue_path: Path) -> Optional[Path]:
    """Find the solid audio file a cue sheet describes.

    The FILE reference is tried next to the sheet, then as given. Failing
    that, the first flac/wav/ape/m4a file beside the sheet is used.
    """
    cue_dir = cue_path.parent
    ref = referenced_file(cue_path)
    if ref:
        for candidate in (cue_dir / ref, Path(ref)):
            if candidate.is_file():
                return candidate
        logger.debug(f"FILE reference '{ref}' in {cue_path.name} does not exist; guessing")

    siblings = sorted(p for p in cue_dir.iterdir() if p.is_file())
    for ext in FALLBACK_AUDIO_EXTENSIONS:
        for p in siblings:
            if extension_of(p) == ext:
                return p
    return None


def _track_field(cue_path: Path, track_number: int, pattern: re.Pattern) -> Optional[str]:
    in_track = False
    for line in _read_lines(cue_path):
        tm = _TRACK_RE.match(line)
        if tm:
            in_track = int(tm.group(1)) == track_number
            continue
        if in_track:
            fm = pattern.match(line)
            if fm:
                value = _unquote(fm.group(1))
                return value or None
    return None


def extract_track_title(cue_path: Path, track_number: int) -> Optional[str]:
    """TITLE inside the `TRACK nn` block matching `track_number`, if any."""
    return _track_field(cue_path, track_number, _TITLE_RE)


def extract_track_performer(cue_path: Path, track_number: int) -> Optional[str]:
    return _track_field(cue_path, track_number, _PERFORMER_RE)


def read_album_info(cue_path: Path) -> CueAlbumInfo:
    """Album-level PERFORMER and TITLE from the lines before the first TRACK."""
    info = CueAlbumInfo()
    for line in _read_lines(cue_path):
        if _TRACK_RE.match(line):
            break
        if info.performer is None:
            m = _PERFORMER_RE.match(line)
            if m:
                info.performer = _unquote(m.group(1)) or None
                continue
        if info.title is None:
            m = _TITLE_RE.match(line)
            if m:
                info.title = _unquote(m.group(1)) or None
    return info


def discover_cue_units(root: Path) -> List[CueUnit]:
    """Pair every cue sheet under `root` with its resolved audio source."""
    return [CueUnit(cue_path=c, audio_path=resolve_audio_source(c)) for c in find_cue_sheets(root)]
