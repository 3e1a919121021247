from __future__ import annotations

import re
import unicodedata
from pathlib import Path
from typing import Optional


_TITLE_ILLEGAL_CHARS_RE = re.compile(r'[/\\:*?"<>|]')

# Filesystems limit one path segment to 255 bytes.
_MAX_SEGMENT_BYTES = 255


def to_relative(file_path: Path, root: Path) -> Path:
    """Return `file_path` relative to `root`, both resolved through symlinks.

    Files that do not lie under `root` (or would need `..` to reach) are
    flattened to their base name, which places them at the output root.
    """
    try:
        resolved = Path(file_path).resolve()
        rel = resolved.relative_to(Path(root).resolve())
    except (OSError, ValueError):
        return Path(Path(file_path).name)
    if not rel.parts or ".." in rel.parts:
        return Path(Path(file_path).name)
    return rel


def to_destination(rel_path: Path, out_root: Path, new_ext: Optional[str] = None) -> Path:
    """Re-root `rel_path` under `out_root`, optionally swapping the extension.

    `new_ext` is given without the dot; None keeps the file name unchanged.
    """
    rel_path = Path(rel_path)
    name = rel_path.name
    if new_ext is not None:
        name = Path(name).with_suffix(f".{new_ext}").name
    return Path(out_root) / rel_path.parent / name


def extension_of(path: Path) -> str:
    """Lower-cased final extension without the dot ('' when there is none)."""
    return Path(path).suffix[1:].lower()


def sanitize_title(title: str) -> str:
    """Make a cue sheet title usable as a file name segment.

    Each of / \\ : * ? " < > | becomes an underscore.
    """
    s = unicodedata.normalize("NFC", title)
    s = _TITLE_ILLEGAL_CHARS_RE.sub("_", s)
    return s.strip()


def _fit_utf8(text: str, max_bytes: int) -> str:
    """Longest prefix of `text` whose UTF-8 encoding fits in `max_bytes`."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    # Cut on a character boundary
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def track_file_name(track_number: int, title: str, ext: str) -> str:
    """Build `NN - Title.ext`, trimming the title to fit one path segment in bytes."""
    prefix = f"{track_number:02d} - "
    suffix = f".{ext}"
    room = _MAX_SEGMENT_BYTES - len(prefix.encode("utf-8")) - len(suffix.encode("utf-8"))
    return prefix + _fit_utf8(title, room).rstrip() + suffix
