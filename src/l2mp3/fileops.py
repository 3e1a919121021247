"""Filesystem helpers shared by the encoders and the copy path.

Outputs are written to a temporary sibling and renamed into place, so an
interrupted run never leaves a truncated file that a later run would
mistake for finished work.
"""
from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path

from loguru import logger


def temp_out_path(final_path: Path) -> Path:
    """Return a unique temp file path in the same directory as final_path.

    The name is independent of final_path and fits beside any legal
    destination name.
    """
    return final_path.with_name(f".l2mp3-{os.getpid()}-{uuid.uuid4().hex[:12]}.part")


def discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not remove temp file {path}: {e}")


def commit(tmp: Path, dest: Path) -> tuple[int, str]:
    """Atomically move a finished temp file onto dest."""
    try:
        os.replace(str(tmp), str(dest))
    except OSError as e:
        err_str = f"Rename failed: {e}"
        logger.error(err_str)
        discard(tmp)
        return 1, err_str
    return 0, ""


def ensure_parent(dest: Path) -> tuple[int, str]:
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return 1, f"Cannot create directory '{dest.parent}': {e}"
    return 0, ""


def copy_file(src: Path, dest: Path) -> tuple[int, str]:
    """Copy src to dest byte-for-byte. Returns (0, "") on success."""
    tmp = temp_out_path(dest)
    try:
        shutil.copy2(str(src), str(tmp))
    except OSError as e:
        discard(tmp)
        return 1, str(e)
    return commit(tmp, dest)
