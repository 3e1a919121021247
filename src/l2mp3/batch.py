"""Batch mode: one album per immediate subdirectory of an artist directory."""
from __future__ import annotations

from pathlib import Path
from typing import List

from loguru import logger

from .album import AlbumContext, AlbumError, convert_album
from .config import ConverterSettings
from .ignore import ExtensionFilter
from .summary import AlbumSummary, BatchSummary


def find_album_dirs(input_root: Path) -> List[Path]:
    """Immediate subdirectories of `input_root`, sorted by name."""
    return sorted(p for p in input_root.iterdir() if p.is_dir())


def run_batch(
    input_root: Path,
    output_root: Path,
    cfg: ConverterSettings,
    ignore: ExtensionFilter,
    *,
    split_enabled: bool = True,
) -> BatchSummary:
    """Convert each album under `input_root` into `output_root/<artist>/<album>`.

    The artist name is the base name of `input_root`. A failing album is
    logged and counted; the remaining albums still run.
    """
    artist = input_root.name
    batch = BatchSummary()
    logger.info(f"Scanning for album directories in: {input_root}")

    for album_dir in find_album_dirs(input_root):
        n = batch.albums_found + 1
        logger.info(f"=== Processing Album {n}: {album_dir.name} ===")
        ctx = AlbumContext(input_root=album_dir, output_root=output_root / artist / album_dir.name)
        result: AlbumSummary | None = None
        try:
            result = convert_album(ctx, cfg, ignore, split_enabled=split_enabled)
        except AlbumError as e:
            logger.error(str(e))
        except Exception as e:
            logger.opt(exception=e).error(f"Unexpected error in album {album_dir.name}: {e}")

        if batch.record(result):
            logger.info(f"Successfully processed album: {album_dir.name}")
        else:
            reason = "aborted" if result is None else f"{result.failed} failure(s)"
            logger.error(f"Failed to process album: {album_dir.name} ({reason})")

    logger.info(
        f"Batch: Albums found: {batch.albums_found} | Succeeded: {batch.albums_succeeded}"
        f" | Failed: {batch.albums_failed}"
    )
    return batch
