from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional

from loguru import logger

from .album import AlbumContext, AlbumError, convert_album
from .batch import run_batch
from .config import ConverterSettings, cli_overrides_from_args
from .ffmpeg_check import probe_ffmpeg, probe_shntool
from .ignore import ExtensionFilter
from .logging import bind_run, configure_logging


EXIT_OK = 0
EXIT_FATAL = 1
EXIT_WITH_FILE_ERRORS = 2
EXIT_PREFLIGHT_FAILED = 3


def expand_path(raw: str) -> Path:
    """Expand `~` and make absolute; trailing separators disappear."""
    return Path(os.path.abspath(os.path.expanduser(raw)))


def resolve_output_root(input_root: Path, output_root: Optional[Path], *, batch: bool) -> Path:
    """Derive the output root for a run.

    Without an explicit output the mirror goes to `<input> (mp3)` as is.
    With one, single-album mode nests it as `<output>/<artist>/<album>`,
    where artist and album are the input's parent and own names. Batch mode
    returns the output untouched; the batch driver adds `<artist>/<album>`.
    """
    if output_root is None:
        return Path(f"{input_root} (mp3)")
    if batch:
        return output_root
    return output_root / input_root.parent.name / input_root.name


def cmd_preflight() -> tuple[bool, bool]:
    """Check external tools. Returns (can_run, can_split_cue_sheets)."""
    st = probe_ffmpeg()
    if not st.available:
        logger.error("ffmpeg: NOT FOUND")
        if st.error:
            logger.error(st.error)
        logger.error("Install with: sudo apt update && sudo apt install ffmpeg")
        return False, False
    logger.debug(f"ffmpeg: {st.ffmpeg_path} ({st.ffmpeg_version})")
    if not st.has_libmp3lame:
        logger.error("ffmpeg was built without libmp3lame; cannot encode MP3")
        return False, False

    st_shn = probe_shntool()
    if not st_shn.available:
        logger.warning(f"shntool/cuetools: {st_shn.error} - cue sheet splitting will be skipped")
        logger.warning("To enable cue support: sudo apt update && sudo apt install shntool cuetools")
    return True, st_shn.available


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lossless-to-mp3",
        description=(
            "Convert FLAC, WAV, APE, M4A and WavPack files to MP3 320 kbps while preserving"
            " the folder structure. Cue sheets are used to split solid audio files into tracks."
        ),
    )
    p.add_argument(
        "-i",
        "--input",
        dest="input_dir",
        default=None,
        help="Input directory containing audio files (required)",
    )
    p.add_argument(
        "-o",
        "--output",
        dest="output_dir",
        default=None,
        help="Output directory (default: 'INPUT_DIR (mp3)'); when given, single mode writes to OUTPUT/artist/album",
    )
    p.add_argument(
        "-b",
        "--batch",
        action="store_true",
        help="Batch mode: process every subdirectory of INPUT_DIR as a separate album",
    )
    p.add_argument(
        "-c",
        "--config",
        dest="ignore_file",
        default=None,
        help="File listing extensions to ignore, one per line without dots (default: bundled .ignore)",
    )
    p.add_argument(
        "--settings",
        dest="settings_path",
        default=None,
        help="Path to TOML settings (default: ~/.config/lossless-to-mp3/config.toml)",
    )
    p.add_argument(
        "--write-config",
        action="store_true",
        help="Write current effective settings to the settings file and exit",
    )
    p.add_argument(
        "--log-level",
        default=None,
        help="Console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    p.add_argument(
        "--log-json",
        dest="log_json",
        default=None,
        help="Path to write JSON lines log (structured events)",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if args.ignore_file:
        args.ignore_file = str(expand_path(args.ignore_file))

    settings_path = expand_path(args.settings_path) if args.settings_path else None
    cfg = ConverterSettings.load(config_path=settings_path, overrides=cli_overrides_from_args(args))

    if args.write_config:
        written = cfg.write(settings_path)
        print(f"Config written to: {written}")
        return EXIT_OK

    if not args.input_dir:
        p.error("input directory is required (-i option)")

    configure_logging(cfg.log_level, cfg.log_json)
    bind_run()

    ok, split_enabled = cmd_preflight()
    if not ok:
        return EXIT_PREFLIGHT_FAILED

    ignore = ExtensionFilter.load(cfg.ignore_file)

    input_root = expand_path(args.input_dir)
    output_arg = expand_path(args.output_dir) if args.output_dir else None
    output_root = resolve_output_root(input_root, output_arg, batch=args.batch)

    if not input_root.is_dir():
        logger.error(f"Input directory '{input_root}' does not exist")
        return EXIT_FATAL

    if args.batch:
        logger.info("Batch mode: processing all subdirectories as separate albums")
        batch = run_batch(input_root, output_root, cfg, ignore, split_enabled=split_enabled)
        return EXIT_OK if batch.albums_failed == 0 else EXIT_WITH_FILE_ERRORS

    logger.info("Single album mode: processing input directory as one album")
    try:
        summary = convert_album(
            AlbumContext(input_root=input_root, output_root=output_root),
            cfg,
            ignore,
            split_enabled=split_enabled,
        )
    except AlbumError as e:
        logger.error(str(e))
        return EXIT_FATAL
    return EXIT_OK if summary.failed == 0 else EXIT_WITH_FILE_ERRORS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
