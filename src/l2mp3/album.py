"""Per-album conversion pipeline.

Three strictly sequential stages run against one album root:

1. cue: split every cue-described solid file into tracks and encode them
   as `NN - Title.mp3` beside the sheet's mirrored directory;
2. audio: encode every remaining lossless file to MP3 at its mirrored path,
   skipping the solid files consumed in stage 1;
3. sidecar: drop blacklisted extensions, re-encode PNG artwork to JPEG,
   copy everything else verbatim.

An existing destination is always treated as finished work, which makes
re-running an interrupted conversion safe. Per-file failures are counted
in the `AlbumSummary`; only a missing input root or an uncreatable output
root raise (`AlbumError`).
"""
from __future__ import annotations

import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List

from loguru import logger

from .config import ConverterSettings
from .cue import CueUnit, discover_cue_units, extract_track_performer, extract_track_title, read_album_info
from .encoder import encode_jpeg, encode_mp3
from .fileops import copy_file, ensure_parent
from .ignore import ExtensionFilter
from .logging import album_context, log_event, truncate
from .metadata import tag_cue_track
from .paths import sanitize_title, to_relative, track_file_name
from .scanner import (
    AUDIO_EXTENSIONS,
    TARGET_AUDIO_EXT,
    AudioFile,
    SidecarFile,
    scan_audio_files,
    scan_sidecar_files,
)
from .splitter import split_with_cue
from .summary import AlbumSummary


class AlbumError(Exception):
    """The album cannot be processed at all (missing input, unwritable output)."""


@dataclass(frozen=True)
class AlbumContext:
    input_root: Path
    output_root: Path

    @property
    def name(self) -> str:
        return self.input_root.name


class AlbumConverter:
    def __init__(
        self,
        ctx: AlbumContext,
        cfg: ConverterSettings,
        ignore: ExtensionFilter,
        *,
        split_enabled: bool = True,
    ) -> None:
        self.ctx = ctx
        self.cfg = cfg
        self.ignore = ignore
        self.split_enabled = split_enabled
        self.summary = AlbumSummary()

    # -- entry -----------------------------------------------------------

    def run(self) -> AlbumSummary:
        in_root = self.ctx.input_root
        out_root = self.ctx.output_root
        if not in_root.is_dir():
            raise AlbumError(f"Input directory '{in_root}' does not exist")
        try:
            out_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AlbumError(f"Cannot create output directory '{out_root}': {e}") from e

        logger.info(f"Processing album: {self.ctx.name}")
        logger.info(f"Source: {in_root} -> Dest: {out_root}")
        t0 = time.time()

        with album_context(self.ctx.name):
            consumed = self._cue_stage()
            self._audio_stage(consumed)
            self._sidecar_stage()

        s = self.summary
        logger.info(
            f"Album {self.ctx.name}: Tracks: {s.tracks_converted} | Files: {s.files_converted}"
            f" | Images: {s.images_converted} | Copied: {s.files_copied} | Ignored: {s.files_ignored}"
            f" | Skipped: {s.tracks_skipped + s.files_skipped + s.images_skipped + s.copies_skipped}"
            f" | Failed: {s.failed} | {time.time() - t0:.1f}s"
        )
        log_event("album", album=self.ctx.name, status="ok" if s.failed == 0 else "error", **s.as_dict())
        return s

    # -- stage 1: cue sheets ---------------------------------------------

    def _cue_stage(self) -> List[Path]:
        """Split and encode cue albums; return the solid files they consumed."""
        units = discover_cue_units(self.ctx.input_root)
        if not units:
            logger.debug("No cue sheets found")
            return []
        logger.info(f"Found {len(units)} cue sheet(s) for audio splitting")

        consumed: List[Path] = []
        for unit in units:
            self.summary.cues_found += 1
            if unit.audio_path is None:
                logger.warning(f"No associated audio file found for cue sheet: {unit.cue_path}")
                self.summary.cues_skipped += 1
                continue
            consumed.append(unit.audio_path)
            if not self.split_enabled:
                logger.warning(f"shntool/cuetools not available; not splitting {unit.cue_path.name}")
                self.summary.cues_skipped += 1
                continue
            self._split_cue(unit, unit.audio_path)
        return consumed

    def _split_cue(self, unit: CueUnit, audio: Path) -> None:
        logger.info(f"Splitting {audio.name} using {unit.cue_path.name}")
        with tempfile.TemporaryDirectory(prefix="l2mp3-split-") as tmp:
            rc, err, files = split_with_cue(
                unit.cue_path, audio, Path(tmp), timeout=self.cfg.tool_timeout
            )
            if rc != 0:
                self.summary.cues_failed += 1
                logger.error(f"Failed to split {audio.name} using {unit.cue_path.name}")
                if err:
                    logger.error(truncate(err))
                return
            self.summary.cues_split += 1
            self.summary.tracks_split += len(files)
            self._encode_cue_tracks(unit, files)

    def _encode_cue_tracks(self, unit: CueUnit, files: List[Path]) -> None:
        rel_dir = to_relative(unit.cue_path, self.ctx.input_root).parent
        dest_dir = self.ctx.output_root / rel_dir
        album = read_album_info(unit.cue_path)
        total = len(files)
        ok = failed = 0

        for n, split_file in enumerate(files, start=1):
            raw_title = extract_track_title(unit.cue_path, n)
            title = sanitize_title(raw_title) if raw_title else ""
            if not title:
                title = f"Track {n:02d}"
            dest = dest_dir / track_file_name(n, title, TARGET_AUDIO_EXT)

            if dest.exists():
                self.summary.tracks_skipped += 1
                logger.info(f"[{n}/{total}] SKIP {dest.name} (exists)")
                continue
            rc, err = ensure_parent(dest)
            if rc == 0:
                t0 = time.time()
                rc, err = encode_mp3(
                    split_file,
                    dest,
                    bitrate_kbps=self.cfg.bitrate_kbps,
                    id3v2_version=self.cfg.id3v2_version,
                    write_id3v1=self.cfg.write_id3v1,
                    timeout=self.cfg.tool_timeout,
                )
                log_event(
                    "encode_track",
                    level="DEBUG",
                    file=str(dest),
                    status="ok" if rc == 0 else "error",
                    elapsed_ms=int((time.time() - t0) * 1000),
                )
            if rc != 0:
                self.summary.tracks_failed += 1
                failed += 1
                logger.error(f"[{n}/{total}] ERR  track {n:02d} of {unit.cue_path.name} -> {dest.name}")
                if err:
                    logger.error(truncate(err))
                continue

            self.summary.tracks_converted += 1
            ok += 1
            logger.info(f"[{n}/{total}] OK   {dest.name}")
            if self.cfg.tag_cue_tracks:
                try:
                    tag_cue_track(
                        dest,
                        title=raw_title or title,
                        track_number=n,
                        track_total=total,
                        album=album.title,
                        performer=extract_track_performer(unit.cue_path, n),
                        album_performer=album.performer,
                    )
                except Exception as e:
                    logger.bind(action="tags", file=str(dest.name), status="warn", reason=str(e)).warning(
                        "cue tags write failed"
                    )

        logger.info(
            f"Cue {unit.cue_path.name}: split {total} | converted {ok} | failed {failed}"
        )

    # -- stage 2: individual audio files ---------------------------------

    def _audio_stage(self, consumed: List[Path]) -> None:
        files = scan_audio_files(self.ctx.input_root, self.ctx.output_root, exclude=consumed)
        logger.info(f"Found {len(files)} audio file(s) to convert")
        for n, af in enumerate(files, start=1):
            self._convert_audio_file(af, n, len(files))

    def _convert_audio_file(self, af: AudioFile, n: int, total: int) -> None:
        if af.extension not in AUDIO_EXTENSIONS:
            logger.warning(f"'{af.path}' is not a supported audio file, skipping")
            return
        dest = af.dest_path
        if dest.exists():
            self.summary.files_skipped += 1
            logger.info(f"[{n}/{total}] SKIP {af.rel_path} (exists)")
            return
        rc, err = ensure_parent(dest)
        if rc == 0:
            t0 = time.time()
            rc, err = encode_mp3(
                af.path,
                dest,
                bitrate_kbps=self.cfg.bitrate_kbps,
                id3v2_version=self.cfg.id3v2_version,
                write_id3v1=self.cfg.write_id3v1,
                timeout=self.cfg.tool_timeout,
            )
            log_event(
                "encode",
                level="DEBUG",
                file=str(af.rel_path),
                status="ok" if rc == 0 else "error",
                elapsed_ms=int((time.time() - t0) * 1000),
            )
        if rc == 0:
            self.summary.files_converted += 1
            logger.info(f"[{n}/{total}] OK   {af.rel_path} -> {dest.relative_to(self.ctx.output_root)}")
        else:
            self.summary.files_failed += 1
            logger.error(f"[{n}/{total}] ERR  {af.rel_path}")
            if err:
                logger.error(truncate(err))

    # -- stage 3: sidecar files ------------------------------------------

    def _sidecar_stage(self) -> None:
        sidecars = scan_sidecar_files(self.ctx.input_root)
        if not sidecars:
            logger.debug("No other files found")
            return
        logger.info(f"Found {len(sidecars)} other file(s) to process")
        for sc in sidecars:
            self._dispose_sidecar(sc)

    def _dispose_sidecar(self, sc: SidecarFile) -> None:
        s = self.summary
        if self.ignore.is_ignored(sc.extension):
            s.files_ignored += 1
            logger.info(f"IGNORE {sc.rel_path} (extension: {sc.extension})")
            return

        dest = sc.dest_path(self.ctx.output_root)
        if dest.exists():
            if sc.is_image:
                s.images_skipped += 1
            else:
                s.copies_skipped += 1
            logger.info(f"SKIP   {sc.rel_path} (exists)")
            return

        rc, err = ensure_parent(dest)
        if rc == 0:
            if sc.is_image:
                rc, err = encode_jpeg(sc.path, dest, quality=self.cfg.image_quality)
            else:
                rc, err = copy_file(sc.path, dest)

        if sc.is_image:
            if rc == 0:
                s.images_converted += 1
                logger.info(f"IMAGE  {sc.rel_path} -> {dest.name}")
            else:
                s.images_failed += 1
                logger.error(f"ERR    image {sc.rel_path}: {err}")
        else:
            if rc == 0:
                s.files_copied += 1
                logger.info(f"COPY   {sc.rel_path}")
            else:
                s.copies_failed += 1
                logger.error(f"ERR    copy {sc.rel_path}: {err}")


def convert_album(
    ctx: AlbumContext,
    cfg: ConverterSettings,
    ignore: ExtensionFilter,
    *,
    split_enabled: bool = True,
) -> AlbumSummary:
    """Run the three-stage pipeline for one album and return its counters."""
    return AlbumConverter(ctx, cfg, ignore, split_enabled=split_enabled).run()
