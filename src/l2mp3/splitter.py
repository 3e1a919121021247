"""Cue-driven splitting of solid audio files.

`cuebreakpoints` (cuetools) prints the track boundaries of a cue sheet and
`shnsplit` (shntool) cuts the audio at them, writing one FLAC per track.
"""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .encoder import cmd_to_string


def build_cuebreakpoints_cmd(cue_path: Path) -> List[str]:
    return ["cuebreakpoints", str(cue_path)]


def build_shnsplit_cmd(audio_path: Path, out_dir: Path) -> List[str]:
    return [
        "shnsplit",
        "-q",
        "-O",
        "never",
        "-o",
        "flac",
        "-d",
        str(out_dir),
        str(audio_path),
    ]


def collect_split_files(out_dir: Path) -> List[Path]:
    """Produced track files in track order (shnsplit numbers them from 01)."""
    return sorted(out_dir.glob("*.flac"))


def split_with_cue(
    cue_path: Path,
    audio_path: Path,
    out_dir: Path,
    *,
    timeout: Optional[float] = None,
) -> tuple[int, str, List[Path]]:
    """Split `audio_path` at the breakpoints of `cue_path` into `out_dir`.

    Returns (0, "", files) on success; (non-zero, combined_stderr, []) on failure.
    """
    bp_cmd = build_cuebreakpoints_cmd(cue_path)
    shn_cmd = build_shnsplit_cmd(audio_path, out_dir)
    logger.debug("Running cuebreakpoints: {}", cmd_to_string(bp_cmd))
    logger.debug("Running shnsplit: {}", cmd_to_string(shn_cmd))

    try:
        p_bp = subprocess.Popen(bp_cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as e:
        return 1, str(e), []
    try:
        try:
            p_shn = subprocess.Popen(
                shn_cmd,
                stdin=p_bp.stdout,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            return 1, str(e), []
        # Let cuebreakpoints see SIGPIPE if shnsplit exits early
        if p_bp.stdout is not None:
            p_bp.stdout.close()
        try:
            _, err_shn = p_shn.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            p_shn.kill()
            p_shn.communicate()
            return 1, f"shnsplit timed out after {timeout}s", []
        _, err_bp_bytes = p_bp.communicate()
        err_bp = err_bp_bytes.decode("utf-8", errors="replace") if err_bp_bytes else ""

        rc = p_shn.returncode or p_bp.returncode or 0
        if rc != 0:
            return rc, f"shnsplit:\n{err_shn}\n\ncuebreakpoints:\n{err_bp}", []
        files = collect_split_files(out_dir)
        if not files:
            return 1, "shnsplit produced no tracks", []
        return 0, "", files
    finally:
        if p_bp.poll() is None:
            p_bp.kill()
        p_bp.wait()
        for pipe in (p_bp.stdout, p_bp.stderr):
            if pipe is not None:
                pipe.close()
