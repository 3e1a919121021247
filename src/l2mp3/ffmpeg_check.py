"""Preflight probes for the external tools.

ffmpeg with libmp3lame is mandatory. shnsplit (shntool) and cuebreakpoints
(cuetools) are only needed to split cue-sheet albums.
"""
from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class FFmpegStatus:
    available: bool
    ffmpeg_path: Optional[str] = None
    ffmpeg_version: Optional[str] = None
    has_libmp3lame: Optional[bool] = None
    error: Optional[str] = None


@dataclass
class ShntoolStatus:
    available: bool
    shnsplit_path: Optional[str] = None
    cuebreakpoints_path: Optional[str] = None
    error: Optional[str] = None


def _run(cmd: List[str]) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:  # pragma: no cover - binary vanished after which()
        return 1, "", str(exc)
    return proc.returncode, proc.stdout, proc.stderr


def probe_ffmpeg() -> FFmpegStatus:
    path = shutil.which("ffmpeg")
    if not path:
        return FFmpegStatus(available=False, error="ffmpeg not found in PATH")

    rc, out, err = _run([path, "-version"])
    if rc != 0:
        return FFmpegStatus(available=False, ffmpeg_path=path, error=err or "ffmpeg -version failed")
    version = out.splitlines()[0].strip() if out else None

    rc_enc, encoders, _ = _run([path, "-hide_banner", "-encoders"])
    return FFmpegStatus(
        available=True,
        ffmpeg_path=path,
        ffmpeg_version=version,
        has_libmp3lame=rc_enc == 0 and "libmp3lame" in encoders.lower(),
    )


def probe_shntool() -> ShntoolStatus:
    found = {name: shutil.which(name) for name in ("shnsplit", "cuebreakpoints")}
    missing = [name for name, p in found.items() if not p]
    return ShntoolStatus(
        available=not missing,
        shnsplit_path=found["shnsplit"],
        cuebreakpoints_path=found["cuebreakpoints"],
        error=f"not found in PATH: {', '.join(missing)}" if missing else None,
    )
