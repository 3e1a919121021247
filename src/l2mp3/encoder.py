"""Encoder command construction and execution.

- Audio: FFmpeg with libmp3lame at a constant bitrate, copying source
  metadata into ID3v2.3 (+ ID3v1) tags.
- Artwork: Pillow re-encodes PNG to JPEG.

Both write to a temporary file in the destination directory and rename on
success, so truncated files aren't left behind on failure.
"""
from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .fileops import commit, discard, temp_out_path


def build_mp3_cmd(
    src: Path,
    out_tmp: Path,
    *,
    bitrate_kbps: int = 320,
    id3v2_version: int = 3,
    write_id3v1: bool = True,
) -> List[str]:
    return [
        "ffmpeg",
        "-y",
        "-nostdin",
        "-hide_banner",
        "-loglevel",
        "error",
        "-i",
        str(src),
        "-codec:a",
        "libmp3lame",
        "-b:a",
        f"{bitrate_kbps}k",
        "-map_metadata",
        "0",
        "-id3v2_version",
        str(id3v2_version),
        "-write_id3v1",
        "1" if write_id3v1 else "0",
        "-f",
        "mp3",  # temp name carries no usable extension
        str(out_tmp),
    ]


def run_ffmpeg(cmd: List[str], timeout: Optional[float] = None) -> tuple[int, str]:
    """Run FFmpeg and return the exit code and stderr."""
    try:
        proc = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True, timeout=timeout
        )
    except subprocess.TimeoutExpired:
        return 1, f"ffmpeg timed out after {timeout}s"
    except OSError as e:
        return 1, str(e)
    return proc.returncode, proc.stderr or ""


def cmd_to_string(cmd: List[str]) -> str:
    return " ".join(shlex.quote(p) for p in cmd)


def encode_mp3(
    src: Path,
    dest: Path,
    *,
    bitrate_kbps: int = 320,
    id3v2_version: int = 3,
    write_id3v1: bool = True,
    timeout: Optional[float] = None,
) -> tuple[int, str]:
    """Encode src to MP3 writing atomically to dest.

    Returns (0, "") on success, (non-zero, stderr) on failure.
    """
    out_tmp = temp_out_path(dest)
    cmd = build_mp3_cmd(
        src, out_tmp, bitrate_kbps=bitrate_kbps, id3v2_version=id3v2_version, write_id3v1=write_id3v1
    )
    logger.debug("Running ffmpeg: {}", cmd_to_string(cmd))
    rc, err = run_ffmpeg(cmd, timeout=timeout)
    if rc != 0:
        discard(out_tmp)
        return rc, err
    return commit(out_tmp, dest)


def encode_jpeg(src: Path, dest: Path, *, quality: int = 95) -> tuple[int, str]:
    """Re-encode an image (PNG artwork) as JPEG writing atomically to dest."""
    from PIL import Image

    out_tmp = temp_out_path(dest)
    try:
        with Image.open(src) as img:
            if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                rgba = img.convert("RGBA")
                flat = Image.new("RGB", rgba.size, (255, 255, 255))
                flat.paste(rgba, mask=rgba.getchannel("A"))
            else:
                flat = img.convert("RGB")
            flat.save(out_tmp, format="JPEG", quality=quality, optimize=True)
    except (OSError, ValueError) as e:
        discard(out_tmp)
        return 1, str(e)
    return commit(out_tmp, dest)
