"""ID3 tagging for cue-split tracks using mutagen.

Tracks cut out of a solid file carry no per-track tags of their own; the
cue sheet is the only source for their title and number.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional


def tag_cue_track(
    dst_mp3: Path,
    *,
    title: str,
    track_number: int,
    track_total: int,
    album: Optional[str] = None,
    performer: Optional[str] = None,
    album_performer: Optional[str] = None,
) -> None:
    """Write title/track/album/artist frames into an MP3, saved as ID3v2.3."""
    from mutagen.easyid3 import EasyID3
    from mutagen.id3 import ID3NoHeaderError

    try:
        tags = EasyID3(str(dst_mp3))
    except ID3NoHeaderError:
        tags = EasyID3()

    tags["title"] = [title]
    tags["tracknumber"] = [f"{track_number}/{track_total}" if track_total else str(track_number)]
    if album:
        tags["album"] = [album]
    artist = performer or album_performer
    if artist:
        tags["artist"] = [artist]
    if album_performer:
        tags["albumartist"] = [album_performer]
    tags.save(str(dst_mp3), v2_version=3)

