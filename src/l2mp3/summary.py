"""Run counters for one album and for a batch of albums."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict


_FAILURE_FIELDS = ("cues_failed", "tracks_failed", "files_failed", "images_failed", "copies_failed")


@dataclass
class AlbumSummary:
    # Cue stage
    cues_found: int = 0
    cues_split: int = 0
    cues_skipped: int = 0  # no audio source, or splitter unavailable
    cues_failed: int = 0
    tracks_split: int = 0
    tracks_converted: int = 0
    tracks_skipped: int = 0
    tracks_failed: int = 0
    # Individual audio stage
    files_converted: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    # Sidecar stage
    images_converted: int = 0
    images_skipped: int = 0
    images_failed: int = 0
    files_copied: int = 0
    copies_skipped: int = 0
    copies_failed: int = 0
    files_ignored: int = 0

    @property
    def failed(self) -> int:
        return sum(getattr(self, name) for name in _FAILURE_FIELDS)

    @property
    def written(self) -> int:
        """Outputs produced by this run (skipped outputs excluded)."""
        return self.tracks_converted + self.files_converted + self.images_converted + self.files_copied

    def merge(self, other: "AlbumSummary") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class BatchSummary:
    albums_found: int = 0
    albums_succeeded: int = 0
    albums_failed: int = 0
    totals: AlbumSummary = field(default_factory=AlbumSummary)

    def record(self, album: AlbumSummary | None) -> bool:
        """Fold one album's result in. None means the album aborted.

        Returns whether the album counts as succeeded (ran, zero failures).
        """
        self.albums_found += 1
        if album is not None:
            self.totals.merge(album)
        ok = album is not None and album.failed == 0
        if ok:
            self.albums_succeeded += 1
        else:
            self.albums_failed += 1
        return ok

    def as_dict(self) -> Dict[str, Any]:
        return {
            "albums_found": self.albums_found,
            "albums_succeeded": self.albums_succeeded,
            "albums_failed": self.albums_failed,
            "totals": self.totals.as_dict(),
        }
