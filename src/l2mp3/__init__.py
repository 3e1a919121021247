"""L2MP3 (lossless to MP3)

Core package for mirroring a tree of lossless albums to MP3, splitting
cue-sheet "solid" albums into tracks and carrying sidecar files along.
"""

__all__ = [
    "__version__",
]

# Keep in sync with pyproject.toml
__version__ = "0.1.0"
