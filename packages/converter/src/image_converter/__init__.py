"""
Image Optimization Engine.

This package is the core conversion and packaging logic.
It is used by the backend and the CLI.

Deployment:
    pip install image-optimizer

This package has no networking dependencies. It's pure image processing
and ZIP packaging.

"""

from .archive import ArchiveBuilder, ArchiveError
from .codec import (
    ENCODERS,
    CodecError,
    EncoderSpec,
    encode_bytes,
    encode_file,
    encode_image,
    png_compress_level,
)
from .optimize import (
    BatchSummary,
    optimize_batch,
    optimize_image,
    summarize,
    target_path,
)

__all__ = [
    "ArchiveBuilder",
    "ArchiveError",
    "ENCODERS",
    "CodecError",
    "EncoderSpec",
    "encode_bytes",
    "encode_file",
    "encode_image",
    "png_compress_level",
    "BatchSummary",
    "optimize_batch",
    "optimize_image",
    "summarize",
    "target_path",
]
