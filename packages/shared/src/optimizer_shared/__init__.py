"""
Shared types and file helpers for the image optimizer

The package is a dependency of the converter, the backend and the CLI:
- protocol: formats, options and per-item results
- files: image discovery, upload names and best-effort cleanup

Deployment:
    pip install image-optimizer
"""

from .protocol import (
    DEFAULT_QUALITY,
    ImageFormat,
    OptimizeOptions,
    OptimizeResult,
    OptionsError,
    compute_reduction,
    parse_optimize_options,
)
from .files import (
    ALLOWED_IMG_EXTS,
    find_images,
    is_image_name,
    is_in_dir,
    remove_tree_quietly,
    safe_upload_name,
)

__all__ = [
    # Protocol
    "DEFAULT_QUALITY",
    "ImageFormat",
    "OptimizeOptions",
    "OptimizeResult",
    "OptionsError",
    "compute_reduction",
    "parse_optimize_options",
    # Files
    "ALLOWED_IMG_EXTS",
    "find_images",
    "is_image_name",
    "is_in_dir",
    "remove_tree_quietly",
    "safe_upload_name",
]
