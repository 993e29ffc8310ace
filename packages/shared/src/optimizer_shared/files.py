"""
File handling utilities for the backend and the CLI
"""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_IMG_EXTS: frozenset[str] = frozenset({".png", ".jpg", ".jpeg", ".webp"})


def is_in_dir(base: Path, target: Path) -> bool:
    """Check if target path is in base dir."""
    try:
        target.resolve().relative_to(base.resolve())
        return True
    except ValueError:
        return False


def is_image_name(name: str) -> bool:
    return Path(name).suffix.lower() in ALLOWED_IMG_EXTS


def find_images(directory: Path, recursive: bool = True) -> list[Path]:
    """
    Collect supported images under a directory, sorted by path.

    Only the top level is scanned when recursive is False.
    """
    directory = Path(directory)
    pattern = "**/*" if recursive else "*"
    images = [
        p for p in directory.glob(pattern)
        if p.is_file() and is_image_name(p.name)
    ]
    images.sort()
    logger.debug("Found %d images in %s", len(images), directory)
    return images


def safe_upload_name(filename: str | None, fallback: str) -> str:
    """
    Sanitize a client supplied filename.

    Falls back to the given name (keeping an allowed extension) when
    sanitizing leaves no stem or strips the extension, e.g. a non-ASCII
    stem like "写真.jpg" which would otherwise become "jpg".
    """
    suffix = Path(filename or "").suffix.lower()
    safe_name = secure_filename(filename or "")
    safe_path = Path(safe_name)
    if not safe_path.stem or safe_path.suffix.lower() != suffix:
        logger.warning("Invalid filename: %r", filename)
        return f"{fallback}{suffix if suffix in ALLOWED_IMG_EXTS else ''}"
    return safe_name


def remove_tree_quietly(path: Path | str) -> None:
    """Delete a directory tree, logging every entry that can't be removed."""
    path = Path(path)
    if not path.exists():
        return

    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=lambda func, p, exc: _log_failure(p, exc))
    else:
        shutil.rmtree(path, onerror=lambda func, p, exc_info: _log_failure(p, exc_info[1]))


def _log_failure(path: str, exc: BaseException) -> None:
    logger.warning("Failed to remove %s: %s", path, exc)
