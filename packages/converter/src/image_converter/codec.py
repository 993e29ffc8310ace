"""
Pillow-backed codec adapter.

This module turns decoded images into encoded bytes for each target format:
- One EncoderSpec per ImageFormat (Pillow format, extension, save parameters)
- Mode fixes the encoders need (JPEG has no alpha, PNG has no CMYK)
- Atomic file writes: the destination either holds the full output or nothing
"""

from __future__ import annotations

import io
import logging
import math
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from PIL import Image, ImageOps, UnidentifiedImageError

from optimizer_shared.protocol import ImageFormat

logger = logging.getLogger(__name__)

WEBP_EFFORT = 6
JPEG_BACKGROUND = (255, 255, 255)


class CodecError(RuntimeError):
    """Raised when an image can't be decoded or encoded."""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)


def png_compress_level(quality: int) -> int:
    """Map quality (0-100) to zlib level (0-9). Higher quality means less effort."""
    level = math.floor((100 - quality) / 11.11 + 0.5)
    return min(9, max(0, level))


def _webp_params(quality: int) -> dict[str, Any]:
    return {"quality": quality, "method": WEBP_EFFORT}


def _png_params(quality: int) -> dict[str, Any]:
    return {"compress_level": png_compress_level(quality)}


def _jpeg_params(quality: int) -> dict[str, Any]:
    return {"quality": quality, "optimize": True, "progressive": True}


@dataclass(frozen=True)
class EncoderSpec:
    pil_format: str
    extension: str
    build_params: Callable[[int], dict[str, Any]]


ENCODERS: dict[ImageFormat, EncoderSpec] = {
    ImageFormat.WEBP: EncoderSpec("WEBP", ImageFormat.WEBP.extension, _webp_params),
    ImageFormat.PNG: EncoderSpec("PNG", ImageFormat.PNG.extension, _png_params),
    ImageFormat.JPG: EncoderSpec("JPEG", ImageFormat.JPG.extension, _jpeg_params),
}


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )


def _flatten_alpha(img: Image.Image) -> Image.Image:
    rgba = img.convert("RGBA")
    bg = Image.new("RGBA", rgba.size, JPEG_BACKGROUND + (255,))
    return Image.alpha_composite(bg, rgba).convert("RGB")


def _prepare(img: Image.Image, fmt: ImageFormat) -> Image.Image:
    """Convert to a mode the target encoder accepts."""
    if fmt is ImageFormat.JPG:
        if _has_alpha(img):
            return _flatten_alpha(img)
        if img.mode not in ("RGB", "L", "CMYK"):
            return img.convert("RGB")
        return img

    if fmt is ImageFormat.WEBP:
        if img.mode in ("RGB", "RGBA"):
            return img
        return img.convert("RGBA" if _has_alpha(img) else "RGB")

    if img.mode == "CMYK":
        return img.convert("RGB")
    return img


def encode_image(img: Image.Image, fmt: ImageFormat, quality: int) -> bytes:
    """Encode a decoded image. Raises CodecError on encoder failure."""
    fmt = ImageFormat.parse(fmt)
    encoder = ENCODERS[fmt]
    params = encoder.build_params(quality)

    buffer = io.BytesIO()
    try:
        _prepare(img, fmt).save(buffer, format=encoder.pil_format, **params)
    except (OSError, ValueError, KeyError) as e:
        raise CodecError(f"{encoder.pil_format} encoding failed: {e}") from e

    data = buffer.getvalue()
    if not data:
        raise CodecError(f"{encoder.pil_format} encoder produced no data")
    return data


def _decode(source: Path | io.BytesIO, label: str) -> Image.Image:
    try:
        with Image.open(source) as img:
            img.load()
            return ImageOps.exif_transpose(img)
    except UnidentifiedImageError as e:
        raise CodecError(f"Unsupported or corrupt image: {label}", source=label) from e
    except Image.DecompressionBombError as e:
        raise CodecError(f"Image too large to decode: {label}", source=label) from e
    except (OSError, ValueError, SyntaxError) as e:
        raise CodecError(f"Failed to decode {label}: {e}", source=label) from e


def encode_bytes(data: bytes, fmt: ImageFormat, quality: int) -> bytes:
    """Decode raw image bytes and re-encode them in the target format."""
    img = _decode(io.BytesIO(data), "<bytes>")
    return encode_image(img, fmt, quality)


def encode_file(src: Path, dest: Path, fmt: ImageFormat, quality: int) -> int:
    """
    Re-encode src into dest and return the number of bytes written.

    The output goes to a temp file next to dest and is renamed into place,
    so a failure never leaves a partial dest behind. src and dest may be
    the same path.

    Raises:
        CodecError: If decoding or encoding fails
        OSError: If the destination can't be written
    """
    src = Path(src)
    dest = Path(dest)
    fmt = ImageFormat.parse(fmt)

    img = _decode(src, src.name)
    data = encode_image(img, fmt, quality)

    fd, tmp_name = tempfile.mkstemp(
        prefix=".encode-", suffix=f".{ENCODERS[fmt].extension}", dir=str(dest.parent)
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, dest)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    logger.debug("Encoded %s -> %s (%d bytes)", src.name, dest.name, len(data))
    return len(data)
