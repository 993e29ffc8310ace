"""
Shared types for the image optimization pipeline.

Flow:
    Caller -> Optimizer: OptimizeOptions (one per request/command, read-only)
    Optimizer -> Caller: OptimizeResult (one per item, immutable)
    Backend form fields -> OptimizeOptions: parse_optimize_options
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

DEFAULT_QUALITY = 75


class OptionsError(ValueError):
    """Raised when optimize options fail validation."""
    pass


class ImageFormat(str, Enum):
    """Target formats the optimizer can produce."""
    WEBP = "webp"
    PNG = "png"
    JPG = "jpg"

    @property
    def extension(self) -> str:
        """Canonical file extension, without the dot. Always "jpg", never "jpeg"."""
        return self.value

    @classmethod
    def parse(cls, value: str | ImageFormat | None) -> ImageFormat:
        if value is None or value == "":
            return cls.WEBP
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(f.value for f in cls)
            raise OptionsError(
                f"Unsupported format: {value!r} (expected one of {allowed})"
            ) from None


@dataclass(frozen=True)
class OptimizeOptions:
    """
    Conversion options for a batch. Quality is passed to the codec
    as-is; the codec defines the range it accepts.
    """
    quality: int = DEFAULT_QUALITY
    format: ImageFormat = ImageFormat.WEBP
    output_dir: Path | None = None
    keep_original: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", ImageFormat.parse(self.format))
        if self.output_dir is not None:
            object.__setattr__(self, "output_dir", Path(self.output_dir))


@dataclass(frozen=True)
class OptimizeResult:
    """Result of optimizing one item."""
    input_path: str
    output_path: str = ""
    original_size: int = 0
    optimized_size: int = 0
    reduction: float = 0.0
    success: bool = False
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success and (not self.output_path or self.error is not None):
            raise ValueError("Successful result needs an output_path and no error")
        if not self.success and not self.error:
            raise ValueError("Failed result needs an error message")

    @classmethod
    def succeeded(
        cls,
        input_path: Path | str,
        output_path: Path | str,
        original_size: int,
        optimized_size: int,
    ) -> "OptimizeResult":
        return cls(
            input_path=str(input_path),
            output_path=str(output_path),
            original_size=original_size,
            optimized_size=optimized_size,
            reduction=compute_reduction(original_size, optimized_size),
            success=True,
        )

    @classmethod
    def failed(cls, input_path: Path | str, error: str) -> "OptimizeResult":
        return cls(input_path=str(input_path), error=error or "Unknown error")

    @property
    def saved_bytes(self) -> int:
        return self.original_size - self.optimized_size

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["error"] is None:
            del d["error"]
        return d


def compute_reduction(original_size: int, optimized_size: int) -> float:
    """Percentage decrease in size, rounded to 2 decimals. Negative when output grew."""
    if original_size <= 0:
        return 0.0
    return round(((original_size - optimized_size) / original_size) * 100, 2)


def _parse_quality(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        raise OptionsError(f"Quality must be an integer, got {value!r}") from None


def parse_optimize_options(
    data: Mapping[str, Any] | None,
    default_quality: int = DEFAULT_QUALITY,
) -> OptimizeOptions:
    """Build options from string form fields (quality, format, keepOriginal)."""
    if data is None:
        return OptimizeOptions(quality=default_quality)
    return OptimizeOptions(
        quality=_parse_quality(data.get("quality"), default_quality),
        format=ImageFormat.parse(data.get("format")),
        keep_original=data.get("keepOriginal") == "true",
    )
