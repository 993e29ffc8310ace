"""Configuration management for the optimizer backend."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

ARCHIVE_MODES = ("buffered", "streamed", "spooled")

MB = 1024 * 1024


def _default_temp_root() -> Path:
    return Path(tempfile.gettempdir()) / "image-optimizer"


def normalize_base_path(value: str | None) -> str:
    """'/' -> '', 'api/' -> '/api'"""
    value = (value or "").strip().strip("/")
    return f"/{value}" if value else ""


@dataclass(frozen=True)
class Config:
    """Backend configuration loaded from environment variables."""

    host: str = "0.0.0.0"
    port: int = 3000
    base_path: str = ""
    temp_root: Path = field(default_factory=_default_temp_root)
    max_files: int = 50
    max_file_size: int = 50 * MB
    default_quality: int = 75
    archive_mode: str = "streamed"
    max_workers: int = 1
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.archive_mode not in ARCHIVE_MODES:
            raise ValueError(
                f"archive_mode must be one of {', '.join(ARCHIVE_MODES)}, got {self.archive_mode!r}"
            )
        object.__setattr__(self, "base_path", normalize_base_path(self.base_path))

    @classmethod
    def load(cls) -> Config:
        """Load configuration from environment variables."""
        temp_root = os.getenv("OPTIMIZER_TEMP_DIR")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            base_path=os.getenv("BASE_PATH", "/"),
            temp_root=Path(temp_root) if temp_root else _default_temp_root(),
            max_files=int(os.getenv("OPTIMIZER_MAX_FILES", "50")),
            max_file_size=int(os.getenv("OPTIMIZER_MAX_FILE_MB", "50")) * MB,
            default_quality=int(os.getenv("OPTIMIZER_DEFAULT_QUALITY", "75")),
            archive_mode=os.getenv("OPTIMIZER_ARCHIVE_MODE", "streamed").lower(),
            max_workers=int(os.getenv("OPTIMIZER_WORKERS", "1")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def max_content_length(self) -> int:
        """Upper bound for a whole request body, with room for form overhead."""
        return self.max_files * self.max_file_size + MB

    def ensure_directories(self) -> None:
        """Create the temp root. Request workspaces live below it."""
        self.temp_root.mkdir(parents=True, exist_ok=True)
