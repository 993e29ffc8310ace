"""Backend services."""

from .optimize_service import (
    BatchOutcome,
    OptimizeService,
    RequestWorkspace,
    UploadedItem,
    UploadTooLarge,
)

__all__ = [
    "BatchOutcome",
    "OptimizeService",
    "RequestWorkspace",
    "UploadedItem",
    "UploadTooLarge",
]
