"""
Request orchestration for the optimizer backend.
"""
from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Sequence

from werkzeug.datastructures import FileStorage

from image_converter import ArchiveBuilder, optimize_batch
from optimizer_shared.files import (
    is_image_name,
    is_in_dir,
    remove_tree_quietly,
    safe_upload_name,
)
from optimizer_shared.protocol import OptimizeOptions, OptimizeResult

from ..config import Config

logger = logging.getLogger(__name__)


class UploadTooLarge(ValueError):
    """Raised when one uploaded file exceeds the per-file size limit."""
    pass


@dataclass
class RequestWorkspace:
    """
    Temp directory owned by a single request. Every item gets its own
    subdirectory, so no two items (or requests) ever write the same path.
    """
    token: str
    root: Path
    _cleaned: bool = field(default=False, repr=False)

    def item_dir(self, index: int) -> Path:
        path = self.root / f"item-{index}"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def archive_path(self) -> Path:
        return self.root / f"optimized-{self.token}.zip"

    def cleanup(self) -> None:
        """Best-effort removal of everything the request wrote. Safe to call twice."""
        if self._cleaned:
            return
        self._cleaned = True
        remove_tree_quietly(self.root)
        logger.debug("Cleaned up workspace %s", self.token)


@dataclass
class UploadedItem:
    """One uploaded part. path is None when the upload was rejected."""
    index: int
    original_name: str
    path: Path | None = None
    error: str | None = None


@dataclass
class BatchOutcome:
    """Uploaded items and their results, both in upload order."""
    items: list[UploadedItem]
    results: list[OptimizeResult]

    @property
    def output_paths(self) -> list[Path]:
        return [Path(r.output_path) for r in self.results if r.success]

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def error_details(self) -> list[dict[str, str]]:
        return [
            {"file": item.original_name, "error": result.error or "Unknown error"}
            for item, result in zip(self.items, self.results)
            if not result.success
        ]


class OptimizeService:
    """Runs one optimize request: workspace, uploads, batch, archive."""

    def __init__(self, config: Config):
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    def open_workspace(self) -> RequestWorkspace:
        """
        Create a fresh workspace under the temp root.

        Raises:
            OSError: If the temp directories can't be created
        """
        self._config.temp_root.mkdir(parents=True, exist_ok=True)
        stamp = int(time.time() * 1000)
        root = Path(
            tempfile.mkdtemp(prefix=f"req-{stamp}-", dir=str(self._config.temp_root))
        ).resolve()
        logger.debug("Opened workspace %s", root)
        return RequestWorkspace(token=root.name, root=root)

    def save_uploads(
        self,
        workspace: RequestWorkspace,
        files: Sequence[FileStorage],
    ) -> list[UploadedItem]:
        """
        Save accepted uploads into per-item directories.

        Parts that aren't images (by extension and MIME type) are kept as
        rejected items so they still get a result.

        Raises:
            UploadTooLarge: If a file is larger than max_file_size
        """
        items: list[UploadedItem] = []
        limit = self._config.max_file_size

        for index, f in enumerate(files):
            name = f.filename or ""
            mimetype = (f.mimetype or "").lower()

            if not is_image_name(name) or not mimetype.startswith("image/"):
                logger.warning("Rejected upload %r (%s)", name, mimetype or "no MIME type")
                items.append(UploadedItem(index, name, error=f"Unsupported file type: {name}"))
                continue

            item_dir = workspace.item_dir(index)
            path = item_dir / safe_upload_name(name, f"upload-{index}")
            if not is_in_dir(item_dir, path):
                logger.warning("Path traversal attempt: %s", name)
                items.append(UploadedItem(index, name, error=f"Invalid filename: {name}"))
                continue

            f.save(path)

            if path.stat().st_size > limit:
                raise UploadTooLarge(
                    f"File too large: {name}. Maximum size: {limit // (1024 * 1024)}MB"
                )
            items.append(UploadedItem(index, name, path=path))

        return items

    def optimize_uploads(
        self,
        items: Sequence[UploadedItem],
        options: OptimizeOptions,
    ) -> BatchOutcome:
        """Optimize accepted items in place and merge in the rejected ones."""
        options = replace(options, output_dir=None)
        accepted = [item for item in items if item.path is not None]

        converted = iter(optimize_batch(
            [item.path for item in accepted],
            options,
            max_workers=self._config.max_workers,
        ))

        results = [
            next(converted) if item.path is not None
            else OptimizeResult.failed(item.original_name, item.error or "Upload rejected")
            for item in items
        ]

        outcome = BatchOutcome(items=list(items), results=results)
        logger.info(
            "Batch done: %d/%d optimized as %s",
            len(outcome.output_paths), len(results), options.format.value,
        )
        return outcome

    def run_batch(
        self,
        workspace: RequestWorkspace,
        files: Sequence[FileStorage],
        options: OptimizeOptions,
    ) -> BatchOutcome:
        items = self.save_uploads(workspace, files)
        return self.optimize_uploads(items, options)

    def archive_builder(self, outcome: BatchOutcome) -> ArchiveBuilder:
        return ArchiveBuilder(outcome.output_paths)
