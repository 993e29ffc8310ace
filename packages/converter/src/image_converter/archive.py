"""
ZIP packaging for optimized images.

One ArchiveBuilder packages one set of files, using one of three strategies:
- build_bytes(): whole archive in memory (size known before sending)
- iter_chunks(): bytes yielded entry by entry as the archive is written
- write_to(path): archive spooled to a file

All of them set `finalized` only after the central directory is written.
"""

from __future__ import annotations

import logging
import threading
import zipfile
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

COMPRESS_LEVEL = 9


class ArchiveError(RuntimeError):
    """Raised when the archive can't be written or delivered."""
    pass


class _ChunkSink:
    """Write-only, unseekable file object that hands written bytes back out."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        if data:
            self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass

    def drain(self) -> Iterator[bytes]:
        chunks, self._chunks = self._chunks, []
        yield from chunks


class ArchiveBuilder:
    """
    Packages files into a ZIP archive, one entry per path, named by base
    filename. Duplicate names are written as-is (readers keep the last one).

    Paths that no longer exist when their turn comes are skipped and logged.
    """

    def __init__(self, paths: Iterable[Path | str], compress_level: int = COMPRESS_LEVEL):
        self.paths: list[Path] = [Path(p) for p in paths]
        self.compress_level = compress_level

        self.entries: list[str] = []
        self.skipped: list[Path] = []
        self.total_bytes: int | None = None

        self._started = False
        self._finalized = threading.Event()

    @property
    def finalized(self) -> bool:
        return self._finalized.is_set()

    def wait_finalized(self, timeout: float | None = None) -> bool:
        """Block until the trailer is flushed. Returns False on timeout."""
        return self._finalized.wait(timeout)

    def iter_chunks(self) -> Iterator[bytes]:
        """
        Yield the archive bytes as they're produced.

        Raises:
            ArchiveError: If an entry can't be read or compressed
        """
        self._start()
        sink = _ChunkSink()
        written = 0

        try:
            with zipfile.ZipFile(
                sink, "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compress_level,
            ) as zf:
                for path in self.paths:
                    if not path.is_file():
                        logger.warning("Skipping missing archive entry: %s", path)
                        self.skipped.append(path)
                        continue

                    zf.write(path, arcname=path.name)
                    self.entries.append(path.name)

                    for chunk in sink.drain():
                        written += len(chunk)
                        yield chunk

                # Skipped entries don't fail the archive, but one with no entries
                # at all would hand the client an empty ZIP for a successful batch.
                if not self.entries:
                    raise ArchiveError("No files left to archive")
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ArchiveError(f"Failed to write archive: {e}") from e

        for chunk in sink.drain():
            written += len(chunk)
            yield chunk

        self.total_bytes = written
        self._finalized.set()
        logger.info("Archive finalized: %d entries, %d bytes", len(self.entries), written)

    def build_bytes(self) -> bytes:
        """Build the whole archive in memory."""
        return b"".join(self.iter_chunks())

    def write_to(self, dest: Path | str) -> int:
        """
        Write the archive to dest and return its size. The file is flushed
        and closed before this returns.
        """
        dest = Path(dest)
        try:
            with dest.open("wb") as f:
                for chunk in self.iter_chunks():
                    f.write(chunk)
        except OSError as e:
            raise ArchiveError(f"Failed to write archive to {dest}: {e}") from e

        size = dest.stat().st_size
        if size == 0:
            raise ArchiveError(f"Archive was created empty: {dest}")
        return size

    def _start(self) -> None:
        if self._started:
            raise ArchiveError("ArchiveBuilder can only be used once")
        self._started = True
