"""
Image optimization workflow.

This module handles the per-item and per-batch workflow:
1. Check the source and record its size
2. Re-encode into the target format next to it (or into output_dir)
3. Measure the output and compute the reduction
4. Delete the source when the conversion changed its extension

optimize_image never raises; every failure becomes an OptimizeResult.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from optimizer_shared.protocol import (
    OptimizeOptions,
    OptimizeResult,
    compute_reduction,
)

from .codec import CodecError, encode_file

logger = logging.getLogger(__name__)


def target_path(input_path: Path, options: OptimizeOptions) -> Path:
    """<output_dir or source dir>/<source stem>.<format extension>"""
    out_dir = options.output_dir if options.output_dir is not None else input_path.parent
    return out_dir / f"{input_path.stem}.{options.format.extension}"


def optimize_image(
    input_path: Path | str,
    options: OptimizeOptions | None = None,
) -> OptimizeResult:
    """Optimize a single image. Failures are reported in the result."""
    options = options or OptimizeOptions()
    input_path = Path(input_path)

    try:
        return _optimize(input_path, options)
    except FileNotFoundError as e:
        error = str(e) if e.filename is None else f"Input file not found: {e.filename}"
    except CodecError as e:
        error = str(e)
    except Exception as e:
        error = f"{type(e).__name__}: {e}"

    logger.warning("Failed to optimize %s: %s", input_path.name, error)
    return OptimizeResult.failed(input_path, error)


def _optimize(input_path: Path, options: OptimizeOptions) -> OptimizeResult:
    if not input_path.is_file():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    original_size = input_path.stat().st_size
    output_path = target_path(input_path, options)

    if options.output_dir is not None:
        options.output_dir.mkdir(parents=True, exist_ok=True)

    encode_file(input_path, output_path, options.format, options.quality)
    optimized_size = output_path.stat().st_size

    same_ext = input_path.suffix.lower() == f".{options.format.extension}"
    if not options.keep_original and not same_ext:
        try:
            input_path.unlink()
        except OSError as e:
            logger.warning("Converted %s but could not remove it: %s", input_path, e)

    result = OptimizeResult.succeeded(input_path, output_path, original_size, optimized_size)
    logger.info(
        "Optimized %s -> %s (%d -> %d bytes, %.2f%%)",
        input_path.name, output_path.name, original_size, optimized_size, result.reduction,
    )
    return result


def optimize_batch(
    inputs: Sequence[Path | str],
    options: OptimizeOptions | None = None,
    max_workers: int = 1,
) -> list[OptimizeResult]:
    """
    Optimize every input and return one result per input, in input order.

    A failed item never stops the batch. With max_workers > 1 items are
    encoded on a thread pool; results keep input order either way.
    """
    options = options or OptimizeOptions()

    if max_workers <= 1 or len(inputs) <= 1:
        return [optimize_image(p, options) for p in inputs]

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="optimize") as pool:
        return list(pool.map(lambda p: optimize_image(p, options), inputs))


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int
    failed: int
    total_original_bytes: int
    total_optimized_bytes: int

    @property
    def saved_bytes(self) -> int:
        return self.total_original_bytes - self.total_optimized_bytes

    @property
    def reduction(self) -> float:
        return compute_reduction(self.total_original_bytes, self.total_optimized_bytes)


def summarize(results: Sequence[OptimizeResult]) -> BatchSummary:
    """Totals over the successful results of a batch."""
    ok = [r for r in results if r.success]
    return BatchSummary(
        total=len(results),
        succeeded=len(ok),
        failed=len(results) - len(ok),
        total_original_bytes=sum(r.original_size for r in ok),
        total_optimized_bytes=sum(r.optimized_size for r in ok),
    )
