"""Human-readable batch output for the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import click

from image_converter import summarize
from optimizer_shared.protocol import OptimizeResult

RULE = "-" * 80
SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    """1536 -> '1.5 KB'"""
    if size <= 0:
        return "0 Bytes"
    i = 0
    value = float(size)
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {SIZE_UNITS[i]}"


def print_results(results: Sequence[OptimizeResult]) -> None:
    click.echo("\nResults:")
    click.echo(RULE)

    for r in results:
        name = Path(r.input_path).name
        if r.success:
            click.secho(f"OK {name}", fg="green")
            click.echo(f"   Original:  {format_bytes(r.original_size)}")
            click.echo(f"   Optimized: {format_bytes(r.optimized_size)}")
            click.echo(f"   Reduction: {r.reduction}%")
            click.echo(f"   Output:    {r.output_path}")
        else:
            click.secho(f"FAILED {name}", fg="red")
            click.echo(f"   Error: {r.error}")
        click.echo("")

    summary = summarize(results)
    if summary.succeeded == 0:
        return

    click.echo(RULE)
    click.echo("Total:")
    click.echo(f"   Original:  {format_bytes(summary.total_original_bytes)}")
    click.echo(f"   Optimized: {format_bytes(summary.total_optimized_bytes)}")
    click.echo(f"   Total reduction: {summary.reduction}%")
    click.echo(f"   Images processed: {summary.succeeded}/{summary.total}")
