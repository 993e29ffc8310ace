"""CLI for the image optimizer."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from image_converter import ArchiveBuilder, optimize_batch, optimize_image
from optimizer_shared.files import find_images
from optimizer_shared.protocol import ImageFormat, OptimizeOptions

from . import __version__
from .report import format_bytes, print_results

logger = logging.getLogger(__name__)


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="image-optimizer")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """Optimize images by converting them to WebP, PNG or JPEG."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@cli.command("optimize")
@click.argument("input_path", metavar="INPUT", type=click.Path(path_type=Path))
@click.option("-q", "--quality", default=75, type=int, show_default=True, help="Image quality (0-100)")
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice([f.value for f in ImageFormat]),
    default=ImageFormat.WEBP.value, show_default=True,
    help="Target format",
)
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), help="Output directory")
@click.option("-k", "--keep-original", is_flag=True, help="Keep the original files")
@click.option("--recursive/--no-recursive", default=True, help="Scan subdirectories")
@click.option("-j", "--jobs", default=1, type=int, show_default=True, help="Images optimized in parallel")
@click.option("--zip", "zip_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Also package the optimized images into this ZIP file")
def optimize(input_path: Path, quality: int, fmt: str, output: Path | None,
             keep_original: bool, recursive: bool, jobs: int, zip_path: Path | None) -> None:
    """Optimize an image or a directory of images."""
    if not 0 <= quality <= 100:
        _fail("Quality must be between 0 and 100")

    options = OptimizeOptions(
        quality=quality,
        format=ImageFormat.parse(fmt),
        output_dir=output,
        keep_original=keep_original,
    )

    try:
        if input_path.is_dir():
            click.echo(f"Processing directory: {input_path}")
            images = find_images(input_path, recursive=recursive)
            if not images:
                click.secho("Warning: no images found in directory", fg="yellow")
                return

            click.echo(f"Found {len(images)} image(s)")
            results = optimize_batch(images, options, max_workers=jobs)
        elif input_path.is_file():
            click.echo(f"Processing image: {input_path}")
            results = [optimize_image(input_path, options)]
        else:
            _fail(f"Invalid path: {input_path}")
            return

        print_results(results)

        outputs = [r.output_path for r in results if r.success]
        if zip_path is not None and outputs:
            size = ArchiveBuilder(outputs).write_to(zip_path)
            click.echo(f"\nArchive: {zip_path} ({format_bytes(size)})")
    except Exception as e:
        logger.debug("Optimize command failed", exc_info=True)
        _fail(str(e))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
