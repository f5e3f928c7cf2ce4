#!/usr/bin/env python3
"""
visualclassifier - command line front-end for the Image wrapper.

Inspect images, write grayscale copies and crops, and turn image sets into
grayscale feature matrices.
"""

import click
import sys
import time
from pathlib import Path
from typing import List
from rich.console import Console
from rich.markup import escape
from rich.table import Table
import numpy as np

from .imageprocessing import Image, load_images, stack_grayscale_vectors
from .utils.config import Config
from .utils.logging import get_logger, configure_logging, log_image_operation, MetricsLogger

console = Console()
logger = get_logger(__name__)

# Failures reported to the user instead of as tracebacks
USER_ERRORS = (ValueError, IndexError, OSError)


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    logger.error(message)
    sys.exit(1)


def _resolve_output(config: Config, out: str) -> Path:
    """Place relative output paths under ``config.output_dir`` when it is set."""
    out_path = Path(out)
    if config.output_dir and not out_path.is_absolute():
        config.output_dir.mkdir(parents=True, exist_ok=True)
        out_path = config.output_dir / out_path
    return out_path


def _expand_paths(config: Config, image_paths) -> List[Path]:
    """Expand directories into the image files they contain, sorted."""
    all_paths = []
    for path in (Path(p) for p in image_paths):
        if path.is_dir():
            found = set()
            for ext in config.image_extensions:
                found.update(path.glob(f"**/*.{ext}"))
            all_paths.extend(sorted(found))
        else:
            all_paths.append(path)
    return all_paths


@click.group()
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True),
              help='Path to configuration file')
@click.option('--json', 'output_json', is_flag=True,
              help='Output as JSON')
@click.pass_context
def cli(ctx, config_path, output_json):
    """
    visualclassifier - image loading and vectorization

    Loads images, converts them to grayscale, flattens them into feature
    vectors and extracts sub-images.
    """
    if config_path:
        ctx.obj = Config.load(config_path)
    else:
        ctx.obj = Config()

    if output_json:
        ctx.obj.update(output_format='json')

    configure_logging(ctx.obj.log_level, ctx.obj.anonymize_paths)


@cli.command()
@click.argument('image_paths', nargs=-1, required=True,
                type=click.Path(exists=True))
@click.pass_obj
def info(config, image_paths):
    """Show dimensions and format of images."""
    rows = []
    for path in _expand_paths(config, image_paths):
        try:
            image = Image(path)
        except USER_ERRORS as e:
            _fail(f"could not load {path}: {e}")
        description = image.describe()
        log_image_operation(logger, path, "inspected", description)
        rows.append({'path': path.as_posix(), **description})

    if config.output_format == 'json':
        console.print_json(data=rows)
        return

    table = Table(title="Images")
    table.add_column("Path", style="cyan")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("Channels", justify="right")
    table.add_column("Format", style="green")

    for row in rows:
        table.add_row(row['path'], str(row['width']), str(row['height']),
                      str(row['channels']), row['format_tag'])

    console.print(table)


@cli.command()
@click.argument('image_path', type=click.Path(exists=True))
@click.argument('output_path', type=click.Path())
@click.pass_obj
def grayscale(config, image_path, output_path):
    """Write a grayscale copy of an image."""
    out = _resolve_output(config, output_path)
    try:
        gray = Image(image_path).to_grayscale()
        gray.to_display_buffer().save(out)
    except USER_ERRORS as e:
        _fail(str(e))

    log_image_operation(logger, image_path, "converted to grayscale", gray.describe())
    console.print(f"[green][OK] Grayscale image saved to {out}[/green]")


@cli.command()
@click.argument('image_path', type=click.Path(exists=True))
@click.argument('output_path', type=click.Path())
@click.option('--box', nargs=4, type=int, required=True,
              metavar='LEFT TOP RIGHT BOTTOM',
              help='Box to extract; right and bottom are exclusive')
@click.pass_obj
def crop(config, image_path, output_path, box):
    """Write the sub-image inside a box."""
    left, top, right, bottom = box
    out = _resolve_output(config, output_path)
    try:
        region = Image(image_path).sub_image(left, top, right, bottom)
        region.to_display_buffer().save(out)
    except USER_ERRORS as e:
        _fail(str(e))

    log_image_operation(logger, image_path, "cropped", region.describe())
    console.print(f"[green][OK] {region.width}x{region.height} sub-image saved to {out}[/green]")


@cli.command()
@click.argument('image_path', type=click.Path(exists=True))
@click.pass_obj
def vector(config, image_path):
    """Print the grayscale intensity vector of an image."""
    try:
        values = Image(image_path).to_grayscale_vector()
    except USER_ERRORS as e:
        _fail(str(e))

    rounded = np.round(values[0], config.vector_precision).tolist()

    if config.output_format == 'json':
        console.print_json(data={'path': Path(image_path).as_posix(), 'vector': rounded})
    else:
        console.print(f"[cyan]{len(rounded)} values[/cyan]")
        console.print(" ".join(f"{v:.{config.vector_precision}f}" for v in rounded))


@cli.command()
@click.argument('image_paths', nargs=-1, required=True,
                type=click.Path(exists=True))
@click.option('--out', '-o', required=True, type=click.Path(),
              help='Output .npy file for the feature matrix')
@click.option('--metrics', 'metrics_path', type=click.Path(),
              help='Optional JSON file for timing metrics')
@click.pass_obj
def vectorize(config, image_paths, out, metrics_path):
    """Stack grayscale vectors of equally sized images into a matrix."""
    paths = _expand_paths(config, image_paths)
    if not paths:
        _fail("no images found")

    if config.output_format != 'json':
        console.print(f"\n[cyan]Found {len(paths)} images to process[/cyan]")

    metrics = MetricsLogger(logger)
    out_path = _resolve_output(config, out)
    start_time = time.time()

    try:
        with console.status("Vectorizing...", spinner="dots"):
            matrix = stack_grayscale_vectors(load_images(paths))
        np.save(out_path, matrix)
    except USER_ERRORS as e:
        duration_ms = (time.time() - start_time) * 1000
        metrics.log_operation("vectorize", duration_ms, success=False,
                              details={'n_images': len(paths)})
        if metrics_path:
            metrics.save_metrics(Path(metrics_path))
        _fail(str(e))

    duration_ms = (time.time() - start_time) * 1000
    metrics.log_operation("vectorize", duration_ms, success=True,
                          details={'n_images': len(paths), 'features': matrix.shape[1]})
    if duration_ms > 0:
        metrics.log_performance("images_per_second", len(paths) / (duration_ms / 1000))
    if metrics_path:
        metrics.save_metrics(Path(metrics_path))

    if config.output_format == 'json':
        console.print_json(data={
            'output': out_path.as_posix(),
            'n_images': matrix.shape[0],
            'n_features': matrix.shape[1],
        })
    else:
        table = Table(title="Vectorization Results")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Images", str(matrix.shape[0]))
        table.add_row("Features per image", str(matrix.shape[1]))
        table.add_row("Time (ms)", f"{duration_ms:.2f}")
        table.add_row("Output", out_path.as_posix())

        console.print(table)


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
