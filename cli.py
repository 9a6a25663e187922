"""Click CLI commands for contour map generation."""

import json
import logging
from dataclasses import replace
from typing import Optional

import click

from config import PipelineConfig
from contour_exporter import ContourExporter
from elevation import OpenElevationClient, SyntheticTerrain
from exceptions import ContourError
from models import Bounds
from parsers import SampleFileParser
from pipeline import ContourPipeline, PipelineResult

logger = logging.getLogger(__name__)


def _load_config(config_path: Optional[str]) -> PipelineConfig:
    if not config_path:
        return PipelineConfig()
    with open(config_path, 'r', encoding='utf-8') as fh:
        return PipelineConfig.from_dict(json.load(fh))


def _build_config(base: PipelineConfig, interval, samples, method, sampler, relax,
                  seed, grid_size, interpolation) -> PipelineConfig:
    sampling = replace(
        base.sampling,
        total_samples=samples if samples is not None else base.sampling.total_samples,
        method=sampler or base.sampling.method,
        relax=relax or base.sampling.relax,
        seed=seed if seed is not None else base.sampling.seed,
    )
    grid = replace(
        base.grid,
        method=method or base.grid.method,
        grid_size=grid_size or base.grid.grid_size,
        interpolation=interpolation or base.grid.interpolation,
    )
    return base.with_overrides(
        interval=interval if interval is not None else base.interval,
        sampling=sampling,
        grid=grid,
    )


def _check_simplify_options(simplify: Optional[float], remove_count: Optional[int]) -> None:
    if simplify is not None and remove_count is not None:
        raise click.UsageError('Use either --simplify or --remove-count, not both')


def _finish(result: PipelineResult, config: PipelineConfig, output: str,
            simplify: Optional[float], remove_count: Optional[int]) -> None:
    contours = result.simplifier.current
    if simplify is not None:
        contours = result.simplifier.by_threshold(simplify)
    elif remove_count is not None:
        contours = result.simplifier.by_count(remove_count)

    path = ContourExporter(result.bounds, config.export).save(contours, output)

    stats = result.summary()
    click.echo(f"\n{'=' * 50}")
    click.echo(f"Samples: {stats['num_samples']} ({stats['num_refinement_points']} refinement)")
    click.echo(f"Elevation: {stats['elevation_min']:.2f} - {stats['elevation_max']:.2f}")
    click.echo(f"Levels: {stats['num_levels']} | Polylines: {contours.polyline_count()} "
               f"| Vertices: {contours.vertex_count()} of {stats['num_vertices']}")
    click.echo(f"Output: {path}")
    click.echo(f"{'=' * 50}")


def contour_options(func):
    """Options shared by every contouring command."""
    options = [
        click.option('--interval', '-i', type=float, default=None, help='Contour interval'),
        click.option('--method', type=click.Choice(['grid', 'triangles']), default=None,
                     help='Grid-based CONREC or direct triangle contouring'),
        click.option('--grid-size', type=int, default=None, help='Grid columns for the grid method'),
        click.option('--interpolation', type=click.Choice(['idw', 'triangulated']), default=None,
                     help='Surface interpolation for the grid method'),
        click.option('--simplify', type=click.FloatRange(0.0, 1.0), default=None,
                     help='Visvalingam threshold as a fraction of the largest area'),
        click.option('--remove-count', type=click.IntRange(min=0), default=None,
                     help='Remove this many least significant vertices overall'),
        click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
                     default=None, help='JSON configuration file'),
        click.option('--output', '-o', default='contour-map.svg', help='Output .svg or .dxf path'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Generate topographic contour maps from sparse elevation samples."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    )


@cli.command()
@click.argument('min_x', type=float)
@click.argument('min_y', type=float)
@click.argument('max_x', type=float)
@click.argument('max_y', type=float)
@click.option('--samples', '-n', type=int, default=None, help='Target sample count')
@click.option('--sampler', type=click.Choice(['poisson', 'mitchell']), default=None,
              help='Interior sampling strategy')
@click.option('--relax', is_flag=True, help='Spread interior points apart before fetching')
@click.option('--seed', type=int, default=None, help='Random seed for reproducible sampling')
@click.option('--synthetic', is_flag=True, help='Use an offline synthetic terrain instead of the API')
@contour_options
def generate(min_x, min_y, max_x, max_y, samples, sampler, relax, seed, synthetic,
             interval, method, grid_size, interpolation, simplify, remove_count,
             config_path, output):
    """Sample a rectangle, fetch elevations and contour it."""
    _check_simplify_options(simplify, remove_count)
    try:
        bounds = Bounds.from_corners((min_x, min_y), (max_x, max_y))
        config = _build_config(_load_config(config_path), interval, samples, method, sampler,
                               relax, seed, grid_size, interpolation)
        if synthetic:
            oracle = SyntheticTerrain.for_bounds(bounds)
        else:
            oracle = OpenElevationClient(config.elevation.api_url, config.elevation.timeout)

        pipeline = ContourPipeline(config, oracle=oracle, progress=click.echo)
        result = pipeline.run(bounds)
        _finish(result, config, output, simplify, remove_count)
    except (ContourError, ValueError) as e:
        logger.error(f"Error generating contours: {e}")
        raise click.ClickException(str(e))


@cli.command(name='from-file')
@click.argument('samples_file', type=click.Path(exists=True, dir_okay=False))
@contour_options
def from_file(samples_file, interval, method, grid_size, interpolation, simplify,
              remove_count, config_path, output):
    """Contour samples read from a CSV/DAT/TXT file."""
    _check_simplify_options(simplify, remove_count)
    try:
        config = _build_config(_load_config(config_path), interval, None, method, None,
                               False, None, grid_size, interpolation)
        parser = SampleFileParser()
        df = parser.parse_file(samples_file)
        is_valid, issues = parser.validate_data(df)
        for issue in issues:
            logger.warning(issue)
            click.echo(f"Warning: {issue}")
        if not is_valid:
            raise click.ClickException(f"Sample file rejected: {'; '.join(issues)}")

        samples = parser.to_samples(df)
        click.echo(f"Loaded {len(samples)} samples from {samples_file}")

        result = ContourPipeline(config, progress=click.echo).run_from_samples(samples)
        _finish(result, config, output, simplify, remove_count)
    except (ContourError, ValueError) as e:
        logger.error(f"Error generating contours: {e}")
        raise click.ClickException(str(e))


if __name__ == '__main__':
    cli()
