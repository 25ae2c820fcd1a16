"""Click CLI: ``exactzonal`` command group."""

from __future__ import annotations

import click
import yaml
from loguru import logger

from exactzonal.config import load_config
from exactzonal.errors import IncompatibleGridError, PreconditionError
from exactzonal.exit_codes import ExitCode, exit_code_from_tracker
from exactzonal.logging import bind_run_context, new_run_id, setup_logging


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group(invoke_without_command=True)
@click.version_option(package_name="exactzonal", prog_name="exactzonal")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True),
              help="Path to YAML config.")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Log level [default: logging.level from config, else INFO].")
@click.option("--log-format", default=None,
              type=click.Choice(["text", "json"]),
              help="Log output format [default: logging.format from config, else text].")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False),
              help="Also append log records to this file.")
@click.option("--run-id", default=None, help="Override auto-generated run ID.")
@click.option("--show-config", is_flag=True, help="Print resolved config as YAML and exit.")
@click.pass_context
def exactzonal(ctx: click.Context, config_path, log_level, log_format, log_file, run_id, show_config):
    """Exact zonal statistics of rasters over polygons."""
    ctx.ensure_object(dict)

    run_id = run_id or new_run_id()
    ctx.obj["run_id"] = run_id
    bind_run_context(run_id)
    setup_logging(level=log_level or "INFO", fmt=log_format or "text")

    try:
        cfg = load_config(config_path)
    except (PreconditionError, yaml.YAMLError) as exc:
        logger.error(f"Invalid config: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return
    ctx.obj["cfg"] = cfg

    # Command-line logging options win over the config file.
    cfg.logging.level = (log_level or cfg.logging.level).upper()
    cfg.logging.format = log_format or cfg.logging.format
    cfg.logging.file = log_file or cfg.logging.file
    setup_logging(level=cfg.logging.level, fmt=cfg.logging.format, log_file=cfg.logging.file)

    if show_config:
        import dataclasses
        click.echo(yaml.dump(dataclasses.asdict(ctx.obj["cfg"]), default_flow_style=False))
        ctx.exit(ExitCode.SUCCESS)
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------

@exactzonal.command()
@click.argument("polygons", type=click.Path(exists=True))
@click.option("-r", "--raster", required=True, type=click.Path(exists=True),
              help="Value raster.")
@click.option("-w", "--weights", multiple=True, type=click.Path(exists=True),
              help="Weighting raster (repeatable).")
@click.option("-f", "--field", "id_field", default=None,
              help="Polygon attribute used as the row id.")
@click.option("-s", "--stat", "stat_names", multiple=True,
              help="Statistic to compute (repeatable).")
@click.option("-o", "--output", default="results.csv", help="Output CSV path.")
@click.option("--filter", "id_filter", default=None, help="Process only this polygon id.")
@click.option("--max-cells", type=int, default=None, help="Maximum cells per tile.")
@click.option("--max-workers", type=int, default=None, help="Parallel polygon workers.")
@click.option("--report-dir", default=None, help="Write run reports to this directory.")
@click.option("--progress", is_flag=True, help="Log each completed polygon.")
@click.pass_context
def stats(ctx, polygons, raster, weights, id_field, stat_names, output, id_filter,
          max_cells, max_workers, report_dir, progress):
    """Calculate coverage-weighted statistics of RASTER for each polygon."""
    from exactzonal.steps.zonal_stats import run_zonal_stats

    cfg = ctx.obj["cfg"]
    if max_cells is not None:
        cfg.zonal.max_cells = max_cells
    if max_workers is not None:
        cfg.zonal.max_workers = max_workers
    if report_dir is not None:
        cfg.zonal.report_dir = report_dir

    id_field = id_field or cfg.zonal.id_field
    if not id_field:
        logger.error("No id field given (use -f/--field or zonal.id_field in the config)")
        ctx.exit(ExitCode.BAD_INPUT)
        return

    try:
        tracker = run_zonal_stats(
            polygons, raster, output, id_field,
            list(stat_names) or cfg.zonal.stats, cfg,
            weights=weights, id_filter=id_filter, progress=progress,
        )
    except PreconditionError as exc:
        logger.error(str(exc))
        ctx.exit(ExitCode.BAD_INPUT)
        return
    except ImportError as exc:
        logger.error(f"Missing dependency: {exc}")
        ctx.exit(ExitCode.MISSING_DEPENDENCY)
        return

    if not tracker.results and id_filter is not None:
        logger.warning(f"No polygon with id {id_filter!r}")
    ctx.exit(exit_code_from_tracker(tracker))


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@exactzonal.command()
@click.argument("values", type=click.Path(exists=True))
@click.argument("weights", nargs=-1, type=click.Path(exists=True))
@click.pass_context
def check(ctx, values, weights):
    """Report raster grids and whether WEIGHTS can be used with VALUES."""
    from contextlib import ExitStack

    from exactzonal.io.raster_source import RasterSource
    from exactzonal.zonal.feature_stats import check_grids

    try:
        with ExitStack() as stack:
            value_source = stack.enter_context(RasterSource(values))
            weight_sources = [stack.enter_context(RasterSource(w)) for w in weights]

            click.echo(f"{value_source.name}: {value_source.grid!r}")
            for source in weight_sources:
                compatible = value_source.grid.compatible_with(source.grid)
                click.echo(f"{source.name}: {source.grid!r} compatible={compatible}")

            check_grids(value_source, weight_sources)
            if weight_sources:
                common = value_source.grid.common_grid(weight_sources[0].grid)
                click.echo(f"common grid: {common!r}")
    except IncompatibleGridError as exc:
        logger.error(str(exc))
        ctx.exit(ExitCode.INCOMPATIBLE_GRIDS)
        return
    except PreconditionError as exc:
        logger.error(str(exc))
        ctx.exit(ExitCode.BAD_INPUT)
        return
    except ImportError as exc:
        logger.error(f"Missing dependency: {exc}")
        ctx.exit(ExitCode.MISSING_DEPENDENCY)
        return

    logger.info("Grids are compatible")
    ctx.exit(ExitCode.SUCCESS)


if __name__ == "__main__":
    exactzonal()
