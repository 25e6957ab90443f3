"""
denudmap CLI entrypoint: commands for training the denudation forest,
exporting the global prediction map, and previewing it in a browser map.
"""

import sys

import click  # type: ignore
from click import echo

from denudmap.core.config import ConfigManager, PipelineSettings
from denudmap.core.logger import Logger
from denudmap.core.pipeline import DenudationPipeline
from denudmap.ingestion.eemanager import ee_manager
from denudmap.services.export import ExportService
from denudmap.visualization.map_preview import build_map, save_map

logger = Logger.get_logger(__name__)


def _build_pipeline(config_path, ee_project, credentials) -> DenudationPipeline:
    """Return a pipeline configured from *config_path* and EE options."""

    cfg = ConfigManager(config_path)
    settings = PipelineSettings.from_config(cfg)
    if ee_project:
        ee_manager.project = ee_project
    if credentials:
        ee_manager.credential_path = credentials
    return DenudationPipeline(settings=settings, ee_manager=ee_manager, logger=logger)


def common_options(func):
    """Attach the options shared by every pipeline command."""

    func = click.option(
        "--credentials",
        type=click.Path(exists=True),
        default=None,
        help="Service-account JSON key for Earth Engine.",
    )(func)
    func = click.option(
        "--ee-project",
        default=None,
        help="Earth Engine (GCP) project; defaults to DENUDMAP_EE_PROJECT.",
    )(func)
    func = click.option(
        "--config",
        "-c",
        "config_path",
        type=click.Path(exists=True),
        default=None,
        help="YAML/TOML/JSON file overriding the default settings.",
    )(func)
    return func


@click.group()
def cli():
    """denudmap: global denudation-rate mapping on Earth Engine."""
    Logger.setup()


@cli.command()
@common_options
@click.option(
    "--out-dir",
    "-o",
    type=click.Path(),
    default="denudmap_reports",
    help="Directory for model summary, metrics and figures.",
)
def train(config_path, ee_project, credentials, out_dir):
    """Train the forest, report importances and evaluate on the test split."""
    try:
        pipeline = _build_pipeline(config_path, ee_project, credentials)
        result = pipeline.train()
        pipeline.write_reports(result, out_dir)
        metrics = result.evaluation.metrics()
        echo(
            f"R²={metrics['r2']:.3f}  RMSE={metrics['rmse']:.3f}  "
            f"MAE={metrics['mae']:.3f}  (n={metrics['n']})"
        )
        echo(f"✅  Reports written to {out_dir}/")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Train command failed", exc_info=True)
        echo(f"❌  Training failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@common_options
@click.option(
    "--skip-checks",
    is_flag=True,
    default=False,
    help="Skip band-name and grid verification of the composite.",
)
@click.option(
    "--wait/--no-wait",
    default=False,
    help="Block until the Drive export task finishes.",
)
@click.option(
    "--poll-interval",
    type=float,
    default=30.0,
    help="Seconds between export status checks when waiting.",
)
def predict(config_path, ee_project, credentials, skip_checks, wait, poll_interval):
    """Train the forest and export the global prediction map to Drive."""
    try:
        pipeline = _build_pipeline(config_path, ee_project, credentials)
        _, split = pipeline.split()
        model = pipeline.fit(split)
        result = pipeline.predict(model, export=True, verify=not skip_checks)
        echo(f"→ Export task started: {pipeline.settings.export.description}")
        if wait:
            ExportService(ee_manager_instance=ee_manager, logger=logger).wait(
                result.task, poll_interval=poll_interval
            )
            echo("✅  Export completed")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Predict command failed", exc_info=True)
        echo(f"❌  Prediction failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@common_options
@click.option(
    "--out-dir",
    "-o",
    type=click.Path(),
    default="denudmap_reports",
    help="Directory for model summary, metrics and figures.",
)
@click.option(
    "--export/--no-export",
    default=True,
    help="Start the Drive export of the prediction map.",
)
@click.option(
    "--skip-checks",
    is_flag=True,
    default=False,
    help="Skip band-name and grid verification of the composite.",
)
def run(config_path, ee_project, credentials, out_dir, export, skip_checks):
    """Run the full workflow: train, evaluate, predict and export."""
    try:
        pipeline = _build_pipeline(config_path, ee_project, credentials)
        training, prediction = pipeline.run(
            out_dir=out_dir, export=export, verify=not skip_checks
        )
        echo(f"R²={training.evaluation.r2:.3f}  RMSE={training.evaluation.rmse:.3f}")
        if prediction.task is not None:
            echo(f"→ Export task started: {pipeline.settings.export.description}")
        echo(f"✅  Reports written to {out_dir}/")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Run command failed", exc_info=True)
        echo(f"❌  Pipeline failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@common_options
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="denudation_map.html",
    help="Output HTML path",
)
@click.option("--zoom", type=int, default=2, help="Initial zoom level.")
def preview(config_path, ee_project, credentials, output, zoom):
    """Render the predicted denudation map as an interactive HTML page."""
    try:
        pipeline = _build_pipeline(config_path, ee_project, credentials)
        _, split = pipeline.split()
        model = pipeline.fit(split)
        result = pipeline.predict(model, export=False, verify=False)
        m = build_map(result.image, pipeline.settings.vis, zoom=zoom)
        save_map(m, output)
        echo(f"✅  Map written to {output}")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Preview command failed", exc_info=True)
        echo(f"❌  Preview failed: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
