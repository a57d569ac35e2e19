"""
CLI interface for hero and weapon-action detection.

Commands to label videos, evaluate recognition-method variants against ground
truth, and generate reports.
"""

import os
import sys
from datetime import datetime

import click
from loguru import logger

from mercy_detector.models.hero_detector import HeroDetector
from mercy_detector.models.recognizers import MATCH_METHOD_NAMES
from mercy_detector.utils.config import Config
from mercy_detector.utils.dataset_evaluator import (ALL_VARIANTS,
                                                    TEMPLATE_VARIANTS,
                                                    DatasetEvaluator)
from mercy_detector.utils.report_generator import ReportGenerator, effectiveness


def setup_logging(verbose: bool = False, log_level: str = "INFO"):
    """Configure logging for the application."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level if not verbose else "DEBUG",
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:"
            "<cyan>{line}</cyan> - <level>{message}</level>"
        ),
    )

    if verbose:
        logger.info("Verbose mode enabled")


def apply_config_overrides(
    config: Config,
    sample_rate: int | None = None,
    max_frames: int | None = None,
    history_size: int | None = None,
    template_dir: str | None = None,
    action_template_file: str | None = None,
    hero_classifier_dir: str | None = None,
    weapon_classifier_dir: str | None = None,
    use_mask: bool | None = None,
    use_edges: bool | None = None,
) -> Config:
    """Apply CLI overrides on top of env/default configuration."""
    if sample_rate is not None:
        config.FRAME_SAMPLE_RATE = int(sample_rate)
    if max_frames is not None:
        config.MAX_FRAMES = int(max_frames)
    if history_size is not None:
        config.HISTORY_SIZE = int(history_size)
    if template_dir is not None:
        config.TEMPLATE_DIR = template_dir
    if action_template_file is not None:
        config.ACTION_TEMPLATE_FILE = action_template_file
    if hero_classifier_dir is not None:
        config.HERO_CLASSIFIER_DIR = hero_classifier_dir
    if weapon_classifier_dir is not None:
        config.WEAPON_CLASSIFIER_DIR = weapon_classifier_dir
    if use_mask:
        config.USE_MASK = True
    if use_edges:
        config.USE_EDGES = True
    return config


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--log-level", default="INFO", help="Logging level")
def cli(verbose: bool, log_level: str):
    """Hero and weapon-action detection for gameplay videos."""
    setup_logging(verbose, log_level)


@click.command()
@click.option("--video", "-i", required=True, help="Path to input video file")
@click.option(
    "--method",
    default="template",
    type=click.Choice(["template", "cascade"], case_sensitive=False),
    help="Recognition method",
)
@click.option(
    "--match-method",
    default=None,
    type=click.Choice(list(MATCH_METHOD_NAMES), case_sensitive=False),
    help="Template matching method (template method only)",
)
@click.option(
    "--solution",
    default="temporal",
    type=click.Choice(["per_frame", "temporal"], case_sensitive=False),
    help="Per-frame labels or temporal voting",
)
@click.option("--sample-rate", default=None, type=int, help="Process every Nth frame")
@click.option("--max-frames", default=None, type=int, help="Maximum frames per video")
@click.option(
    "--history-size",
    default=None,
    type=int,
    help="Values kept per label by temporal voting",
)
@click.option("--template-dir", default=None, help="Directory with template images")
@click.option(
    "--action-template-file", default=None, help="CSV listing weapon-action templates"
)
@click.option("--hero-classifier-dir", default=None, help="Hero cascade classifiers")
@click.option(
    "--weapon-classifier-dir", default=None, help="Weapon cascade classifiers"
)
@click.option("--use-mask", is_flag=True, help="Use template masks where supported")
@click.option("--use-edges", is_flag=True, help="Match on edge maps")
@click.option("--output", "-o", default=None, help="Write per-frame labels as CSV")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--log-level", default="INFO", help="Logging level")
def predict(
    video: str,
    method: str,
    match_method: str | None,
    solution: str,
    sample_rate: int | None,
    max_frames: int | None,
    history_size: int | None,
    template_dir: str | None,
    action_template_file: str | None,
    hero_classifier_dir: str | None,
    weapon_classifier_dir: str | None,
    use_mask: bool,
    use_edges: bool,
    output: str | None,
    verbose: bool,
    log_level: str,
):
    """Identify the hero and weapon action shown in a video."""
    setup_logging(verbose, log_level)
    try:
        # Validate input
        if not os.path.exists(video):
            logger.error(f"Video file not found: {video}")
            sys.exit(1)

        config = apply_config_overrides(
            Config(),
            sample_rate=sample_rate,
            max_frames=max_frames,
            history_size=history_size,
            template_dir=template_dir,
            action_template_file=action_template_file,
            hero_classifier_dir=hero_classifier_dir,
            weapon_classifier_dir=weapon_classifier_dir,
            use_mask=use_mask,
            use_edges=use_edges,
        )

        logger.info("Initializing hero detector...")
        detector = HeroDetector(
            method=method.lower(),
            solution=solution.lower(),
            match_method=(
                MATCH_METHOD_NAMES[match_method.upper()] if match_method else None
            ),
            config=config,
        )

        logger.info(f"Processing video: {video}")
        result = detector.predict(video_path=video)

        if output:
            meta = HeroDetector.to_metafile(result)
            if meta is None:
                logger.warning("No frames processed; metadata file not written")
            else:
                meta.save(output)

        # stdout output
        click.echo(f"hero predicted: {result['hero']}")
        click.echo(f"action predicted: {result['action']}")

        sys.exit(0)

    except Exception as e:
        logger.error(f"Error processing video: {e}")
        sys.exit(1)


@click.command()
@click.option("--dataset-path", "-d", required=True, help="Path to dataset directory")
@click.option(
    "--labels-file",
    "-l",
    required=True,
    help="CSV listing videos (column 'video', optional 'metadata')",
)
@click.option(
    "--variant",
    "variants",
    multiple=True,
    type=click.Choice(ALL_VARIANTS, case_sensitive=True),
    help="Variant to evaluate (repeatable, default: every template method)",
)
@click.option(
    "--solution",
    default="per_frame",
    type=click.Choice(["per_frame", "temporal"], case_sensitive=False),
    help="Score raw per-frame labels or temporally smoothed ones",
)
@click.option("--sample-rate", default=None, type=int, help="Process every Nth frame")
@click.option("--max-frames", default=None, type=int, help="Maximum frames per video")
@click.option(
    "--history-size",
    default=None,
    type=int,
    help="Values kept per label by temporal voting",
)
@click.option("--template-dir", default=None, help="Directory with template images")
@click.option(
    "--action-template-file", default=None, help="CSV listing weapon-action templates"
)
@click.option("--hero-classifier-dir", default=None, help="Hero cascade classifiers")
@click.option(
    "--weapon-classifier-dir", default=None, help="Weapon cascade classifiers"
)
@click.option("--use-mask", is_flag=True, help="Use template masks where supported")
@click.option("--use-edges", is_flag=True, help="Match on edge maps")
@click.option(
    "--progress/--no-progress",
    default=True,
    help="Show progress bar",
)
@click.option(
    "--output-dir",
    "-o",
    help="Output directory name (default: timestamp)",
)
@click.option(
    "--no-report",
    is_flag=True,
    help="Skip automatic report generation",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--log-level", default="INFO", help="Logging level")
def evaluate(
    dataset_path: str,
    labels_file: str,
    variants: tuple,
    solution: str,
    sample_rate: int | None,
    max_frames: int | None,
    history_size: int | None,
    template_dir: str | None,
    action_template_file: str | None,
    hero_classifier_dir: str | None,
    weapon_classifier_dir: str | None,
    use_mask: bool,
    use_edges: bool,
    progress: bool,
    output_dir: str,
    no_report: bool,
    verbose: bool,
    log_level: str,
):
    """Evaluate recognition-method variants on a dataset and generate a report."""
    setup_logging(verbose, log_level)
    try:
        # Validate inputs
        if not os.path.exists(dataset_path):
            logger.error(f"Dataset directory not found: {dataset_path}")
            sys.exit(1)
        if not os.path.exists(labels_file):
            logger.error(f"Labels file not found: {labels_file}")
            sys.exit(1)

        # Setup output directory
        if output_dir is None:
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            output_dir = f"data/results/{timestamp}"
        else:
            output_dir = f"data/results/{output_dir}"

        logger.info(f"Results will be saved to: {output_dir}")

        config = apply_config_overrides(
            Config(),
            sample_rate=sample_rate,
            max_frames=max_frames,
            history_size=history_size,
            template_dir=template_dir,
            action_template_file=action_template_file,
            hero_classifier_dir=hero_classifier_dir,
            weapon_classifier_dir=weapon_classifier_dir,
            use_mask=use_mask,
            use_edges=use_edges,
        )

        # Initialize evaluator
        evaluator = DatasetEvaluator(
            dataset_path=dataset_path,
            labels_file=labels_file,
            variants=list(variants) or list(TEMPLATE_VARIANTS),
            solution=solution.lower(),
            config=config,
            show_progress=progress,
        )

        # Run evaluation
        results = evaluator.evaluate()

        # Save results
        os.makedirs(output_dir, exist_ok=True)
        results_file = os.path.join(output_dir, "evaluation_results.json")
        evaluator.save_results(results, results_file)

        logger.info(f"Evaluation complete. Results saved to: {results_file}")

        # Generate report unless disabled
        if not no_report:
            report_file = os.path.join(output_dir, "technical_report.md")
            report_generator = ReportGenerator(results_file)
            report_generator.generate_report(report_file)
            logger.info(f"Technical report generated: {report_file}")

        # Print summary
        for row in results["summary"]:
            pct = effectiveness(row["correct"], row["total"])
            shown = "n/a" if pct is None else f"{pct:.1f}%"
            click.echo(
                f"{row['variant']}: {row['correct']}/{row['total']} correct ({shown})"
            )

        sys.exit(0)

    except Exception as e:
        logger.error(f"Error during evaluation: {e}")
        sys.exit(1)


@click.command()
@click.option("--results-file", "-r", required=True,
              help="Path to evaluation results JSON")
@click.option("--output-file", "-o", help="Output file for the report")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--log-level", default="INFO", help="Logging level")
def report(
    results_file: str,
    output_file: str | None,
    verbose: bool,
    log_level: str,
):
    """Generate a technical report from evaluation results."""
    setup_logging(verbose, log_level)

    try:
        if not os.path.exists(results_file):
            logger.error(f"Results file not found: {results_file}")
            sys.exit(1)

        report_generator = ReportGenerator(results_file)
        report_content = report_generator.generate_report(output_file)

        if output_file is None:
            click.echo(report_content)
        else:
            logger.info(f"Report generated: {output_file}")

        sys.exit(0)

    except Exception as e:
        logger.error(f"Error generating report: {e}")
        sys.exit(1)


# Add commands to the CLI group
cli.add_command(predict)
cli.add_command(evaluate)
cli.add_command(report)

if __name__ == "__main__":
    cli()
