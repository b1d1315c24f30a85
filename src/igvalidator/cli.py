"""
igvalidator CLI - run the validation pipeline and evaluate quality gates.

Commands:
    igvalidator run          Run every validation phase and the quality gates
    igvalidator check-gates  Re-score the gates of a persisted report
    igvalidator gates        Show the effective quality gate set

Exit codes:
    0  validation passed and all blocking gates passed
    1  validation failed, or a blocking gate failed
    2  unrecoverable error (invalid configuration, unwritable output)
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from igvalidator import __version__
from igvalidator.config import load_pipeline_config
from igvalidator.exceptions import ConfigurationError, ReportLoadError, ReportPersistenceError
from igvalidator.gates.loader import QualityGateLoader
from igvalidator.pipeline.orchestrator import PipelineOrchestrator
from igvalidator.pipeline.report import (
    EXIT_UNRECOVERABLE,
    determine_exit_code,
    format_gate_results,
    format_summary,
)
from igvalidator.pipeline.rescore import rescore_report

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_OUTPUT_FORMATS = click.Choice(["text", "json"])


def configure_logging(verbose: bool = False) -> None:
    """Attach a stderr handler to the ``igvalidator`` logger.

    Re-configuring replaces the handler installed by a previous call.
    """
    package_logger = logging.getLogger("igvalidator")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_igvalidator_cli", False):
            package_logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._igvalidator_cli = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(EXIT_UNRECOVERABLE)


@click.group()
@click.version_option(__version__, prog_name="igvalidator")
def main():
    """Conformance validation and quality gates for implementation guides."""
    pass


@main.command("run")
@click.option("--profiles", "-p", "profile_directory", help="Profile artifact directory")
@click.option("--examples", "-e", "example_resource_directory", help="Example resource directory")
@click.option(
    "--implementation-guide", "-i", "implementation_guide_directory",
    help="Implementation guide documentation directory",
)
@click.option("--package", "package_directory", help="Publication package directory")
@click.option("--output", "-o", "output_directory", help="Report output directory")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Run configuration YAML")
@click.option("--gate-config", "quality_gate_config_path", help="Quality gate configuration YAML")
@click.option("--parallel/--no-parallel", "enable_parallel_validation", default=None,
              help="Run phases and artifact checks concurrently")
@click.option("--max-workers", "max_parallel_tasks", type=int, help="Maximum artifact workers")
@click.option("--timeout", "validation_timeout_seconds", type=int,
              help="Per-artifact validation timeout in seconds (1-3600)")
@click.option("--fail-on-warnings", is_flag=True,
              help="Exit non-zero when the overall status is Warning")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--format", "output_format", type=_OUTPUT_FORMATS, default="text",
              help="Console output format")
def run_cmd(
    profile_directory: Optional[str],
    example_resource_directory: Optional[str],
    implementation_guide_directory: Optional[str],
    package_directory: Optional[str],
    output_directory: Optional[str],
    config_path: Optional[str],
    quality_gate_config_path: Optional[str],
    enable_parallel_validation: Optional[bool],
    max_parallel_tasks: Optional[int],
    validation_timeout_seconds: Optional[int],
    fail_on_warnings: Optional[bool],
    verbose: bool,
    output_format: str,
):
    """Run the full validation pipeline.

    Options given on the command line override the run configuration file,
    which overrides IGVALIDATOR_* environment variables.

    Example:
        igvalidator run -p input/profiles -e input/examples \\
            -i docs/implementation-guide --gate-config quality-gates.yml
    """
    try:
        config = load_pipeline_config(
            config_path,
            profile_directory=profile_directory,
            example_resource_directory=example_resource_directory,
            implementation_guide_directory=implementation_guide_directory,
            package_directory=package_directory,
            output_directory=output_directory,
            quality_gate_config_path=quality_gate_config_path,
            enable_parallel_validation=enable_parallel_validation,
            max_parallel_tasks=max_parallel_tasks,
            validation_timeout_seconds=validation_timeout_seconds,
            fail_on_warnings=fail_on_warnings or None,
            verbose_logging=verbose or None,
        )
    except ConfigurationError as exc:
        _fail(f"invalid configuration: {exc}")
        return

    configure_logging(config.verbose_logging)

    try:
        result = PipelineOrchestrator.default(config).run(config)
    except ReportPersistenceError as exc:
        _fail(str(exc))
        return

    if output_format == "json":
        click.echo(result.model_dump_json(by_alias=True, indent=2))
    else:
        click.echo(format_summary(result))

    sys.exit(determine_exit_code(result, config.fail_on_warnings))


@main.command("check-gates")
@click.argument("report", type=click.Path())
@click.option("--gate-config", help="Quality gate configuration YAML")
@click.option("--output", "-o", "output_directory",
              help="Also persist the re-scored report to this directory")
@click.option("--fail-on-warnings", is_flag=True, help="Exit non-zero when the status is Warning")
@click.option("--no-recommendations", is_flag=True, help="Do not regenerate recommendations")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--format", "output_format", type=_OUTPUT_FORMATS, default="text",
              help="Console output format")
def check_gates_cmd(
    report: str,
    gate_config: Optional[str],
    output_directory: Optional[str],
    fail_on_warnings: bool,
    no_recommendations: bool,
    verbose: bool,
    output_format: str,
):
    """Re-evaluate gate compliance for a persisted REPORT.

    Validation phases are not re-run; only the quality gates are scored again,
    which is useful after changing the gate configuration.

    Example:
        igvalidator check-gates validation-output/validation-report-latest.json \\
            --gate-config quality-gates.yml
    """
    configure_logging(verbose)
    try:
        result = rescore_report(
            report,
            gate_config,
            include_recommendations=not no_recommendations,
            output_directory=output_directory,
        )
    except (ReportLoadError, ReportPersistenceError) as exc:
        _fail(str(exc))
        return

    if output_format == "json":
        click.echo(result.model_dump_json(by_alias=True, indent=2))
    else:
        click.echo(f"Overall status: {result.overall_status.value}")
        click.echo(format_gate_results(result.quality_gate_compliance))

    sys.exit(determine_exit_code(result, fail_on_warnings))


@main.command("gates")
@click.option("--gate-config", help="Quality gate configuration YAML")
@click.option("--format", "output_format", type=_OUTPUT_FORMATS, default="text",
              help="Console output format")
def gates_cmd(gate_config: Optional[str], output_format: str):
    """Show the quality gates that would be evaluated.

    Falls back to the built-in gates when the configuration is missing or
    invalid, and says so.
    """
    configure_logging(False)
    configuration, source = QualityGateLoader().load_or_default(gate_config)

    if output_format == "json":
        click.echo(configuration.model_dump_json(by_alias=True, indent=2))
        return

    click.echo(f"Quality gates ({source}):")
    for gate in configuration.quality_gates:
        kind = "blocking" if gate.blocking else "advisory"
        click.echo(f"  {gate.id}  {gate.name}  [{kind}, threshold {gate.pass_threshold:.0f}%]")
        for criterion in gate.criteria:
            click.echo(f"    - {criterion.name} (>= {criterion.required_value:.0f})")


if __name__ == "__main__":
    main()
