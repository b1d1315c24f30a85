"""
Pipeline orchestration, summary derivation and the report boundary.

Usage::

    from igvalidator.pipeline import PipelineOrchestrator, determine_exit_code

    result = PipelineOrchestrator.default(config).run(config)
    sys.exit(determine_exit_code(result, config.fail_on_warnings))
"""

from igvalidator.pipeline.metrics import calculate_metrics
from igvalidator.pipeline.orchestrator import PipelineOrchestrator
from igvalidator.pipeline.recommendations import (
    generate_recommendations,
    pipeline_failure_recommendation,
)
from igvalidator.pipeline.report import (
    EXIT_OK,
    EXIT_UNRECOVERABLE,
    EXIT_VALIDATION_FAILED,
    LATEST_REPORT_NAME,
    ReportWriter,
    determine_exit_code,
    format_gate_results,
    format_summary,
    load_report,
)
from igvalidator.pipeline.rescore import rescore_report
from igvalidator.pipeline.summary import apply_summary, derive_overall_status

__all__ = [
    "EXIT_OK",
    "EXIT_UNRECOVERABLE",
    "EXIT_VALIDATION_FAILED",
    "LATEST_REPORT_NAME",
    "PipelineOrchestrator",
    "ReportWriter",
    "apply_summary",
    "calculate_metrics",
    "derive_overall_status",
    "determine_exit_code",
    "format_gate_results",
    "format_summary",
    "generate_recommendations",
    "load_report",
    "pipeline_failure_recommendation",
    "rescore_report",
]
