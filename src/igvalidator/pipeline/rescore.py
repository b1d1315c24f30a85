"""
Gate re-scoring for a persisted report.

Loads a report written by a previous run, re-evaluates the quality gates
against its phase results (phases are not re-run) and recomputes the overall
status and recommendations.  A report from a run that itself failed keeps its
``Failed`` status and recommendations; only gate compliance is replaced.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from igvalidator.gates.evaluator import QualityGateEvaluator
from igvalidator.models import PipelineResult, PipelineState
from igvalidator.pipeline.report import ReportWriter, load_report
from igvalidator.pipeline.summary import apply_summary

logger = logging.getLogger(__name__)


def rescore_report(
    report_path: Union[str, Path],
    gate_config_source: Optional[Union[str, Path]],
    *,
    evaluator: Optional[QualityGateEvaluator] = None,
    include_recommendations: bool = True,
    output_directory: Optional[Union[str, Path]] = None,
    report_writer: Optional[ReportWriter] = None,
) -> PipelineResult:
    """Re-evaluate gate compliance for the report at ``report_path``.

    Args:
        report_path: A persisted ``validation-report-*.json``.
        gate_config_source: Gate configuration; defaults are used if absent.
        evaluator: Evaluator to use (a fresh one by default).
        include_recommendations: Regenerate recommendations.
        output_directory: When given, persist the re-scored report there.
        report_writer: Writer used with ``output_directory``.

    Raises:
        ReportLoadError: If the report cannot be loaded.
        ReportPersistenceError: If ``output_directory`` cannot be written.
    """
    result = load_report(report_path)
    evaluator = evaluator or QualityGateEvaluator()
    logger.info("Re-scoring quality gates for %s", report_path)

    result.quality_gate_compliance = evaluator.evaluate(result, gate_config_source)
    if result.state != PipelineState.FAILED:
        apply_summary(result, include_recommendations)
    else:
        logger.warning("Report %s is from a failed run; keeping Failed status", report_path)

    if output_directory is not None:
        writer = report_writer or ReportWriter()
        result.report_path = str(writer.write(result, output_directory))
    return result
