"""
Report boundary: persistence, console summary and exit codes.

Reports are written as camelCase JSON to
``validation-report-YYYYMMDD-HHMMSS.json`` (with a ``-N`` suffix when that
name is taken) plus a ``validation-report-latest.json`` copy.  Each file is
written to a temporary file in the output directory and moved into place with
``os.replace`` so a reader never sees a partial report.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from igvalidator.exceptions import ReportLoadError, ReportPersistenceError
from igvalidator.models import (
    PipelineResult,
    QualityGateComplianceResult,
    RecommendationPriority,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

REPORT_PREFIX = "validation-report-"
LATEST_REPORT_NAME = "validation-report-latest.json"

EXIT_OK = 0
EXIT_VALIDATION_FAILED = 1
EXIT_UNRECOVERABLE = 2


def report_file_name(timestamp: datetime, sequence: int = 0) -> str:
    suffix = f"-{sequence}" if sequence else ""
    return f"{REPORT_PREFIX}{timestamp:%Y%m%d-%H%M%S}{suffix}.json"


def _claim_report_path(out_dir: Path, timestamp: datetime) -> Path:
    """Reserve the first free report name for ``timestamp``.

    Runs finishing in the same second get ``-1``, ``-2``, ... suffixes.
    """
    sequence = 0
    while True:
        candidate = out_dir / report_file_name(timestamp, sequence)
        try:
            fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            sequence += 1
            continue
        os.close(fd)
        return candidate


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class ReportWriter:
    """Persists a :class:`PipelineResult` as JSON."""

    def write(self, result: PipelineResult, output_dir: Union[str, Path]) -> Path:
        """Write the timestamped report and the ``latest`` copy.

        Returns:
            Path of the timestamped report.

        Raises:
            ReportPersistenceError: If the directory cannot be created or written.
        """
        out_dir = Path(output_dir)
        timestamp = result.execution_end_time or datetime.now(timezone.utc)
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
            report_path = _claim_report_path(out_dir, timestamp)
            payload = result.model_copy(update={"report_path": str(report_path)})
            content = payload.model_dump_json(by_alias=True, indent=2)
            _atomic_write(report_path, content)
            _atomic_write(out_dir / LATEST_REPORT_NAME, content)
        except OSError as exc:
            raise ReportPersistenceError(str(out_dir), str(exc)) from exc
        logger.info("Validation report saved to %s", report_path)
        return report_path


def load_report(path: Union[str, Path]) -> PipelineResult:
    """Load a persisted report.

    Raises:
        ReportLoadError: If the file is missing, unreadable or not a report.
    """
    report = Path(path)
    try:
        with open(report, encoding="utf-8") as fh:
            content = fh.read()
        return PipelineResult.model_validate_json(content)
    except (OSError, ValidationError, ValueError) as exc:
        raise ReportLoadError(str(report), str(exc)) from exc


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


def determine_exit_code(result: PipelineResult, fail_on_warnings: bool = False) -> int:
    """0 only for Success (or Warning when allowed) with gate compliance."""
    status_ok = result.overall_status == ValidationStatus.SUCCESS or (
        result.overall_status == ValidationStatus.WARNING and not fail_on_warnings
    )
    if status_ok and result.quality_gate_compliance.overall_compliance:
        return EXIT_OK
    return EXIT_VALIDATION_FAILED


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------


def format_gate_results(compliance: QualityGateComplianceResult) -> str:
    lines: list[str] = []
    verdict = "COMPLIANT" if compliance.overall_compliance else "NOT COMPLIANT"
    lines.append(f"Quality Gates: {verdict}")
    if compliance.config_source:
        lines.append(f"  Source: {compliance.config_source}")
    for gate in compliance.gate_results:
        icon = "PASS" if gate.status == ValidationStatus.SUCCESS else "FAIL"
        blocking_tag = " [BLOCKING]" if gate.blocking else ""
        lines.append(
            f"  {icon}{blocking_tag}  {gate.gate_id} {gate.gate_name}: "
            f"{gate.score:.1f}% (threshold {gate.pass_threshold:.1f}%)"
        )
        for criterion in gate.criteria:
            if criterion.status != ValidationStatus.SUCCESS:
                lines.append(
                    f"    - {criterion.name}: {criterion.actual_value:.1f} "
                    f"< {criterion.required_value:.1f} [{criterion.status.value}]"
                )
    return "\n".join(lines)


def format_summary(result: PipelineResult) -> str:
    """Human-readable run summary."""
    lines: list[str] = []
    lines.append(f"Validation Pipeline: {result.overall_status.value}")
    lines.append(f"  State:    {result.state.value}")
    lines.append(f"  Duration: {result.execution_duration_seconds:.2f}s")
    if result.report_path:
        lines.append(f"  Report:   {result.report_path}")
    lines.append("")

    lines.append("Phases:")
    for phase in result.phases():
        lines.append(
            f"  {phase.phase.value:<12} {phase.status.value:<8} "
            f"({len(phase.artifacts)} artifacts, {len(phase.all_issues())} issues)"
        )
    lines.append("")

    lines.append(format_gate_results(result.quality_gate_compliance))
    if result.quality_gate_compliance.blocking_failures:
        lines.append("  Blocking failures:")
        for gate in result.quality_gate_compliance.blocking_failures:
            lines.append(f"    - {gate.gate_name} ({gate.score:.1f}%)")
    lines.append("")

    metrics = result.metrics
    lines.append(
        f"Issues: {metrics.total_validation_issues} total, "
        f"{metrics.critical_issues} errors, {metrics.warning_issues} warnings"
    )

    by_priority = {p: 0 for p in RecommendationPriority}
    for rec in result.recommendations:
        by_priority[rec.priority] += 1
    counts = ", ".join(f"{count} {p.value}" for p, count in by_priority.items() if count)
    if counts:
        lines.append(f"Recommendations: {len(result.recommendations)} ({counts})")
    else:
        lines.append("Recommendations: 0")
    for rec in result.recommendations:
        lines.append(f"  [{rec.priority.value}] {rec.title}")
    return "\n".join(lines)
