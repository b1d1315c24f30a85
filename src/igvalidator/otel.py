"""
OTel span helpers for validation phases and quality gates.

Each helper pairs a log line with a span event on the current span, so the
same outcome is visible in console output and in any trace exporter the host
process configured.  Without an SDK the OpenTelemetry API hands out
non-recording spans and the events are dropped.

Usage::

    from igvalidator.otel import emit_phase_result, start_phase_span

    with start_phase_span(PhaseName.TECHNICAL):
        result = validator.validate(...)
        emit_phase_result(result)
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, ContextManager, TypeVar

from opentelemetry import context as otel_context
from opentelemetry import trace as otel_trace

from igvalidator.models import (
    IssueSeverity,
    PhaseName,
    PhaseResult,
    QualityGateComplianceResult,
    QualityGateResult,
)

logger = logging.getLogger(__name__)

TRACER_NAME = "igvalidator"

R = TypeVar("R")


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool]
) -> None:
    """Add an event to the current OTel span if it is recording.

    Args:
        name: Event name (e.g. ``"igvalidator.phase.technical"``).
        attributes: Flat dict of span event attributes.
    """
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def start_phase_span(phase: PhaseName) -> ContextManager:
    """Start a span named ``igvalidator.phase.{phase}`` as the current span."""
    tracer = otel_trace.get_tracer(TRACER_NAME)
    return tracer.start_as_current_span(
        f"igvalidator.phase.{phase.value}",
        attributes={"phase.name": phase.value},
    )


def start_pipeline_span() -> ContextManager:
    tracer = otel_trace.get_tracer(TRACER_NAME)
    return tracer.start_as_current_span("igvalidator.pipeline")


def bind_current_context(func: Callable[..., R]) -> Callable[..., R]:
    """Wrap ``func`` to run under the OTel context that is current now.

    Worker threads start with an empty context; spans opened by the wrapped
    call become children of the caller's current span.
    """
    captured = otel_context.get_current()

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> R:
        token = otel_context.attach(captured)
        try:
            return func(*args, **kwargs)
        finally:
            otel_context.detach(token)

    return wrapper


def emit_phase_result(result: PhaseResult) -> None:
    """Emit a span event for a completed phase.

    Event name: ``igvalidator.phase.{phase}``.
    """
    issues = result.all_issues()
    counts = {severity: 0 for severity in IssueSeverity}
    for issue in issues:
        counts[issue.severity] += 1

    attrs: dict[str, str | int | float | bool] = {
        "phase.name": result.phase.value,
        "phase.status": result.status.value,
        "phase.artifact_count": len(result.artifacts),
        "phase.issue_count": len(issues),
        "phase.error_count": counts[IssueSeverity.ERROR] + counts[IssueSeverity.FATAL],
        "phase.warning_count": counts[IssueSeverity.WARNING],
        "phase.duration_seconds": result.duration_seconds,
    }
    add_span_event(f"igvalidator.phase.{result.phase.value}", attrs)

    logger.info(
        "Phase %s: %s (%d artifacts, %d issues, %.2fs)",
        result.phase.value,
        result.status.value,
        len(result.artifacts),
        len(issues),
        result.duration_seconds,
    )


def emit_gate_result(result: QualityGateResult) -> None:
    """Emit a span event for one evaluated quality gate.

    Event name: ``igvalidator.gate.result``.
    """
    failed = [c.name for c in result.criteria if c.actual_value < c.required_value]
    attrs: dict[str, str | int | float | bool] = {
        "gate.id": result.gate_id,
        "gate.name": result.gate_name,
        "gate.status": result.status.value,
        "gate.score": result.score,
        "gate.pass_threshold": result.pass_threshold,
        "gate.blocking": result.blocking,
        "gate.criteria_count": len(result.criteria),
        "gate.failed_criteria_count": len(failed),
    }
    add_span_event("igvalidator.gate.result", attrs)

    logger.info(
        "Gate %s [%s]: score %.1f / threshold %.1f%s",
        result.gate_id,
        result.status.value,
        result.score,
        result.pass_threshold,
        " (blocking)" if result.blocking else "",
    )


def emit_compliance(result: QualityGateComplianceResult) -> None:
    """Emit a span event summarizing gate compliance.

    Event name: ``igvalidator.gate.compliance``.
    """
    attrs: dict[str, str | int | float | bool] = {
        "compliance.overall": result.overall_compliance,
        "compliance.gate_count": len(result.gate_results),
        "compliance.blocking_failure_count": len(result.blocking_failures),
        "compliance.config_source": result.config_source,
    }
    add_span_event("igvalidator.gate.compliance", attrs)

    if result.overall_compliance:
        logger.info("Quality gates compliant (%d gates)", len(result.gate_results))
    else:
        logger.warning(
            "Quality gates NOT compliant: blocking failures %s",
            ", ".join(g.gate_id for g in result.blocking_failures),
        )
