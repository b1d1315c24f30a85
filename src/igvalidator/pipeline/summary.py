"""Overall status and recommendation derivation for a finished result."""

from __future__ import annotations

from igvalidator.models import PipelineResult, ValidationStatus
from igvalidator.pipeline.recommendations import generate_recommendations


def derive_overall_status(result: PipelineResult) -> ValidationStatus:
    """Failed on any phase Error/Failed or gate non-compliance; then Warning; else Success.

    Gate non-compliance forces ``Failed`` even when every phase only warned.
    """
    statuses = [phase.status for phase in result.phases()]
    if any(s in (ValidationStatus.ERROR, ValidationStatus.FAILED) for s in statuses):
        return ValidationStatus.FAILED
    if not result.quality_gate_compliance.overall_compliance:
        return ValidationStatus.FAILED
    if any(s == ValidationStatus.WARNING for s in statuses):
        return ValidationStatus.WARNING
    return ValidationStatus.SUCCESS


def apply_summary(result: PipelineResult, include_recommendations: bool = True) -> None:
    """Set overall status and recommendations from phases and gate compliance."""
    result.overall_status = derive_overall_status(result)
    result.recommendations = generate_recommendations(result) if include_recommendations else []
