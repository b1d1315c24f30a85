"""
Criterion dispatch table.

``CRITERIA`` maps each human-readable criterion name used in gate files to a
pure function of the :class:`PipelineResult` returning a value in 0-100.  It
is the single extension point for new criteria and must cover every
criterion in the built-in gates and in ``examples/quality-gates.yml``.  Names
missing from the table are scored 0 by the evaluator.

Several organisational criteria (stakeholder approval, audit trail, partner
notification ...) cannot be observed from the artifacts and return fixed
values.
"""

from __future__ import annotations

from typing import Callable

from igvalidator.models import (
    IssueSeverity,
    PhaseResult,
    PipelineResult,
    ValidationStatus,
)

CriterionFn = Callable[[PipelineResult], float]

_PASSING = (ValidationStatus.SUCCESS, ValidationStatus.WARNING)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def passing_artifact_percentage(phase: PhaseResult) -> float:
    """Share of artifacts without errors; 100 when the phase has none."""
    if not phase.artifacts:
        return 100.0
    passing = sum(1 for a in phase.artifacts if a.status in _PASSING)
    return 100.0 * passing / len(phase.artifacts)


def check_passed(phase: PhaseResult, check: str) -> float:
    """100 when the named sub-check ran and succeeded, else 0."""
    result = phase.checks.get(check)
    if result is None:
        return 0.0
    return 100.0 if result.status == ValidationStatus.SUCCESS else 0.0


def no_error_issues(phase: PhaseResult) -> float:
    errors = (IssueSeverity.ERROR, IssueSeverity.FATAL)
    for artifact in phase.artifacts:
        if any(issue.severity in errors for issue in artifact.issues):
            return 0.0
    return 100.0


def phase_succeeded(phase: PhaseResult, when_success: float, otherwise: float) -> float:
    return when_success if phase.status == ValidationStatus.SUCCESS else otherwise


def constant(value: float) -> CriterionFn:
    def _value(result: PipelineResult) -> float:
        return value

    return _value


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

CRITERIA: dict[str, CriterionFn] = {
    # Technical
    "All StructureDefinitions validate against FHIR R4": lambda r: passing_artifact_percentage(
        r.technical_validation
    ),
    "Canonical URLs follow established patterns": lambda r: check_passed(
        r.technical_validation, "canonicalUrl"
    ),
    "Example resources conform to profiles": lambda r: passing_artifact_percentage(
        r.resource_validation
    ),
    "No validation errors in Firely Terminal": lambda r: no_error_issues(r.technical_validation),
    "Profile metadata complete": lambda r: check_passed(r.technical_validation, "metadata"),
    # Clinical / content
    "Clinical workflows accurately represented": lambda r: phase_succeeded(
        r.content_validation, 95.0, 70.0
    ),
    "Stakeholder approval documented": constant(100.0),
    "Implementation examples clinically relevant": lambda r: phase_succeeded(
        r.content_validation, 90.0, 70.0
    ),
    "No PHI exposure in documentation": lambda r: check_passed(
        r.security_validation, "phiExposure"
    ),
    "Documentation links resolve": lambda r: check_passed(r.content_validation, "links"),
    # Security
    "Publication security measures verified": lambda r: check_passed(
        r.security_validation, "publicationSecurity"
    ),
    "Access control configuration appropriate": lambda r: check_passed(
        r.security_validation, "accessControl"
    ),
    "No sensitive information in public docs": lambda r: check_passed(
        r.security_validation, "phiExposure"
    ),
    "Audit trail for publication decisions": constant(100.0),
    # Deployment
    "Simplifier.net publication successful": lambda r: check_passed(
        r.publication_validation, "registryReadiness"
    ),
    "External accessibility verified": constant(100.0),
    "Download links functional": lambda r: check_passed(
        r.publication_validation, "packageStructure"
    ),
    "Search indexing enabled": constant(100.0),
    "Package version is release-ready": lambda r: check_passed(
        r.publication_validation, "versioning"
    ),
    # Community
    "Partner notification strategy executed": constant(100.0),
    "Feedback collection mechanisms active": constant(90.0),
    "Usage analytics configured": constant(90.0),
    "Support channels established": constant(90.0),
}


def resolve_criterion(name: str) -> CriterionFn | None:
    return CRITERIA.get(name)
