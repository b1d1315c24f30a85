"""
Pydantic v2 models for the validation result tree.

Every model serializes with camelCase field names (``overallStatus``,
``qualityGateCompliance``, ``blockingFailures`` ...) so the persisted report
keeps stable names for downstream tooling, while Python code uses snake_case
attributes.  Unknown keys are rejected (``extra="forbid"``).

Ownership: the orchestrator owns the :class:`PipelineResult`; validators
build and return their own :class:`PhaseResult` objects and never hold a
reference back to the pipeline.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _FrozenCamelModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IssueSeverity(str, Enum):
    """Four-level severity scale for a single finding."""

    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    FATAL = "Fatal"


class ValidationStatus(str, Enum):
    """Aggregate status of a phase, artifact, check, criterion or gate."""

    UNKNOWN = "Unknown"
    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"
    FAILED = "Failed"


class PhaseName(str, Enum):
    """The five validation phases, in execution order."""

    TECHNICAL = "technical"
    RESOURCE = "resource"
    CONTENT = "content"
    SECURITY = "security"
    PUBLICATION = "publication"


class PipelineState(str, Enum):
    """Orchestrator lifecycle states."""

    NOT_STARTED = "NotStarted"
    RUNNING_PROFILE_PHASE = "RunningProfilePhase"
    RUNNING_OTHER_PHASES = "RunningOtherPhases"
    EVALUATING_GATES = "EvaluatingGates"
    DERIVING_SUMMARY = "DerivingSummary"
    PERSISTED = "Persisted"
    COMPLETED = "Completed"
    FAILED = "Failed"


class RecommendationType(str, Enum):
    TECHNICAL = "Technical"
    CLINICAL = "Clinical"
    SECURITY = "Security"
    CONTENT = "Content"
    PUBLICATION = "Publication"


class RecommendationPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


# ---------------------------------------------------------------------------
# Status helpers
# ---------------------------------------------------------------------------

_STATUS_RANK: dict[ValidationStatus, int] = {
    ValidationStatus.UNKNOWN: 0,
    ValidationStatus.SUCCESS: 1,
    ValidationStatus.WARNING: 2,
    ValidationStatus.ERROR: 3,
    ValidationStatus.FAILED: 4,
}


def worst_status(statuses: Iterable[ValidationStatus]) -> ValidationStatus:
    """Return the most severe status (Failed > Error > Warning > Success > Unknown).

    An empty iterable yields ``Success``: nothing was found to be wrong.
    """
    worst: Optional[ValidationStatus] = None
    for status in statuses:
        if worst is None or _STATUS_RANK[status] > _STATUS_RANK[worst]:
            worst = status
    return worst if worst is not None else ValidationStatus.SUCCESS


def status_from_issues(issues: Iterable[ValidationIssue]) -> ValidationStatus:
    """Error if any Error/Fatal issue, Warning if any Warning, else Success."""
    status = ValidationStatus.SUCCESS
    for issue in issues:
        if issue.severity in (IssueSeverity.ERROR, IssueSeverity.FATAL):
            return ValidationStatus.ERROR
        if issue.severity == IssueSeverity.WARNING:
            status = ValidationStatus.WARNING
    return status


# ---------------------------------------------------------------------------
# Issues and per-artifact results
# ---------------------------------------------------------------------------


class ValidationIssue(_FrozenCamelModel):
    """A single validation finding."""

    severity: IssueSeverity
    code: str
    description: str
    location: str = ""
    recommendation: str = ""


class CheckResult(_CamelModel):
    """Outcome of a named sub-check inside a phase (e.g. ``canonicalUrl``)."""

    status: ValidationStatus = ValidationStatus.SUCCESS
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> CheckResult:
        return cls(status=status_from_issues(issues), issues=list(issues))


class ArtifactValidationResult(_FrozenCamelModel):
    """Result for one input artifact or resource instance."""

    path: str
    name: str
    canonical_url: Optional[str] = None
    resource_type: Optional[str] = None
    profile_url: Optional[str] = None
    status: ValidationStatus
    issues: list[ValidationIssue] = Field(default_factory=list)
    duration_seconds: float = Field(0.0, ge=0.0)


class ProfileConformance(_CamelModel):
    """How many example instances claiming a profile conformed to it."""

    profile_url: str
    conformant_resources: int = Field(0, ge=0)
    total_resources: int = Field(0, ge=0)
    conformance_percentage: float = Field(0.0, ge=0.0, le=100.0)

    @classmethod
    def build(cls, profile_url: str, conformant: int, total: int) -> ProfileConformance:
        percentage = (100.0 * conformant / total) if total else 0.0
        return cls(
            profile_url=profile_url,
            conformant_resources=conformant,
            total_resources=total,
            conformance_percentage=round(percentage, 2),
        )


# ---------------------------------------------------------------------------
# Phase result
# ---------------------------------------------------------------------------


class PhaseResult(_CamelModel):
    """
    Uniform result shape for every validation phase.

    ``status`` is the worst case over the phase-level issues, every artifact
    result and every named check.  ``Failed`` is reserved for a phase whose
    validator crashed (see :meth:`failed`).
    """

    phase: PhaseName
    status: ValidationStatus = ValidationStatus.UNKNOWN
    issues: list[ValidationIssue] = Field(default_factory=list)
    artifacts: list[ArtifactValidationResult] = Field(default_factory=list)
    checks: dict[str, CheckResult] = Field(default_factory=dict)
    conformance: list[ProfileConformance] = Field(default_factory=list)
    duration_seconds: float = Field(0.0, ge=0.0)

    @classmethod
    def from_parts(
        cls,
        phase: PhaseName,
        *,
        issues: Optional[list[ValidationIssue]] = None,
        artifacts: Optional[list[ArtifactValidationResult]] = None,
        checks: Optional[dict[str, CheckResult]] = None,
        conformance: Optional[list[ProfileConformance]] = None,
        duration_seconds: float = 0.0,
    ) -> PhaseResult:
        """Build a phase result whose status is derived from its parts."""
        issues = list(issues or [])
        artifacts = list(artifacts or [])
        checks = dict(checks or {})
        status = worst_status(
            [status_from_issues(issues)]
            + [a.status for a in artifacts]
            + [c.status for c in checks.values()]
        )
        return cls(
            phase=phase,
            status=status,
            issues=issues,
            artifacts=artifacts,
            checks=checks,
            conformance=list(conformance or []),
            duration_seconds=duration_seconds,
        )

    @classmethod
    def failed(
        cls, phase: PhaseName, exc: BaseException, duration_seconds: float = 0.0
    ) -> PhaseResult:
        """Result for a phase whose validator raised."""
        return cls(
            phase=phase,
            status=ValidationStatus.FAILED,
            issues=[
                ValidationIssue(
                    severity=IssueSeverity.FATAL,
                    code="PHASE_EXCEPTION",
                    description=f"{phase.value} phase failed: {type(exc).__name__}: {exc}",
                    location=phase.value,
                    recommendation="Inspect the log output for the full traceback",
                )
            ],
            duration_seconds=duration_seconds,
        )

    def all_issues(self) -> list[ValidationIssue]:
        """Every issue in this phase: phase-level, per-artifact, then per-check."""
        collected = list(self.issues)
        for artifact in self.artifacts:
            collected.extend(artifact.issues)
        for check in self.checks.values():
            collected.extend(check.issues)
        return collected


# ---------------------------------------------------------------------------
# Quality gates
# ---------------------------------------------------------------------------


class CriterionResult(_CamelModel):
    name: str
    required_value: float
    actual_value: float = Field(0.0, ge=0.0, le=100.0)
    status: ValidationStatus
    description: str = ""


class QualityGateResult(_CamelModel):
    """Runtime evaluation of one quality gate."""

    gate_id: str
    gate_name: str
    pass_threshold: float
    blocking: bool
    score: float = Field(0.0, ge=0.0, le=100.0)
    status: ValidationStatus
    criteria: list[CriterionResult] = Field(default_factory=list)


class QualityGateComplianceResult(_CamelModel):
    """
    Aggregate gate outcome.

    Build evaluated results with :meth:`from_gate_results` so that
    ``overall_compliance`` always equals ``not blocking_failures``.  The bare
    default (no gates evaluated) reports non-compliance.
    """

    overall_compliance: bool = False
    gate_results: list[QualityGateResult] = Field(default_factory=list)
    blocking_failures: list[QualityGateResult] = Field(default_factory=list)
    config_source: str = ""

    @classmethod
    def from_gate_results(
        cls, gate_results: list[QualityGateResult], config_source: str = ""
    ) -> QualityGateComplianceResult:
        blocking_failures = [
            g for g in gate_results if g.blocking and g.status != ValidationStatus.SUCCESS
        ]
        return cls(
            overall_compliance=not blocking_failures,
            gate_results=list(gate_results),
            blocking_failures=blocking_failures,
            config_source=config_source,
        )


# ---------------------------------------------------------------------------
# Summary models
# ---------------------------------------------------------------------------


class Recommendation(_CamelModel):
    type: RecommendationType
    priority: RecommendationPriority
    title: str
    description: str
    action_items: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)


def _empty_severity_counts() -> dict[IssueSeverity, int]:
    return {severity: 0 for severity in IssueSeverity}


class PipelineMetrics(_CamelModel):
    total_profiles_validated: int = 0
    total_resources_validated: int = 0
    total_validation_issues: int = 0
    issues_by_severity: dict[IssueSeverity, int] = Field(default_factory=_empty_severity_counts)
    critical_issues: int = 0
    warning_issues: int = 0
    average_artifact_validation_seconds: float = 0.0
    total_duration_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Root aggregate
# ---------------------------------------------------------------------------

_PHASE_FIELDS: dict[PhaseName, str] = {
    PhaseName.TECHNICAL: "technical_validation",
    PhaseName.RESOURCE: "resource_validation",
    PhaseName.CONTENT: "content_validation",
    PhaseName.SECURITY: "security_validation",
    PhaseName.PUBLICATION: "publication_validation",
}


class PipelineResult(_CamelModel):
    """Root aggregate for one pipeline run."""

    overall_status: ValidationStatus = ValidationStatus.UNKNOWN
    state: PipelineState = PipelineState.NOT_STARTED
    execution_start_time: Optional[datetime] = None
    execution_end_time: Optional[datetime] = None
    execution_duration_seconds: float = 0.0
    technical_validation: PhaseResult = Field(
        default_factory=lambda: PhaseResult(phase=PhaseName.TECHNICAL)
    )
    resource_validation: PhaseResult = Field(
        default_factory=lambda: PhaseResult(phase=PhaseName.RESOURCE)
    )
    content_validation: PhaseResult = Field(
        default_factory=lambda: PhaseResult(phase=PhaseName.CONTENT)
    )
    security_validation: PhaseResult = Field(
        default_factory=lambda: PhaseResult(phase=PhaseName.SECURITY)
    )
    publication_validation: PhaseResult = Field(
        default_factory=lambda: PhaseResult(phase=PhaseName.PUBLICATION)
    )
    quality_gate_compliance: QualityGateComplianceResult = Field(
        default_factory=QualityGateComplianceResult
    )
    recommendations: list[Recommendation] = Field(default_factory=list)
    metrics: PipelineMetrics = Field(default_factory=PipelineMetrics)
    report_path: Optional[str] = None

    def phases(self) -> list[PhaseResult]:
        """Phase results in execution order."""
        return [getattr(self, _PHASE_FIELDS[name]) for name in PhaseName]

    def phase(self, name: PhaseName) -> PhaseResult:
        return getattr(self, _PHASE_FIELDS[name])

    def set_phase(self, result: PhaseResult) -> None:
        setattr(self, _PHASE_FIELDS[result.phase], result)

    def mark_finished(self, end_time: datetime) -> None:
        self.execution_end_time = end_time
        if self.execution_start_time is not None:
            self.execution_duration_seconds = max(
                0.0, (end_time - self.execution_start_time).total_seconds()
            )
