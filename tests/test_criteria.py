"""
Tests for the criterion dispatch table.
"""

from __future__ import annotations

from igvalidator.gates.criteria import (
    CRITERIA,
    check_passed,
    no_error_issues,
    passing_artifact_percentage,
    resolve_criterion,
)
from igvalidator.models import (
    ArtifactValidationResult,
    CheckResult,
    IssueSeverity,
    PhaseName,
    PhaseResult,
    PipelineResult,
    ValidationIssue,
    ValidationStatus,
)


def _artifact(name: str, status: ValidationStatus, severity: IssueSeverity = None) -> ArtifactValidationResult:
    issues = []
    if severity is not None:
        issues = [ValidationIssue(severity=severity, code="X", description="d")]
    return ArtifactValidationResult(path=f"{name}.json", name=name, status=status, issues=issues)


def _check(*severities: IssueSeverity) -> CheckResult:
    return CheckResult.from_issues(
        [ValidationIssue(severity=s, code="X", description="d") for s in severities]
    )


class TestBuildingBlocks:
    def test_passing_artifact_percentage(self):
        phase = PhaseResult.from_parts(
            PhaseName.TECHNICAL,
            artifacts=[
                _artifact("a", ValidationStatus.SUCCESS),
                _artifact("b", ValidationStatus.WARNING, IssueSeverity.WARNING),
                _artifact("c", ValidationStatus.ERROR, IssueSeverity.ERROR),
                _artifact("d", ValidationStatus.SUCCESS),
            ],
        )
        assert passing_artifact_percentage(phase) == 75.0

    def test_no_artifacts_is_100(self):
        assert passing_artifact_percentage(PhaseResult.from_parts(PhaseName.RESOURCE)) == 100.0

    def test_check_passed(self):
        phase = PhaseResult.from_parts(
            PhaseName.SECURITY,
            checks={"phiExposure": _check(), "accessControl": _check(IssueSeverity.WARNING)},
        )
        assert check_passed(phase, "phiExposure") == 100.0
        assert check_passed(phase, "accessControl") == 0.0
        assert check_passed(phase, "publicationSecurity") == 0.0

    def test_no_error_issues(self):
        clean = PhaseResult.from_parts(
            PhaseName.TECHNICAL, artifacts=[_artifact("a", ValidationStatus.WARNING, IssueSeverity.WARNING)]
        )
        dirty = PhaseResult.from_parts(
            PhaseName.TECHNICAL, artifacts=[_artifact("a", ValidationStatus.ERROR, IssueSeverity.FATAL)]
        )
        assert no_error_issues(clean) == 100.0
        assert no_error_issues(dirty) == 0.0


class TestTable:
    def test_values_within_bounds_for_empty_result(self):
        result = PipelineResult()
        for name, fn in CRITERIA.items():
            assert 0.0 <= fn(result) <= 100.0, name

    def test_canonical_criterion_reads_technical_check(self):
        result = PipelineResult()
        result.set_phase(
            PhaseResult.from_parts(PhaseName.TECHNICAL, checks={"canonicalUrl": _check()})
        )
        assert CRITERIA["Canonical URLs follow established patterns"](result) == 100.0

    def test_clinical_criteria_follow_content_phase(self):
        result = PipelineResult()
        result.set_phase(PhaseResult.from_parts(PhaseName.CONTENT))
        assert CRITERIA["Clinical workflows accurately represented"](result) == 95.0
        assert CRITERIA["Implementation examples clinically relevant"](result) == 90.0
        result.set_phase(
            PhaseResult.from_parts(PhaseName.CONTENT, checks={"links": _check(IssueSeverity.ERROR)})
        )
        assert CRITERIA["Clinical workflows accurately represented"](result) == 70.0

    def test_publication_criteria(self):
        result = PipelineResult()
        result.set_phase(
            PhaseResult.from_parts(
                PhaseName.PUBLICATION,
                checks={
                    "registryReadiness": _check(),
                    "packageStructure": _check(IssueSeverity.ERROR),
                    "versioning": _check(),
                },
            )
        )
        assert CRITERIA["Simplifier.net publication successful"](result) == 100.0
        assert CRITERIA["Download links functional"](result) == 0.0
        assert CRITERIA["Package version is release-ready"](result) == 100.0

    def test_resolve_unknown(self):
        assert resolve_criterion("Nothing by this name") is None
        assert resolve_criterion("Search indexing enabled") is CRITERIA["Search indexing enabled"]
