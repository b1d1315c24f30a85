"""Summary metrics over a finished pipeline result."""

from __future__ import annotations

from igvalidator.models import IssueSeverity, PipelineMetrics, PipelineResult


def calculate_metrics(result: PipelineResult, total_duration_seconds: float) -> PipelineMetrics:
    counts = {severity: 0 for severity in IssueSeverity}
    for phase in result.phases():
        for issue in phase.all_issues():
            counts[issue.severity] += 1

    artifacts = result.technical_validation.artifacts + result.resource_validation.artifacts
    average = (
        sum(a.duration_seconds for a in artifacts) / len(artifacts) if artifacts else 0.0
    )

    return PipelineMetrics(
        total_profiles_validated=len(result.technical_validation.artifacts),
        total_resources_validated=len(result.resource_validation.artifacts),
        total_validation_issues=sum(counts.values()),
        issues_by_severity=counts,
        critical_issues=counts[IssueSeverity.ERROR] + counts[IssueSeverity.FATAL],
        warning_issues=counts[IssueSeverity.WARNING],
        average_artifact_validation_seconds=average,
        total_duration_seconds=max(0.0, total_duration_seconds),
    )
