"""
Deterministic recommendation templates.

One recommendation per phase whose status is not ``Success`` and one
Critical recommendation per blocking gate failure.  The output depends only
on the result, never on timing or ordering of phase completion.
"""

from __future__ import annotations

from igvalidator.models import (
    PhaseName,
    PipelineResult,
    Recommendation,
    RecommendationPriority,
    RecommendationType,
    ValidationStatus,
)

_PHASE_TEMPLATES: dict[PhaseName, dict] = {
    PhaseName.TECHNICAL: {
        "type": RecommendationType.TECHNICAL,
        "priority": RecommendationPriority.HIGH,
        "title": "FHIR Technical Validation Issues",
        "description": "Technical validation has identified issues that need to be addressed",
        "action_items": [
            "Review FHIR profile validation errors",
            "Fix canonical URL issues",
            "Correct profile metadata",
            "Validate constraint expressions",
        ],
    },
    PhaseName.RESOURCE: {
        "type": RecommendationType.TECHNICAL,
        "priority": RecommendationPriority.MEDIUM,
        "title": "Resource Validation Issues",
        "description": "Example resources do not conform to defined profiles",
        "action_items": [
            "Review example resource validation errors",
            "Update resources to conform to profiles",
            "Verify data types and constraints",
            "Test resources against updated profiles",
        ],
    },
    PhaseName.CONTENT: {
        "type": RecommendationType.CONTENT,
        "priority": RecommendationPriority.MEDIUM,
        "title": "Documentation Content Issues",
        "description": "Implementation guide documentation is incomplete or has broken links",
        "action_items": [
            "Add the missing required pages",
            "Give every page a top-level heading",
            "Fix broken relative links",
        ],
    },
    PhaseName.SECURITY: {
        "type": RecommendationType.SECURITY,
        "priority": RecommendationPriority.CRITICAL,
        "title": "Security Compliance Issues",
        "description": "Security validation has identified compliance issues",
        "action_items": [
            "Remove any PHI from documentation",
            "Review access control configurations",
            "Update security documentation",
            "Implement audit trail mechanisms",
        ],
    },
    PhaseName.PUBLICATION: {
        "type": RecommendationType.PUBLICATION,
        "priority": RecommendationPriority.MEDIUM,
        "title": "Publication Readiness Issues",
        "description": "Publication validation has identified readiness issues",
        "action_items": [
            "Complete FHIR package structure",
            "Verify Simplifier.net configuration",
            "Test external accessibility",
            "Update versioning information",
        ],
    },
}

PIPELINE_FAILURE_ACTIONS = [
    "Review pipeline logs for detailed error information",
    "Verify all input directories and files exist",
    "Check system resources and permissions",
    "Contact technical support if the issue persists",
]


def generate_recommendations(result: PipelineResult) -> list[Recommendation]:
    """Recommendations for every non-successful phase and blocking gate failure."""
    recommendations: list[Recommendation] = []

    for phase in result.phases():
        if phase.status != ValidationStatus.SUCCESS:
            recommendations.append(Recommendation(**_PHASE_TEMPLATES[phase.phase]))

    for gate in result.quality_gate_compliance.blocking_failures:
        recommendations.append(
            Recommendation(
                type=RecommendationType.TECHNICAL,
                priority=RecommendationPriority.CRITICAL,
                title=f"Quality Gate Failure: {gate.gate_name}",
                description=(
                    f"Blocking quality gate '{gate.gate_name}' failed with score "
                    f"{gate.score:.1f}% (required: {gate.pass_threshold:.1f}%)"
                ),
                action_items=[
                    f"Address criterion: {c.name}"
                    for c in gate.criteria
                    if c.status != ValidationStatus.SUCCESS
                ],
            )
        )

    return recommendations


def pipeline_failure_recommendation(exc: BaseException) -> Recommendation:
    return Recommendation(
        type=RecommendationType.TECHNICAL,
        priority=RecommendationPriority.CRITICAL,
        title="Pipeline Execution Failed",
        description=f"The validation pipeline failed with a critical error: {exc}",
        action_items=list(PIPELINE_FAILURE_ACTIONS),
    )
