"""Built-in quality gates used when no gate configuration can be loaded."""

from __future__ import annotations

from igvalidator.gates.schema import (
    QualityGate,
    QualityGateConfiguration,
    QualityGateCriterion,
)

BUILT_IN_SOURCE = "built-in defaults"


def _criterion(name: str, required_value: float = 100.0) -> QualityGateCriterion:
    return QualityGateCriterion(name=name, required_value=required_value)


DEFAULT_QUALITY_GATES = QualityGateConfiguration(
    quality_gates=[
        QualityGate(
            id="gate-5.3.1",
            name="FHIR Technical Validation",
            pass_threshold=100.0,
            blocking=True,
            criteria=[
                _criterion("All StructureDefinitions validate against FHIR R4"),
                _criterion("Canonical URLs follow established patterns"),
                _criterion("Example resources conform to profiles"),
                _criterion("No validation errors in Firely Terminal"),
            ],
        ),
        QualityGate(
            id="gate-5.3.2",
            name="Clinical Accuracy Validation",
            pass_threshold=95.0,
            blocking=True,
            criteria=[
                _criterion("Clinical workflows accurately represented", 95.0),
                _criterion("Stakeholder approval documented"),
                _criterion("Implementation examples clinically relevant", 90.0),
                _criterion("No PHI exposure in documentation"),
            ],
        ),
        QualityGate(
            id="gate-5.3.3",
            name="Security & Compliance Validation",
            pass_threshold=100.0,
            blocking=True,
            criteria=[
                _criterion("Publication security measures verified"),
                _criterion("Access control configuration appropriate"),
                _criterion("No sensitive information in public docs"),
                _criterion("Audit trail for publication decisions"),
            ],
        ),
        QualityGate(
            id="gate-5.3.4",
            name="Deployment Validation",
            pass_threshold=100.0,
            blocking=False,
            criteria=[
                _criterion("Simplifier.net publication successful"),
                _criterion("External accessibility verified"),
                _criterion("Download links functional"),
                _criterion("Search indexing enabled"),
            ],
        ),
        QualityGate(
            id="gate-5.3.5",
            name="Community Readiness",
            pass_threshold=90.0,
            blocking=False,
            criteria=[
                _criterion("Partner notification strategy executed"),
                _criterion("Feedback collection mechanisms active", 90.0),
                _criterion("Usage analytics configured", 90.0),
                _criterion("Support channels established", 90.0),
            ],
        ),
    ]
)
