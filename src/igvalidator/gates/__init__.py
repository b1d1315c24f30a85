"""
Quality gates: configuration schema, built-in defaults, criteria and evaluator.

Usage::

    from igvalidator.gates import QualityGateEvaluator

    compliance = QualityGateEvaluator().evaluate(result, "quality-gates.yml")
"""

from igvalidator.gates.criteria import CRITERIA
from igvalidator.gates.defaults import BUILT_IN_SOURCE, DEFAULT_QUALITY_GATES
from igvalidator.gates.evaluator import QualityGateEvaluator, calculate_gate_score
from igvalidator.gates.loader import QualityGateLoader
from igvalidator.gates.schema import (
    QualityGate,
    QualityGateConfiguration,
    QualityGateCriterion,
)

__all__ = [
    "BUILT_IN_SOURCE",
    "CRITERIA",
    "DEFAULT_QUALITY_GATES",
    "QualityGate",
    "QualityGateConfiguration",
    "QualityGateCriterion",
    "QualityGateEvaluator",
    "QualityGateLoader",
    "calculate_gate_score",
]
