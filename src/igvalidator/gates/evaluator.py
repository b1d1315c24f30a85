"""
Quality gate evaluation.

Scores each configured gate against a :class:`PipelineResult`:

- every criterion is resolved through :data:`~igvalidator.gates.criteria.CRITERIA`;
  unknown names and criterion exceptions score 0 with ``Error`` status;
- ``score = 100 * met / total`` where a criterion is met when
  ``actual >= required``; a gate without criteria scores 100;
- a gate passes when ``score >= pass_threshold``;
- overall compliance holds iff no blocking gate failed.

Usage::

    evaluator = QualityGateEvaluator()
    compliance = evaluator.evaluate(result, "docs/qa/gates/quality-gates.yml")
    if not compliance.overall_compliance:
        ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from igvalidator.gates.criteria import CRITERIA, CriterionFn
from igvalidator.gates.loader import QualityGateLoader
from igvalidator.gates.schema import QualityGate, QualityGateConfiguration, QualityGateCriterion
from igvalidator.models import (
    CriterionResult,
    PipelineResult,
    QualityGateComplianceResult,
    QualityGateResult,
    ValidationStatus,
)
from igvalidator.otel import emit_compliance, emit_gate_result

logger = logging.getLogger(__name__)


def calculate_gate_score(criteria: list[CriterionResult]) -> float:
    """Percentage of criteria meeting their required value; 100 when empty."""
    if not criteria:
        return 100.0
    met = sum(
        1
        for c in criteria
        if c.status != ValidationStatus.ERROR and c.actual_value >= c.required_value
    )
    return min(100.0, max(0.0, 100.0 * met / len(criteria)))


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, float(value)))


class QualityGateEvaluator:
    """Evaluates quality gates; stateless apart from the loader cache."""

    def __init__(
        self,
        loader: Optional[QualityGateLoader] = None,
        criteria: Optional[dict[str, CriterionFn]] = None,
    ) -> None:
        self._loader = loader or QualityGateLoader()
        self._criteria = CRITERIA if criteria is None else criteria

    def evaluate(
        self,
        result: PipelineResult,
        gate_config_source: Optional[Union[str, Path]],
    ) -> QualityGateComplianceResult:
        """Load gates (falling back to defaults) and evaluate them."""
        configuration, source = self._loader.load_or_default(gate_config_source)
        return self.evaluate_configuration(result, configuration, source)

    def evaluate_configuration(
        self,
        result: PipelineResult,
        configuration: QualityGateConfiguration,
        source: str = "",
    ) -> QualityGateComplianceResult:
        gate_results = [self.evaluate_gate(result, gate) for gate in configuration.quality_gates]
        compliance = QualityGateComplianceResult.from_gate_results(gate_results, source)
        emit_compliance(compliance)
        return compliance

    def evaluate_gate(self, result: PipelineResult, gate: QualityGate) -> QualityGateResult:
        criteria = [self.evaluate_criterion(result, c) for c in gate.criteria]
        score = calculate_gate_score(criteria)
        status = (
            ValidationStatus.SUCCESS if score >= gate.pass_threshold else ValidationStatus.FAILED
        )
        gate_result = QualityGateResult(
            gate_id=gate.id,
            gate_name=gate.name,
            pass_threshold=gate.pass_threshold,
            blocking=gate.blocking,
            score=score,
            status=status,
            criteria=criteria,
        )
        emit_gate_result(gate_result)
        return gate_result

    def evaluate_criterion(
        self, result: PipelineResult, criterion: QualityGateCriterion
    ) -> CriterionResult:
        fn: Optional[Callable[[PipelineResult], float]] = self._criteria.get(criterion.name)
        if fn is None:
            logger.warning("Unknown quality gate criterion %r scored 0", criterion.name)
            return CriterionResult(
                name=criterion.name,
                required_value=criterion.required_value,
                actual_value=0.0,
                status=ValidationStatus.ERROR,
                description=f"Unknown criterion: {criterion.name}",
            )
        try:
            actual = _clamp(fn(result))
        except Exception as exc:
            logger.warning("Criterion %r failed: %s", criterion.name, exc)
            return CriterionResult(
                name=criterion.name,
                required_value=criterion.required_value,
                actual_value=0.0,
                status=ValidationStatus.ERROR,
                description=f"Criterion evaluation failed: {exc}",
            )
        met = actual >= criterion.required_value
        return CriterionResult(
            name=criterion.name,
            required_value=criterion.required_value,
            actual_value=actual,
            status=ValidationStatus.SUCCESS if met else ValidationStatus.FAILED,
            description=criterion.description,
        )
