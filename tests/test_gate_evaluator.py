"""
Tests for quality gate scoring and compliance.
"""

from __future__ import annotations

import random
from pathlib import Path

from igvalidator.gates.evaluator import QualityGateEvaluator, calculate_gate_score
from igvalidator.gates.defaults import BUILT_IN_SOURCE
from igvalidator.gates.schema import QualityGate, QualityGateConfiguration, QualityGateCriterion
from igvalidator.models import CriterionResult, PipelineResult, ValidationStatus
from igvalidator.pipeline.report import EXIT_OK, determine_exit_code
from igvalidator.pipeline.summary import apply_summary


def _criteria(*names_and_required):
    return [QualityGateCriterion(name=n, required_value=r) for n, r in names_and_required]


def _fixed(**values):
    """Criterion table returning fixed values by name."""
    return {name.replace("_", " "): (lambda r, v=v: v) for name, v in values.items()}


class TestGateScore:
    def test_empty_gate_scores_100(self):
        assert calculate_gate_score([]) == 100.0

    def test_score_is_share_of_met_criteria(self):
        criteria = [
            CriterionResult(name="a", required_value=90, actual_value=95, status=ValidationStatus.SUCCESS),
            CriterionResult(name="b", required_value=90, actual_value=50, status=ValidationStatus.FAILED),
        ]
        assert calculate_gate_score(criteria) == 50.0

    def test_error_criterion_never_counts_as_met(self):
        criteria = [
            CriterionResult(name="x", required_value=0, actual_value=0, status=ValidationStatus.ERROR)
        ]
        assert calculate_gate_score(criteria) == 0.0

    def test_bounds_over_random_inputs(self):
        rng = random.Random(11)
        for _ in range(100):
            criteria = [
                CriterionResult(
                    name=str(i),
                    required_value=rng.uniform(0, 100),
                    actual_value=rng.uniform(0, 100),
                    status=rng.choice(list(ValidationStatus)),
                )
                for i in range(rng.randint(0, 8))
            ]
            assert 0.0 <= calculate_gate_score(criteria) <= 100.0


class TestEvaluator:
    def test_three_of_four_criteria_fails_blocking_gate(self):
        table = _fixed(c1=100.0, c2=100.0, c3=100.0, c4=0.0)
        gate = QualityGate(
            id="gate-tech",
            name="Technical Validation",
            pass_threshold=100,
            blocking=True,
            criteria=_criteria(("c1", 100), ("c2", 100), ("c3", 100), ("c4", 100)),
        )
        evaluator = QualityGateEvaluator(criteria=table)
        result = PipelineResult()
        compliance = evaluator.evaluate_configuration(
            result, QualityGateConfiguration(quality_gates=[gate])
        )

        gate_result = compliance.gate_results[0]
        assert gate_result.score == 75.0
        assert gate_result.status == ValidationStatus.FAILED
        assert compliance.overall_compliance is False
        assert compliance.blocking_failures == [gate_result]

        result.quality_gate_compliance = compliance
        apply_summary(result)
        assert determine_exit_code(result) != EXIT_OK

    def test_advisory_failure_does_not_block(self):
        gate = QualityGate(
            id="g", name="Advisory", blocking=False, criteria=_criteria(("c", 100))
        )
        evaluator = QualityGateEvaluator(criteria=_fixed(c=10.0))
        compliance = evaluator.evaluate_configuration(
            PipelineResult(), QualityGateConfiguration(quality_gates=[gate])
        )
        assert compliance.gate_results[0].status == ValidationStatus.FAILED
        assert compliance.overall_compliance is True

    def test_zero_criteria_gate_passes(self):
        gate = QualityGate(id="g", name="Empty", blocking=True, pass_threshold=100)
        compliance = QualityGateEvaluator().evaluate_configuration(
            PipelineResult(), QualityGateConfiguration(quality_gates=[gate])
        )
        assert compliance.gate_results[0].score == 100.0
        assert compliance.overall_compliance is True

    def test_unknown_criterion_scores_zero(self):
        gate = QualityGate(
            id="g", name="G", blocking=True, criteria=_criteria(("Made up criterion", 0))
        )
        compliance = QualityGateEvaluator().evaluate_configuration(
            PipelineResult(), QualityGateConfiguration(quality_gates=[gate])
        )
        criterion = compliance.gate_results[0].criteria[0]
        assert criterion.actual_value == 0.0
        assert criterion.status == ValidationStatus.ERROR
        assert compliance.overall_compliance is False

    def test_criterion_exception_is_contained(self):
        def explode(result):
            raise KeyError("missing check")

        table = dict(_fixed(good=100.0), boom=explode)
        gates = [
            QualityGate(id="g1", name="G1", criteria=_criteria(("boom", 100), ("good", 100))),
            QualityGate(id="g2", name="G2", criteria=_criteria(("good", 100))),
        ]
        compliance = QualityGateEvaluator(criteria=table).evaluate_configuration(
            PipelineResult(), QualityGateConfiguration(quality_gates=gates)
        )
        first = compliance.gate_results[0]
        assert [c.status for c in first.criteria] == [ValidationStatus.ERROR, ValidationStatus.SUCCESS]
        assert first.criteria[0].actual_value == 0.0
        assert first.score == 50.0
        assert compliance.gate_results[1].status == ValidationStatus.SUCCESS

    def test_values_are_clamped(self):
        gate = QualityGate(id="g", name="G", criteria=_criteria(("big", 100), ("neg", 0)))
        compliance = QualityGateEvaluator(criteria=_fixed(big=250.0, neg=-5.0)).evaluate_configuration(
            PipelineResult(), QualityGateConfiguration(quality_gates=[gate])
        )
        assert [c.actual_value for c in compliance.gate_results[0].criteria] == [100.0, 0.0]

    def test_threshold_below_100(self):
        gate = QualityGate(
            id="g", name="G", pass_threshold=50, blocking=True,
            criteria=_criteria(("a", 100), ("b", 100)),
        )
        compliance = QualityGateEvaluator(criteria=_fixed(a=100.0, b=0.0)).evaluate_configuration(
            PipelineResult(), QualityGateConfiguration(quality_gates=[gate])
        )
        assert compliance.gate_results[0].status == ValidationStatus.SUCCESS

    def test_missing_config_uses_defaults(self, tmp_path: Path):
        compliance = QualityGateEvaluator().evaluate(PipelineResult(), tmp_path / "absent.yml")
        assert compliance.config_source == BUILT_IN_SOURCE
        assert len(compliance.gate_results) == 5
        assert compliance.overall_compliance == (not compliance.blocking_failures)

    def test_random_gate_sets_follow_blocking_rule(self):
        rng = random.Random(99)
        names = ["c0", "c1", "c2", "c3"]
        for _ in range(100):
            table = _fixed(**{n: rng.choice([0.0, 50.0, 100.0]) for n in names})
            gates = [
                QualityGate(
                    id=f"g{i}",
                    name=f"G{i}",
                    blocking=rng.random() < 0.5,
                    pass_threshold=rng.choice([50, 75, 100]),
                    criteria=_criteria(*[(n, 100) for n in rng.sample(names, rng.randint(0, 4))]),
                )
                for i in range(rng.randint(1, 5))
            ]
            compliance = QualityGateEvaluator(criteria=table).evaluate_configuration(
                PipelineResult(), QualityGateConfiguration(quality_gates=gates)
            )
            blocking_failed = [
                g for g in compliance.gate_results
                if g.blocking and g.status != ValidationStatus.SUCCESS
            ]
            assert compliance.overall_compliance == (not blocking_failed)
            for g in compliance.gate_results:
                assert 0.0 <= g.score <= 100.0


def test_evaluate_from_yaml_file(tmp_path: Path):
    path = tmp_path / "gates.yml"
    path.write_text(
        "quality_gates:\n"
        "  - id: community\n"
        "    name: Community\n"
        "    pass_threshold: 100\n"
        "    criteria:\n"
        "      - name: Feedback collection mechanisms active\n"
        "        required_value: 90\n"
        "      - name: Stakeholder approval documented\n",
        encoding="utf-8",
    )
    compliance = QualityGateEvaluator().evaluate(PipelineResult(), path)
    assert compliance.config_source == str(path)
    assert compliance.gate_results[0].score == 100.0
    assert compliance.overall_compliance is True
