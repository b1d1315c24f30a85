"""
Tests for the conformance engine adapter: severity mapping, timeouts and
exception conversion.
"""

from __future__ import annotations

import time

import pytest

from conftest import FakeEngine, finding
from igvalidator.engine.adapter import (
    DEFAULT_RECOMMENDATION,
    EngineTimeoutError,
    engine_severity_to_issue,
    finding_to_issue,
    invoke_engine,
    recommendation_for,
    run_with_timeout,
)
from igvalidator.models import IssueSeverity


class TestSeverityMapping:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("information", IssueSeverity.INFORMATION),
            ("INFO", IssueSeverity.INFORMATION),
            ("Warning", IssueSeverity.WARNING),
            ("error", IssueSeverity.ERROR),
            ("fatal", IssueSeverity.FATAL),
            ("catastrophic", IssueSeverity.ERROR),
        ],
    )
    def test_labels(self, label, expected):
        assert engine_severity_to_issue(label) == expected

    def test_recommendation_templates(self):
        assert recommendation_for("required") == "Add the missing required element"
        assert "cardinality" in recommendation_for("Cardinality")
        assert recommendation_for("something-else") == DEFAULT_RECOMMENDATION

    def test_finding_location_falls_back_to_artifact(self):
        issue = finding_to_issue(finding(location=""), "profiles/a.json")
        assert issue.location == "profiles/a.json"
        issue = finding_to_issue(finding(location="Patient.name"), "profiles/a.json")
        assert issue.location == "Patient.name"


class TestRunWithTimeout:
    def test_zero_timeout_runs_inline(self):
        assert run_with_timeout(lambda x: x + 1, 0, 1) == 2

    def test_returns_value_within_timeout(self):
        assert run_with_timeout(lambda: "ok", 5) == "ok"

    def test_raises_on_timeout(self):
        with pytest.raises(EngineTimeoutError):
            run_with_timeout(time.sleep, 0.05, 1.0)


class TestInvokeEngine:
    def test_converts_findings_in_order(self):
        engine = FakeEngine(
            default=[finding("warning", "recommended", "w"), finding("error", "required", "e")]
        )
        issues = invoke_engine(engine, {"resourceType": "Patient"}, location="p.json")
        assert [i.severity for i in issues] == [IssueSeverity.WARNING, IssueSeverity.ERROR]
        assert [i.code for i in issues] == ["recommended", "required"]

    def test_passes_profile_to_engine(self):
        engine = FakeEngine()
        invoke_engine(engine, {"id": "x"}, location="x.json", profile="http://p")
        assert engine.calls == [("x", "http://p")]

    def test_timeout_becomes_error_issue(self):
        engine = FakeEngine(delay=1.0)
        issues = invoke_engine(engine, {"id": "slow"}, location="slow.json", timeout_seconds=0.05)
        assert len(issues) == 1
        assert issues[0].severity == IssueSeverity.ERROR
        assert issues[0].code == "VALIDATION_TIMEOUT"
        assert issues[0].location == "slow.json"

    def test_exception_becomes_fatal_issue(self):
        engine = FakeEngine(raises=ValueError("malformed"))
        issues = invoke_engine(engine, {"id": "bad"}, location="bad.json")
        assert len(issues) == 1
        assert issues[0].severity == IssueSeverity.FATAL
        assert issues[0].code == "VALIDATION_EXCEPTION"
        assert "malformed" in issues[0].description
