"""
Tests for re-scoring gates on a persisted report.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from igvalidator.exceptions import ReportLoadError
from igvalidator.models import (
    PhaseName,
    PhaseResult,
    PipelineResult,
    PipelineState,
    ValidationStatus,
)
from igvalidator.pipeline.orchestrator import PipelineOrchestrator
from igvalidator.pipeline.report import LATEST_REPORT_NAME, ReportWriter, load_report
from igvalidator.pipeline.rescore import rescore_report

LENIENT_GATES = (
    "quality_gates:\n"
    "  - id: lenient\n"
    "    name: Lenient\n"
    "    blocking: true\n"
    "    criteria:\n"
    "      - name: Stakeholder approval documented\n"
)

STRICT_GATES = (
    "quality_gates:\n"
    "  - id: strict\n"
    "    name: Strict\n"
    "    blocking: true\n"
    "    criteria:\n"
    "      - name: Not a known criterion\n"
)


@pytest.fixture
def persisted_report(workspace) -> Path:
    config = workspace.config()
    result = PipelineOrchestrator.default(config).run(config)
    return Path(result.report_path)


class TestRescore:
    def test_same_gates_same_outcome(self, persisted_report: Path):
        original = load_report(persisted_report)
        rescored = rescore_report(persisted_report, None)
        assert rescored.overall_status == original.overall_status
        assert (
            rescored.quality_gate_compliance.gate_results
            == original.quality_gate_compliance.gate_results
        )

    def test_new_gate_config_changes_compliance(self, persisted_report: Path, tmp_path: Path):
        gates = tmp_path / "strict.yml"
        gates.write_text(STRICT_GATES, encoding="utf-8")
        rescored = rescore_report(persisted_report, gates)

        assert rescored.quality_gate_compliance.config_source == str(gates)
        assert rescored.quality_gate_compliance.overall_compliance is False
        assert rescored.overall_status == ValidationStatus.FAILED
        assert rescored.recommendations[-1].title == "Quality Gate Failure: Strict"

    def test_phases_are_not_rerun(self, persisted_report: Path, workspace):
        for path in workspace.profiles.iterdir():
            path.unlink()
        rescored = rescore_report(persisted_report, None)
        assert rescored.technical_validation.status == ValidationStatus.SUCCESS
        assert len(rescored.technical_validation.artifacts) == 3

    def test_failed_run_keeps_failed_status(self, tmp_path: Path):
        failed = PipelineResult(overall_status=ValidationStatus.FAILED, state=PipelineState.FAILED)
        failed.set_phase(PhaseResult.from_parts(PhaseName.TECHNICAL))
        path = ReportWriter().write(failed, tmp_path / "in")
        gates = tmp_path / "lenient.yml"
        gates.write_text(LENIENT_GATES, encoding="utf-8")

        rescored = rescore_report(path, gates)
        assert rescored.quality_gate_compliance.overall_compliance is True
        assert rescored.overall_status == ValidationStatus.FAILED

    def test_no_recommendations(self, persisted_report: Path, tmp_path: Path):
        gates = tmp_path / "strict.yml"
        gates.write_text(STRICT_GATES, encoding="utf-8")
        rescored = rescore_report(persisted_report, gates, include_recommendations=False)
        assert rescored.recommendations == []

    def test_persist_when_output_given(self, persisted_report: Path, tmp_path: Path):
        out = tmp_path / "rescored"
        rescored = rescore_report(persisted_report, None, output_directory=out)
        assert Path(rescored.report_path).parent == out
        assert (out / LATEST_REPORT_NAME).is_file()

    def test_does_not_write_by_default(self, persisted_report: Path):
        before = sorted(persisted_report.parent.iterdir())
        rescore_report(persisted_report, None)
        assert sorted(persisted_report.parent.iterdir()) == before

    def test_missing_report(self, tmp_path: Path):
        with pytest.raises(ReportLoadError):
            rescore_report(tmp_path / "absent.json", None)

    def test_edited_gate_file_rescored_in_same_process(self, persisted_report: Path, workspace, tmp_path: Path):
        gates = tmp_path / "gates.yml"
        gates.write_text(LENIENT_GATES, encoding="utf-8")
        orchestrator = PipelineOrchestrator.default(workspace.config())
        assert orchestrator.rescore(persisted_report, gates).quality_gate_compliance.overall_compliance is True

        gates.write_text(STRICT_GATES, encoding="utf-8")
        stat = gates.stat()
        os.utime(gates, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        rescored = orchestrator.rescore(persisted_report, gates)
        assert rescored.quality_gate_compliance.overall_compliance is False
        assert rescored.quality_gate_compliance.gate_results[0].gate_id == "strict"
