"""
Tests for the documentation content phase.
"""

from __future__ import annotations

from pathlib import Path

from conftest import DEFAULT_PAGES, write_docs
from igvalidator.models import IssueSeverity, ValidationStatus
from igvalidator.validators.content import ContentValidator


def _codes(result, check):
    return [i.code for i in result.checks[check].issues]


class TestContentValidator:
    def test_complete_documentation(self, tmp_path: Path, make_config):
        docs = write_docs(tmp_path / "docs", DEFAULT_PAGES)
        result = ContentValidator().validate(docs, make_config())
        assert result.status == ValidationStatus.SUCCESS
        assert set(result.checks) == {"implementationGuide", "narrative", "links"}

    def test_missing_required_page(self, tmp_path: Path, make_config):
        docs = write_docs(tmp_path / "docs", {"other.md": "# Other\n"})
        result = ContentValidator().validate(docs, make_config())
        assert _codes(result, "implementationGuide") == ["MISSING_REQUIRED_PAGE"]
        assert result.status == ValidationStatus.ERROR

    def test_required_pages_are_configurable(self, tmp_path: Path, make_config):
        docs = write_docs(tmp_path / "docs", {"index.md": "# Home\n"})
        config = make_config(content={"required_pages": ["index.md", "profiles.md"]})
        result = ContentValidator().validate(docs, config)
        assert _codes(result, "implementationGuide") == ["MISSING_REQUIRED_PAGE"]
        assert result.checks["implementationGuide"].issues[0].location.endswith("profiles.md")

    def test_empty_page_and_missing_heading(self, tmp_path: Path, make_config):
        docs = write_docs(
            tmp_path / "docs",
            {"index.md": "# Home\n", "empty.md": "   \n", "notitle.md": "Just text.\n## Sub\n"},
        )
        result = ContentValidator().validate(docs, make_config())
        issues = {i.code: i for i in result.checks["narrative"].issues}
        assert issues["EMPTY_PAGE"].severity == IssueSeverity.ERROR
        assert issues["MISSING_HEADING"].severity == IssueSeverity.WARNING
        assert issues["MISSING_HEADING"].location.endswith("notitle.md")

    def test_broken_relative_link(self, tmp_path: Path, make_config):
        docs = write_docs(
            tmp_path / "docs",
            {
                "index.md": (
                    "# Home\n"
                    "[ok](guide/intro.md#start)\n"
                    "[web](https://hl7.org/fhir)\n"
                    "[anchor](#top)\n"
                    "![img](missing.png)\n"
                    "[gone](missing.md)\n"
                ),
                "guide/intro.md": "# Intro\n",
            },
        )
        result = ContentValidator().validate(docs, make_config())
        issues = result.checks["links"].issues
        assert [i.code for i in issues] == ["BROKEN_LINK"]
        assert issues[0].location.endswith("index.md:6")

    def test_link_validation_can_be_disabled(self, tmp_path: Path, make_config):
        docs = write_docs(tmp_path / "docs", {"index.md": "# Home\n[gone](missing.md)\n"})
        config = make_config(content={"enable_link_validation": False})
        result = ContentValidator().validate(docs, config)
        assert "links" not in result.checks
        assert result.status == ValidationStatus.SUCCESS

    def test_missing_directory_is_skipped(self, tmp_path: Path, make_config):
        result = ContentValidator().validate(tmp_path / "nope", make_config())
        assert result.status == ValidationStatus.SUCCESS
        assert result.checks == {}
        assert result.issues[0].severity == IssueSeverity.INFORMATION
