"""
Documentation completeness (the content phase).

Checks:

- ``implementationGuide``: the configured required pages exist.
- ``narrative``: every page has content and a top-level heading.
- ``links``: relative Markdown links resolve to existing files.
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from igvalidator.config import PipelineConfig
from igvalidator.models import (
    CheckResult,
    IssueSeverity,
    PhaseName,
    PhaseResult,
    ValidationIssue,
)
from igvalidator.validators._files import find_files, markdown_links, read_text
from igvalidator.validators.base import PhaseValidator

logger = logging.getLogger(__name__)

_HEADING = re.compile(r"^#\s+\S", re.MULTILINE)


class ContentValidator(PhaseValidator):
    phase = PhaseName.CONTENT

    def _run(
        self,
        location: Optional[Path],
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> PhaseResult:
        if location is None or not location.is_dir():
            return self.skipped(location)

        pages = find_files(location, config.content.page_extensions)
        logger.info("Checking %d documentation page(s) in %s", len(pages), location)

        checks = {
            "implementationGuide": check_required_pages(location, config.content.required_pages),
            "narrative": check_narrative(pages),
        }
        if config.content.enable_link_validation:
            checks["links"] = check_links(pages)
        return PhaseResult.from_parts(self.phase, checks=checks)


def check_required_pages(root: Path, required_pages: list[str]) -> CheckResult:
    issues = [
        ValidationIssue(
            severity=IssueSeverity.ERROR,
            code="MISSING_REQUIRED_PAGE",
            description=f"Required page '{page}' is missing",
            location=str(root / page),
            recommendation=f"Add {page} to the implementation guide",
        )
        for page in required_pages
        if not (root / page).is_file()
    ]
    return CheckResult.from_issues(issues)


def check_narrative(pages: list[Path]) -> CheckResult:
    issues: list[ValidationIssue] = []
    for page in pages:
        text = read_text(page)
        if not text.strip():
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="EMPTY_PAGE",
                    description=f"Page {page.name} has no content",
                    location=str(page),
                    recommendation="Write the page content or remove the page",
                )
            )
        elif not _HEADING.search(text):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    code="MISSING_HEADING",
                    description=f"Page {page.name} has no top-level heading",
                    location=str(page),
                    recommendation="Start the page with a '# Title' heading",
                )
            )
    return CheckResult.from_issues(issues)


def _is_local(target: str) -> bool:
    if target.startswith("#"):
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc


def check_links(pages: list[Path]) -> CheckResult:
    """Relative links must resolve; external and anchor-only links are ignored."""
    issues: list[ValidationIssue] = []
    for page in pages:
        for lineno, target in markdown_links(read_text(page)):
            if not _is_local(target):
                continue
            relative = unquote(target.split("#", 1)[0].split("?", 1)[0])
            if not relative:
                continue
            if not (page.parent / relative).exists():
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        code="BROKEN_LINK",
                        description=f"Link target '{target}' does not exist",
                        location=f"{page}:{lineno}",
                        recommendation="Fix the link or add the missing page",
                    )
                )
    return CheckResult.from_issues(issues)
