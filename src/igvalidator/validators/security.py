"""
Security and PHI-exposure scanning (the security phase).

Scans the documentation directory and the example resource directory.
Matched text is never copied into issue descriptions, only its location and
the pattern label.
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Optional

from igvalidator.config import PipelineConfig, SecurityConfig
from igvalidator.models import (
    CheckResult,
    IssueSeverity,
    PhaseName,
    PhaseResult,
    ValidationIssue,
)
from igvalidator.validators._files import find_files, read_text
from igvalidator.validators.base import PhaseValidator

logger = logging.getLogger(__name__)


def _compile(patterns: dict[str, str]) -> dict[str, re.Pattern[str]]:
    return {label: re.compile(expr) for label, expr in patterns.items()}


def _is_allowlisted(match: re.Match[str], allowlist: list[str]) -> bool:
    matched = match.group(0).lower()
    return any(entry.lower() in matched for entry in allowlist)


def scan_files(
    files: list[Path],
    patterns: dict[str, str],
    *,
    code: str,
    description: str,
    recommendation: str,
    allowlist: Optional[list[str]] = None,
) -> list[ValidationIssue]:
    """One Error issue per pattern match, located at ``file:line``."""
    compiled = _compile(patterns)
    issues: list[ValidationIssue] = []
    for path in files:
        for lineno, line in enumerate(read_text(path).splitlines(), start=1):
            for label, pattern in compiled.items():
                for match in pattern.finditer(line):
                    if allowlist and _is_allowlisted(match, allowlist):
                        continue
                    issues.append(
                        ValidationIssue(
                            severity=IssueSeverity.ERROR,
                            code=code,
                            description=description.format(label=label.replace("_", " ")),
                            location=f"{path}:{lineno}",
                            recommendation=recommendation,
                        )
                    )
    return issues


class SecurityValidator(PhaseValidator):
    """PHI exposure, access-control documentation and secret scanning."""

    phase = PhaseName.SECURITY

    def _run(
        self,
        location: Optional[Path],
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> PhaseResult:
        roots = [
            root
            for root in (location, config.optional_path(config.example_resource_directory))
            if root is not None and root.is_dir()
        ]
        if not roots:
            return self.skipped(location)

        settings = config.security
        files: list[Path] = []
        for root in roots:
            files.extend(find_files(root, settings.scan_extensions))
        files = sorted(set(files))
        logger.info("Scanning %d file(s) for sensitive content", len(files))

        checks: dict[str, CheckResult] = {}
        if settings.enable_phi_scanning:
            checks["phiExposure"] = check_phi_exposure(files, settings)
        if settings.enable_access_control_validation:
            checks["accessControl"] = check_access_control(location, settings)
        if settings.enable_publication_security_assessment:
            checks["publicationSecurity"] = check_publication_security(files, settings)
        return PhaseResult.from_parts(self.phase, checks=checks)


def check_phi_exposure(files: list[Path], settings: SecurityConfig) -> CheckResult:
    issues = scan_files(
        files,
        settings.phi_patterns,
        code="PHI_EXPOSURE",
        description="Potential PHI ({label}) found in published content",
        recommendation="Replace the value with synthetic or placeholder data",
        allowlist=settings.phi_allowlist,
    )
    return CheckResult.from_issues(issues)


def check_access_control(docs: Optional[Path], settings: SecurityConfig) -> CheckResult:
    if docs is not None and (docs / settings.security_page).is_file():
        return CheckResult.from_issues([])
    where = str(docs / settings.security_page) if docs is not None else settings.security_page
    return CheckResult.from_issues(
        [
            ValidationIssue(
                severity=IssueSeverity.WARNING,
                code="ACCESS_CONTROL_UNDOCUMENTED",
                description=f"No access control documentation found ({settings.security_page})",
                location=where,
                recommendation="Document authentication and authorization requirements",
            )
        ]
    )


def check_publication_security(files: list[Path], settings: SecurityConfig) -> CheckResult:
    issues = scan_files(
        files,
        settings.secret_patterns,
        code="SECRET_EXPOSURE",
        description="Possible secret ({label}) found in published content",
        recommendation="Remove the secret and rotate it",
    )
    return CheckResult.from_issues(issues)
