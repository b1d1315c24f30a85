"""
Publication readiness (the publication phase).

Checks the package directory that would be uploaded to the target registry:

- ``packageStructure``: required components are present.
- ``registryReadiness``: ``package.json`` parses and carries the fields a
  registry needs.
- ``versioning``: the package version is SemVer; pre-releases are flagged.

Nothing is uploaded; publication itself is out of scope.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Any, Optional

from igvalidator.config import PipelineConfig, PublicationConfig
from igvalidator.models import (
    CheckResult,
    IssueSeverity,
    PhaseName,
    PhaseResult,
    ValidationIssue,
)
from igvalidator.validators.base import PhaseValidator

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"

SEMVER = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


def load_manifest(package_dir: Path) -> tuple[Optional[dict[str, Any]], Optional[str]]:
    """Return ``(manifest, error)``; exactly one of them is ``None``."""
    path = package_dir / MANIFEST_NAME
    if not path.is_file():
        return None, f"{MANIFEST_NAME} not found"
    try:
        with open(path, encoding="utf-8") as fh:
            manifest = json.load(fh)
    except (OSError, ValueError) as exc:
        return None, f"{MANIFEST_NAME} could not be parsed: {exc}"
    if not isinstance(manifest, dict):
        return None, f"{MANIFEST_NAME} root is not an object"
    return manifest, None


class PublicationValidator(PhaseValidator):
    phase = PhaseName.PUBLICATION

    def _run(
        self,
        location: Optional[Path],
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> PhaseResult:
        if location is None or not location.is_dir():
            return self.skipped(location)

        settings = config.publication
        manifest, manifest_error = load_manifest(location)
        logger.info(
            "Checking package %s for %s publication", location, settings.target_platform
        )

        checks: dict[str, CheckResult] = {}
        if settings.enable_package_structure_validation:
            checks["packageStructure"] = check_package_structure(location, settings)
        if settings.enable_registry_readiness_check:
            checks["registryReadiness"] = check_registry_readiness(
                location, manifest, manifest_error, settings
            )
        if settings.enable_versioning_validation:
            checks["versioning"] = check_versioning(location, manifest)
        return PhaseResult.from_parts(self.phase, checks=checks)


def check_package_structure(package_dir: Path, settings: PublicationConfig) -> CheckResult:
    issues: list[ValidationIssue] = []
    for component in settings.required_package_components:
        target = package_dir / component.rstrip("/")
        present = target.is_dir() if component.endswith("/") else target.is_file()
        if not present:
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="MISSING_PACKAGE_COMPONENT",
                    description=f"Required package component '{component}' is missing",
                    location=str(target),
                    recommendation=f"Add {component} to the package",
                )
            )
    return CheckResult.from_issues(issues)


def check_registry_readiness(
    package_dir: Path,
    manifest: Optional[dict[str, Any]],
    manifest_error: Optional[str],
    settings: PublicationConfig,
) -> CheckResult:
    location = str(package_dir / MANIFEST_NAME)
    if manifest is None:
        return CheckResult.from_issues(
            [
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="INVALID_PACKAGE_MANIFEST",
                    description=manifest_error or f"{MANIFEST_NAME} unavailable",
                    location=location,
                    recommendation=f"Provide a valid {MANIFEST_NAME} for {settings.target_platform}",
                )
            ]
        )

    issues = [
        ValidationIssue(
            severity=IssueSeverity.ERROR,
            code="MISSING_MANIFEST_FIELD",
            description=f"{MANIFEST_NAME} is missing '{field}'",
            location=f"{location}#{field}",
            recommendation=f"Set '{field}' in {MANIFEST_NAME}",
        )
        for field in settings.required_manifest_fields
        if not manifest.get(field)
    ]
    if not manifest.get("fhirVersions") and not manifest.get("dependencies"):
        issues.append(
            ValidationIssue(
                severity=IssueSeverity.WARNING,
                code="MISSING_FHIR_VERSION",
                description=f"{MANIFEST_NAME} declares neither 'fhirVersions' nor 'dependencies'",
                location=location,
                recommendation="Declare the FHIR version or the core package dependency",
            )
        )
    return CheckResult.from_issues(issues)


def check_versioning(package_dir: Path, manifest: Optional[dict[str, Any]]) -> CheckResult:
    location = f"{package_dir / MANIFEST_NAME}#version"
    version = manifest.get("version") if manifest else None
    if not isinstance(version, str) or not SEMVER.match(version):
        return CheckResult.from_issues(
            [
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="INVALID_VERSION",
                    description=f"Package version {version!r} is not a semantic version",
                    location=location,
                    recommendation="Use MAJOR.MINOR.PATCH versioning",
                )
            ]
        )
    if SEMVER.match(version).group(4):
        return CheckResult.from_issues(
            [
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    code="PRERELEASE_VERSION",
                    description=f"Package version {version} is a pre-release",
                    location=location,
                    recommendation="Publish a release version for production use",
                )
            ]
        )
    return CheckResult.from_issues([])
