"""
Profile/artifact validation (the technical phase).

For each candidate artifact in the profile directory:

1. parse it (JSON or XML); a parse failure yields one Error result carrying a
   Fatal ``PARSE_ERROR`` issue and the batch continues;
2. run the conformance engine under a per-artifact timeout;
3. once every artifact is in, run the cross-artifact checks the engine does
   not enforce: canonical URL presence, uniqueness and well-formedness
   (``canonicalUrl``) and profile naming (``metadata``).

Usage::

    validator = ProfileValidator(JsonSchemaConformanceEngine(), max_workers=4)
    result = validator.validate("input/profiles", config)
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from igvalidator.config import PipelineConfig
from igvalidator.engine import ConformanceEngine, invoke_engine
from igvalidator.models import (
    ArtifactValidationResult,
    CheckResult,
    IssueSeverity,
    PhaseName,
    PhaseResult,
    ValidationIssue,
    status_from_issues,
)
from igvalidator.validators._files import ArtifactParseError, find_files, parse_resource, read_text
from igvalidator.validators.base import PhaseValidator, map_bounded

logger = logging.getLogger(__name__)

ARTIFACT_EXTENSIONS = (".json", ".xml")

_NAME_MARKERS = ("structuredefinition", "profile")
_DIRECTORY_MARKERS = ("profiles", "structure")
_JSON_MARKER = re.compile(r'"resourceType"\s*:\s*"StructureDefinition"')
_XML_MARKERS = ("<StructureDefinition", 'resourceType value="StructureDefinition"')

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_HIERARCHICAL_SCHEMES = {"http", "https", "ftp", "ftps"}


@dataclass(frozen=True)
class _ArtifactOutcome:
    result: ArtifactValidationResult
    parsed: bool
    declared_name: Optional[str]


def is_candidate(path: Path, root: Path) -> bool:
    """Naming convention, directory convention, or content sniffing."""
    lowered_name = path.name.lower()
    if any(marker in lowered_name for marker in _NAME_MARKERS):
        return True

    try:
        relative_dirs = path.parent.relative_to(root).parts
    except ValueError:
        relative_dirs = ()
    dir_parts = [root.name.lower()] + [part.lower() for part in relative_dirs]
    if any(marker in part for part in dir_parts for marker in _DIRECTORY_MARKERS):
        return True

    try:
        text = read_text(path)
    except OSError:
        return False
    if path.suffix.lower() == ".xml":
        return any(marker in text for marker in _XML_MARKERS)
    return bool(_JSON_MARKER.search(text))


def discover_artifacts(root: Path) -> list[Path]:
    """Candidate profile artifacts under ``root``, sorted by path."""
    return [p for p in find_files(root, ARTIFACT_EXTENSIONS) if is_candidate(p, root)]


def is_well_formed_uri(value: str) -> bool:
    """Absolute URI with a scheme, plus a host for hierarchical schemes."""
    if not value or value != value.strip() or any(ch.isspace() for ch in value):
        return False
    parsed = urlparse(value)
    if not parsed.scheme or not _SCHEME.match(parsed.scheme):
        return False
    if parsed.scheme.lower() in _HIERARCHICAL_SCHEMES:
        return bool(parsed.netloc)
    return bool(parsed.path or parsed.netloc)


class ProfileValidator(PhaseValidator):
    """Validates profile artifacts with a conformance engine."""

    phase = PhaseName.TECHNICAL

    def __init__(
        self,
        engine: ConformanceEngine,
        *,
        max_workers: int = 1,
        timeout_seconds: float = 0,
        parallel: bool = True,
    ) -> None:
        self._engine = engine
        self._max_workers = max(1, max_workers)
        self._timeout_seconds = timeout_seconds
        self._parallel = parallel

    def _run(
        self,
        location: Optional[Path],
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> PhaseResult:
        if location is None or not location.is_dir():
            logger.error("Profile directory not found: %s", location)
            return self.directory_not_found(location)

        paths = discover_artifacts(location)
        logger.info("Found %d profile artifact(s) in %s", len(paths), location)

        outcomes = map_bounded(
            self._validate_artifact,
            paths,
            max_workers=self._max_workers,
            parallel=self._parallel,
            cancel_event=cancel_event,
        )
        outcomes.sort(key=lambda o: o.result.path)

        checks = {
            "canonicalUrl": check_canonical_urls(
                [o.result for o in outcomes], config.canonical_url_base
            ),
            "metadata": check_metadata(outcomes),
        }
        return PhaseResult.from_parts(
            self.phase,
            artifacts=[o.result for o in outcomes],
            checks=checks,
        )

    def _validate_artifact(self, path: Path) -> _ArtifactOutcome:
        started = time.perf_counter()
        location = str(path)
        try:
            resource = parse_resource(path)
        except ArtifactParseError as exc:
            logger.warning("Failed to parse %s: %s", location, exc)
            issue = ValidationIssue(
                severity=IssueSeverity.FATAL,
                code="PARSE_ERROR",
                description=f"Failed to parse artifact: {exc}",
                location=location,
                recommendation="Check the file is valid JSON or XML",
            )
            result = ArtifactValidationResult(
                path=location,
                name=path.stem,
                status=status_from_issues([issue]),
                issues=[issue],
                duration_seconds=time.perf_counter() - started,
            )
            return _ArtifactOutcome(result=result, parsed=False, declared_name=None)

        issues = invoke_engine(
            self._engine,
            resource,
            location=location,
            timeout_seconds=self._timeout_seconds,
        )
        declared_name = resource.get("name") if isinstance(resource.get("name"), str) else None
        canonical = resource.get("url") if isinstance(resource.get("url"), str) else None
        resource_type = resource.get("resourceType")
        result = ArtifactValidationResult(
            path=location,
            name=declared_name or path.stem,
            canonical_url=canonical or None,
            resource_type=resource_type if isinstance(resource_type, str) else None,
            status=status_from_issues(issues),
            issues=issues,
            duration_seconds=time.perf_counter() - started,
        )
        logger.debug("%s: %s (%d issues)", location, result.status.value, len(issues))
        return _ArtifactOutcome(result=result, parsed=True, declared_name=declared_name)


# ---------------------------------------------------------------------------
# Cross-artifact checks
# ---------------------------------------------------------------------------


def check_canonical_urls(
    results: list[ArtifactValidationResult],
    canonical_url_base: Optional[str] = None,
) -> CheckResult:
    """Presence, uniqueness and well-formedness of canonical URLs."""
    issues: list[ValidationIssue] = []
    by_url: dict[str, list[str]] = defaultdict(list)

    for result in results:
        url = result.canonical_url
        if not url:
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="MISSING_CANONICAL_URL",
                    description=f"Artifact '{result.name}' has no canonical URL",
                    location=result.path,
                    recommendation="Add a canonical 'url' to the artifact",
                )
            )
            continue
        by_url[url].append(result.path)

        if not is_well_formed_uri(url):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="INVALID_CANONICAL_URL",
                    description=f"Canonical URL '{url}' is not a well-formed absolute URI",
                    location=result.path,
                    recommendation="Use an absolute URI such as http://example.org/fhir/StructureDefinition/name",
                )
            )
        elif canonical_url_base and not url.startswith(canonical_url_base):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    code="CANONICAL_BASE_MISMATCH",
                    description=f"Canonical URL '{url}' is outside the base '{canonical_url_base}'",
                    location=result.path,
                    recommendation=f"Publish the artifact under {canonical_url_base}",
                )
            )

    for url, paths in by_url.items():
        if len(paths) > 1:
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="DUPLICATE_CANONICAL_URL",
                    description=(
                        f"Canonical URL '{url}' is used by multiple files: {', '.join(paths)}"
                    ),
                    location="multiple files",
                    recommendation="Give each artifact a unique canonical URL",
                )
            )

    return CheckResult.from_issues(issues)


def check_metadata(outcomes: list[_ArtifactOutcome]) -> CheckResult:
    """Parsed artifacts should declare a ``name``."""
    issues = [
        ValidationIssue(
            severity=IssueSeverity.WARNING,
            code="MISSING_PROFILE_NAME",
            description=f"Artifact {o.result.path} does not declare a name",
            location=o.result.path,
            recommendation="Add a computable 'name' to the artifact",
        )
        for o in outcomes
        if o.parsed and not o.declared_name
    ]
    return CheckResult.from_issues(issues)
