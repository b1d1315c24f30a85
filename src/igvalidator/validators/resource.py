"""
Example resource validation (the resource phase).

Each ``*.json`` instance in the example directory is parsed and checked by the
conformance engine against the first profile in its ``meta.profile``.  The
phase also reports, per claimed profile, how many instances conformed.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Optional

from igvalidator.config import PipelineConfig
from igvalidator.engine import ConformanceEngine, invoke_engine
from igvalidator.models import (
    ArtifactValidationResult,
    CheckResult,
    IssueSeverity,
    PhaseName,
    PhaseResult,
    ProfileConformance,
    ValidationIssue,
    ValidationStatus,
    status_from_issues,
)
from igvalidator.validators._files import (
    ArtifactParseError,
    find_files,
    first_profile,
    parse_resource,
)
from igvalidator.validators.base import PhaseValidator, map_bounded
from igvalidator.validators.profile import discover_artifacts

logger = logging.getLogger(__name__)

# Core specification profiles are always resolvable
CORE_PROFILE_PREFIX = "http://hl7.org/fhir/StructureDefinition/"


def known_profile_urls(profile_directory: Optional[Path]) -> set[str]:
    """Canonical URLs declared by the artifacts in ``profile_directory``."""
    if profile_directory is None or not profile_directory.is_dir():
        return set()
    urls: set[str] = set()
    for path in discover_artifacts(profile_directory):
        try:
            resource = parse_resource(path)
        except ArtifactParseError:
            continue
        url = resource.get("url")
        if isinstance(url, str) and url:
            urls.add(url)
    return urls


class ResourceValidator(PhaseValidator):
    """Validates example resource instances against their claimed profiles.

    When ``check_profile_references`` is set, instances that claim a profile
    not declared in the profile directory get an ``UNKNOWN_PROFILE`` warning.
    """

    phase = PhaseName.RESOURCE

    def __init__(
        self,
        engine: ConformanceEngine,
        *,
        max_workers: int = 1,
        timeout_seconds: float = 0,
        parallel: bool = True,
        check_profile_references: bool = True,
    ) -> None:
        self._engine = engine
        self._max_workers = max(1, max_workers)
        self._timeout_seconds = timeout_seconds
        self._parallel = parallel
        self._check_profile_references = check_profile_references

    def _run(
        self,
        location: Optional[Path],
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> PhaseResult:
        if location is None or not location.is_dir():
            return self.skipped(location)

        paths = find_files(location, (".json",))
        logger.info("Found %d example resource(s) in %s", len(paths), location)
        results = map_bounded(
            self._validate_instance,
            paths,
            max_workers=self._max_workers,
            parallel=self._parallel,
            cancel_event=cancel_event,
        )

        checks: dict[str, CheckResult] = {}
        if self._check_profile_references:
            known = known_profile_urls(config.optional_path(config.profile_directory))
            checks["profileReferences"] = check_profile_references(results, known)

        return PhaseResult.from_parts(
            self.phase,
            artifacts=results,
            checks=checks,
            conformance=build_conformance(results),
        )

    def _validate_instance(self, path: Path) -> ArtifactValidationResult:
        started = time.perf_counter()
        location = str(path)
        try:
            resource = parse_resource(path)
        except ArtifactParseError as exc:
            logger.warning("Failed to parse %s: %s", location, exc)
            issue = ValidationIssue(
                severity=IssueSeverity.FATAL,
                code="PARSE_ERROR",
                description=f"Failed to parse resource: {exc}",
                location=location,
                recommendation="Check the file is valid JSON",
            )
            return ArtifactValidationResult(
                path=location,
                name=path.stem,
                status=ValidationStatus.ERROR,
                issues=[issue],
                duration_seconds=time.perf_counter() - started,
            )

        profile = first_profile(resource)
        issues = invoke_engine(
            self._engine,
            resource,
            location=location,
            profile=profile,
            timeout_seconds=self._timeout_seconds,
        )
        resource_type = resource.get("resourceType")
        resource_type = resource_type if isinstance(resource_type, str) else None
        resource_id = resource.get("id")
        if resource_type and isinstance(resource_id, str) and resource_id:
            name = f"{resource_type}/{resource_id}"
        else:
            name = path.stem
        return ArtifactValidationResult(
            path=location,
            name=name,
            resource_type=resource_type,
            profile_url=profile,
            status=status_from_issues(issues),
            issues=issues,
            duration_seconds=time.perf_counter() - started,
        )


def build_conformance(results: list[ArtifactValidationResult]) -> list[ProfileConformance]:
    """Per-profile conformance counts; an instance conforms unless it has errors."""
    totals: dict[str, int] = defaultdict(int)
    conformant: dict[str, int] = defaultdict(int)
    for result in results:
        if not result.profile_url:
            continue
        totals[result.profile_url] += 1
        if result.status in (ValidationStatus.SUCCESS, ValidationStatus.WARNING):
            conformant[result.profile_url] += 1
    return [
        ProfileConformance.build(url, conformant[url], totals[url])
        for url in sorted(totals)
    ]


def check_profile_references(
    results: list[ArtifactValidationResult], known_profiles: set[str]
) -> CheckResult:
    """Instances should claim profiles that this guide declares."""
    if not known_profiles:
        return CheckResult.from_issues([])
    issues = [
        ValidationIssue(
            severity=IssueSeverity.WARNING,
            code="UNKNOWN_PROFILE",
            description=f"{r.name} claims profile '{r.profile_url}' which is not declared in the profile directory",
            location=r.path,
            recommendation="Reference a profile defined by this implementation guide",
        )
        for r in results
        if r.profile_url
        and r.profile_url not in known_profiles
        and not r.profile_url.startswith(CORE_PROFILE_PREFIX)
    ]
    return CheckResult.from_issues(issues)
