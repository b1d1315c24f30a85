"""
Adapter between a :class:`ConformanceEngine` and the issue model.

``invoke_engine`` is the only place the pipeline calls an engine.  It bounds
the call with a timeout and never raises: a timeout becomes an Error
``VALIDATION_TIMEOUT`` issue and an engine exception becomes a Fatal
``VALIDATION_EXCEPTION`` issue.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Optional, TypeVar

from igvalidator.engine.base import ConformanceEngine, EngineFinding
from igvalidator.models import IssueSeverity, ValidationIssue
from igvalidator.timeouts import ENGINE_WORKER_PREFIX

logger = logging.getLogger(__name__)

R = TypeVar("R")

_SEVERITY_MAP: dict[str, IssueSeverity] = {
    "information": IssueSeverity.INFORMATION,
    "info": IssueSeverity.INFORMATION,
    "warning": IssueSeverity.WARNING,
    "error": IssueSeverity.ERROR,
    "fatal": IssueSeverity.FATAL,
}

_RECOMMENDATIONS: dict[str, str] = {
    "required": "Add the missing required element",
    "cardinality": "Check element cardinality constraints (min/max)",
    "invalid": "Ensure the value conforms to the expected format and value set",
    "value": "Ensure the value conforms to the expected format and value set",
    "structure": "Review the resource structure against the profile definition",
    "recommended": "Populate the recommended element to improve discoverability",
    "version": "Align the declared FHIR version with the version the guide targets",
}

DEFAULT_RECOMMENDATION = "Review the FHIR specification for guidance"


class EngineTimeoutError(Exception):
    """The engine call did not finish within its timeout."""


def engine_severity_to_issue(severity: str) -> IssueSeverity:
    """Map an engine severity label to the four-level scale (unknown -> Error)."""
    return _SEVERITY_MAP.get(str(severity).strip().lower(), IssueSeverity.ERROR)


def recommendation_for(code: str) -> str:
    """Template recommendation text for an engine finding code."""
    return _RECOMMENDATIONS.get(str(code).strip().lower(), DEFAULT_RECOMMENDATION)


def finding_to_issue(finding: EngineFinding, default_location: str = "") -> ValidationIssue:
    return ValidationIssue(
        severity=engine_severity_to_issue(finding.severity),
        code=finding.code,
        description=finding.message,
        location=finding.location or default_location,
        recommendation=recommendation_for(finding.code),
    )


def run_with_timeout(func: Callable[..., R], timeout_seconds: float, *args: Any) -> R:
    """Run ``func(*args)`` on a single worker thread bounded by a timeout.

    On timeout the worker thread is abandoned, not joined, and
    :class:`EngineTimeoutError` is raised.
    """
    if timeout_seconds <= 0:
        return func(*args)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=ENGINE_WORKER_PREFIX)
    future = executor.submit(func, *args)
    try:
        return future.result(timeout=timeout_seconds)
    except FuturesTimeout as exc:
        future.cancel()
        raise EngineTimeoutError(
            f"Engine call exceeded {timeout_seconds:.1f}s timeout"
        ) from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def invoke_engine(
    engine: ConformanceEngine,
    resource: dict[str, Any],
    *,
    location: str,
    profile: Optional[str] = None,
    timeout_seconds: float = 0,
) -> list[ValidationIssue]:
    """Validate ``resource`` with ``engine`` and convert findings to issues.

    Args:
        engine: The conformance engine.
        resource: Parsed artifact.
        location: Artifact path used when a finding has no location.
        profile: Optional profile canonical URL.
        timeout_seconds: Per-call timeout; ``0`` disables it.

    Returns:
        Issues in the order the engine reported them.
    """
    try:
        findings = run_with_timeout(engine.validate, timeout_seconds, resource, profile)
    except EngineTimeoutError as exc:
        logger.warning("Conformance engine timed out on %s: %s", location, exc)
        return [
            ValidationIssue(
                severity=IssueSeverity.ERROR,
                code="VALIDATION_TIMEOUT",
                description=f"Validation did not complete within {timeout_seconds} seconds",
                location=location,
                recommendation="Simplify the artifact or raise the validation timeout",
            )
        ]
    except Exception as exc:
        logger.warning(
            "Conformance engine raised on %s: %s: %s", location, type(exc).__name__, exc
        )
        return [
            ValidationIssue(
                severity=IssueSeverity.FATAL,
                code="VALIDATION_EXCEPTION",
                description=f"Conformance engine failed: {type(exc).__name__}: {exc}",
                location=location,
                recommendation="Check that the artifact is well-formed",
            )
        ]
    return [finding_to_issue(f, location) for f in findings]
