"""
Conformance engine contract and adapter.

Usage::

    from igvalidator.engine import JsonSchemaConformanceEngine, invoke_engine

    issues = invoke_engine(
        JsonSchemaConformanceEngine(), resource, location="profiles/a.json",
        timeout_seconds=300,
    )
"""

from igvalidator.engine.adapter import (
    DEFAULT_RECOMMENDATION,
    EngineTimeoutError,
    engine_severity_to_issue,
    finding_to_issue,
    invoke_engine,
    recommendation_for,
    run_with_timeout,
)
from igvalidator.engine.base import ConformanceEngine, EngineFinding
from igvalidator.engine.jsonschema_engine import JsonSchemaConformanceEngine

__all__ = [
    "ConformanceEngine",
    "DEFAULT_RECOMMENDATION",
    "EngineFinding",
    "EngineTimeoutError",
    "JsonSchemaConformanceEngine",
    "engine_severity_to_issue",
    "finding_to_issue",
    "invoke_engine",
    "recommendation_for",
    "run_with_timeout",
]
