"""
Conformance engine contract.

The engine is a black box that checks one parsed artifact (optionally against
a profile reference) and returns an ordered list of findings.  It may raise on
malformed input; :func:`igvalidator.engine.adapter.invoke_engine` converts
that into a Fatal issue.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineFinding(BaseModel):
    """One finding as reported by a conformance engine.

    ``severity`` uses the engine's own vocabulary
    (``information|warning|error|fatal``, case insensitive).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    severity: str = Field(..., description="Engine severity label")
    code: str = Field(..., description="Engine finding code, e.g. 'required'")
    message: str
    location: str = ""


class ConformanceEngine(ABC):
    """Checks a parsed artifact or resource instance for conformance."""

    name: str = "engine"

    @abstractmethod
    def validate(
        self, resource: dict[str, Any], profile: Optional[str] = None
    ) -> list[EngineFinding]:
        """Return the findings for ``resource``.

        Args:
            resource: Parsed artifact as a dict.
            profile: Optional canonical URL of the profile to check against.
        """
