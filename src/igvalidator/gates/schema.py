"""
Pydantic models for quality gate configuration documents.

Gate files are human-edited YAML.  Keys are accepted in snake_case or
camelCase (``pass_threshold`` / ``passThreshold``) and unknown keys are
ignored so that gate files written for other tools still load.

Example YAML::

    quality_gates:
      - id: gate-5.3.1
        name: FHIR Technical Validation
        pass_threshold: 100
        blocking: true
        criteria:
          - name: All StructureDefinitions validate against FHIR R4
            required_value: 100
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_GATE_CONFIG = ConfigDict(
    extra="ignore",
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)


class QualityGateCriterion(BaseModel):
    """A named criterion and the value it must reach."""

    model_config = _GATE_CONFIG

    name: str = Field(..., min_length=1)
    required_value: float = Field(100.0, ge=0.0, le=100.0)
    description: str = ""


class QualityGate(BaseModel):
    """A named bundle of criteria with a pass threshold."""

    model_config = _GATE_CONFIG

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    pass_threshold: float = Field(100.0, ge=0.0, le=100.0)
    blocking: bool = False
    description: str = ""
    criteria: list[QualityGateCriterion] = Field(default_factory=list)


class QualityGateConfiguration(BaseModel):
    """Root of a gate configuration document."""

    model_config = _GATE_CONFIG

    quality_gates: list[QualityGate] = Field(default_factory=list)
