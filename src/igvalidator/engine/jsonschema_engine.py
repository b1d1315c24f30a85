"""
Default conformance engine backed by ``jsonschema``.

Checks the structural subset of a StructureDefinition or resource instance
against the bundled JSON schemas in ``igvalidator/schemas/``.  Schema errors
become ``error`` findings; recommended-but-optional elements that are absent
become ``warning`` findings.  Any richer engine can replace this one by
implementing :class:`~igvalidator.engine.base.ConformanceEngine`.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

import jsonschema
from jsonschema import Draft202012Validator

from igvalidator.engine.base import ConformanceEngine, EngineFinding

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"

STRUCTURE_DEFINITION_SCHEMA = "structure-definition.schema.json"
RESOURCE_SCHEMA = "resource.schema.json"

# Elements a published profile should carry even though they are optional
RECOMMENDED_PROFILE_ELEMENTS = ("version", "description", "publisher")

_KEYWORD_CODES: dict[str, str] = {
    "required": "required",
    "const": "value",
    "enum": "value",
    "type": "structure",
    "additionalProperties": "structure",
    "minItems": "cardinality",
    "maxItems": "cardinality",
    "minimum": "cardinality",
    "maximum": "cardinality",
    "pattern": "invalid",
    "format": "invalid",
    "minLength": "invalid",
}


def _finding_code(error: jsonschema.ValidationError) -> str:
    return _KEYWORD_CODES.get(str(error.validator), "invalid")


def _fhir_path(root: str, path: list[str | int]) -> str:
    """Render a jsonschema path as ``Root.element[0].path``."""
    rendered = root
    for part in path:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}"
    return rendered


def _missing_property(error: jsonschema.ValidationError) -> Optional[str]:
    instance = error.instance if isinstance(error.instance, dict) else {}
    for name in error.validator_value or []:
        if name not in instance and repr(name) in error.message:
            return name
    return None


class JsonSchemaConformanceEngine(ConformanceEngine):
    """
    Structural conformance checks with ``Draft202012Validator``.

    Usage::

        engine = JsonSchemaConformanceEngine(fhir_version="4.0.1")
        findings = engine.validate({"resourceType": "StructureDefinition"})
    """

    name = "jsonschema"

    def __init__(
        self, schema_dir: Optional[Path] = None, fhir_version: Optional[str] = None
    ) -> None:
        self._schema_dir = schema_dir or SCHEMA_DIR
        self._fhir_version = fhir_version
        self._validators: dict[str, Draft202012Validator] = {}
        self._lock = threading.Lock()

    def _get_validator(self, schema_file: str) -> Draft202012Validator:
        with self._lock:
            validator = self._validators.get(schema_file)
            if validator is None:
                path = self._schema_dir / schema_file
                with open(path, encoding="utf-8") as fh:
                    schema = json.load(fh)
                Draft202012Validator.check_schema(schema)
                validator = Draft202012Validator(schema)
                self._validators[schema_file] = validator
            return validator

    def validate(
        self, resource: dict[str, Any], profile: Optional[str] = None
    ) -> list[EngineFinding]:
        if not isinstance(resource, dict):
            raise TypeError(
                f"Expected a parsed resource mapping, got {type(resource).__name__}"
            )

        resource_type = resource.get("resourceType")
        root = resource_type if isinstance(resource_type, str) and resource_type else "Resource"
        is_profile = resource_type == "StructureDefinition"
        schema_file = STRUCTURE_DEFINITION_SCHEMA if is_profile else RESOURCE_SCHEMA

        findings: list[EngineFinding] = []
        errors = sorted(
            self._get_validator(schema_file).iter_errors(resource),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        for error in errors:
            path = list(error.absolute_path)
            if error.validator == "required":
                missing = _missing_property(error)
                if missing:
                    path.append(missing)
            findings.append(
                EngineFinding(
                    severity="error",
                    code=_finding_code(error),
                    message=error.message,
                    location=_fhir_path(root, path),
                )
            )

        if is_profile:
            for element in RECOMMENDED_PROFILE_ELEMENTS:
                if not resource.get(element):
                    findings.append(
                        EngineFinding(
                            severity="warning",
                            code="recommended",
                            message=f"Profile should declare '{element}'",
                            location=f"{root}.{element}",
                        )
                    )
            declared = resource.get("fhirVersion")
            if self._fhir_version and isinstance(declared, str) and declared != self._fhir_version:
                findings.append(
                    EngineFinding(
                        severity="warning",
                        code="version",
                        message=(
                            f"Profile targets FHIR {declared}, "
                            f"expected {self._fhir_version}"
                        ),
                        location=f"{root}.fhirVersion",
                    )
                )
        else:
            meta = resource.get("meta")
            claimed = meta.get("profile") if isinstance(meta, dict) else None
            if not claimed and not profile:
                findings.append(
                    EngineFinding(
                        severity="warning",
                        code="recommended",
                        message="Instance does not declare a profile in meta.profile",
                        location=f"{root}.meta.profile",
                    )
                )

        if findings:
            logger.debug("%s: %d finding(s) for %s", self.name, len(findings), root)
        return findings
