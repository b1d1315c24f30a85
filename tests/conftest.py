"""
Pytest configuration and fixtures for igvalidator tests.
"""

from __future__ import annotations

import json
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Optional

import pytest

from igvalidator.config import PipelineConfig, load_pipeline_config, reset_config
from igvalidator.engine.base import ConformanceEngine, EngineFinding
from igvalidator.gates.loader import QualityGateLoader


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop IGVALIDATOR_* variables and reset process-wide caches."""
    for key in list(os.environ):
        if key.startswith("IGVALIDATOR_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    QualityGateLoader.clear_cache()

    yield

    reset_config()
    QualityGateLoader.clear_cache()


# ============================================================================
# Conformance Engine Fakes
# ============================================================================


class FakeEngine(ConformanceEngine):
    """Conformance engine returning canned findings.

    Findings are looked up by the resource's ``name`` (profiles) or ``id``
    (instances); anything else gets ``default``.
    """

    name = "fake"

    def __init__(
        self,
        findings: Optional[Dict[str, list]] = None,
        default: Optional[list] = None,
        delay: float = 0.0,
        raises: Optional[Exception] = None,
        raise_for: Optional[set] = None,
    ) -> None:
        self.findings = findings or {}
        self.default = default or []
        self.delay = delay
        self.raises = raises
        self.raise_for = raise_for or set()
        self.calls: list = []
        self._lock = threading.Lock()

    def validate(self, resource: Dict[str, Any], profile: Optional[str] = None) -> list:
        key = resource.get("name") or resource.get("id")
        with self._lock:
            self.calls.append((key, profile))
        if self.delay:
            time.sleep(self.delay)
        if self.raises is not None and (not self.raise_for or key in self.raise_for):
            raise self.raises
        return list(self.findings.get(key, self.default))


def finding(severity: str = "error", code: str = "required", message: str = "boom",
            location: str = "") -> EngineFinding:
    return EngineFinding(severity=severity, code=code, message=message, location=location)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


# ============================================================================
# Artifact Builders
# ============================================================================

BASE_URL = "http://example.org/fhir/StructureDefinition/"


def profile_document(profile_name: str, url: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """A StructureDefinition that satisfies the bundled schema without warnings."""
    document: Dict[str, Any] = {
        "resourceType": "StructureDefinition",
        "id": profile_name.lower(),
        "url": url if url is not None else BASE_URL + profile_name,
        "version": "1.0.0",
        "name": profile_name,
        "status": "active",
        "publisher": "Example Publisher",
        "description": f"{profile_name} profile",
        "kind": "resource",
        "abstract": False,
        "type": "Patient",
        "baseDefinition": "http://hl7.org/fhir/StructureDefinition/Patient",
        "derivation": "constraint",
        "differential": {"element": [{"id": "Patient", "path": "Patient"}]},
    }
    document.update(extra)
    return {k: v for k, v in document.items() if v is not None}


def write_profile(directory: Path, profile_name: str, url: Optional[str] = None, **extra: Any) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"StructureDefinition-{profile_name}.json"
    path.write_text(json.dumps(profile_document(profile_name, url, **extra), indent=2), encoding="utf-8")
    return path


def write_example(directory: Path, resource_type: str, resource_id: str,
                  profile: Optional[str] = None, **extra: Any) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    resource: Dict[str, Any] = {"resourceType": resource_type, "id": resource_id}
    if profile:
        resource["meta"] = {"profile": [profile]}
    resource.update(extra)
    path = directory / f"{resource_type}-{resource_id}.json"
    path.write_text(json.dumps(resource, indent=2), encoding="utf-8")
    return path


def write_docs(directory: Path, pages: Dict[str, str]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name, text in pages.items():
        target = directory / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return directory


def write_package(directory: Path, manifest: Optional[Dict[str, Any]] = None,
                  components: tuple = ("profiles", "examples", "valuesets")) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for component in components:
        (directory / component).mkdir(exist_ok=True)
    if manifest is not None:
        (directory / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    return directory


DEFAULT_MANIFEST = {
    "name": "example.fhir.ig",
    "version": "1.0.0",
    "canonical": "http://example.org/fhir",
    "fhirVersions": ["4.0.1"],
}

DEFAULT_PAGES = {
    "index.md": "# Example Implementation Guide\n\nSee the [security page](security.md).\n",
    "security.md": "# Security\n\nAccess to the server requires OAuth2 client credentials.\n",
}


# ============================================================================
# Workspace Fixtures
# ============================================================================


class IGWorkspace:
    """A complete, clean implementation guide laid out under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.profiles = root / "profiles"
        self.examples = root / "examples"
        self.docs = root / "docs"
        self.package = root / "package"
        self.output = root / "out"

    def populate(self) -> "IGWorkspace":
        for name in ("PatientProfile", "ObservationProfile", "EncounterProfile"):
            write_profile(self.profiles, name)
        write_example(self.examples, "Patient", "patient-1", BASE_URL + "PatientProfile")
        write_example(self.examples, "Observation", "obs-1", BASE_URL + "ObservationProfile")
        write_docs(self.docs, DEFAULT_PAGES)
        write_package(self.package, DEFAULT_MANIFEST)
        return self

    def config(self, **overrides: Any) -> PipelineConfig:
        values: Dict[str, Any] = dict(
            profile_directory=str(self.profiles),
            example_resource_directory=str(self.examples),
            implementation_guide_directory=str(self.docs),
            package_directory=str(self.package),
            output_directory=str(self.output),
            quality_gate_config_path=str(self.root / "missing-gates.yml"),
            max_parallel_tasks=2,
        )
        values.update(overrides)
        return load_pipeline_config(**values)


@pytest.fixture
def workspace(tmp_path: Path) -> IGWorkspace:
    return IGWorkspace(tmp_path).populate()


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., PipelineConfig]:
    """Config factory rooted at a temporary directory with no inputs."""

    def _make(**overrides: Any) -> PipelineConfig:
        values: Dict[str, Any] = dict(
            profile_directory=str(tmp_path / "profiles"),
            example_resource_directory=str(tmp_path / "examples"),
            implementation_guide_directory=str(tmp_path / "docs"),
            package_directory=str(tmp_path / "package"),
            output_directory=str(tmp_path / "out"),
            quality_gate_config_path=str(tmp_path / "no-gates.yml"),
            max_parallel_tasks=1,
        )
        values.update(overrides)
        return load_pipeline_config(**values)

    return _make
