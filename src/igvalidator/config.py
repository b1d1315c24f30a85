"""
Centralized configuration for igvalidator runs.

Uses Pydantic BaseSettings for environment variable integration
and validation. All run options of the validation pipeline are defined here.

Configuration sources (in order of precedence):
1. Explicit overrides (CLI options)
2. YAML run configuration file (``--config``)
3. Environment variables (IGVALIDATOR_*, nested with ``__``)
4. .env file
5. Default values

Example:
    from igvalidator.config import load_pipeline_config

    config = load_pipeline_config("pipeline.yml", output_directory="out/")
    print(config.validation_timeout_seconds)

    # Environment override
    export IGVALIDATOR_FAIL_ON_WARNINGS=true
    export IGVALIDATOR_SECURITY__ENABLE_PHI_SCANNING=false
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from igvalidator.exceptions import ConfigurationError
from igvalidator.timeouts import (
    ARTIFACT_VALIDATION_TIMEOUT_S,
    MAX_VALIDATION_TIMEOUT_S,
    MIN_VALIDATION_TIMEOUT_S,
)


def _default_worker_count() -> int:
    return os.cpu_count() or 1


# ---------------------------------------------------------------------------
# Phase-specific sections
# ---------------------------------------------------------------------------


class SecurityConfig(BaseModel):
    """Options for the security / PHI-exposure phase."""

    model_config = ConfigDict(extra="forbid")

    enable_phi_scanning: bool = True
    phi_patterns: dict[str, str] = Field(
        default_factory=lambda: {
            "ssn": r"\b\d{3}-\d{2}-\d{4}\b",
            "medical_record_number": r"\b[A-Z]{2}\d{7}\b",
            "phone_number": r"\b\d{3}-\d{3}-\d{4}\b",
            "email": r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        },
        description="Label -> regular expression for PHI detection",
    )
    phi_allowlist: list[str] = Field(
        default_factory=lambda: ["example.org", "example.com", "example.net"],
        description="Substrings that mark a PHI match as a known placeholder",
    )
    enable_access_control_validation: bool = True
    security_page: str = Field(
        default="security.md",
        description="Documentation page that must describe access control",
    )
    enable_publication_security_assessment: bool = True
    secret_patterns: dict[str, str] = Field(
        default_factory=lambda: {
            "private_key": r"-----BEGIN (?:RSA |EC |OPENSSH |DSA )?PRIVATE KEY-----",
            "credential_assignment": (
                r"(?i)\b(?:password|passwd|client_secret|api[_-]?key)\s*[:=]\s*['\"]?[^\s'\"]{4,}"
            ),
            "bearer_token": r"(?i)\bbearer\s+[A-Za-z0-9\-._~+/]{20,}=*",
        },
    )
    scan_extensions: list[str] = Field(
        default_factory=lambda: [".md", ".markdown", ".json", ".xml", ".txt", ".html", ".yml", ".yaml"],
    )


class PublicationConfig(BaseModel):
    """Options for the publication-readiness phase."""

    model_config = ConfigDict(extra="forbid")

    target_platform: str = "Simplifier.net"
    enable_package_structure_validation: bool = True
    enable_registry_readiness_check: bool = True
    enable_versioning_validation: bool = True
    required_package_components: list[str] = Field(
        default_factory=lambda: ["package.json", "profiles/", "examples/", "valuesets/"],
    )
    required_manifest_fields: list[str] = Field(
        default_factory=lambda: ["name", "version", "canonical"],
    )


class ContentConfig(BaseModel):
    """Options for the documentation/content phase."""

    model_config = ConfigDict(extra="forbid")

    required_pages: list[str] = Field(default_factory=lambda: ["index.md"])
    page_extensions: list[str] = Field(default_factory=lambda: [".md", ".markdown"])
    enable_link_validation: bool = True


# ---------------------------------------------------------------------------
# Root run configuration
# ---------------------------------------------------------------------------


class PipelineConfig(BaseSettings):
    """
    Run configuration for the validation pipeline.

    All settings can be overridden via environment variables
    prefixed with IGVALIDATOR_.

    Example:
        export IGVALIDATOR_PROFILE_DIRECTORY=fsh-generated/resources
        export IGVALIDATOR_MAX_PARALLEL_TASKS=4
    """

    model_config = SettingsConfigDict(
        env_prefix="IGVALIDATOR_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Inputs
    profile_directory: str = Field(
        default="src/",
        description="Directory containing profile artifacts",
    )
    example_resource_directory: Optional[str] = Field(
        default="docs/examples/",
        description="Directory containing example resource instances (optional)",
    )
    implementation_guide_directory: Optional[str] = Field(
        default="docs/implementation-guide/",
        description="Directory containing implementation guide documentation (optional)",
    )
    package_directory: Optional[str] = Field(
        default="fhir-package/",
        description="Directory containing the publication package (optional)",
    )
    quality_gate_config_path: Optional[str] = Field(
        default="docs/qa/gates/quality-gates.yml",
        description="Quality gate configuration; built-in gates are used when absent",
    )

    # Output
    output_directory: str = Field(
        default="validation-output/",
        description="Directory for validation reports",
    )

    # Validation behavior
    fhir_version: str = Field(
        default="4.0.1",
        description="FHIR version profiles are expected to declare in fhirVersion",
    )
    canonical_url_base: Optional[str] = Field(
        default=None,
        description="Expected prefix for canonical URLs (warning when not matched)",
    )
    enable_parallel_validation: bool = Field(default=True)
    max_parallel_tasks: int = Field(default_factory=_default_worker_count, ge=1)
    validation_timeout_seconds: int = Field(
        default=ARTIFACT_VALIDATION_TIMEOUT_S,
        ge=MIN_VALIDATION_TIMEOUT_S,
        le=MAX_VALIDATION_TIMEOUT_S,
        description="Per-artifact conformance engine timeout",
    )
    verbose_logging: bool = Field(default=False)
    include_recommendations: bool = Field(default=True)
    fail_on_warnings: bool = Field(default=False)

    # Phase sections
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    publication: PublicationConfig = Field(default_factory=PublicationConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)

    @field_validator(
        "profile_directory",
        "example_resource_directory",
        "implementation_guide_directory",
        "package_directory",
        "quality_gate_config_path",
        "output_directory",
    )
    @classmethod
    def expand_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and environment variables in paths; blank means unset."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("profile_directory", "output_directory", mode="after")
    @classmethod
    def require_path(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    def optional_path(self, value: Optional[str]) -> Optional[Path]:
        """Return ``value`` as a Path, or ``None`` when unset."""
        return Path(value) if value else None


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------


def load_pipeline_config(
    path: Optional[str | Path] = None,
    **overrides: Any,
) -> PipelineConfig:
    """
    Build a :class:`PipelineConfig` from an optional YAML file plus overrides.

    ``None`` overrides are ignored so CLI options that were not given do not
    mask values from the file or the environment.

    Raises:
        ConfigurationError: If the file is missing, is not a YAML mapping,
            or the merged values fail validation.
    """
    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        try:
            with open(config_path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Expected YAML mapping at root of {config_path}, got {type(raw).__name__}"
            )
        data.update(raw)

    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return PipelineConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


# Global singleton
_config: Optional[PipelineConfig] = None


def get_config(**overrides: Any) -> PipelineConfig:
    """
    Get the process-wide configuration instance.

    Creates the instance on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = load_pipeline_config(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
