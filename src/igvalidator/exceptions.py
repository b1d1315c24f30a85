"""Exception types raised at the edges of the validation pipeline.

Almost every failure inside the pipeline is absorbed and recorded as a
``ValidationIssue``.  These exceptions cover the few conditions that cannot be
turned into a report: a broken run configuration, an output directory that
cannot be written, and a persisted report that cannot be read back.
"""

from __future__ import annotations


class IGValidatorError(Exception):
    """Base class for igvalidator errors."""


class ConfigurationError(IGValidatorError):
    """The run configuration file is missing, malformed, or out of range."""


class ReportPersistenceError(IGValidatorError):
    """The validation report could not be written to the output directory."""

    def __init__(self, output_dir: str, reason: str) -> None:
        self.output_dir = output_dir
        self.reason = reason
        super().__init__(f"Cannot write validation report to {output_dir}: {reason}")


class ReportLoadError(IGValidatorError):
    """A previously persisted report could not be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load validation report {path}: {reason}")
