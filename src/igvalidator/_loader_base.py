"""
Generic base YAML loader with per-path caching and model validation.

Provides ``BaseYamlLoader[T]``, the base class for configuration documents
that are read from disk once per process.  Centralises:

- Per-path caching via class-level dict (each subclass gets its own),
  invalidated when the file's modification time or size changes
- File existence checks
- YAML parsing with dict-type validation
- Pydantic ``model_validate`` dispatch

Subclasses set ``_model_class`` and optionally override ``_log_loaded()``
for domain-specific debug logging.

Usage::

    from igvalidator._loader_base import BaseYamlLoader
    from igvalidator.gates.schema import QualityGateConfiguration

    class QualityGateLoader(BaseYamlLoader[QualityGateConfiguration]):
        _model_class = QualityGateConfiguration
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import ClassVar, Generic, TypeVar

import yaml
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseYamlLoader(Generic[T]):
    """Generic base for YAML loaders with per-path caching.

    Subclasses must set ``_model_class`` to the Pydantic model used
    for validation.
    """

    _model_class: type[T]
    _cache: ClassVar[dict[str, tuple[tuple[int, int], BaseModel]]] = {}
    _cache_lock: ClassVar[threading.Lock]
    _logger: ClassVar[logging.Logger]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._cache = {}
        cls._cache_lock = threading.Lock()
        cls._logger = logging.getLogger(cls.__module__)

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the document cache (useful in tests)."""
        with cls._cache_lock:
            cls._cache.clear()

    def load(self, path: Path) -> T:
        """Load a document from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated model instance.

        Raises:
            FileNotFoundError: If the file does not exist.
            TypeError: If the YAML root is not a mapping.
            yaml.YAMLError: If the file contains invalid YAML.
            pydantic.ValidationError: If the YAML does not match the schema.
        """
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        key = str(path.resolve())
        stat = path.stat()
        stamp = (stat.st_mtime_ns, stat.st_size)
        with self._cache_lock:
            cached = self._cache.get(key)
        if cached is not None and cached[0] == stamp:
            self._logger.debug("%s cache hit: %s", type(self).__name__, key)
            return cached[1]  # type: ignore[return-value]

        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected YAML mapping at root of {path}, "
                f"got {type(raw).__name__}"
            )

        document = self._model_class.model_validate(raw)
        with self._cache_lock:
            self._cache[key] = (stamp, document)
        self._log_loaded(document, key)
        return document

    def _log_loaded(self, document: T, key: str) -> None:
        """Hook for subclass-specific debug logging after a load."""
        self._logger.debug("Loaded %s from %s", type(self).__name__, key)
