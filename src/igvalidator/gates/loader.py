"""
Quality gate configuration loader with built-in fallback.

``load_or_default`` is the operation the evaluator uses: a missing or broken
gate file never fails the run, it logs a warning and returns the built-in
gate set.  ``load`` is strict and raises.

Usage::

    from igvalidator.gates.loader import QualityGateLoader

    config, source = QualityGateLoader().load_or_default("docs/qa/gates/quality-gates.yml")
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import yaml

from igvalidator._loader_base import BaseYamlLoader
from igvalidator.gates.defaults import BUILT_IN_SOURCE, DEFAULT_QUALITY_GATES
from igvalidator.gates.schema import QualityGateConfiguration


class QualityGateLoader(BaseYamlLoader[QualityGateConfiguration]):
    """Loads and caches :class:`QualityGateConfiguration` documents."""

    _model_class = QualityGateConfiguration

    def _log_loaded(self, document: QualityGateConfiguration, key: str) -> None:
        self._logger.debug(
            "Loaded quality gate configuration: %d gate(s) from %s",
            len(document.quality_gates),
            key,
        )

    def load_or_default(
        self, path: Optional[Union[str, Path]]
    ) -> tuple[QualityGateConfiguration, str]:
        """Load ``path``, or fall back to the built-in gates.

        Returns:
            ``(configuration, source)`` where ``source`` is the resolved path
            or ``"built-in defaults"``.
        """
        if not path:
            self._logger.warning("No quality gate configuration given; using built-in defaults")
            return DEFAULT_QUALITY_GATES, BUILT_IN_SOURCE

        gate_path = Path(path)
        try:
            document = self.load(gate_path)
        except FileNotFoundError:
            self._logger.warning(
                "Quality gate configuration not found at %s; using built-in defaults",
                gate_path,
            )
        except (yaml.YAMLError, TypeError, ValueError, OSError) as exc:
            self._logger.warning(
                "Quality gate configuration %s is invalid (%s); using built-in defaults",
                gate_path,
                exc,
            )
        else:
            return document, str(gate_path)
        return DEFAULT_QUALITY_GATES, BUILT_IN_SOURCE
