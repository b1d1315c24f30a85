"""
Phase validator base class.

Every phase validator exposes one public operation,
:meth:`PhaseValidator.validate`, which never raises: an exception inside the
phase becomes a ``Failed`` :class:`PhaseResult` with one Fatal
``PHASE_EXCEPTION`` issue so sibling phases still run.  The base also times
the phase, runs it inside a tracer span and emits the phase span event.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar, Union

from igvalidator.config import PipelineConfig
from igvalidator.models import (
    IssueSeverity,
    PhaseName,
    PhaseResult,
    ValidationIssue,
    ValidationStatus,
)
from igvalidator.otel import emit_phase_result, start_phase_span
from igvalidator.timeouts import ARTIFACT_WORKER_PREFIX

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

InputLocation = Union[str, Path, None]


class PhaseValidator(ABC):
    """Base for the stateless phase validators."""

    phase: PhaseName

    def validate(
        self,
        input_location: InputLocation,
        config: PipelineConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> PhaseResult:
        """Run the phase and return its result.

        Args:
            input_location: Directory this phase reads; ``None`` when unset.
            config: Run configuration.
            cancel_event: Cooperative cancellation signal.
        """
        location = Path(input_location) if input_location else None
        started = time.perf_counter()
        with start_phase_span(self.phase):
            try:
                result = self._run(location, config, cancel_event)
            except Exception as exc:
                logger.exception("%s phase raised", self.phase.value)
                result = PhaseResult.failed(self.phase, exc)
            result = result.model_copy(
                update={"duration_seconds": time.perf_counter() - started}
            )
            emit_phase_result(result)
        return result

    @abstractmethod
    def _run(
        self,
        location: Optional[Path],
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> PhaseResult:
        """Phase body; may raise."""

    # ------------------------------------------------------------------
    # Shared result builders
    # ------------------------------------------------------------------

    def skipped(self, location: Optional[Path]) -> PhaseResult:
        """Result for an optional input that is unset or absent."""
        where = str(location) if location else "not configured"
        logger.info("%s phase skipped: input %s", self.phase.value, where)
        return PhaseResult(
            phase=self.phase,
            status=ValidationStatus.SUCCESS,
            issues=[
                ValidationIssue(
                    severity=IssueSeverity.INFORMATION,
                    code="PHASE_SKIPPED",
                    description=f"{self.phase.value} phase skipped: input {where} not found",
                    location=where,
                )
            ],
        )

    def directory_not_found(self, location: Optional[Path]) -> PhaseResult:
        """Result for a required input directory that does not exist."""
        where = str(location) if location else "not configured"
        return PhaseResult.from_parts(
            self.phase,
            issues=[
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="DIRECTORY_NOT_FOUND",
                    description=f"Input directory not found: {where}",
                    location=where,
                    recommendation="Check the configured input directory path",
                )
            ],
        )


def map_bounded(
    func: Callable[[T], R],
    items: Sequence[T],
    *,
    max_workers: int,
    parallel: bool = True,
    cancel_event: Optional[threading.Event] = None,
    thread_name_prefix: str = ARTIFACT_WORKER_PREFIX,
) -> list[R]:
    """Apply ``func`` to ``items`` on a bounded worker pool.

    Results keep input order.  Once ``cancel_event`` is set no further items
    are started and the unstarted ones are left out of the result.
    """

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    if not parallel or max_workers <= 1 or len(items) <= 1:
        results: list[R] = []
        for item in items:
            if cancelled():
                logger.info("Cancelled; %d item(s) not started", len(items) - len(results))
                break
            results.append(func(item))
        return results

    skipped = object()

    def guarded(item: T) -> object:
        if cancelled():
            return skipped
        return func(item)

    collected: dict[int, R] = {}
    with ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix=thread_name_prefix
    ) as executor:
        futures = {executor.submit(guarded, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            value = future.result()
            if value is not skipped:
                collected[futures[future]] = value  # type: ignore[assignment]
    if len(collected) < len(items):
        logger.info("Cancelled; %d item(s) not started", len(items) - len(collected))
    return [collected[index] for index in sorted(collected)]
