"""
Pipeline orchestration.

Runs the five phase validators, joins on all of them, evaluates the quality
gates against the combined result, derives the overall status,
recommendations and metrics, and persists the report.

State machine::

    NotStarted -> RunningProfilePhase -> RunningOtherPhases -> EvaluatingGates
      -> DerivingSummary -> Persisted -> Completed | Failed

Any exception raised while orchestrating is caught here: the result is
stamped ``Failed``, a Critical "Pipeline Execution Failed" recommendation is
appended and the partial report is still written.  Only a failure to write
the report itself (:class:`~igvalidator.exceptions.ReportPersistenceError`)
escapes to the caller.

Usage::

    orchestrator = PipelineOrchestrator.default(config)
    result = orchestrator.run(config)
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from igvalidator.config import PipelineConfig
from igvalidator.engine import ConformanceEngine, JsonSchemaConformanceEngine
from igvalidator.gates.evaluator import QualityGateEvaluator
from igvalidator.models import (
    PhaseResult,
    PipelineResult,
    PipelineState,
    ValidationStatus,
)
from igvalidator.otel import add_span_event, bind_current_context, start_pipeline_span
from igvalidator.pipeline.metrics import calculate_metrics
from igvalidator.pipeline.recommendations import pipeline_failure_recommendation
from igvalidator.pipeline.report import ReportWriter
from igvalidator.pipeline.rescore import rescore_report
from igvalidator.pipeline.summary import apply_summary
from igvalidator.timeouts import PHASE_WORKER_PREFIX
from igvalidator.validators import (
    ContentValidator,
    PhaseValidator,
    ProfileValidator,
    PublicationValidator,
    ResourceValidator,
    SecurityValidator,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipelineOrchestrator:
    """Sequences phase validators, gate evaluation and report persistence.

    All collaborators are injected; :meth:`default` builds the standard
    wiring from a :class:`PipelineConfig`.
    """

    def __init__(
        self,
        profile_validator: PhaseValidator,
        resource_validator: PhaseValidator,
        content_validator: PhaseValidator,
        security_validator: PhaseValidator,
        publication_validator: PhaseValidator,
        gate_evaluator: QualityGateEvaluator,
        report_writer: ReportWriter,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._profile_validator = profile_validator
        self._resource_validator = resource_validator
        self._content_validator = content_validator
        self._security_validator = security_validator
        self._publication_validator = publication_validator
        self._gate_evaluator = gate_evaluator
        self._report_writer = report_writer
        self._clock = clock

    @classmethod
    def default(
        cls, config: PipelineConfig, engine: Optional[ConformanceEngine] = None
    ) -> PipelineOrchestrator:
        engine = engine or JsonSchemaConformanceEngine(fhir_version=config.fhir_version)
        artifact_options = dict(
            max_workers=config.max_parallel_tasks,
            timeout_seconds=config.validation_timeout_seconds,
            parallel=config.enable_parallel_validation,
        )
        return cls(
            profile_validator=ProfileValidator(engine, **artifact_options),
            resource_validator=ResourceValidator(engine, **artifact_options),
            content_validator=ContentValidator(),
            security_validator=SecurityValidator(),
            publication_validator=PublicationValidator(),
            gate_evaluator=QualityGateEvaluator(),
            report_writer=ReportWriter(),
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(
        self,
        config: PipelineConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> PipelineResult:
        """Run every phase, evaluate gates and persist the report.

        Raises:
            ReportPersistenceError: If the report cannot be written.
        """
        result = PipelineResult(execution_start_time=self._clock())
        started = time.perf_counter()
        logger.info("Starting validation pipeline (parallel=%s)", config.enable_parallel_validation)

        with start_pipeline_span():
            try:
                self._run_phases(result, config, cancel_event)

                self._transition(result, PipelineState.EVALUATING_GATES)
                result.quality_gate_compliance = self._gate_evaluator.evaluate(
                    result, config.quality_gate_config_path
                )

                self._transition(result, PipelineState.DERIVING_SUMMARY)
                apply_summary(result, config.include_recommendations)
                terminal = PipelineState.COMPLETED
            except Exception as exc:
                logger.exception("Critical error during validation pipeline execution")
                result.overall_status = ValidationStatus.FAILED
                result.recommendations.append(pipeline_failure_recommendation(exc))
                terminal = PipelineState.FAILED

            result.mark_finished(self._clock())
            result.metrics = calculate_metrics(result, time.perf_counter() - started)

            self._transition(result, PipelineState.PERSISTED)
            report_path = self._report_writer.write(
                result.model_copy(update={"state": terminal}), config.output_directory
            )
            result.report_path = str(report_path)
            self._transition(result, terminal)

        logger.info(
            "Validation pipeline finished in %.2fs with overall status %s",
            result.metrics.total_duration_seconds,
            result.overall_status.value,
        )
        return result

    def rescore(
        self,
        report_path: Union[str, Path],
        gate_config_source: Optional[Union[str, Path]],
        *,
        include_recommendations: bool = True,
        output_directory: Optional[Union[str, Path]] = None,
    ) -> PipelineResult:
        """Re-evaluate gates for a persisted report without re-running phases."""
        return rescore_report(
            report_path,
            gate_config_source,
            evaluator=self._gate_evaluator,
            include_recommendations=include_recommendations,
            output_directory=output_directory,
            report_writer=self._report_writer,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _phase_inputs(
        self, config: PipelineConfig
    ) -> list[tuple[PhaseValidator, Optional[str]]]:
        return [
            (self._resource_validator, config.example_resource_directory),
            (self._content_validator, config.implementation_guide_directory),
            (self._security_validator, config.implementation_guide_directory),
            (self._publication_validator, config.package_directory),
        ]

    def _run_phases(
        self,
        result: PipelineResult,
        config: PipelineConfig,
        cancel_event: Optional[threading.Event],
    ) -> None:
        if not config.enable_parallel_validation:
            self._transition(result, PipelineState.RUNNING_PROFILE_PHASE)
            result.set_phase(
                self._profile_validator.validate(config.profile_directory, config, cancel_event)
            )
            self._transition(result, PipelineState.RUNNING_OTHER_PHASES)
            for validator, location in self._phase_inputs(config):
                result.set_phase(validator.validate(location, config, cancel_event))
            return

        # Fan out all phases, then join before gate evaluation.
        with ThreadPoolExecutor(
            max_workers=5, thread_name_prefix=PHASE_WORKER_PREFIX
        ) as executor:
            self._transition(result, PipelineState.RUNNING_PROFILE_PHASE)
            futures: list[Future[PhaseResult]] = [
                executor.submit(
                    bind_current_context(self._profile_validator.validate),
                    config.profile_directory,
                    config,
                    cancel_event,
                )
            ]
            self._transition(result, PipelineState.RUNNING_OTHER_PHASES)
            for validator, location in self._phase_inputs(config):
                futures.append(
                    executor.submit(
                        bind_current_context(validator.validate), location, config, cancel_event
                    )
                )
            phase_results = [future.result() for future in futures]

        for phase_result in phase_results:
            result.set_phase(phase_result)

    @staticmethod
    def _transition(result: PipelineResult, state: PipelineState) -> None:
        logger.debug("Pipeline state %s -> %s", result.state.value, state.value)
        result.state = state
        add_span_event("igvalidator.pipeline.state", {"pipeline.state": state.value})
