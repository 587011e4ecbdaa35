"""
Pipeline Sequencer

Runs an ordered list of steps against a read-only configuration, applying
each step's severity: a fatal failure stops the run, a warning failure is
logged and the run continues.
"""

from typing import Any, List, Sequence
import time

from kbuilder.core.exceptions import BuilderException
from kbuilder.core.logger import PipelineLogger
from kbuilder.pipeline.base import PipelineResult, Step, StepResult


class PipelineSequencer:
    """Single driver loop over a list of Step records.

    Nothing is retried and nothing is rolled back: partially created
    directories or cloned trees are left for the operator to inspect.

    Args:
        steps: Steps in execution order.
        name: Pipeline name used in log lines.
    """

    def __init__(self, steps: Sequence[Step], name: str = "pipeline"):
        self._steps: List[Step] = list(steps)
        self.name = name
        self._log = PipelineLogger(f"pipeline.{name}")

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    def _execute(self, step: Step, config: Any) -> StepResult:
        """Run one action, turning raised errors into a Failure."""
        try:
            result = step.action(config)
        except (BuilderException, OSError) as exc:
            result = StepResult.failure(str(exc))
        if result is None:
            result = StepResult.success()
        return result

    def run(self, config: Any) -> PipelineResult:
        """Run all steps in order.

        Args:
            config: Frozen configuration handed to every action.

        Returns:
            PipelineResult with per-step results, warnings and status.
        """
        pipeline_result = PipelineResult()
        start_time = time.time()

        self._log.set_context(pipeline=self.name)
        self._log.debug(f"PIPELINE | Starting {len(self._steps)} steps")

        for step in self._steps:
            step_start = time.time()
            self._log.step_start(step.name, step.description)

            result = self._execute(step, config)
            result.step_name = step.name
            result.duration_seconds = time.time() - step_start
            pipeline_result.steps.append(result)

            if result.ok:
                self._log.step_complete(step.name, result.duration_seconds)
                continue

            if step.is_fatal:
                self._log.step_failed(step.name, result.message)
                pipeline_result.failed_step = step.name
                pipeline_result.status = "failed"
                break

            self._log.step_warning(step.name, result.message)
            pipeline_result.warnings.append(f"{step.name}: {result.message}")
        else:
            pipeline_result.status = "success"

        pipeline_result.total_duration = time.time() - start_time
        self._log.debug(f"PIPELINE | {pipeline_result.summary()}")
        self._log.clear_context()
        return pipeline_result
