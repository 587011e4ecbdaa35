"""
Pipeline Base Classes

Defines the contract (Step, StepResult and PipelineResult) shared by the
builder and installer pipelines. A pipeline is plain data: an ordered list
of Step records, each naming an action and the severity of its failure.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


class Severity(str, Enum):
    """What a failed step does to the rest of the pipeline."""

    FATAL = "fatal"
    WARNING = "warning"


@dataclass
class StepResult:
    """Result of a pipeline step.

    Attributes:
        ok: True for Success, False for Failure.
        message: Failure reason (empty on success).
        step_name: Name of the step that produced the result.
        duration_seconds: Wall-clock time the step took.
    """

    ok: bool
    message: str = ""
    step_name: str = ""
    duration_seconds: float = 0.0

    @classmethod
    def success(cls, message: str = "") -> "StepResult":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, message: str) -> "StepResult":
        return cls(ok=False, message=message)

    def summary(self) -> str:
        """Human-readable one-line summary."""
        state = "ok" if self.ok else f"FAILED ({self.message})"
        return f"{self.step_name}: {state} in {self.duration_seconds:.1f}s"


StepAction = Callable[[Any], Optional[StepResult]]


@dataclass(frozen=True)
class Step:
    """One named pipeline stage.

    Attributes:
        name: Identifier shown in logs and dry-run listings.
        action: Callable taking the configuration and returning a StepResult.
            Returning None counts as success; raising a BuilderException
            or OSError counts as failure.
        severity: FATAL stops the pipeline on failure, WARNING continues.
        description: Short human-readable description.
    """

    name: str
    action: StepAction
    severity: Severity = Severity.FATAL
    description: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL


@dataclass
class PipelineResult:
    """Aggregate result of a full pipeline run.

    Attributes:
        steps: Ordered list of StepResult from each executed step.
        warnings: Messages of failed WARNING steps.
        failed_step: Name of the FATAL step that stopped the run, if any.
        total_duration: Total wall-clock time in seconds.
        status: 'pending', 'success' or 'failed'.
    """

    steps: List[StepResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    total_duration: float = 0.0
    status: str = "pending"

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def exit_code(self) -> int:
        """Process exit status for this run."""
        return 0 if self.succeeded else 1

    @property
    def executed(self) -> List[str]:
        """Names of the steps that ran, in order."""
        return [step.step_name for step in self.steps]

    def summary(self) -> str:
        """Human-readable multi-line summary of the full run."""
        lines = [f"Pipeline {self.status} in {self.total_duration:.1f}s"]
        for step in self.steps:
            lines.append(f"  {step.summary()}")
        if self.warnings:
            lines.append(f"  Warnings: {len(self.warnings)}")
        if self.failed_step:
            lines.append(f"  Stopped at: {self.failed_step}")
        return "\n".join(lines)
