"""
Pipeline Module

Provides the step contract and the sequencer that enforces the
fatal / warning error policy.
"""

from kbuilder.pipeline.base import PipelineResult, Severity, Step, StepResult
from kbuilder.pipeline.sequencer import PipelineSequencer

__all__ = [
    "PipelineResult",
    "PipelineSequencer",
    "Severity",
    "Step",
    "StepResult",
]
