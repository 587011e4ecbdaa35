"""
Kernel Builder

Steps and pipeline assembly for the Orange Pi 5 Plus kernel build.
"""

from kbuilder.builder.steps import KernelBuildSteps
from kbuilder.builder.pipeline import build_steps, create_pipeline

__all__ = ["KernelBuildSteps", "build_steps", "create_pipeline"]
