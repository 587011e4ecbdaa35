"""
Installer

Bundles the kernel builder into a single executable and installs it
together with shell aliases, bash completion and a desktop entry.
"""

from kbuilder.installer.steps import InstallerSteps
from kbuilder.installer.pipeline import build_steps, create_pipeline

__all__ = ["InstallerSteps", "build_steps", "create_pipeline"]
