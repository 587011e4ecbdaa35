"""
Installer Pipeline

Assembles the installer's ordered step list. The package manager is
detected once here, before anything runs.
"""

from typing import List, Optional
import logging

from kbuilder.config.schema import InstallerConfig
from kbuilder.core.runner import CommandRunner
from kbuilder.installer.package_manager import detect_package_manager
from kbuilder.installer.steps import InstallerSteps
from kbuilder.pipeline.base import Severity, Step
from kbuilder.pipeline.sequencer import PipelineSequencer


logger = logging.getLogger(__name__)


def build_steps(config: InstallerConfig, steps: InstallerSteps) -> List[Step]:
    """Return the installer's steps in execution order.

    --force downgrades the dependency install to a warning and skips the
    system requirements check.
    """
    dependency_severity = Severity.WARNING if config.force else Severity.FATAL

    plan = [Step("check_root", steps.check_root, Severity.FATAL, "Root privileges")]
    if not config.force:
        plan.append(Step("check_system", steps.check_system, Severity.WARNING, "System requirements"))
    plan.append(
        Step("check_package_manager", steps.check_package_manager, Severity.FATAL, "Package manager")
    )
    if steps.package_manager is not None:
        plan.append(
            Step("install_dependencies", steps.install_dependencies, dependency_severity, "Build dependencies")
        )
    plan.extend([
        Step("compile_builder", steps.compile_builder, Severity.FATAL, "Compile kernel builder"),
        Step("install_builder", steps.install_builder, Severity.FATAL, "Install kernel builder"),
    ])
    if not config.skip_shell:
        plan.append(
            Step("setup_shell_integration", steps.setup_shell_integration, Severity.WARNING, "Shell integration")
        )
    if not config.skip_desktop:
        plan.append(Step("create_desktop_entry", steps.create_desktop_entry, Severity.WARNING, "Desktop entry"))
    plan.append(Step("verify_installation", steps.verify_installation, Severity.FATAL, "Smoke test"))
    return plan


def create_pipeline(
    config: InstallerConfig,
    runner: CommandRunner,
    steps: Optional[InstallerSteps] = None,
) -> PipelineSequencer:
    """Create a sequencer for the installer, probing the package manager."""
    if steps is None:
        steps = InstallerSteps(runner, detect_package_manager())
    plan = build_steps(config, steps)
    logger.debug("Install plan: %s", ", ".join(step.name for step in plan))
    return PipelineSequencer(plan, name="installer")
