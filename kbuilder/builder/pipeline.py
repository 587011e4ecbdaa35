"""
Kernel Build Pipeline

Assembles the ordered step list for a given configuration. Optional
blocks (GPU, install, verification, cleanup) are included or left out
here, so the sequencer only ever sees the steps that should run.
"""

from typing import List, Optional
import logging

from kbuilder.builder.steps import KernelBuildSteps
from kbuilder.config.schema import BuildConfig
from kbuilder.core.runner import CommandRunner
from kbuilder.pipeline.base import Severity, Step
from kbuilder.pipeline.sequencer import PipelineSequencer


logger = logging.getLogger(__name__)

FATAL = Severity.FATAL
WARNING = Severity.WARNING


def build_steps(config: BuildConfig, steps: KernelBuildSteps) -> List[Step]:
    """Return the builder's steps in execution order.

    Args:
        config: Frozen build configuration deciding the optional blocks.
        steps: Action provider.

    Returns:
        Ordered list of Step records.
    """
    plan = [
        Step("check_host", steps.check_host, FATAL, "Host system check"),
        Step("check_root", steps.check_root, FATAL, "Root privileges"),
        Step("setup_environment", steps.setup_environment, FATAL, "Build environment"),
        Step("install_prerequisites", steps.install_prerequisites, FATAL, "Build prerequisites"),
    ]

    if config.install_gpu_blobs:
        plan.append(Step("download_gpu_blobs", steps.download_gpu_blobs, FATAL, "Mali G610 blobs"))
        plan.append(Step("install_gpu_drivers", steps.install_gpu_drivers, FATAL, "Mali G610 drivers"))
        if config.enable_opencl:
            plan.append(Step("setup_opencl", steps.setup_opencl, FATAL, "OpenCL ICD"))
        if config.enable_vulkan:
            plan.append(Step("setup_vulkan", steps.setup_vulkan, FATAL, "Vulkan ICD"))

    plan.extend([
        Step("fetch_kernel_source", steps.fetch_kernel_source, FATAL, "Kernel source"),
        Step("fetch_patches", steps.fetch_patches, WARNING, "Ubuntu Rockchip patches"),
        Step("configure_kernel", steps.configure_kernel, FATAL, "Kernel configuration"),
        Step("build_kernel", steps.build_kernel, FATAL, "Kernel build"),
    ])

    if not config.no_install:
        plan.extend([
            Step("install_modules", steps.install_modules, FATAL, "Kernel modules"),
            Step("install_dtbs", steps.install_dtbs, WARNING, "Device tree blobs"),
            Step("install_image", steps.install_image, FATAL, "Kernel image"),
            Step("install_system_map", steps.install_system_map, WARNING, "System.map"),
            Step("install_kernel_config", steps.install_kernel_config, WARNING, "Kernel config"),
            Step("update_initramfs", steps.update_initramfs, WARNING, "Initramfs"),
            Step("update_bootloader", steps.update_bootloader, WARNING, "U-Boot configuration"),
        ])
        if config.verify_gpu and config.install_gpu_blobs:
            plan.append(Step("verify_gpu", steps.verify_gpu, WARNING, "GPU verification"))

    if config.cleanup_after:
        plan.append(Step("cleanup", steps.cleanup, WARNING, "Cleanup"))

    return plan


def create_pipeline(
    config: BuildConfig,
    runner: CommandRunner,
    steps: Optional[KernelBuildSteps] = None,
) -> PipelineSequencer:
    """Create a sequencer for the kernel build."""
    plan = build_steps(config, steps or KernelBuildSteps(runner))
    logger.debug("Build plan: %s", ", ".join(step.name for step in plan))
    return PipelineSequencer(plan, name="builder")
