#!/usr/bin/env python3
"""
Orange Pi 5 Plus Kernel Builder

Downloads, configures, builds and installs a Linux kernel for the
Orange Pi 5 Plus (RK3588) together with the Mali G610 GPU blobs.
"""

from typing import Any, Dict, Optional, Sequence
import argparse
import sys

from rich.console import Console

from kbuilder.builder.pipeline import build_steps, create_pipeline
from kbuilder.builder.steps import KernelBuildSteps
from kbuilder.cli import display
from kbuilder.config.loader import load_config
from kbuilder.config.schema import BuildConfig
from kbuilder.core.exceptions import ConfigurationError
from kbuilder.core.logger import BuildLog, get_logger, log_success
from kbuilder.core.runner import CommandRunner


logger = get_logger("cli.builder")


class CliParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with status 1."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


class _DisableGpuAction(argparse.Action):
    """--disable-gpu also turns off OpenCL and Vulkan."""

    def __init__(self, option_strings, dest, **kwargs):
        super().__init__(option_strings, dest, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, "install_gpu_blobs", False)
        setattr(namespace, "enable_opencl", False)
        setattr(namespace, "enable_vulkan", False)


def build_parser() -> argparse.ArgumentParser:
    """Create the builder's argument parser.

    Only options given on the command line end up in the namespace, so
    ``vars(args)`` can be layered over the defaults and the YAML file.
    """
    parser = CliParser(
        prog="orangepi-kernel-builder",
        description="Orange Pi 5 Plus Linux Kernel Builder with Mali G610 GPU support",
        argument_default=argparse.SUPPRESS,
        allow_abbrev=False,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  orangepi-kernel-builder                                # Build with all defaults (GPU enabled)
  orangepi-kernel-builder -j 8 --clean                   # Clean build with 8 jobs
  orangepi-kernel-builder -v 6.10.0 --no-install         # Build v6.10.0 without installing
  orangepi-kernel-builder --disable-gpu                  # Build without Mali GPU support
  orangepi-kernel-builder --disable-vulkan --enable-opencl  # Build with OpenCL only
  orangepi-kernel-builder --dry-run                      # Show the planned steps
        """,
    )

    parser.add_argument('-v', '--version', dest='kernel_version', metavar='VERSION',
                        help='Kernel version to build (default: 6.8.0). The mainline fallback '
                             'clone drops a trailing .0 from the tag (6.8.0 uses v6.8)')
    parser.add_argument('-j', '--jobs', type=int, metavar='N',
                        help='Number of parallel jobs (default: CPU cores)')
    parser.add_argument('-d', '--build-dir', dest='build_dir', metavar='PATH',
                        help='Build directory (default: /tmp/kernel_build)')
    parser.add_argument('-c', '--clean', dest='clean_build', action='store_true',
                        help='Clean build (remove previous artifacts)')
    parser.add_argument('--defconfig', metavar='CONFIG',
                        help='Defconfig to use (default: rockchip_linux_defconfig)')
    parser.add_argument('--cross-compile', dest='cross_compile', metavar='PREFIX',
                        help='Cross-compiler prefix (default: aarch64-linux-gnu-)')
    parser.add_argument('--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--no-install', dest='no_install', action='store_true',
                        help="Build only, don't install")
    parser.add_argument('--cleanup', dest='cleanup_after', action='store_true',
                        help='Cleanup build directory after completion')

    parser.add_argument('--enable-gpu', dest='install_gpu_blobs', action='store_const', const=True,
                        help='Install Mali G610 GPU blobs and drivers (default: on)')
    parser.add_argument('--disable-gpu', dest='install_gpu_blobs', action=_DisableGpuAction,
                        help='Skip Mali GPU blob installation (also disables OpenCL and Vulkan)')
    parser.add_argument('--enable-opencl', dest='enable_opencl', action='store_const', const=True,
                        help='Enable OpenCL support for Mali GPU (default: on)')
    parser.add_argument('--disable-opencl', dest='enable_opencl', action='store_const', const=False,
                        help='Disable OpenCL support')
    parser.add_argument('--enable-vulkan', dest='enable_vulkan', action='store_const', const=True,
                        help='Enable Vulkan support for Mali GPU (default: on)')
    parser.add_argument('--disable-vulkan', dest='enable_vulkan', action='store_const', const=False,
                        help='Disable Vulkan support')
    parser.add_argument('--verify-gpu', dest='verify_gpu', action='store_true',
                        help='Verify GPU installation after completion')

    parser.add_argument('--config', dest='config_path', metavar='PATH',
                        help='YAML file with configuration overrides (command line wins)')
    parser.add_argument('--dry-run', dest='dry_run', action='store_true',
                        help='Print the planned steps and exit without running anything')
    return parser


def _exit_status(exc: SystemExit) -> int:
    if exc.code is None:
        return 0
    return exc.code if isinstance(exc.code, int) else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    console = Console()
    display.print_banner(
        console,
        "Orange Pi 5 Plus Linux Kernel Builder",
        "Optimized for RK3588 SoC and Mali G610 GPU",
        "Supporting Ubuntu 25.04 with Hardware Acceleration",
    )

    parser = build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        return _exit_status(exc)

    options: Dict[str, Any] = vars(args)
    config_path = options.pop("config_path", None)
    dry_run = options.pop("dry_run", False)

    try:
        config = load_config(BuildConfig, yaml_path=config_path, cli_overrides=options)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e.message}")
        return 1

    if dry_run:
        display.print_build_config(console, config)
        display.print_plan(console, build_steps(config, KernelBuildSteps(CommandRunner())))
        return 0

    with BuildLog(config.log_file, verbose=config.verbose) as log:
        for arg in unknown:
            logger.warning("Ignoring unknown argument: %s", arg)

        logger.info("Starting Orange Pi 5 Plus kernel build process with Mali GPU support")
        display.print_build_config(console, config)

        runner = CommandRunner(log)
        result = create_pipeline(config, runner).run(config)
        logger.debug(result.summary())

        if result.succeeded:
            log_success(logger, "Kernel build process completed successfully!")
            if result.warnings:
                logger.warning("Completed with %d warning(s)", len(result.warnings))
            display.print_build_next_steps(console, config)
        else:
            logger.error("Kernel build process failed at step: %s", result.failed_step)
            display.print_build_troubleshooting(console, config.log_file)

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
