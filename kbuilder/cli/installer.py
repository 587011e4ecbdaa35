#!/usr/bin/env python3
"""
Orange Pi Kernel Builder Installer

Installs host dependencies, bundles the kernel builder into a single
executable and installs it system-wide.
"""

from typing import Any, Dict, Optional, Sequence
import argparse
import sys

from rich.console import Console

from kbuilder.cli import display
from kbuilder.cli.builder import CliParser, _exit_status
from kbuilder.config.loader import load_config
from kbuilder.config.schema import InstallerConfig
from kbuilder.core.exceptions import ConfigurationError
from kbuilder.core.logger import BuildLog, get_logger, log_success
from kbuilder.core.runner import CommandRunner
from kbuilder.installer.pipeline import create_pipeline


logger = get_logger("cli.installer")


def build_parser() -> argparse.ArgumentParser:
    """Create the installer's argument parser."""
    parser = CliParser(
        prog="orangepi-installer",
        description="Orange Pi 5 Plus Kernel Builder Installer",
        argument_default=argparse.SUPPRESS,
        allow_abbrev=False,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
This installer will:
  1. Check system requirements and dependencies
  2. Install build tools using the system package manager
  3. Compile the Orange Pi Kernel Builder from source
  4. Install the tool system-wide
  5. Setup shell integration and desktop entry
  6. Verify the installation

Supported systems:
  Linux (Ubuntu, Debian, CentOS, RHEL, Fedora, Arch, openSUSE)
  Package managers: apt, yum, dnf, pacman, zypper
  Architectures: x86_64, aarch64 (ARM64)
        """,
    )
    parser.add_argument('--install-dir', dest='install_dir', metavar='PATH',
                        help='Installation directory (default: /usr/local/bin)')
    parser.add_argument('--source-dir', dest='source_dir', metavar='PATH',
                        help='Source directory (default: current directory)')
    parser.add_argument('--skip-desktop', dest='skip_desktop', action='store_true',
                        help='Skip desktop entry creation')
    parser.add_argument('--skip-shell', dest='skip_shell', action='store_true',
                        help='Skip shell integration setup')
    parser.add_argument('--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--force', action='store_true',
                        help='Force installation even if checks fail')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    console = Console()
    display.print_banner(
        console,
        "Orange Pi 5 Plus Kernel Builder Installer",
        "Cross-platform installer for RK3588 with Mali GPU support",
    )

    parser = build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        return _exit_status(exc)

    if unknown:
        print(f"Unknown option: {unknown[0]}")
        print("Use --help for usage information")
        return 1

    options: Dict[str, Any] = vars(args)
    try:
        config = load_config(InstallerConfig, cli_overrides=options)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e.message}")
        return 1

    with BuildLog(config.log_file, verbose=config.verbose) as log:
        runner = CommandRunner(log)
        result = create_pipeline(config, runner).run(config)
        logger.debug(result.summary())

        if result.succeeded:
            log_success(logger, "Orange Pi Kernel Builder installed successfully!")
            display.print_install_summary(console, config)
        else:
            logger.error("Installation failed!")
            display.print_install_troubleshooting(console, config.log_file)

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
