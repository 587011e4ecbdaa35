"""
Installer Steps

Actions of the installer pipeline: privilege and host checks, host
dependencies, bundling the builder into a single executable, installing
it and wiring up the shell and desktop integration.
"""

from pathlib import Path
from typing import Optional
import shutil
import sys
import tempfile

from kbuilder.builder import board
from kbuilder.config.schema import InstallerConfig
from kbuilder.core import host
from kbuilder.core.exceptions import PreflightError, StagingError
from kbuilder.core.logger import LoggerMixin, log_success
from kbuilder.core.runner import CommandRunner
from kbuilder.core.staging import (
    append_file,
    copy_file,
    create_directory,
    file_contains,
    write_file,
)
from kbuilder.installer import package_manager as pm
from kbuilder.installer import templates
from kbuilder.pipeline.base import StepResult


PACKAGE_NAME = "kbuilder"
# Top-level __main__.py of the archive; main()'s return value is the exit status
MAIN_SCRIPT = (
    "import sys\n"
    "\n"
    "from kbuilder.cli.builder import main\n"
    "\n"
    "sys.exit(main())\n"
)
INTERPRETER = "/usr/bin/env python3"


class InstallerSteps(LoggerMixin):
    """Actions of the installer pipeline.

    Args:
        runner: CommandRunner used for every external command.
        package_manager: Detected package manager name, or None.
    """

    def __init__(self, runner: CommandRunner, package_manager: Optional[str] = None):
        self.runner = runner
        self.package_manager = package_manager

    def check_root(self, config: InstallerConfig) -> StepResult:
        if not host.is_root():
            raise PreflightError("This installer requires root privileges. Please run with sudo.")
        return StepResult.success()

    def check_system(self, config: InstallerConfig) -> StepResult:
        """Informational host checks; nothing here stops the install."""
        self.logger.info("Checking system requirements...")

        arch = host.machine()
        self.logger.info("Detected architecture: %s", arch)
        if arch not in board.TESTED_MACHINES:
            self.logger.warning("Untested architecture detected")

        if host.path_exists("/etc/os-release"):
            self.logger.info("Linux system detected")
        else:
            self.logger.warning("Operating system may not be fully supported")

        free = host.free_space_bytes("/tmp")
        if free is not None and free < board.MIN_FREE_SPACE_BYTES:
            self.logger.warning(
                "Low disk space: %d MB available, 10240 MB recommended", free // (1024 * 1024)
            )

        log_success(self.logger, "System requirements check completed")
        return StepResult.success()

    def check_package_manager(self, config: InstallerConfig) -> StepResult:
        if self.package_manager is None:
            message = "No supported package manager found (%s)" % ", ".join(pm.PACKAGE_MANAGERS)
            if not config.force:
                raise PreflightError(message)
            self.logger.warning("%s, continuing anyway", message)
            return StepResult.success()

        self.logger.info("Using package manager: %s", self.package_manager)
        return StepResult.success()

    def install_dependencies(self, config: InstallerConfig) -> StepResult:
        if self.package_manager is None:
            self.logger.info("No package manager, skipping dependency installation")
            return StepResult.success()

        self.logger.info("Installing build dependencies...")
        refresh = pm.refresh_command(self.package_manager)
        if refresh and self.runner.run(refresh, show_output=True) != 0:
            self.logger.warning("Failed to update package lists")

        self.runner.check(
            pm.install_command(self.package_manager),
            "Failed to install build dependencies",
            env=pm.install_environment(self.package_manager),
        )
        log_success(self.logger, "Build dependencies installed successfully")
        return StepResult.success()

    def compile_builder(self, config: InstallerConfig) -> StepResult:
        """Bundle the kbuilder package into a single executable zipapp."""
        self.logger.info("Compiling Orange Pi Kernel Builder...")
        package_dir = Path(config.source_dir) / PACKAGE_NAME
        output = config.executable_path

        if not (package_dir / "__init__.py").is_file():
            raise StagingError(f"Source package not found: {package_dir}", path=str(package_dir))

        with tempfile.TemporaryDirectory(prefix="kbuilder-") as staging_root:
            try:
                shutil.copytree(
                    package_dir,
                    Path(staging_root) / PACKAGE_NAME,
                    ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
                )
            except (OSError, shutil.Error) as exc:
                raise StagingError(
                    f"Cannot stage source package: {package_dir}", path=str(package_dir), cause=exc
                ) from exc
            write_file(Path(staging_root) / "__main__.py", MAIN_SCRIPT)

            self.runner.check(
                [
                    sys.executable, "-m", "zipapp", staging_root,
                    "-o", str(output),
                    "-p", INTERPRETER,
                ],
                "Compilation failed",
                show_output=config.verbose,
            )

        if not output.is_file():
            raise StagingError("Compiled executable not found", path=str(output))

        log_success(self.logger, "Compilation completed successfully")
        return StepResult.success()

    def install_builder(self, config: InstallerConfig) -> StepResult:
        self.logger.info("Installing Orange Pi Kernel Builder...")
        create_directory(config.install_dir)
        installed = copy_file(config.executable_path, config.installed_path, mode=0o755)
        if not installed.is_file():
            raise StagingError("Installation verification failed", path=str(installed))
        log_success(self.logger, "Orange Pi Kernel Builder installed successfully")
        return StepResult.success()

    def setup_shell_integration(self, config: InstallerConfig) -> StepResult:
        """Bash completion plus the alias block, added at most once."""
        self.logger.info("Setting up shell integration...")
        self._install_completion(config)

        if not config.home_dir:
            self.logger.warning("Cannot determine home directory for shell integration")
            return StepResult.success()

        rc_file = templates.shell_rc_path(config.home_dir)
        if file_contains(rc_file, templates.ALIAS_MARKER):
            self.logger.info("Shell aliases already exist")
            return StepResult.success()

        append_file(rc_file, templates.alias_block(config.install_dir))
        log_success(self.logger, "Shell aliases added to %s", rc_file)
        return StepResult.success()

    def _install_completion(self, config: InstallerConfig) -> None:
        self.logger.info("Creating bash completion...")
        target = Path(config.completion_dir) / templates.TOOL_NAME
        try:
            write_file(target, templates.completion_script(), mode=0o644)
        except StagingError as exc:
            self.logger.warning("Failed to create bash completion: %s", exc)
            return
        log_success(self.logger, "Bash completion installed")

    def create_desktop_entry(self, config: InstallerConfig) -> StepResult:
        self.logger.info("Creating desktop entry...")
        if not config.home_dir:
            self.logger.warning("Cannot determine home directory, skipping desktop entry")
            return StepResult.success()

        applications = create_directory(Path(config.home_dir) / ".local" / "share" / "applications")
        write_file(
            applications / f"{templates.TOOL_NAME}.desktop",
            templates.desktop_entry(config.install_dir),
            mode=0o755,
        )
        log_success(self.logger, "Desktop entry created")
        return StepResult.success()

    def verify_installation(self, config: InstallerConfig) -> StepResult:
        self.logger.info("Verifying installation...")
        installed = config.installed_path
        if not installed.is_file():
            return StepResult.failure("Binary not found in installation directory")

        status, _ = self.runner.capture([str(installed), "--help"])
        if status != 0:
            return StepResult.failure("Binary does not execute properly")

        log_success(self.logger, "Installation verification completed")
        return StepResult.success()
