"""
Kernel Build Steps

Each public method is one pipeline action: it takes the frozen BuildConfig,
raises a BuilderException subclass on a failure the step cannot absorb, and
logs a warning for sub-actions whose failure is tolerated.
"""

from pathlib import Path
from typing import List, Optional
import json

from kbuilder.builder import board
from kbuilder.config.schema import BuildConfig
from kbuilder.core import host
from kbuilder.core.exceptions import PreflightError, StagingError
from kbuilder.core.logger import LoggerMixin, log_success
from kbuilder.core.runner import CommandRunner
from kbuilder.core.staging import (
    append_file,
    copy_file,
    create_directory,
    create_symlink,
    remove_tree,
    write_file,
)
from kbuilder.pipeline.base import StepResult


class KernelBuildSteps(LoggerMixin):
    """Actions of the kernel build pipeline.

    Args:
        runner: CommandRunner used for every external command.
    """

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    # =========================================================================
    # Preflight
    # =========================================================================

    def check_host(self, config: BuildConfig) -> StepResult:
        """Require a Debian-family host; warn on untested arch or low disk."""
        if not host.path_exists(board.DEBIAN_MARKER):
            raise PreflightError("This tool is designed for Ubuntu/Debian systems")

        arch = host.machine()
        if arch not in board.TESTED_MACHINES:
            self.logger.warning("Untested architecture detected: %s", arch)

        free = host.free_space_bytes("/tmp")
        if free is not None and free < board.MIN_FREE_SPACE_BYTES:
            self.logger.warning("Less than 10GB free space available in /tmp")

        return StepResult.success()

    def check_root(self, config: BuildConfig) -> StepResult:
        if not host.is_root():
            raise PreflightError("This tool requires root privileges. Please run with sudo.")
        return StepResult.success()

    # =========================================================================
    # Environment and prerequisites
    # =========================================================================

    def setup_environment(self, config: BuildConfig) -> StepResult:
        self.logger.info("Setting up build environment...")
        create_directory(config.build_dir)
        self.runner.check(["apt", "update"], "Failed to update package lists")
        log_success(self.logger, "Build environment setup completed")
        return StepResult.success()

    def install_prerequisites(self, config: BuildConfig) -> StepResult:
        """Install the fixed package set, then best-effort kernel build-deps."""
        self.logger.info("Installing build prerequisites...")
        self.runner.check(
            ["apt", "install", "-y", *board.PREREQUISITE_PACKAGES],
            "Failed to install prerequisites",
            env={"DEBIAN_FRONTEND": "noninteractive"},
        )

        build_dep = [
            "apt", "build-dep", "-y",
            "linux", f"linux-image-unsigned-{host.running_release()}",
        ]
        if self.runner.run(build_dep, show_output=True) != 0:
            self.logger.warning("Failed to install some kernel build dependencies")

        log_success(self.logger, "Prerequisites installed successfully")
        return StepResult.success()

    # =========================================================================
    # Mali G610 GPU
    # =========================================================================

    def download_gpu_blobs(self, config: BuildConfig) -> StepResult:
        """Fetch firmware and userspace drivers into the stage directory."""
        self.logger.info("Downloading Mali G610 GPU blobs and libraries...")
        stage = create_directory(config.paths.stage_dir)

        self.logger.info("Downloading Mali CSF firmware...")
        self.runner.check(
            ["wget", "-O", board.MALI_FIRMWARE, board.MALI_FIRMWARE_URL],
            "Failed to download Mali firmware",
            cwd=stage,
        )

        self.logger.info("Downloading Mali userspace driver...")
        self.runner.check(
            ["wget", "-O", board.MALI_DRIVER, board.MALI_DRIVER_URL],
            "Failed to download Mali userspace driver",
            cwd=stage,
        )

        if config.enable_vulkan:
            self.logger.info("Downloading Mali Vulkan driver...")
            status = self.runner.run(
                ["wget", "-O", board.MALI_VULKAN_DRIVER, board.MALI_VULKAN_DRIVER_URL],
                show_output=True,
                cwd=stage,
            )
            if status != 0:
                self.logger.warning("Failed to download Vulkan driver, continuing without Vulkan")

        status = self.runner.run(
            [
                "git", "clone", "--depth", "1", "--branch", board.LIBMALI_BRANCH,
                board.LIBMALI_REPO, board.LIBMALI_DIRNAME,
            ],
            show_output=True,
            cwd=stage,
        )
        if status != 0:
            self.logger.warning("Failed to clone libmali repository")

        log_success(self.logger, "Mali GPU blobs downloaded successfully")
        return StepResult.success()

    def install_gpu_drivers(self, config: BuildConfig) -> StepResult:
        """Copy staged blobs into place and publish the API symlinks."""
        self.logger.info("Installing Mali GPU drivers...")
        stage = Path(config.paths.stage_dir)
        lib_dir = Path(config.paths.lib_dir)
        driver = lib_dir / board.MALI_DRIVER

        create_directory(config.paths.firmware_dir)
        copy_file(stage / board.MALI_FIRMWARE, Path(config.paths.firmware_dir) / board.MALI_FIRMWARE)
        copy_file(stage / board.MALI_DRIVER, driver)

        for name in board.MALI_API_LINKS:
            self._link(driver, lib_dir / name)

        staged_vulkan = stage / board.MALI_VULKAN_DRIVER
        if config.enable_vulkan and staged_vulkan.exists():
            vulkan_driver = lib_dir / board.MALI_VULKAN_DRIVER
            try:
                copy_file(staged_vulkan, vulkan_driver)
            except StagingError as exc:
                self.logger.warning("Failed to install Vulkan driver: %s", exc)
            else:
                self._link(vulkan_driver, lib_dir / board.VULKAN_API_LINK)

        if self.runner.run(["ldconfig"], show_output=True) != 0:
            self.logger.warning("Failed to update library cache")

        log_success(self.logger, "Mali drivers installed successfully")
        return StepResult.success()

    def _link(self, target: Path, link: Path) -> bool:
        try:
            create_symlink(target, link)
        except StagingError as exc:
            self.logger.warning("Failed to create symbolic link: %s", exc)
            return False
        return True

    def setup_opencl(self, config: BuildConfig) -> StepResult:
        self.logger.info("Setting up OpenCL support for Mali G610...")
        vendors = create_directory(config.paths.opencl_vendors_dir)
        driver = Path(config.paths.lib_dir) / board.MALI_DRIVER
        write_file(vendors / board.OPENCL_ICD_NAME, f"{driver}\n", mode=0o644)
        log_success(self.logger, "OpenCL support configured successfully")
        return StepResult.success()

    def setup_vulkan(self, config: BuildConfig) -> StepResult:
        self.logger.info("Setting up Vulkan support for Mali G610...")
        icd_dir = create_directory(config.paths.vulkan_icd_dir)
        write_file(icd_dir / board.VULKAN_ICD_NAME, vulkan_icd_document(config), mode=0o644)
        log_success(self.logger, "Vulkan support configured successfully")
        return StepResult.success()

    # =========================================================================
    # Kernel source
    # =========================================================================

    def fetch_kernel_source(self, config: BuildConfig) -> StepResult:
        """Clone the vendor fork, falling back once to mainline."""
        self.logger.info("Downloading kernel source...")
        primary = [
            "git", "clone", "--depth", "1", "--branch", board.VENDOR_KERNEL_BRANCH,
            board.VENDOR_KERNEL_REPO, board.KERNEL_SOURCE_DIRNAME,
        ]
        if self.runner.run(primary, show_output=True, cwd=config.build_dir) != 0:
            self.logger.warning("Failed to clone Ubuntu Rockchip kernel, trying mainline...")
            fallback = [
                "git", "clone", "--depth", "1", "--branch", config.mainline_tag,
                board.MAINLINE_KERNEL_REPO, board.KERNEL_SOURCE_DIRNAME,
            ]
            self.runner.check(
                fallback, "Failed to download kernel source", show_output=True, cwd=config.build_dir
            )

        log_success(self.logger, "Kernel source downloaded successfully")
        return StepResult.success()

    def fetch_patches(self, config: BuildConfig) -> StepResult:
        self.logger.info("Downloading Ubuntu Rockchip patches...")
        self.runner.check(
            ["git", "clone", "--depth", "1", board.PATCHES_REPO, board.PATCHES_DIRNAME],
            "Failed to download Ubuntu Rockchip patches",
            cwd=config.build_dir,
        )
        log_success(self.logger, "Ubuntu Rockchip patches downloaded")
        return StepResult.success()

    # =========================================================================
    # Configure, build, install
    # =========================================================================

    def configure_kernel(self, config: BuildConfig) -> StepResult:
        self.logger.info("Configuring kernel with Mali GPU support...")
        kernel_dir = config.kernel_dir
        env = config.make_env

        if config.clean_build:
            self.logger.info("Cleaning previous build artifacts...")
            if self.runner.run(["make", "mrproper"], show_output=True, cwd=kernel_dir, env=env) != 0:
                self.logger.warning("Failed to clean build artifacts")

        if self.runner.run(["make", config.defconfig], show_output=True, cwd=kernel_dir, env=env) != 0:
            self.logger.warning("Failed to use specific defconfig, trying generic...")
            self.runner.check(
                ["make", board.GENERIC_DEFCONFIG],
                "Failed to configure kernel",
                cwd=kernel_dir,
                env=env,
            )

        self.logger.info("Enabling RK3588, Mali GPU, and hardware acceleration configurations...")
        append_file(kernel_dir / ".config", "".join(f"{line}\n" for line in board.kernel_config_lines()))

        if self.runner.run(["make", "olddefconfig"], show_output=True, cwd=kernel_dir, env=env) != 0:
            self.logger.warning("Failed to resolve config dependencies")

        log_success(self.logger, "Kernel configured successfully with Mali GPU support")
        return StepResult.success()

    def build_kernel(self, config: BuildConfig) -> StepResult:
        self.logger.info("Building kernel with Mali GPU support (this may take a while)...")
        jobs = f"-j{config.jobs}"
        for target, label in (
            ("Image", "kernel image"),
            ("dtbs", "device tree blobs"),
            ("modules", "kernel modules"),
        ):
            self.runner.check(
                ["make", jobs, target],
                f"Failed to build {label}",
                cwd=config.kernel_dir,
                env=config.make_env,
            )
        log_success(self.logger, "Kernel built successfully with Mali GPU support")
        return StepResult.success()

    def install_modules(self, config: BuildConfig) -> StepResult:
        self.logger.info("Installing kernel and Mali GPU modules...")
        self.runner.check(
            ["make", "modules_install"],
            "Failed to install kernel modules",
            cwd=config.kernel_dir,
            env=config.make_env,
        )
        return StepResult.success()

    def install_dtbs(self, config: BuildConfig) -> StepResult:
        self.runner.check(
            ["make", "dtbs_install"],
            "Failed to install device tree blobs",
            cwd=config.kernel_dir,
            env=config.make_env,
        )
        return StepResult.success()

    def install_image(self, config: BuildConfig) -> StepResult:
        image = config.kernel_dir / "arch" / config.arch / "boot" / "Image"
        boot_dir = create_directory(config.paths.boot_dir)
        copy_file(image, boot_dir / f"vmlinuz-{config.release_name}")
        return StepResult.success()

    def install_system_map(self, config: BuildConfig) -> StepResult:
        copy_file(
            config.kernel_dir / "System.map",
            Path(config.paths.boot_dir) / f"System.map-{config.release_name}",
            mode=0o644,
        )
        return StepResult.success()

    def install_kernel_config(self, config: BuildConfig) -> StepResult:
        copy_file(
            config.kernel_dir / ".config",
            Path(config.paths.boot_dir) / f"config-{config.release_name}",
            mode=0o644,
        )
        return StepResult.success()

    def update_initramfs(self, config: BuildConfig) -> StepResult:
        self.runner.check(
            ["update-initramfs", "-c", "-k", config.release_name],
            "Failed to update initramfs",
        )
        return StepResult.success()

    def update_bootloader(self, config: BuildConfig) -> StepResult:
        self.runner.check(["u-boot-update"], "Failed to update u-boot configuration")
        log_success(self.logger, "Kernel installed successfully with Mali GPU support")
        return StepResult.success()

    # =========================================================================
    # Verification and cleanup
    # =========================================================================

    def verify_gpu(self, config: BuildConfig) -> StepResult:
        """Check installed blobs and ask clinfo/vulkaninfo for a Mali device."""
        self.logger.info("Verifying Mali GPU installation...")

        firmware = Path(config.paths.firmware_dir) / board.MALI_FIRMWARE
        if not firmware.exists():
            return StepResult.failure("Mali firmware not found")
        driver = Path(config.paths.lib_dir) / board.MALI_DRIVER
        if not driver.exists():
            return StepResult.failure("Mali driver library not found")

        checks = (
            (Path(config.paths.opencl_vendors_dir) / board.OPENCL_ICD_NAME, "clinfo", "OpenCL"),
            (Path(config.paths.vulkan_icd_dir) / board.VULKAN_ICD_NAME, "vulkaninfo", "Vulkan"),
        )
        for icd, tool, api in checks:
            if not icd.exists():
                continue
            self.logger.info("Testing %s functionality...", api)
            if self._reports_mali([tool]):
                log_success(self.logger, "%s Mali support detected", api)
            else:
                self.logger.warning("%s Mali support not detected (may need reboot)", api)

        log_success(self.logger, "GPU installation verification completed")
        return StepResult.success()

    def _reports_mali(self, argv: List[str]) -> bool:
        status, output = self.runner.capture(argv)
        return status == 0 and "mali" in output.lower()

    def cleanup(self, config: BuildConfig) -> StepResult:
        self.logger.info("Cleaning up build artifacts...")
        failed: Optional[str] = None
        for path in (config.build_dir, config.paths.stage_dir):
            try:
                remove_tree(path)
            except StagingError as exc:
                self.logger.warning("Failed to cleanup %s", path)
                failed = str(exc)
        if failed:
            return StepResult.failure(failed)
        log_success(self.logger, "Cleanup completed")
        return StepResult.success()


def vulkan_icd_document(config: BuildConfig) -> str:
    """Render mali.json, preferring the Vulkan-capable driver when installed."""
    lib_dir = Path(config.paths.lib_dir)
    vulkan_driver = lib_dir / board.MALI_VULKAN_DRIVER
    library = vulkan_driver if vulkan_driver.exists() else lib_dir / board.MALI_DRIVER
    document = {
        "file_format_version": board.VULKAN_ICD_FORMAT_VERSION,
        "ICD": {
            "library_path": str(library),
            "api_version": board.VULKAN_API_VERSION,
        },
    }
    return json.dumps(document, indent=4) + "\n"

