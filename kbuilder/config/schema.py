"""
Pydantic Configuration Schema

Defines the configuration records for the kernel builder and the installer.
All fields default to the values used on a stock Orange Pi 5 Plus image;
records are frozen once constructed.
"""

from pathlib import Path
from typing import Any, Dict, Optional
import os
import re

from pydantic import BaseModel, Field, field_validator, model_validator


RELEASE_SUFFIX = "opi5plus-mali"

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+)*(-[0-9A-Za-z.]+)?$")


def detect_cpu_count() -> int:
    """Number of online CPU cores (at least 1)."""
    return os.cpu_count() or 1


def _default_home() -> Optional[str]:
    return os.environ.get("HOME") or os.environ.get("USERPROFILE")


class SystemPaths(BaseModel):
    """Fixed OS locations touched by the GPU and install steps."""

    model_config = {"frozen": True}

    stage_dir: str = "/tmp/mali_install"
    firmware_dir: str = "/lib/firmware"
    lib_dir: str = "/usr/lib"
    opencl_vendors_dir: str = "/etc/OpenCL/vendors"
    vulkan_icd_dir: str = "/usr/share/vulkan/icd.d"
    boot_dir: str = "/boot"


class BuildConfig(BaseModel):
    """Kernel build configuration."""

    model_config = {"frozen": True}

    kernel_version: str = "6.8.0"
    build_dir: str = "/tmp/kernel_build"
    cross_compile: str = "aarch64-linux-gnu-"
    arch: str = Field(default="arm64", min_length=1)
    defconfig: str = Field(default="rockchip_linux_defconfig", min_length=1)
    jobs: int = Field(default=0, validate_default=True)

    verbose: bool = False
    clean_build: bool = False
    install_gpu_blobs: bool = True
    enable_opencl: bool = True
    enable_vulkan: bool = True
    no_install: bool = False
    cleanup_after: bool = False
    verify_gpu: bool = False

    log_file: str = "/tmp/kernel_build.log"
    paths: SystemPaths = Field(default_factory=SystemPaths)

    @field_validator("kernel_version")
    @classmethod
    def version_format(cls, v: str) -> str:
        if not _VERSION_PATTERN.match(v):
            raise ValueError(f"Invalid kernel version '{v}' (expected e.g. 6.8.0)")
        return v

    @field_validator("jobs", mode="before")
    @classmethod
    def resolve_jobs(cls, v: Any) -> int:
        if v is None:
            return detect_cpu_count()
        v = int(v)
        if v < 0:
            raise ValueError(f"jobs must be a positive integer, got {v}")
        return v or detect_cpu_count()

    @model_validator(mode="before")
    @classmethod
    def gpu_cascade(cls, data: Any) -> Any:
        # OpenCL and Vulkan are sub-features of the GPU blob install
        if isinstance(data, dict) and data.get("install_gpu_blobs") is False:
            data = dict(data)
            data["enable_opencl"] = False
            data["enable_vulkan"] = False
        return data

    @property
    def kernel_dir(self) -> Path:
        return Path(self.build_dir) / "linux"

    @property
    def release_name(self) -> str:
        """Kernel release string used for /boot artifacts and initramfs."""
        return f"{self.kernel_version}-{RELEASE_SUFFIX}"

    @property
    def mainline_tag(self) -> str:
        """Upstream tag for the fallback clone (6.8.0 -> v6.8)."""
        base, sep, suffix = self.kernel_version.partition("-")
        parts = base.split(".")
        if len(parts) == 3 and parts[2] == "0":
            parts = parts[:2]
        return "v" + ".".join(parts) + sep + suffix

    @property
    def make_env(self) -> Dict[str, str]:
        """Environment for every kernel make invocation."""
        return {"ARCH": self.arch, "CROSS_COMPILE": self.cross_compile}


class InstallerConfig(BaseModel):
    """Installer configuration."""

    model_config = {"frozen": True}

    install_dir: str = "/usr/local/bin"
    source_dir: str = Field(default_factory=os.getcwd)
    skip_desktop: bool = False
    skip_shell: bool = False
    verbose: bool = False
    force: bool = False

    log_file: str = "/tmp/orangepi-installer.log"
    completion_dir: str = "/etc/bash_completion.d"
    home_dir: Optional[str] = Field(default_factory=_default_home)

    @property
    def executable_path(self) -> Path:
        """Where the compiled builder lands inside the source tree."""
        return Path(self.source_dir) / "orangepi-kernel-builder"

    @property
    def installed_path(self) -> Path:
        return Path(self.install_dir) / "orangepi-kernel-builder"
