"""
Tests for Configuration Schema

Tests defaults, validation, the GPU cascade and derived values.
"""

import os

import pytest
from pydantic import ValidationError

from kbuilder.config.schema import BuildConfig, InstallerConfig, SystemPaths


class TestBuildConfigDefaults:
    """Test suite for BuildConfig defaults."""

    def test_defaults(self):
        """Test the stock configuration."""
        config = BuildConfig()

        assert config.kernel_version == "6.8.0"
        assert config.build_dir == "/tmp/kernel_build"
        assert config.cross_compile == "aarch64-linux-gnu-"
        assert config.arch == "arm64"
        assert config.defconfig == "rockchip_linux_defconfig"
        assert config.install_gpu_blobs is True
        assert config.enable_opencl is True
        assert config.enable_vulkan is True
        assert config.no_install is False
        assert config.cleanup_after is False
        assert config.verify_gpu is False
        assert config.log_file == "/tmp/kernel_build.log"
        assert config.paths == SystemPaths()

    def test_jobs_default_to_cpu_count(self):
        """Test unset or zero jobs resolve to the CPU count."""
        expected = os.cpu_count() or 1

        assert BuildConfig().jobs == expected
        assert BuildConfig(jobs=0).jobs == expected
        assert BuildConfig(jobs=None).jobs == expected

    def test_explicit_jobs(self):
        """Test explicit job counts are kept."""
        assert BuildConfig(jobs=8).jobs == 8

    def test_frozen(self):
        """Test the record is read-only after construction."""
        config = BuildConfig()

        with pytest.raises(ValidationError):
            config.jobs = 2


class TestBuildConfigValidation:
    """Test suite for BuildConfig validators."""

    def test_negative_jobs_rejected(self):
        """Test negative job counts are a configuration error."""
        with pytest.raises(ValidationError, match="jobs"):
            BuildConfig(jobs=-1)

    @pytest.mark.parametrize("version", ["6.8.0", "6.10", "6.9-rc3", "6"])
    def test_valid_versions(self, version):
        """Test dotted numeric versions with optional suffix."""
        assert BuildConfig(kernel_version=version).kernel_version == version

    @pytest.mark.parametrize("version", ["", "latest", "6.8.0; rm -rf /", "v6.8"])
    def test_invalid_versions(self, version):
        """Test anything else is rejected."""
        with pytest.raises(ValidationError):
            BuildConfig(kernel_version=version)

    def test_empty_arch_rejected(self):
        """Test arch and defconfig must be non-empty."""
        with pytest.raises(ValidationError):
            BuildConfig(arch="")
        with pytest.raises(ValidationError):
            BuildConfig(defconfig="")

    def test_empty_cross_compile_allowed(self):
        """Test native builds use an empty prefix."""
        assert BuildConfig(cross_compile="").cross_compile == ""


class TestGpuCascade:
    """Test suite for the GPU feature cascade."""

    def test_disabling_gpu_disables_subfeatures(self):
        """Test OpenCL and Vulkan are forced off without GPU blobs."""
        config = BuildConfig(install_gpu_blobs=False, enable_opencl=True, enable_vulkan=True)

        assert config.enable_opencl is False
        assert config.enable_vulkan is False

    def test_subfeatures_independent_when_gpu_enabled(self):
        """Test OpenCL and Vulkan toggle independently with GPU on."""
        config = BuildConfig(enable_vulkan=False)

        assert config.install_gpu_blobs is True
        assert config.enable_opencl is True
        assert config.enable_vulkan is False


class TestDerivedValues:
    """Test suite for derived properties."""

    def test_kernel_dir(self):
        """Test the kernel tree lives under the build directory."""
        assert str(BuildConfig(build_dir="/srv/build").kernel_dir) == "/srv/build/linux"

    def test_release_name(self):
        """Test the release string used for boot artifacts."""
        assert BuildConfig(kernel_version="6.10.0").release_name == "6.10.0-opi5plus-mali"

    @pytest.mark.parametrize(
        "version, tag",
        [
            ("6.8.0", "v6.8"),
            ("6.10.3", "v6.10.3"),
            ("6.10", "v6.10"),
            ("6.9-rc3", "v6.9-rc3"),
        ],
    )
    def test_mainline_tag(self, version, tag):
        """Test upstream tags drop a trailing .0 patch level."""
        assert BuildConfig(kernel_version=version).mainline_tag == tag

    def test_make_env(self):
        """Test make receives ARCH and CROSS_COMPILE."""
        config = BuildConfig(arch="arm64", cross_compile="aarch64-linux-gnu-")

        assert config.make_env == {"ARCH": "arm64", "CROSS_COMPILE": "aarch64-linux-gnu-"}


class TestInstallerConfig:
    """Test suite for InstallerConfig."""

    def test_defaults(self, monkeypatch, tmp_path):
        """Test defaults follow the working directory and HOME."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", "/home/orangepi")

        config = InstallerConfig()

        assert config.install_dir == "/usr/local/bin"
        assert config.source_dir == str(tmp_path)
        assert config.home_dir == "/home/orangepi"
        assert config.completion_dir == "/etc/bash_completion.d"
        assert config.log_file == "/tmp/orangepi-installer.log"
        assert not (config.force or config.skip_shell or config.skip_desktop or config.verbose)

    def test_home_falls_back_to_userprofile(self, monkeypatch):
        """Test USERPROFILE is used when HOME is unset."""
        monkeypatch.delenv("HOME", raising=False)
        monkeypatch.setenv("USERPROFILE", "/users/opi")

        assert InstallerConfig().home_dir == "/users/opi"

    def test_home_may_be_unset(self, monkeypatch):
        """Test a missing home directory is allowed."""
        monkeypatch.delenv("HOME", raising=False)
        monkeypatch.delenv("USERPROFILE", raising=False)

        assert InstallerConfig().home_dir is None

    def test_paths(self):
        """Test executable locations."""
        config = InstallerConfig(source_dir="/src", install_dir="/opt/bin")

        assert str(config.executable_path) == "/src/orangepi-kernel-builder"
        assert str(config.installed_path) == "/opt/bin/orangepi-kernel-builder"
