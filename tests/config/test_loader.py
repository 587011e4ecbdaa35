"""
Tests for Config Loader

Tests YAML loading, override precedence and error wrapping.
"""

import json

import pytest
import yaml

from kbuilder.config.loader import _deep_merge, _set_nested, load_config, save_config
from kbuilder.config.schema import BuildConfig, InstallerConfig
from kbuilder.core.exceptions import ConfigurationError


class TestHelpers:
    """Test suite for dict helpers."""

    def test_set_nested(self):
        """Test dot-notation keys create nested dicts."""
        d = {}

        _set_nested(d, "paths.boot_dir", "/mnt/boot")
        _set_nested(d, "jobs", 4)

        assert d == {"paths": {"boot_dir": "/mnt/boot"}, "jobs": 4}

    def test_deep_merge(self):
        """Test nested dicts merge instead of being replaced."""
        base = {"paths": {"boot_dir": "/boot", "lib_dir": "/usr/lib"}, "jobs": 2}

        _deep_merge(base, {"paths": {"boot_dir": "/mnt/boot"}, "verbose": True})

        assert base == {
            "paths": {"boot_dir": "/mnt/boot", "lib_dir": "/usr/lib"},
            "jobs": 2,
            "verbose": True,
        }


class TestLoadConfig:
    """Test suite for load_config."""

    def test_defaults_without_yaml(self):
        """Test loading with no sources yields defaults."""
        config = load_config(BuildConfig)

        assert config == BuildConfig()

    def test_yaml_then_cli_precedence(self, tmp_path):
        """Test YAML overrides defaults and CLI overrides YAML."""
        yaml_path = tmp_path / "builder.yaml"
        yaml_path.write_text(yaml.safe_dump({
            "kernel_version": "6.10.0",
            "jobs": 2,
            "paths": {"boot_dir": str(tmp_path / "boot")},
        }))

        config = load_config(BuildConfig, yaml_path=str(yaml_path), cli_overrides={"jobs": 8})

        assert config.kernel_version == "6.10.0"
        assert config.jobs == 8
        assert config.paths.boot_dir == str(tmp_path / "boot")
        assert config.paths.lib_dir == "/usr/lib"

    def test_none_cli_values_ignored(self):
        """Test None-valued CLI overrides do not replace defaults."""
        config = load_config(BuildConfig, cli_overrides={"kernel_version": None})

        assert config.kernel_version == "6.8.0"

    def test_cascade_applies_after_merge(self, tmp_path):
        """Test a YAML-enabled Vulkan is still forced off by a CLI GPU disable."""
        yaml_path = tmp_path / "builder.yaml"
        yaml_path.write_text("enable_vulkan: true\n")

        config = load_config(
            BuildConfig, yaml_path=str(yaml_path), cli_overrides={"install_gpu_blobs": False}
        )

        assert config.enable_vulkan is False

    def test_programmatic_overrides(self):
        """Test nested overrides are merged last."""
        config = load_config(
            InstallerConfig,
            cli_overrides={"install_dir": "/opt/bin"},
            overrides={"install_dir": "/srv/bin", "home_dir": None},
        )

        assert config.install_dir == "/srv/bin"
        assert config.home_dir is None

    def test_missing_file(self, tmp_path):
        """Test a missing YAML file is a configuration error."""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_config(BuildConfig, yaml_path=str(tmp_path / "absent.yaml"))

    def test_malformed_yaml(self, tmp_path):
        """Test unparsable YAML is wrapped."""
        yaml_path = tmp_path / "broken.yaml"
        yaml_path.write_text("jobs: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Cannot read config file"):
            load_config(BuildConfig, yaml_path=str(yaml_path))

    def test_non_mapping_yaml(self, tmp_path):
        """Test a YAML list is rejected."""
        yaml_path = tmp_path / "list.yaml"
        yaml_path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(BuildConfig, yaml_path=str(yaml_path))

    def test_validation_error_wrapped(self):
        """Test validation failures become ConfigurationError naming the field."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(BuildConfig, cli_overrides={"jobs": -4})

        assert "jobs" in exc_info.value.message
        assert exc_info.value.cause is not None


class TestSaveConfig:
    """Test suite for save_config."""

    def test_yaml_round_trip(self, tmp_path):
        """Test a saved YAML snapshot loads back to the same record."""
        config = BuildConfig(kernel_version="6.9.0", jobs=6, enable_vulkan=False)
        out = tmp_path / "snapshots" / "build.yaml"

        save_config(config, str(out))

        assert load_config(BuildConfig, yaml_path=str(out)) == config

    def test_json_snapshot(self, tmp_path):
        """Test non-YAML suffixes are written as JSON."""
        out = tmp_path / "build.json"

        save_config(BuildConfig(jobs=3), str(out))

        data = json.loads(out.read_text())
        assert data["jobs"] == 3
        assert data["paths"]["boot_dir"] == "/boot"
