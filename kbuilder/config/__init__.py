"""
Configuration Module

Frozen pydantic records for the builder and installer, plus the YAML
loader that layers file and CLI overrides on top of the defaults.
"""

from kbuilder.config.schema import BuildConfig, InstallerConfig, SystemPaths
from kbuilder.config.loader import load_config, save_config

__all__ = [
    "BuildConfig",
    "InstallerConfig",
    "SystemPaths",
    "load_config",
    "save_config",
]
