"""
Config Loader

Builds a frozen configuration record from three layers: model defaults,
an optional YAML file, then command-line values (highest precedence).
"""

from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
import json
import logging

import yaml
from pydantic import BaseModel, ValidationError

from kbuilder.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def _set_nested(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    """Assign ``value`` at a dotted path such as ``paths.boot_dir``."""
    *parents, leaf = dotted_key.split(".")
    node = target
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value


def _deep_merge(target: Dict[str, Any], layer: Dict[str, Any]) -> None:
    """
    Merge ``layer`` into ``target`` in place.

    Nested mappings are merged key by key; any other value replaces what
    was there.
    """
    for key, value in layer.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _deep_merge(existing, value)
        else:
            target[key] = value


def _read_yaml(yaml_path: str) -> Dict[str, Any]:
    source = Path(yaml_path)
    if not source.is_file():
        raise ConfigurationError(f"Config file not found: {yaml_path}")

    try:
        with open(source, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config file: {yaml_path}", cause=exc) from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Config file must contain a mapping: {yaml_path}",
            details={"type": type(raw).__name__},
        )

    logger.info("Read configuration overrides from %s", yaml_path)
    return raw


def _describe(exc: ValidationError, model: Type[BaseModel]) -> str:
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"]) or model.__name__
        problems.append(f"{where}: {err['msg']}")
    return f"Invalid {model.__name__}: " + "; ".join(problems)


def load_config(
    model: Type[ConfigT],
    yaml_path: Optional[str] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ConfigT:
    """
    Construct a configuration record.

    Args:
        model: BuildConfig or InstallerConfig
        yaml_path: Optional YAML file whose keys override the defaults
        cli_overrides: Values from the command line, keyed by field name or
            dotted path (``{"paths.boot_dir": "/mnt/boot"}``). None values
            are ignored.
        overrides: Nested mapping merged last, for callers and tests

    Returns:
        The validated, frozen record

    Raises:
        ConfigurationError: If the file cannot be read or a value is invalid
    """
    values: Dict[str, Any] = _read_yaml(yaml_path) if yaml_path is not None else {}

    for key, value in (cli_overrides or {}).items():
        if value is not None:
            _set_nested(values, key, value)

    if overrides:
        _deep_merge(values, overrides)

    try:
        config = model(**values)
    except ValidationError as exc:
        raise ConfigurationError(_describe(exc, model), cause=exc) from exc

    logger.debug("%s ready: %s", model.__name__, config.model_dump(mode="json"))
    return config


def save_config(config: BaseModel, path: str) -> None:
    """
    Write a snapshot of a configuration record.

    ``.yaml`` / ``.yml`` files are written as YAML, anything else as JSON.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")

    with open(target, "w", encoding="utf-8") as f:
        if target.suffix in (".yaml", ".yml"):
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)

    logger.info("Configuration snapshot written to %s", target)
