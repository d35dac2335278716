"""Layered configuration: defaults, YAML file, environment.

Environment variables (a ``.env`` file in the working directory is honoured):
    IMG2VCARD_CONFIG: Path to a YAML config file
    IMG2VCARD_RESIZE: Resize target as WIDTHxHEIGHT, or "none" to disable
    IMG2VCARD_BACKEND: Image backend, "pillow" (default) or "imagemagick"
    IMG2VCARD_VERBOSE: "1", "true" or "yes" to enable progress messages

Example YAML file:

    resize: 120x120    # or false to keep the original size
    backend: pillow
    verbose: false
"""

import os
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .core.models import ConversionConfig
from .imaging import BACKENDS, parse_dimensions

ENV_PREFIX = "IMG2VCARD_"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}
NO_RESIZE_VALUES = {"none", "no", "false", "off"}


class ConfigError(Exception):
    """Raised when a configuration source holds an invalid value."""
    pass


def _dimensions(value, source: str) -> Optional[tuple[int, int]]:
    if value is None or value is False:
        return None
    if isinstance(value, str) and value.strip().lower() in NO_RESIZE_VALUES:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{source}: resize must be a WIDTHxHEIGHT string, got {value!r}")
    try:
        return parse_dimensions(value)
    except ValueError as e:
        raise ConfigError(f"{source}: {e}")


def _backend(value, source: str) -> str:
    if value not in BACKENDS:
        choices = ", ".join(sorted(BACKENDS))
        raise ConfigError(f"{source}: unknown backend {value!r} (choose from {choices})")
    return value


def _flag(value, source: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"{source}: expected a boolean, got {value!r}")


def load_yaml_config(config_path: str | Path, base: ConversionConfig) -> ConversionConfig:
    """Apply settings from a YAML file on top of ``base``."""
    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"config file not found: {config_path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path}: invalid YAML: {e}")

    if data is None:
        return base
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    unknown = set(data) - {"resize", "verbose", "backend"}
    if unknown:
        raise ConfigError(f"{config_path}: unknown key(s): {', '.join(sorted(unknown))}")

    changes = {}
    if "resize" in data:
        changes["dimensions"] = _dimensions(data["resize"], str(config_path))
    if "verbose" in data:
        changes["verbose"] = _flag(data["verbose"], str(config_path))
    if "backend" in data:
        changes["backend"] = _backend(data["backend"], str(config_path))
    return replace(base, **changes)


def load_env_config(base: ConversionConfig, environ: Mapping[str, str] | None = None) -> ConversionConfig:
    """Apply ``IMG2VCARD_*`` environment variables on top of ``base``."""
    env = os.environ if environ is None else environ
    changes = {}

    if f"{ENV_PREFIX}RESIZE" in env:
        changes["dimensions"] = _dimensions(env[f"{ENV_PREFIX}RESIZE"], f"{ENV_PREFIX}RESIZE")
    if f"{ENV_PREFIX}VERBOSE" in env:
        changes["verbose"] = _flag(env[f"{ENV_PREFIX}VERBOSE"], f"{ENV_PREFIX}VERBOSE")
    if f"{ENV_PREFIX}BACKEND" in env:
        changes["backend"] = _backend(env[f"{ENV_PREFIX}BACKEND"], f"{ENV_PREFIX}BACKEND")
    return replace(base, **changes)


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConversionConfig:
    """Build the configuration from defaults, a YAML file and the environment.

    Args:
        config_path: YAML file to read. Falls back to ``IMG2VCARD_CONFIG``.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        ConversionConfig with file settings overridden by the environment

    Raises:
        ConfigError: If any source holds an invalid value
    """
    env = os.environ if environ is None else environ
    config = ConversionConfig()

    config_path = config_path or env.get(f"{ENV_PREFIX}CONFIG")
    if config_path:
        config = load_yaml_config(config_path, config)

    return load_env_config(config, env)
