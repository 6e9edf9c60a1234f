"""
Configuration loading for netshape.

Settings come from an optional YAML file and from environment variables;
environment variables win. User presets from the file are merged with the
built-in table into a new index, leaving the built-in table untouched.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

import yaml

from .exceptions import ConfigLoadError, InvalidValueError
from .presets import PRESET_TABLE, Preset, build_preset_index

logger = logging.getLogger(__name__)

ENV_CONFIG = "NETSHAPE_CONFIG"
ENV_INTERFACE = "NETSHAPE_INTERFACE"
ENV_USE_SUDO = "NETSHAPE_USE_SUDO"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ShaperConfig:
    """
    Runtime configuration.

    Attributes:
        default_interface: Interface used when none is given.
        use_sudo: Run tc through ``sudo -n``.
        presets: User-defined presets, in file order.
        path: File the configuration was loaded from, if any.
    """

    default_interface: str = "eth0"
    use_sudo: bool = False
    presets: list[Preset] = field(default_factory=list)
    path: Optional[str] = None

    def preset_index(self) -> Mapping[str, Preset]:
        """Build the name index of built-in plus user presets."""
        return build_preset_index((*PRESET_TABLE, *self.presets))


def load_config(path: str) -> ShaperConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        ShaperConfig populated from the file.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed, or a preset
            is malformed or reuses an existing name.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigLoadError(path, "file not found")
    except yaml.YAMLError as e:
        raise ConfigLoadError(path, f"invalid YAML: {e}")

    if not data:
        raise ConfigLoadError(path, "empty file")
    if not isinstance(data, dict):
        raise ConfigLoadError(path, "top level must be a mapping")

    config = ShaperConfig(path=path)
    if "default_interface" in data:
        interface = data["default_interface"]
        if not isinstance(interface, str) or not interface.strip():
            raise ConfigLoadError(path, "default_interface must be a non-empty string")
        config.default_interface = interface
    if "use_sudo" in data:
        use_sudo = data["use_sudo"]
        if isinstance(use_sudo, str):
            use_sudo = use_sudo.strip().lower() in _TRUTHY
        elif not isinstance(use_sudo, bool):
            raise ConfigLoadError(path, "use_sudo must be true or false")
        config.use_sudo = use_sudo

    presets_data = data.get("presets") or {}
    if not isinstance(presets_data, dict):
        raise ConfigLoadError(path, "presets must be a mapping")

    for name, entry in presets_data.items():
        if not isinstance(entry, dict):
            raise ConfigLoadError(path, f"preset {name} must be a mapping")
        try:
            config.presets.append(Preset.from_dict(str(name), entry))
        except InvalidValueError as e:
            raise ConfigLoadError(path, str(e))

    try:
        config.preset_index()
    except InvalidValueError as e:
        raise ConfigLoadError(path, str(e))

    logger.info(f"Loaded {len(config.presets)} user presets from {path}")
    return config


def resolve_config(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> ShaperConfig:
    """
    Build the effective configuration.

    Args:
        path: Explicit config file path. Falls back to $NETSHAPE_CONFIG.
        environ: Environment mapping, defaults to os.environ.

    Returns:
        ShaperConfig with environment overrides applied.
    """
    env = os.environ if environ is None else environ
    path = path or env.get(ENV_CONFIG)
    config = load_config(path) if path else ShaperConfig()

    if env.get(ENV_INTERFACE):
        config.default_interface = env[ENV_INTERFACE]
    if ENV_USE_SUDO in env:
        config.use_sudo = env[ENV_USE_SUDO].strip().lower() in _TRUTHY

    return config
