"""Plugin runtime configuration and settings."""
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from zfsvol.core.errors import ConfigError
from zfsvol.core.logger import debug_enabled

DEFAULT_VOLUME_BASE = "/docker"
DEFAULT_SOCKET_PATH = "/run/docker/plugins/docker-zfs-plugin.sock"
DEFAULT_LOG_FILE = "/docker/docker_zfs.log"


@dataclass
class PluginConfig:
    """Runtime configuration for the volume plugin.

    Attributes:
        root_dataset: Root ZFS dataset volumes are created under (e.g. rpool/docker)
        volume_base: Base path for volume mount directories and the state file
        socket_path: Unix socket the plugin API listens on
        log_file: Log file path (None disables file logging)
        propagated_mount: Propagated-mount anchor when running as a managed
            plugin; None when the plugin sees the host filesystem directly
        debug: Enable debug logging
    """

    root_dataset: str = ""
    volume_base: str = DEFAULT_VOLUME_BASE
    socket_path: str = DEFAULT_SOCKET_PATH
    log_file: Optional[str] = DEFAULT_LOG_FILE
    propagated_mount: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_env(cls) -> "PluginConfig":
        """Create config from environment variables.

        Environment variables:
            ZFSVOL_ROOT_DATASET: Root dataset
            ZFSVOL_VOLUME_BASE: Base path for volumes and state file
            ZFSVOL_SOCKET: Plugin socket path
            ZFSVOL_LOG_FILE: Log file path
            ZFSVOL_PROPAGATED_MOUNT: Propagated-mount anchor
            DEBUG: Enable debug logging

        Returns:
            PluginConfig instance with values from environment or defaults
        """
        return cls(
            root_dataset=os.getenv("ZFSVOL_ROOT_DATASET", cls.root_dataset),
            volume_base=os.getenv("ZFSVOL_VOLUME_BASE", cls.volume_base),
            socket_path=os.getenv("ZFSVOL_SOCKET", cls.socket_path),
            log_file=os.getenv("ZFSVOL_LOG_FILE", cls.log_file),
            propagated_mount=os.getenv("ZFSVOL_PROPAGATED_MOUNT") or None,
            debug=debug_enabled(),
        )

    def merged(self, **overrides: Any) -> "PluginConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(self, **changes)

    def validate(self) -> None:
        """Raise ConfigError if a required setting is missing."""
        if not self.root_dataset:
            raise ConfigError("The --root-dataset flag is required")
        if self.root_dataset.startswith("/") or self.root_dataset.endswith("/"):
            raise ConfigError(f"Invalid root dataset name: '{self.root_dataset}'")


class ConfigFile(BaseModel):
    """Schema of the optional YAML configuration file."""

    model_config = ConfigDict(extra='forbid')

    root_dataset: Optional[str] = None
    volume_base: Optional[str] = None
    socket_path: Optional[str] = None
    log_file: Optional[str] = None
    propagated_mount: Optional[str] = None
    debug: Optional[bool] = None


def load_config_file(path: str) -> Dict[str, Any]:
    """Load settings from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Dict of settings present in the file

    Raises:
        ConfigError: If the file is missing, unparsable, or has unknown keys
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config file {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    try:
        parsed = ConfigFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    return parsed.model_dump(exclude_none=True)


def build_config(config_file: Optional[str] = None, **overrides: Any) -> PluginConfig:
    """Resolve the effective configuration.

    Precedence: explicit overrides (CLI flags) > config file > environment > defaults.
    """
    config = PluginConfig.from_env()
    if config_file:
        config = config.merged(**load_config_file(config_file))
    config = config.merged(**overrides)
    config.validate()
    return config
