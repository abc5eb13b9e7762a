"""
Configuration Module

Settings are resolved once at startup from, in increasing priority: built-in
defaults, an optional YAML settings file, environment variables named after
the upper-cased keys (``GLUSTER_VOLUMES``, ``PROFILE``, ...) and explicit
command-line flags. The resulting Settings value is passed to every component
that needs it.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple
import logging
import os

import yaml

from gluster_exporter.errors import ConfigError

ALL_VOLUMES = "_all"

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}

LOG_LEVEL_ALIASES = {
    'warn': 'warning',
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VolumeScope:
    """The set of volumes to report on, or every volume."""
    names: FrozenSet[str] = frozenset()
    all_volumes: bool = True

    @classmethod
    def parse(cls, value: str) -> 'VolumeScope':
        """Parse ``"_all"`` or a comma separated list such as ``"vol1,vol2"``."""
        names = [name.strip() for name in value.split(',') if name.strip()]
        if not names:
            raise ConfigError("no gluster volumes provided")
        if ALL_VOLUMES in names:
            return cls(all_volumes=True)
        return cls(names=frozenset(names), all_volumes=False)

    def contains(self, volume_name: str) -> bool:
        return self.all_volumes or volume_name in self.names

    def __str__(self) -> str:
        return ALL_VOLUMES if self.all_volumes else ','.join(sorted(self.names))


@dataclass(frozen=True)
class Settings:
    log_level: str = 'info'
    web_listen_address: str = ':9106'
    web_metrics_path: str = '/metrics'
    gluster_volumes: str = ALL_VOLUMES
    gluster_binary: str = '/usr/sbin/gluster'
    profile: bool = False
    quota: bool = False
    command_timeout: float = 60.0
    volume_scope: VolumeScope = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'log_level', normalize_log_level(self.log_level))
        if not self.web_metrics_path.startswith('/'):
            raise ConfigError(f"metrics path must start with '/': {self.web_metrics_path}")
        if self.command_timeout < 0:
            raise ConfigError("command timeout must not be negative")
        parse_listen_address(self.web_listen_address)
        object.__setattr__(self, 'volume_scope', VolumeScope.parse(self.gluster_volumes))

    @property
    def log_level_value(self) -> int:
        return LOG_LEVELS[self.log_level]

    @property
    def timeout(self) -> Optional[float]:
        """Per-command timeout in seconds, None when disabled."""
        return self.command_timeout or None


def normalize_log_level(level: str) -> str:
    """Lower-case ``level`` and map aliases; unknown levels fall back to info."""
    name = str(level).strip().lower()
    name = LOG_LEVEL_ALIASES.get(name, name)
    if name not in LOG_LEVELS:
        logger.warning(f"Unknown log level '{level}', using info")
        return 'info'
    return name


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (host optional, as in ``:9106``) into its parts."""
    host, sep, port = address.rpartition(':')
    if not sep:
        raise ConfigError(f"listen address must be host:port, got '{address}'")
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigError(f"invalid port in listen address '{address}'")
    if not 0 < port_number < 65536:
        raise ConfigError(f"port out of range in listen address '{address}'")
    return host.strip('[]') or '0.0.0.0', port_number


def _coerce(key: str, value: Any, target: type) -> Any:
    if target is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ('true', '1', 'yes', 'on')
    if target is float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{key} must be a number, got {value!r}")
    if isinstance(value, (list, tuple)):
        return ','.join(str(item) for item in value)
    if isinstance(value, dict):
        raise ConfigError(f"{key} must be a string, got {value!r}")
    return str(value)


def load_settings(config_path: Optional[str] = None,
                  overrides: Optional[Mapping[str, Any]] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from defaults, a YAML file, the environment and overrides.

    Args:
        config_path: Optional YAML file with the same keys as Settings
        overrides: Explicit values (command-line flags); None entries are ignored
        environ: Environment mapping, defaults to os.environ

    Raises:
        ConfigError: if the file cannot be read or a value is invalid
    """
    environ = os.environ if environ is None else environ
    types = {f.name: f.type for f in fields(Settings) if f.init}
    values: Dict[str, Any] = {}

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"failed to load settings from {config_path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"settings file {config_path} must contain a mapping")
        unknown = set(data) - set(types)
        if unknown:
            logger.warning(f"Ignoring unknown settings in {config_path}: {sorted(unknown)}")
        values.update({k: v for k, v in data.items() if k in types})
    elif config_path:
        logger.debug(f"Settings file not found: {config_path}, using defaults")

    for key in types:
        env_value = environ.get(key.upper())
        if env_value is not None:
            values[key] = env_value

    for key, value in (overrides or {}).items():
        if value is not None and key in types:
            values[key] = value

    return Settings(**{k: _coerce(k, v, types[k]) for k, v in values.items()})
