"""
Configuration for gitconnector.

Configuration is read from a JSON, TOML or YAML file, merged over the
defaults, then overridden by GITCONNECTOR_SECTION_KEY environment
variables. ConnectorConfig is the typed view the connector works with.
"""

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError
from .infra.credentials import Credentials
from .domain.commit import CommitIdentity

logger = logging.getLogger("gitconnector")

ENV_PREFIX = "GITCONNECTOR_"
CONFIG_ENV = "GITCONNECTOR_CONFIG"
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. GITCONNECTOR_CONFIG environment variable
    2. ~/.gitconnector/config.{json,toml,yaml,yml}
    """
    if CONFIG_ENV in os.environ:
        return Path(os.environ[CONFIG_ENV]).expanduser()

    config_dir = Path.home() / '.gitconnector'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file.

    Raises:
        ConfigError: the file exists but cannot be parsed
    """
    config_path = Path(path) if path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)

    return apply_env_overrides(config)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to file; the format follows the file suffix."""
    config_path = Path(path) if path else get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.suffix.lower() == '.toml':
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)
    except OSError as e:
        raise ConfigError(f"Error saving config to {config_path}: {e}") from e

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "general": {
            "directory": "",       # Repository used when no override is given
            "remote": "origin",    # Remote for push (pull/fetch prefer the upstream)
        },
        "credentials": {
            "username": "",
            "password": "",
        },
        "identity": {
            "name": "",            # Used for merge commits created by pull
            "email": "",
        },
        "timeouts": {
            "local": 30,
            "network": 300,
            "lock": 10,
        },
        "add": {
            "strict_patterns": False,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: GITCONNECTOR_SECTION_KEY
    For example: GITCONNECTOR_ADD_STRICT_PATTERNS=true
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest key in current_level that is a prefix of the remaining parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break
            if i + best_match_len == len(key_parts):
                # Whole sections are never replaced by a scalar
                if not isinstance(current_level[matched_key], dict):
                    current_level[matched_key] = typed_value
                break
            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def configure_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """Send gitconnector logs to stderr using the logging section."""
    section = config.get("logging", {})
    level = "DEBUG" if verbose else str(section.get("level", "INFO")).upper()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(section.get("format", "%(levelname)s: %(message)s")))

    root = logging.getLogger("gitconnector")
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))
    root.propagate = False


@dataclass(frozen=True)
class ConnectorConfig:
    """Typed configuration consumed by GitConnector."""
    directory: Optional[str] = None
    remote: str = "origin"
    credentials: Optional[Credentials] = None
    identity: Optional[CommitIdentity] = None
    local_timeout: int = 30
    network_timeout: int = 300
    lock_timeout: float = 10
    strict_patterns: bool = False

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ConnectorConfig':
        """Build from a (merged) configuration dictionary."""
        general = config.get("general", {})
        credentials = config.get("credentials", {})
        identity = config.get("identity", {})
        timeouts = config.get("timeouts", {})
        add = config.get("add", {})

        name, email = identity.get("name"), identity.get("email")
        try:
            return cls(
                directory=general.get("directory") or None,
                remote=general.get("remote") or "origin",
                credentials=Credentials.from_values(credentials.get("username"), credentials.get("password")),
                identity=CommitIdentity(name=name, email=email) if name and email else None,
                local_timeout=int(timeouts.get("local", 30)),
                network_timeout=int(timeouts.get("network", 300)),
                lock_timeout=float(timeouts.get("lock", 10)),
                strict_patterns=bool(add.get("strict_patterns", False)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'ConnectorConfig':
        return cls.from_dict(load_config(path))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'directory': self.directory,
            'remote': self.remote,
            'credentials': self.credentials.to_dict() if self.credentials else None,
            'identity': self.identity.to_dict() if self.identity else None,
            'timeouts': {
                'local': self.local_timeout,
                'network': self.network_timeout,
                'lock': self.lock_timeout,
            },
            'strict_patterns': self.strict_patterns,
        }
