"""
Configuration for helm-s3repo.

Settings come from three layers, each overriding the one before it:
built-in defaults, an optional YAML file passed with ``--config``, and
environment variables. String values may reference other environment
variables as ``${NAME}``.
"""

import os
import re
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Dict, Any, Optional, Tuple, Union
import logging

import yaml

from ..error_handling import ConfigurationError

logger = logging.getLogger(__name__)

VALID_BACKENDS = {"boto3", "awscli"}
VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Later entries win when several variables feed the same setting;
# AWS_REGION takes precedence over AWS_DEFAULT_REGION as in the AWS SDKs.
ENVIRONMENT_OVERRIDES: Tuple[Tuple[str, str, str], ...] = (
    ("S3REPO_BACKEND", "storage", "backend"),
    ("AWS_DEFAULT_REGION", "storage", "region"),
    ("AWS_REGION", "storage", "region"),
    ("S3REPO_DOMAIN", "storage", "domain"),
    ("S3REPO_ACL", "storage", "acl"),
    ("S3REPO_AWS_BIN", "storage", "aws_binary"),
    # Helm exports HELM_BIN to plugins
    ("HELM_BIN", "helm", "binary"),
    ("LOG_LEVEL", "logging", "level"),
    ("LOG_FILE", "logging", "file"),
    ("LOG_FORMAT", "logging", "format"),
    ("LOG_STRUCTURED", "logging", "structured"),
)

TRUTHY = {"true", "yes", "1", "on"}

_VARIABLE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass
class StorageConfig:
    """Where charts are stored and how uploads are published."""
    backend: str = "boto3"
    region: Optional[str] = None
    domain: str = "s3.amazonaws.com"
    acl: str = "public-read"
    index_content_type: str = "text/yaml"
    aws_binary: str = "aws"


@dataclass
class HelmConfig:
    binary: str = "helm"


@dataclass
class LoggingConfig:
    """Log level, destination and format."""
    level: str = "ERROR"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    max_file_size: int = 10  # MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """All settings for one invocation."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    helm: HelmConfig = field(default_factory=HelmConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    SECTIONS = ("storage", "helm", "logging")

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: asdict(getattr(self, name)) for name in self.SECTIONS}


SECTION_TYPES = {"storage": StorageConfig, "helm": HelmConfig, "logging": LoggingConfig}


class ConfigManager:
    """
    Builds the application configuration once and caches it.

    Layers are applied in order: defaults, then the YAML file (if one was
    given and exists), then environment variables. ``${NAME}`` references
    are expanded last, and the result is validated before it is turned into
    an ``AppConfig``.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Args:
            config_file: Optional YAML file with ``storage``, ``helm`` and ``logging`` sections
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """
        Resolve the configuration, reusing the cached result if there is one.

        Raises:
            ConfigurationError: If the file cannot be read or a value is invalid
        """
        if self._config is not None:
            return self._config

        settings = AppConfig().to_dict()

        if self.config_file and self.config_file.exists():
            self._apply(settings, self._read_file(self.config_file), source=str(self.config_file))

        self._apply(settings, self._read_environment(), source="environment")

        settings = {
            section: {key: _expand(value) for key, value in values.items()}
            for section, values in settings.items()
        }

        self._validate(settings)
        self._config = AppConfig(**{
            section: SECTION_TYPES[section](**settings[section]) for section in AppConfig.SECTIONS
        })
        logger.debug(f"Resolved configuration: {self._config.to_dict()}")
        return self._config

    def _read_file(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config file {path}: {e}", cause=e)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        logger.info(f"Loaded configuration from {path}")
        return data

    def _read_environment(self) -> Dict[str, Dict[str, Any]]:
        overrides: Dict[str, Dict[str, Any]] = {}
        for variable, section, key in ENVIRONMENT_OVERRIDES:
            value = os.getenv(variable)
            if not value:
                continue
            if key == "structured":
                value = value.lower() in TRUTHY
            overrides.setdefault(section, {})[key] = value
        return overrides

    def _apply(self, settings: Dict[str, Dict[str, Any]], overrides: Dict[str, Any], source: str) -> None:
        """
        Overlay one layer onto the settings, section by section.

        Raises:
            ConfigurationError: On unknown sections or keys, or a section that is not a mapping
        """
        for section, values in overrides.items():
            if section not in SECTION_TYPES:
                raise ConfigurationError(
                    f"Unknown configuration sections in {source}: ['{section}']"
                )
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigurationError(
                    f"Configuration section '{section}' must be a mapping",
                    config_section=section
                )

            known = {f.name for f in fields(SECTION_TYPES[section])}
            unknown = sorted(set(values) - known)
            if unknown:
                raise ConfigurationError(
                    f"Unknown configuration keys in '{section}': {unknown}",
                    config_section=section
                )
            settings[section].update(values)

    def _validate(self, settings: Dict[str, Dict[str, Any]]) -> None:
        storage = settings["storage"]
        if storage["backend"] not in VALID_BACKENDS:
            raise ConfigurationError(
                f"Invalid storage backend: {storage['backend']}. Valid backends: {sorted(VALID_BACKENDS)}",
                config_section="storage", config_key="backend"
            )
        if not storage["domain"]:
            raise ConfigurationError(
                "Storage domain must not be empty",
                config_section="storage", config_key="domain"
            )

        if not settings["helm"]["binary"]:
            raise ConfigurationError(
                "Helm binary must not be empty",
                config_section="helm", config_key="binary"
            )

        level = str(settings["logging"]["level"]).upper()
        if level not in VALID_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {level}. Valid levels: {sorted(VALID_LEVELS)}",
                config_section="logging", config_key="level"
            )
        settings["logging"]["level"] = level

    def get_config(self) -> AppConfig:
        return self.load_config()


def _expand(value: Any) -> Any:
    """Replace ``${NAME}`` with the variable's value; unknown names are left as written."""
    if not isinstance(value, str):
        return value
    return _VARIABLE.sub(lambda match: os.environ.get(match.group(1), match.group(0)), value)


_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Return the process-wide configuration manager.

    ``config_file`` is only honoured by the call that creates the manager.
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def reset_config_manager() -> None:
    global _config_manager
    _config_manager = None
