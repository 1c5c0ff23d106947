"""Configuration management for metric tagging.

This module provides the configuration used by MetricNamer:
- Environment variable loading with prefix support
- File-based configuration (JSON/YAML)
- Configuration merging with proper precedence

Configuration Precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

Example:
    >>> from metric_tagging.config import TaggingConfig
    >>> config = TaggingConfig.load()
    >>> config = config.with_prefix("billing").with_default_tags(env="prod")
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

import yaml

from metric_tagging.exceptions import (
    ConfigurationError,
    InvalidConfigValueError,
    MissingConfigError,
)
from metric_tagging.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_ENV_PREFIX = "METRIC_TAGGING"
CONFIG_FILE_NAMES = ("metric_tagging.json", "metric_tagging.yaml", "metric_tagging.yml")
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})
FALSY_VALUES = frozenset({"0", "false", "no", "off"})
BOOL_EXPECTED = "boolean (1/0, true/false, yes/no, on/off)"


# =============================================================================
# Value Coercion
# =============================================================================


def _parse_bool(config_key: str, value: Any) -> bool:
    """Coerce a bool or a bool-like string.

    Raises:
        InvalidConfigValueError: If value is neither.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lower_value = value.strip().lower()
        if lower_value in TRUTHY_VALUES:
            return True
        if lower_value in FALSY_VALUES:
            return False
    raise InvalidConfigValueError(
        f"Invalid boolean value for {config_key}",
        config_key=config_key,
        value=value,
        expected=BOOL_EXPECTED,
    )


def _parse_tags(config_key: str, data: Any) -> dict[str, str]:
    """Coerce a mapping of tags to strings, rejecting missing keys or values.

    Raises:
        InvalidConfigValueError: If data is not a mapping or holds None.
    """
    if not isinstance(data, dict):
        raise InvalidConfigValueError(
            f"{config_key} must be a mapping",
            config_key=config_key,
            value=data,
            expected="mapping of tag name to tag value",
        )
    tags: dict[str, str] = {}
    for key, value in data.items():
        if key is None or value is None:
            raise InvalidConfigValueError(
                f"Tag {key!r} in {config_key} has no {'name' if key is None else 'value'}",
                config_key=config_key,
                value=data,
                expected="non-null tag names and values",
            )
        tags[str(key)] = str(value)
    return tags


def _parse_str(config_key: str, value: Any) -> str:
    """Return value if it is a string.

    Raises:
        InvalidConfigValueError: Otherwise.
    """
    if not isinstance(value, str):
        raise InvalidConfigValueError(
            f"{config_key} must be a string",
            config_key=config_key,
            value=value,
            expected="string",
        )
    return value


# =============================================================================
# Environment Variable Utilities
# =============================================================================


class EnvReader:
    """Utility class for reading environment variables with prefix support.

    Example:
        >>> reader = EnvReader(prefix="METRIC_TAGGING")
        >>> prefix = reader.get("PREFIX", default="")
        >>> strict = reader.get_bool("STRICT_TAGS", default=False)
    """

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX) -> None:
        """Initialize the environment reader.

        Args:
            prefix: Prefix for environment variable names.
        """
        self.prefix = prefix

    def _make_key(self, name: str) -> str:
        """Create full environment variable key with prefix."""
        if self.prefix:
            return f"{self.prefix}_{name}"
        return name

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get a string environment variable.

        Args:
            name: Variable name (without prefix).
            default: Default value if not set.

        Returns:
            Environment variable value or default.
        """
        return os.environ.get(self._make_key(name), default)

    def get_required(self, name: str) -> str:
        """Get a required string environment variable.

        Raises:
            MissingConfigError: If variable is not set.
        """
        key = self._make_key(name)
        value = os.environ.get(key)
        if value is None:
            raise MissingConfigError(key)
        return value

    def get_bool(self, name: str, default: bool | None = None) -> bool | None:
        """Get a boolean environment variable.

        Truthy values: "1", "true", "yes", "on" (case-insensitive)
        Falsy values: "0", "false", "no", "off" (case-insensitive)

        Raises:
            InvalidConfigValueError: If value cannot be parsed as bool.
        """
        value = self.get(name)
        if value is None:
            return default
        return _parse_bool(self._make_key(name), value)

    def get_list(
        self,
        name: str,
        separator: str = ",",
        default: list[str] | None = None,
    ) -> list[str] | None:
        """Get a list environment variable (comma-separated by default)."""
        value = self.get(name)
        if value is None:
            return default
        if not value.strip():
            return []
        return [item.strip() for item in value.split(separator)]

    def get_json(self, name: str, default: Any = None) -> Any:
        """Get a JSON-encoded environment variable.

        Raises:
            InvalidConfigValueError: If value cannot be parsed as JSON.
        """
        value = self.get(name)
        if value is None:
            return default
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidConfigValueError(
                f"Invalid JSON value for {self._make_key(name)}",
                config_key=self._make_key(name),
                value=value,
                expected="valid JSON",
                cause=e,
            ) from e

    def get_tags(self, name: str) -> dict[str, str] | None:
        """Get a tag mapping written as ``k=v,k2=v2`` or as a JSON object.

        Raises:
            InvalidConfigValueError: If an entry has no ``=`` or the JSON is
                not an object of strings.
        """
        value = self.get(name)
        if value is None:
            return None
        if value.lstrip().startswith("{"):
            return _parse_tags(self._make_key(name), self.get_json(name))

        tags: dict[str, str] = {}
        for item in self.get_list(name) or []:
            key, sep, tag_value = item.partition("=")
            if not sep or not key.strip():
                raise InvalidConfigValueError(
                    f"Invalid tag entry '{item}' for {self._make_key(name)}",
                    config_key=self._make_key(name),
                    value=value,
                    expected="key=value pairs separated by commas",
                )
            tags[key.strip()] = tag_value.strip()
        return tags


# =============================================================================
# File Configuration Utilities
# =============================================================================


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML configuration file.

    Raises:
        ConfigurationError: If YAML parsing fails.
    """
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {path}",
            details={"path": str(path)},
            cause=e,
        ) from e


def _load_json(path: Path) -> dict[str, Any]:
    """Load JSON configuration file.

    Raises:
        ConfigurationError: If JSON parsing fails.
    """
    try:
        with path.open() as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Failed to parse JSON configuration: {path}",
            details={"path": str(path)},
            cause=e,
        ) from e


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file (JSON or YAML).

    Args:
        path: Path to configuration file.

    Returns:
        Parsed configuration dictionary.

    Raises:
        ConfigurationError: If file cannot be loaded.
    """
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _load_yaml(path)
    elif suffix == ".json":
        data = _load_json(path)
    else:
        raise ConfigurationError(
            f"Unsupported configuration file format: {suffix}",
            details={"path": str(path), "suffix": suffix},
        )
    logger.debug("Loaded configuration file", path=str(path), keys=sorted(data))
    return data


def find_config_file(
    start_dir: Path | None = None,
    max_depth: int = 5,
) -> Path | None:
    """Find configuration file by searching up the directory tree.

    Args:
        start_dir: Directory to start search from (default: cwd).
        max_depth: Maximum directories to traverse up.

    Returns:
        Path to configuration file if found, None otherwise.
    """
    current = start_dir or Path.cwd()
    for _ in range(max_depth):
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.is_file():
                return config_path
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


# =============================================================================
# Tagging Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class TaggingConfig:
    """Configuration for building metric names.

    Immutable configuration object. Use builder methods to create modified
    copies.

    Attributes:
        prefix: Path prepended to every name built by MetricNamer.
        default_tags: Tags applied to every name (lowest precedence).
        include_context_tags: Whether TagScope tags are merged into names.
        strict_tags: Reject tags containing legacy-format delimiters.
        log_level: Level for the library's own logger, or None to leave the
            current level alone.

    Example:
        >>> config = TaggingConfig(
        ...     prefix="billing",
        ...     default_tags={"service": "invoicing"},
        ... )
        >>> no_context = config.with_context_tags(False)
    """

    prefix: str = ""
    default_tags: dict[str, str] = field(default_factory=dict)
    include_context_tags: bool = True
    strict_tags: bool = False
    log_level: str | None = None

    def with_prefix(self, prefix: str) -> TaggingConfig:
        """Create config with new prefix."""
        return TaggingConfig(
            prefix=prefix,
            default_tags=self.default_tags,
            include_context_tags=self.include_context_tags,
            strict_tags=self.strict_tags,
            log_level=self.log_level,
        )

    def with_default_tags(self, **tags: str) -> TaggingConfig:
        """Create config with additional default tags.

        Args:
            **tags: Additional default tags. They override existing defaults.

        Returns:
            New TaggingConfig with merged tags.
        """
        return TaggingConfig(
            prefix=self.prefix,
            default_tags={**self.default_tags, **tags},
            include_context_tags=self.include_context_tags,
            strict_tags=self.strict_tags,
            log_level=self.log_level,
        )

    def with_context_tags(self, enabled: bool) -> TaggingConfig:
        """Create config with context tag merging switched on or off."""
        return TaggingConfig(
            prefix=self.prefix,
            default_tags=self.default_tags,
            include_context_tags=enabled,
            strict_tags=self.strict_tags,
            log_level=self.log_level,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "prefix": self.prefix,
            "default_tags": dict(self.default_tags),
            "include_context_tags": self.include_context_tags,
            "strict_tags": self.strict_tags,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create a TaggingConfig from a dictionary.

        Flags accept booleans or the strings EnvReader.get_bool accepts. A
        missing or null ``log_level`` leaves the logging level untouched.

        Raises:
            InvalidConfigValueError: If a value has the wrong type, a flag is
                not bool-like, or a default tag has no name or value.
        """
        prefix = data.get("prefix")
        log_level = data.get("log_level")
        return cls(
            prefix="" if prefix is None else _parse_str("prefix", prefix),
            default_tags=_parse_tags("default_tags", data.get("default_tags") or {}),
            include_context_tags=_parse_bool(
                "include_context_tags", data.get("include_context_tags", True)
            ),
            strict_tags=_parse_bool("strict_tags", data.get("strict_tags", False)),
            log_level=None if log_level is None else _parse_str("log_level", log_level),
        )

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> Self:
        """Create configuration from environment variables.

        Environment Variables:
            {PREFIX}_PREFIX: Metric path prefix (string)
            {PREFIX}_DEFAULT_TAGS: Default tags (``k=v,k2=v2`` or JSON object)
            {PREFIX}_INCLUDE_CONTEXT_TAGS: Merge TagScope tags (bool)
            {PREFIX}_STRICT_TAGS: Reject delimiter characters in tags (bool)
            {PREFIX}_LOG_LEVEL: Logging level (string)

        Args:
            prefix: Environment variable prefix.

        Returns:
            New TaggingConfig instance.
        """
        return cls.from_dict(_env_overrides(EnvReader(prefix)))

    @classmethod
    def from_file(cls, path: Path | str) -> Self:
        """Create configuration from a JSON or YAML file."""
        return cls.from_dict(load_config_file(Path(path)))

    @classmethod
    def load(
        cls,
        config_file: Path | str | None = None,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        search_config: bool = True,
    ) -> Self:
        """Load configuration with automatic discovery and merging.

        Precedence (highest to lowest):
            1. Environment variables
            2. Specified or auto-discovered config file
            3. Default values

        Args:
            config_file: Explicit config file path.
            env_prefix: Environment variable prefix.
            search_config: Whether to search for a config file.

        Returns:
            Merged TaggingConfig instance.
        """
        data: dict[str, Any] = {}

        file_path: Path | None = None
        if config_file:
            file_path = Path(config_file)
        elif search_config:
            file_path = find_config_file()

        if file_path:
            data = load_config_file(file_path)

        overrides = _env_overrides(EnvReader(env_prefix))
        if "default_tags" in overrides and isinstance(data.get("default_tags"), dict):
            overrides["default_tags"] = {
                **(data.get("default_tags") or {}),
                **overrides["default_tags"],
            }
        return cls.from_dict({**data, **overrides})


def _env_overrides(env: EnvReader) -> dict[str, Any]:
    """Collect only the settings present in the environment."""
    overrides: dict[str, Any] = {}
    prefix = env.get("PREFIX")
    if prefix is not None:
        overrides["prefix"] = prefix
    tags = env.get_tags("DEFAULT_TAGS")
    if tags is not None:
        overrides["default_tags"] = tags
    include_context = env.get_bool("INCLUDE_CONTEXT_TAGS")
    if include_context is not None:
        overrides["include_context_tags"] = include_context
    strict = env.get_bool("STRICT_TAGS")
    if strict is not None:
        overrides["strict_tags"] = strict
    log_level = env.get("LOG_LEVEL")
    if log_level is not None:
        overrides["log_level"] = log_level
    return overrides


DEFAULT_TAGGING_CONFIG = TaggingConfig()


# =============================================================================
# Validation Utilities
# =============================================================================


def validate_config(config: TaggingConfig) -> list[str]:
    """Validate configuration and return list of issues.

    Args:
        config: Configuration to validate.

    Returns:
        List of validation issue messages (empty if valid).
    """
    issues: list[str] = []

    if config.log_level is not None and config.log_level.upper() not in VALID_LOG_LEVELS:
        issues.append(
            f"Invalid log_level: {config.log_level}. "
            f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    if config.prefix.startswith(".") or config.prefix.endswith("."):
        issues.append(f"Invalid prefix: {config.prefix!r}. Must not start or end with '.'")

    for key, value in config.default_tags.items():
        if not key:
            issues.append("Invalid default tag: empty tag name")
        if value is None:
            issues.append(f"Invalid default tag {key!r}: missing value")

    return issues


def require_valid_config(config: TaggingConfig) -> None:
    """Validate configuration and raise if invalid.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    issues = validate_config(config)
    if issues:
        raise ConfigurationError(
            "Invalid configuration",
            details={"issues": issues},
        )
