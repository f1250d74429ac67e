"""Configuration management for the sentiment crawler."""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from ..version import USER_AGENT

ENV_PREFIX = "SENTIMENT_CRAWLER_"
ENV_NESTED_DELIMITER = "__"

SUPPORTED_SYNTAXES = (
    "microdata", "opengraph", "json-ld", "microformat", "rdfa", "dublincore", "html-head", "html-rel",
)
SUPPORTED_FORMATS = ("turtle", "ntriples", "rdfxml", "nquads", "trix", "json")

DEFAULT_ACCEPT = (
    "text/html;q=0.9, application/xhtml+xml;q=0.9, "
    "text/turtle;q=0.8, application/rdf+xml;q=0.8, application/ld+json;q=0.8, "
    "application/n-triples;q=0.7, application/n-quads;q=0.7, */*;q=0.1"
)


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = "WARNING"
    file: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("file")
    @classmethod
    def expand_log_file(cls, v: Optional[str]) -> Optional[str]:
        if v and v.startswith("~"):
            return str(Path(v).expanduser())
        return v


class HTTPConfig(BaseModel):
    """Settings for fetching documents over HTTP."""
    user_agent: str = USER_AGENT
    timeout: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True
    accept: str = DEFAULT_ACCEPT

    model_config = ConfigDict(extra="allow")


class ExtractionConfig(BaseModel):
    """Which structured-data syntaxes to extract and how strictly."""
    syntaxes: List[str] = Field(default_factory=lambda: list(SUPPORTED_SYNTAXES))
    strict: bool = True

    model_config = ConfigDict(extra="allow")

    @field_validator("syntaxes")
    @classmethod
    def check_syntaxes(cls, v: List[str]) -> List[str]:
        unknown = [syntax for syntax in v if syntax not in SUPPORTED_SYNTAXES]
        if unknown:
            raise ValueError(
                f"Unsupported syntaxes {unknown}; expected any of {list(SUPPORTED_SYNTAXES)}"
            )
        return v


class OutputConfig(BaseModel):
    """Output file settings."""
    default_format: str = "turtle"
    filename: str = "sentiment.txt"
    create_dirs: bool = False

    model_config = ConfigDict(extra="allow")

    @field_validator("default_format")
    @classmethod
    def check_default_format(cls, v: str) -> str:
        if v not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported output format '{v}'; expected one of {list(SUPPORTED_FORMATS)}")
        return v

    @field_validator("filename")
    @classmethod
    def check_filename(cls, v: str) -> str:
        if not v or Path(v).name != v:
            raise ValueError("Output filename must be a plain file name")
        return v


class SentimentCrawlerConfig(BaseSettings):
    """Main configuration class that combines all settings."""

    version: str = "1.0"

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter=ENV_NESTED_DELIMITER,
        case_sensitive=False,
        extra="ignore"
    )


class ConfigManager:
    """Manages configuration loading, validation, and access."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Dict[str, Any] = {}
        self._pydantic_config: Optional[SentimentCrawlerConfig] = None
        self._load_default_config()

    def get_default_config_path(self) -> Path:
        """Get the user configuration file path."""
        env_path = os.getenv(f"{ENV_PREFIX}CONFIG_PATH")
        if env_path:
            return Path(env_path).expanduser()
        return Path.home() / ".sentiment-crawler" / "config.yaml"

    def _load_default_config(self) -> None:
        """Load default configuration as dict."""
        # model_validate skips the settings sources; the environment is merged
        # explicitly in load_from_environment
        default_config = SentimentCrawlerConfig.model_validate({})
        self._config = default_config.model_dump()
        self._pydantic_config = default_config

    @property
    def config(self) -> SentimentCrawlerConfig:
        """Get the current configuration as a validated Pydantic model."""
        if self._pydantic_config is None:
            try:
                self._pydantic_config = SentimentCrawlerConfig.model_validate(self._config)
            except ValidationError as e:
                first = e.errors()[0]
                key = ".".join(str(part) for part in first.get("loc", ()))
                raise ConfigurationError(
                    f"Invalid configuration: {first.get('msg')}",
                    config_key=key or None
                ) from e
        return self._pydantic_config

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a configuration setting using dot notation.

        Args:
            key: Setting key in dot notation (e.g., 'http.timeout')
            default: Default value if setting is not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set_setting(self, key: str, value: Any) -> None:
        """Set a configuration setting (runtime only).

        Args:
            key: Setting key in dot notation
            value: Value to set
        """
        keys = key.split('.')
        current = self._config
        for part in keys[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[keys[-1]] = value

        # Rebuilt on next access
        self._pydantic_config = None

    def load_from_file(self, path: Optional[Path] = None) -> None:
        """Merge a YAML or JSON configuration file into the current settings."""
        path = path or self.config_path
        if not path or not path.exists():
            return

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() == '.json':
                    file_data = json.load(f)
                else:
                    file_data = yaml.safe_load(f) or {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        if not isinstance(file_data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        self.merge_config(file_data)

    def load_from_environment(self) -> None:
        """Load configuration from environment variables.

        ``SENTIMENT_CRAWLER_HTTP__USER_AGENT=foo`` sets ``http.user_agent``.
        """
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX) or key == f"{ENV_PREFIX}CONFIG_PATH":
                continue

            parts = key[len(ENV_PREFIX):].lower().split(ENV_NESTED_DELIMITER)
            if len(parts) < 2 or not all(parts):
                continue

            self.set_setting(".".join(parts), _coerce_env_value(value))

        self._pydantic_config = None

    def merge_config(self, new_config: Dict[str, Any]) -> None:
        """Merge new configuration with existing."""
        self._deep_merge(self._config, new_config)
        self._pydantic_config = None

    def _deep_merge(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Deep merge source into target dictionary."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_merge(target[key], value)
            else:
                target[key] = value

    def reload_config(self) -> None:
        """Reload configuration: defaults, user file, custom file, environment."""
        self._load_default_config()

        user_path = self.get_default_config_path()
        if user_path.exists() and user_path != self.config_path:
            self.load_from_file(user_path)

        if self.config_path:
            if not self.config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {self.config_path}")
            self.load_from_file(self.config_path)

        self.load_from_environment()


def _coerce_env_value(value: str) -> Any:
    """Convert an environment string to bool, int, float or a JSON list."""
    stripped = value.strip()
    lowered = stripped.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered.isdigit():
        return int(lowered)
    if stripped.startswith("["):
        try:
            return json.loads(stripped)
        except ValueError:
            return value
    try:
        return float(lowered)
    except ValueError:
        return value


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
        _config_manager.reload_config()
    return _config_manager


def reset_config_manager() -> None:
    """Forget the global configuration manager."""
    global _config_manager
    _config_manager = None


def get_config() -> SentimentCrawlerConfig:
    """Get the current configuration."""
    return get_config_manager().config
