"""
Configuration management for the tree crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, fields


class ConfigError(ValueError):
    """Raised when crawl settings or a configuration file are invalid."""
    pass


def _require_int(name: str, value):
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _require_number(name: str, value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class CrawlSettings:
    """Immutable settings for a single crawl run."""
    max_depth: int = 1
    wait_time_ms: int = 0
    max_concurrent_requests: int = 10
    max_queue_capacity: int = 100
    request_timeout: float = 30.0
    max_duration: Optional[float] = None

    def __post_init__(self):
        for name in ('max_depth', 'wait_time_ms', 'max_concurrent_requests', 'max_queue_capacity'):
            _require_int(name, getattr(self, name))
        _require_number('request_timeout', self.request_timeout)
        if self.max_duration is not None:
            _require_number('max_duration', self.max_duration)

        if self.max_depth < 0:
            raise ConfigError("max_depth must be non-negative")

        # Advisory only, the engine does not sleep on it
        if self.wait_time_ms < 0:
            raise ConfigError("wait_time_ms must be non-negative")

        if self.max_concurrent_requests < 1:
            raise ConfigError("max_concurrent_requests must be at least 1")

        if self.max_queue_capacity < 1:
            raise ConfigError("max_queue_capacity must be at least 1")

        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        if self.max_duration is not None and self.max_duration <= 0:
            raise ConfigError("max_duration must be positive when set")

    @property
    def wait_time(self) -> float:
        """Politeness delay in seconds."""
        return self.wait_time_ms / 1000.0


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    max_depth: int = 1
    wait_time_ms: int = 0
    max_concurrent_requests: int = 10
    max_queue_capacity: int = 100
    request_timeout: float = 30.0
    max_duration: Optional[float] = None
    max_content_size: int = 10 * 1024 * 1024
    user_agent: str = "webtree/1.0"
    link_extraction: str = "html"

    def to_settings(self) -> CrawlSettings:
        """Build the immutable run settings from this section."""
        return CrawlSettings(
            max_depth=self.max_depth,
            wait_time_ms=self.wait_time_ms,
            max_concurrent_requests=self.max_concurrent_requests,
            max_queue_capacity=self.max_queue_capacity,
            request_timeout=self.request_timeout,
            max_duration=self.max_duration,
        )


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    """Instantiate a config section, rejecting unknown keys."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")

    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            try:
                config_data = yaml.safe_load(file) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        self._config = self.from_dict(config_data)
        return self._config

    def from_dict(self, config_data: Dict[str, Any]) -> Config:
        """Build and validate a Config from already-parsed data."""
        if not isinstance(config_data, dict):
            raise ConfigError("Configuration root must be a mapping")

        self._config = Config(
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging'),
            monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring'),
        )

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigError("Configuration not loaded")

        # Numeric limits are checked by CrawlSettings itself
        self._config.crawler.to_settings()

        if self._config.crawler.link_extraction not in ('html', 'pattern'):
            raise ConfigError("link_extraction must be 'html' or 'pattern'")

        _require_int('max_content_size', self._config.crawler.max_content_size)
        if self._config.crawler.max_content_size < 1:
            raise ConfigError("max_content_size must be at least 1")

        if not isinstance(self._config.logging.level, str):
            raise ConfigError(f"Log level must be a string, got {self._config.logging.level!r}")

        if not hasattr(logging, self._config.logging.level.upper()):
            raise ConfigError(f"Unknown log level: {self._config.logging.level}")

        logging.getLogger(__name__).debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()
