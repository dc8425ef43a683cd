"""
Configuration management for the documentation crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, fields


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class ConfigurationError(Exception):
    """Raised when configuration or the seed index has an unexpected shape."""
    pass


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    site_origin: str = "https://developer.apple.com"
    index_url_template: str = "https://developer.apple.com/tutorials/data/index/{namespace}"
    docs_marker: str = "documentation"
    concurrency_limit: int = 3
    batch_delay: float = 2.0
    render_timeout: float = 30.0
    settle_delay: float = 2.0
    index_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    headless: bool = True
    browser_args: List[str] = field(
        default_factory=lambda: ['--no-sandbox', '--disable-setuid-sandbox']
    )
    max_pages: Optional[int] = None


@dataclass
class StorageConfig:
    """Configuration for artifact storage."""
    output_directory: str = "docs"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_section(section_cls, name: str, data: Any):
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in section '{name}': {', '.join(unknown)}")

    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """
        Load configuration from YAML file.

        A missing file is not an error: the built-in defaults are used.
        """
        if not self.config_path.exists():
            logging.getLogger(__name__).info(
                f"Configuration file {self.config_path} not found, using defaults"
            )
            self._config = Config()
            self._validate_config()
            return self._config

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(
                f"Top level of {self.config_path} must be a mapping, got {type(config_data).__name__}"
            )

        unknown = sorted(set(config_data) - {'crawler', 'storage', 'logging'})
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {', '.join(unknown)}")

        # Parse configuration sections
        try:
            self._config = Config(
                crawler=_build_section(CrawlerConfig, 'crawler', config_data.get('crawler')),
                storage=_build_section(StorageConfig, 'storage', config_data.get('storage')),
                logging=_build_section(LoggingConfig, 'logging', config_data.get('logging')),
            )
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigurationError("Configuration not loaded")

        crawler = self._config.crawler

        if crawler.concurrency_limit < 1:
            raise ConfigurationError("concurrency_limit must be at least 1")

        if crawler.batch_delay < 0:
            raise ConfigurationError("batch_delay must be non-negative")

        if crawler.render_timeout <= 0:
            raise ConfigurationError("render_timeout must be positive")

        if crawler.settle_delay < 0:
            raise ConfigurationError("settle_delay must be non-negative")

        if crawler.index_timeout <= 0:
            raise ConfigurationError("index_timeout must be positive")

        if crawler.max_pages is not None and crawler.max_pages < 1:
            raise ConfigurationError("max_pages must be at least 1 when set")

        if '{namespace}' not in crawler.index_url_template:
            raise ConfigurationError("index_url_template must contain a {namespace} placeholder")

        if not crawler.docs_marker:
            raise ConfigurationError("docs_marker must not be empty")

        logging.getLogger(__name__).debug("Configuration validation passed")


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()


def config_to_dict(config: Config) -> Dict[str, Any]:
    """Flatten the logging section into the dict shape setup_logging expects."""
    return {
        'level': config.logging.level,
        'file': config.logging.file,
        'format': config.logging.format,
    }
