"""
Configuration management for the spider crawler and indexer.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_file: Optional[str] = None
    seed_urls: List[str] = field(default_factory=list)
    # Tasks deeper than this are dropped when dequeued, never fetched.
    max_depth: int = 1
    max_workers: int = 4
    max_concurrent_requests: int = 10
    request_timeout: int = 30
    max_content_bytes: int = 10 * 1024 * 1024
    max_duration: Optional[int] = None
    user_agent: str = "spider/1.0"


@dataclass
class TokenizerConfig:
    """Configuration for keyword extraction."""
    fold_case: bool = False


@dataclass
class DatabaseConfig:
    """Configuration for the document store."""
    type: str = "redis"
    file: Dict[str, Any] = field(default_factory=lambda: {'path': 'data/index.json'})


@dataclass
class RedisConfig:
    """Configuration for Redis."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    key_prefix: str = "spider"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/spider.log"
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
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self, validate: bool = True) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            config_data = yaml.safe_load(file) or {}

        self._config = self.from_dict(config_data)
        if validate:
            self._validate_config()
        return self._config

    @staticmethod
    def from_dict(config_data: Dict[str, Any]) -> Config:
        """Build a Config from parsed YAML; missing sections keep their defaults."""
        return Config(
            crawler=CrawlerConfig(**(config_data.get('crawler') or {})),
            tokenizer=TokenizerConfig(**(config_data.get('tokenizer') or {})),
            database=DatabaseConfig(**(config_data.get('database') or {})),
            redis=RedisConfig(**(config_data.get('redis') or {})),
            logging=LoggingConfig(**(config_data.get('logging') or {})),
            monitoring=MonitoringConfig(**(config_data.get('monitoring') or {}))
        )

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")
        validate_config(self._config)
        logging.info("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def validate_config(config: Config):
    """Raise ValueError for settings the crawler cannot run with."""
    crawler = config.crawler

    if not crawler.seed_file and not crawler.seed_urls:
        raise ValueError("A seed_file or at least one seed URL must be provided")

    if crawler.max_depth < 0:
        raise ValueError("max_depth must be non-negative")

    if crawler.max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    if crawler.max_concurrent_requests < 1:
        raise ValueError("max_concurrent_requests must be at least 1")

    if crawler.request_timeout <= 0:
        raise ValueError("request_timeout must be positive")

    if crawler.max_duration is not None and crawler.max_duration <= 0:
        raise ValueError("max_duration must be positive when set")

    if config.database.type not in ['redis', 'file']:
        raise ValueError("Database type must be 'redis' or 'file'")


def load_config(config_path: str = "config.yaml", validate: bool = True) -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config(validate)
