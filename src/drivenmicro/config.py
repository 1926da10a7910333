"""
Configuration Management

Environment-aware settings for services built on the dispatch core, plus the
symbol table used to bind dependencies in the DI container.
"""

import json
import logging
import logging.handlers
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Optional, Union

import yaml

# Dependency injection keys
TYPES = SimpleNamespace(
    # Core services
    MessageBus="MessageBus",
    # Domain repositories
    DomainRepo="DomainRepo",
    ExternalRepo="ExternalRepo",
    # LLM clients
    LLMClient="LLMClient",
    # Units of work
    UnitOfWork="UnitOfWork",
    # Storage backends
    MemoryStore="MemoryStore",
    SQLEngine="SQLEngine",
)


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class PersistenceConfig:
    """Persistence layer configuration"""
    default_backend: str = "memory"   # "memory" or "sql"
    database_url: str = "sqlite:///drivenmicro.db"
    echo: bool = False


@dataclass
class WebConfig:
    """Entry point configuration"""
    host: str = "localhost"
    port: int = 4000
    base_path: str = "/process"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.persistence.database_url = "sqlite:///:memory:"
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("persistence", "web", "logging"):
            target = getattr(config, section)
            for key, value in config_dict.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)

        config.custom.update(config_dict.get("custom", {}))
        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        environment = Environment(os.getenv('DRIVENMICRO_ENV', 'development'))
        config = cls.for_environment(environment)

        if os.getenv('DRIVENMICRO_DEBUG'):
            config.debug = os.getenv('DRIVENMICRO_DEBUG').lower() == 'true'

        if os.getenv('DRIVENMICRO_LOG_LEVEL'):
            config.logging.level = os.getenv('DRIVENMICRO_LOG_LEVEL').upper()

        if os.getenv('DRIVENMICRO_PERSISTENCE'):
            config.persistence.default_backend = os.getenv('DRIVENMICRO_PERSISTENCE')

        if os.getenv('DRIVENMICRO_DATABASE_URL'):
            config.persistence.database_url = os.getenv('DRIVENMICRO_DATABASE_URL')

        if os.getenv('DRIVENMICRO_HOST'):
            config.web.host = os.getenv('DRIVENMICRO_HOST')

        if os.getenv('DRIVENMICRO_PORT'):
            config.web.port = int(os.getenv('DRIVENMICRO_PORT'))

        if os.getenv('DRIVENMICRO_BASE_PATH'):
            config.web.base_path = os.getenv('DRIVENMICRO_BASE_PATH')

        return config

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "persistence": {
                "default_backend": self.persistence.default_backend,
                "database_url": self.persistence.database_url,
                "echo": self.persistence.echo,
            },
            "web": {
                "host": self.web.host,
                "port": self.web.port,
                "base_path": self.web.base_path,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
                "max_file_size": self.logging.max_file_size,
                "backup_count": self.logging.backup_count,
            },
            "custom": self.custom,
        }


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Apply a logging configuration to the ``drivenmicro`` logger hierarchy.

    Handlers installed by a previous call are replaced, so calling this
    repeatedly does not duplicate output.
    """
    config = config or get_config().logging
    root = logging.getLogger("drivenmicro")
    root.setLevel(config.level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "_drivenmicro", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(config.format)
    handlers = [logging.StreamHandler()]
    if config.file_path:
        handlers.append(logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._drivenmicro = True
        root.addHandler(handler)

    return root


# Global configuration management
_current_config: Optional[ApplicationConfig] = None


def set_config(config: ApplicationConfig):
    """Set the global configuration"""
    global _current_config
    _current_config = config


def get_config() -> ApplicationConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        _current_config = ApplicationConfig.from_environment()

    return _current_config


def reset_config():
    """Forget the global configuration so it is rebuilt from the environment"""
    global _current_config
    _current_config = None


__all__ = [
    "TYPES", "ApplicationConfig", "Environment", "PersistenceConfig", "WebConfig",
    "LoggingConfig", "configure_logging", "set_config", "get_config", "reset_config",
]
