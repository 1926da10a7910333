"""Configuration presets, overrides and logging setup."""

import json
import logging

import pytest

from drivenmicro.config import (
    ApplicationConfig,
    Environment,
    LoggingConfig,
    configure_logging,
    get_config,
    reset_config,
    set_config,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("ENV", "DEBUG", "LOG_LEVEL", "PERSISTENCE", "DATABASE_URL", "HOST", "PORT", "BASE_PATH"):
        monkeypatch.delenv(f"DRIVENMICRO_{name}", raising=False)
    reset_config()
    yield
    reset_config()


class TestApplicationConfig:

    def test_defaults(self):
        config = ApplicationConfig()
        assert config.environment == Environment.DEVELOPMENT
        assert config.persistence.default_backend == "memory"
        assert config.web.port == 4000
        assert config.web.base_path == "/process"

    def test_testing_preset(self):
        config = ApplicationConfig.for_environment(Environment.TESTING)
        assert config.persistence.database_url == "sqlite:///:memory:"
        assert config.logging.level == "WARNING"

    def test_production_preset(self):
        config = ApplicationConfig.for_environment(Environment.PRODUCTION)
        assert config.is_production
        assert not config.debug

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("DRIVENMICRO_ENV", "staging")
        monkeypatch.setenv("DRIVENMICRO_DEBUG", "true")
        monkeypatch.setenv("DRIVENMICRO_LOG_LEVEL", "debug")
        monkeypatch.setenv("DRIVENMICRO_PERSISTENCE", "sql")
        monkeypatch.setenv("DRIVENMICRO_DATABASE_URL", "sqlite:///jobs.db")
        monkeypatch.setenv("DRIVENMICRO_PORT", "8080")
        monkeypatch.setenv("DRIVENMICRO_BASE_PATH", "/jobs")

        config = ApplicationConfig.from_environment()
        assert config.environment == Environment.STAGING
        assert config.debug
        assert config.logging.level == "DEBUG"
        assert config.persistence.default_backend == "sql"
        assert config.persistence.database_url == "sqlite:///jobs.db"
        assert config.web.port == 8080
        assert config.web.base_path == "/jobs"

    def test_from_dict_round_trip(self):
        config = ApplicationConfig.for_environment(Environment.STAGING)
        config.web.port = 9000
        config.custom["region"] = "eu-west-1"

        restored = ApplicationConfig.from_dict(config.to_dict())
        assert restored.to_dict() == config.to_dict()

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"environment": "production", "web": {"port": 5000}}))

        config = ApplicationConfig.from_file(path)
        assert config.is_production
        assert config.web.port == 5000

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("environment: testing\npersistence:\n  default_backend: sql\n")

        config = ApplicationConfig.from_file(path)
        assert config.environment == Environment.TESTING
        assert config.persistence.default_backend == "sql"

    def test_from_file_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ApplicationConfig.from_file(tmp_path / "missing.json")

        toml_path = tmp_path / "config.toml"
        toml_path.write_text("environment = 'production'")
        with pytest.raises(ValueError, match="Unsupported"):
            ApplicationConfig.from_file(toml_path)


class TestGlobalConfig:

    def test_get_config_reads_environment_once(self, monkeypatch):
        monkeypatch.setenv("DRIVENMICRO_ENV", "testing")
        config = get_config()
        assert config.environment == Environment.TESTING
        assert get_config() is config

    def test_set_config(self):
        config = ApplicationConfig.for_environment(Environment.PRODUCTION)
        set_config(config)
        assert get_config() is config


class TestConfigureLogging:

    def test_applies_level_without_duplicating_handlers(self):
        logger = configure_logging(LoggingConfig(level="ERROR"))
        configure_logging(LoggingConfig(level="DEBUG"))

        owned = [h for h in logger.handlers if getattr(h, "_drivenmicro", False)]
        assert logger.name == "drivenmicro"
        assert logger.level == logging.DEBUG
        assert len(owned) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "service.log"
        logger = configure_logging(LoggingConfig(level="INFO", file_path=str(log_file)))
        logging.getLogger("drivenmicro.app.bus").info("chain finished")

        for handler in logger.handlers:
            handler.flush()
        assert "chain finished" in log_file.read_text()

        configure_logging(LoggingConfig(level="WARNING"))
