"""Configuration management for the collections service."""

# flake8: noqa: E501


import os
from typing import Type


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str, default: str = "") -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Config:
    """Base configuration."""

    # Flask
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    DEBUG = False
    TESTING = False
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

    # API
    API_PREFIX = os.getenv("API_PREFIX", "/api")

    # CORS
    CORS_ORIGINS = _env_list("CORS_ORIGINS", "*")
    CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]
    CORS_SUPPORTS_CREDENTIALS = False

    # Database (PyDAL)
    DATABASE_URL = os.getenv("DATABASE_URL")
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MIGRATE = _env_bool("DB_MIGRATE", "true")
    DB_FOLDER = os.getenv("DB_FOLDER")
    DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", "30"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Metrics
    METRICS_ENABLED = _env_bool("METRICS_ENABLED", "true")

    # Collections
    STRICT_COLLECTIONS = _env_bool("STRICT_COLLECTIONS")
    # Validation failures have historically surfaced as 500s
    VALIDATION_ERROR_STATUS = int(os.getenv("VALIDATION_ERROR_STATUS", "500"))

    # Schema reconciler
    SCHEMA_SYNC_INTERVAL = int(os.getenv("SCHEMA_SYNC_INTERVAL", "300"))
    SCHEMA_ARTIFACT_PATH = os.getenv("SCHEMA_ARTIFACT_PATH", "generated/schema.json")
    SCHEMA_ARTIFACT_MIRRORS = _env_list("SCHEMA_ARTIFACT_MIRRORS")
    SCHEMA_SYNC_AUTOSTART = _env_bool("SCHEMA_SYNC_AUTOSTART", "true")

    # Upload storage (credentials checked at startup)
    STORAGE_ENABLED = _env_bool("STORAGE_ENABLED")
    STORAGE_ACCESS_KEY = os.getenv("STORAGE_ACCESS_KEY")
    STORAGE_SECRET_KEY = os.getenv("STORAGE_SECRET_KEY")
    STORAGE_ENDPOINT = os.getenv("STORAGE_ENDPOINT")
    STORAGE_BUCKET = os.getenv("STORAGE_BUCKET")

    @staticmethod
    def init_app(app):
        """Initialize application with this config."""
        pass


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

        if cls.SECRET_KEY == "dev-secret-key-change-in-production":
            import logging

            logging.getLogger(__name__).warning(
                "SECRET_KEY is the development default; set SECRET_KEY in production"
            )


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://test_collections.sqlite")
    DB_CONNECT_RETRIES = 1
    METRICS_ENABLED = False
    SCHEMA_SYNC_AUTOSTART = False
    STORAGE_ENABLED = False


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def get_config(config_name: str = None) -> Type[Config]:
    """
    Get configuration class by name.

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Configuration class
    """
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    return config.get(config_name, config["default"])
