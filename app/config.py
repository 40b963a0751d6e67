"""
Sohar Gate Pass Portal
Configuration classes for the Flask App Factory.

Usage:
    app.config.from_object(config[os.getenv("APP_ENV", "development")])

Sohar Port gateway settings come from SOHAR_PORT_* env vars (see
app.integrations.sohar_port.config). SOHAR_PORT_OVERRIDES forces specific
SoharPortConfig fields on top of them, e.g. mock mode under test.
"""

import os

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _database_url(default=None):
    # Heroku-style postgres:// URLs are rejected by SQLAlchemy 2.x
    raw = os.getenv("DATABASE_URL", "")
    return raw.replace("postgres://", "postgresql://", 1) if raw else default


class Config:
    """Settings shared by every environment."""

    DEBUG = False
    TESTING = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # SoharPortConfig field overrides, passed straight to SoharPortClient
    SOHAR_PORT_OVERRIDES: dict = {}
    # Mock backend latency: seconds, or a (min, max) range
    SOHAR_PORT_MOCK_LATENCY = (0.5, 1.0)


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        f"sqlite:///{os.path.join(basedir, 'instance', 'gate_pass_dev.db')}"
    )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    # Tests never reach the real Sohar Port API
    SOHAR_PORT_OVERRIDES = {"use_mock": True}
    SOHAR_PORT_MOCK_LATENCY = 0


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if os.getenv("SOHAR_PORT_MOCK_MODE", "").strip().lower() in {"1", "true", "yes", "on"}:
            raise RuntimeError("SOHAR_PORT_MOCK_MODE must not be enabled in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
