"""
Intake Completion & Phase-Gating Service
Environment configuration for the Flask app factory.

Usage:
    app.config.from_object(config[os.getenv("APP_ENV", "development")]())

Environment variables:
    DATABASE_URL / TEST_DATABASE_URL   database for prod+dev / tests
    SECRET_KEY, JWT_SECRET_KEY         signing keys (JWT falls back to SECRET_KEY)
    JWT_ACCESS_EXPIRES                 access token lifetime in seconds
    REDIS_URL                          Flask-Limiter storage backend
    SUBMIT_RATE_LIMIT                  limit on the submission endpoints
    SNAPSHOT_HISTORY_LIMIT             default page size of the history view
    CORS_ORIGINS                       comma separated, "*" outside production
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'intake_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"


def _database_url(default=None):
    # Heroku-style postgres:// URLs are rejected by SQLAlchemy 2.0
    raw = os.getenv("DATABASE_URL", "")
    return raw.replace("postgres://", "postgresql://", 1) if raw else default


class Config:
    """Settings shared by every environment."""

    SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_hex(32))
    DEBUG = False
    TESTING = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_EXPIRES = int(os.getenv("JWT_ACCESS_EXPIRES", "900"))

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    # Read by Flask-Limiter in init_app
    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL", "memory://")
    SUBMIT_RATE_LIMIT = os.getenv("SUBMIT_RATE_LIMIT", "10/minute")

    SNAPSHOT_HISTORY_LIMIT = int(os.getenv("SNAPSHOT_HISTORY_LIMIT", "100"))

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(_SQLITE_DEV)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "test-jwt-secret-key-0123456789abcdef"
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"


class ProductionConfig(Config):
    """Refuses to instantiate without a database URL and a stable SECRET_KEY."""

    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
        # 30s statement timeout
        "connect_args": {"options": "-c statement_timeout=30000"},
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
