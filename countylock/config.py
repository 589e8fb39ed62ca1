"""
Configuration management for the county licensing service.
Designed to fail fast with clear error messages in production.
"""

import os
import logging
from datetime import timedelta
from enum import Enum
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Environment types"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class ConfigurationError(Exception):
    """Raised when configuration validation fails"""
    pass


def _bool_env(name, default="false"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration shared by every environment."""

    # ============================================
    # APPLICATION META
    # ============================================
    APP_NAME = os.getenv("APP_NAME", "CountyLock")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    ENVIRONMENT = Environment.DEVELOPMENT.value
    DEBUG = False
    TESTING = False

    # ============================================
    # SECURITY KEYS
    # ============================================
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-immediately")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "12")))
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ERROR_MESSAGE_KEY = "error"

    # Shared with the main app to sign activation tokens and provisioning calls
    CROSS_APP_SECRET = os.getenv("CROSS_APP_SECRET", "temporary-dev-secret-change-me")

    # ============================================
    # DATABASE
    # ============================================
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///countylock.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
    }

    # ============================================
    # URLS
    # ============================================
    APP_URL = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")
    MAIN_APP_URL = os.getenv("MAIN_APP_URL", "http://localhost:3001").rstrip("/")
    MAIN_APP_SYNC_TIMEOUT = float(os.getenv("MAIN_APP_SYNC_TIMEOUT", "10"))
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", APP_URL).split(",") if o.strip()]

    # ============================================
    # STRIPE
    # ============================================
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_TIMEOUT = float(os.getenv("STRIPE_TIMEOUT", "10"))
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")

    # ============================================
    # TRIAL PROVISIONING WEBHOOK
    # ============================================
    TRIAL_WEBHOOK_URL = os.getenv("TRIAL_WEBHOOK_URL")
    TRIAL_WEBHOOK_API_KEY = os.getenv("TRIAL_WEBHOOK_API_KEY")
    TRIAL_WEBHOOK_TIMEOUT = float(os.getenv("TRIAL_WEBHOOK_TIMEOUT", "10"))

    # ============================================
    # SCRAPER
    # ============================================
    SCRAPER_TIMEOUT = float(os.getenv("SCRAPER_TIMEOUT", "15"))
    SCRAPER_USER_AGENT = os.getenv(
        "SCRAPER_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )

    # ============================================
    # BUSINESS RULES
    # ============================================
    SUBSCRIPTION_CREDITS_PER_TIER = int(os.getenv("SUBSCRIPTION_CREDITS_PER_TIER", "100"))
    AUCTION_CLAIM_BONUS_CREDITS = int(os.getenv("AUCTION_CLAIM_BONUS_CREDITS", "500"))
    TRIAL_MAX_ITEMS = int(os.getenv("TRIAL_MAX_ITEMS", "10000"))
    ACTIVATION_TOKEN_TTL_HOURS = int(os.getenv("ACTIVATION_TOKEN_TTL_HOURS", "24"))
    SUBSCRIPTION_TOKEN_EXPIRES_DAYS = 30

    # ============================================
    # MAIL
    # ============================================
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _bool_env("MAIL_USE_TLS", "true")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@countylock.com")
    SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@countylock.com")

    # ============================================
    # OBSERVABILITY
    # ============================================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
    SENTRY_DSN = os.getenv("SENTRY_DSN")

    # ============================================
    # RATE LIMITING
    # ============================================
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "300 per hour")

    # Manual replay of paid auction claims
    DEBUG_ENDPOINTS_ENABLED = _bool_env("DEBUG_ENDPOINTS_ENABLED")

    @classmethod
    def validate(cls):
        """Hook for environment-specific checks"""
        return True


class DevelopmentConfig(Config):
    ENVIRONMENT = Environment.DEVELOPMENT.value
    DEBUG = True
    DEBUG_ENDPOINTS_ENABLED = _bool_env("DEBUG_ENDPOINTS_ENABLED", "true")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "console")


class TestingConfig(Config):
    ENVIRONMENT = Environment.TESTING.value
    TESTING = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    CROSS_APP_SECRET = "test-cross-app-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STRIPE_SECRET_KEY = "sk_test_mock"
    STRIPE_WEBHOOK_SECRET = "whsec_test_mock"
    MAIN_APP_URL = "http://main.test"
    APP_URL = "http://app.test"
    TRIAL_WEBHOOK_URL = "http://trials.test/register"
    TRIAL_WEBHOOK_API_KEY = "trial-api-key"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "test@example.com"
    RATELIMIT_ENABLED = False
    DEBUG_ENDPOINTS_ENABLED = True
    LOG_FORMAT = "console"
    LOG_LEVEL = "WARNING"


class ProductionConfig(Config):
    ENVIRONMENT = Environment.PRODUCTION.value

    REQUIRED_SETTINGS = (
        "SECRET_KEY",
        "STRIPE_SECRET_KEY",
        "STRIPE_WEBHOOK_SECRET",
        "CROSS_APP_SECRET",
    )

    @classmethod
    def validate(cls):
        """Fail fast on missing or unsafe production settings"""
        missing = [name for name in cls.REQUIRED_SETTINGS if not os.getenv(name)]
        if not os.getenv("DATABASE_URL"):
            missing.append("DATABASE_URL")
        if missing:
            raise ConfigurationError(
                f"Missing required production settings: {', '.join(missing)}"
            )

        if urlparse(cls.SQLALCHEMY_DATABASE_URI).scheme.startswith("sqlite"):
            raise ConfigurationError("SQLite is not allowed in production. Use PostgreSQL.")

        if cls.CROSS_APP_SECRET == "temporary-dev-secret-change-me":
            raise ConfigurationError("CROSS_APP_SECRET must be changed in production")

        return True


CONFIG_BY_NAME = {
    Environment.DEVELOPMENT.value: DevelopmentConfig,
    Environment.TESTING.value: TestingConfig,
    Environment.PRODUCTION.value: ProductionConfig,
}


def get_config(config_name=None):
    """Resolve a configuration class by name, defaulting to FLASK_CONFIG."""
    name = (config_name or os.getenv("FLASK_CONFIG", "development")).lower()
    try:
        config_class = CONFIG_BY_NAME[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown configuration '{name}'. Expected one of: {', '.join(CONFIG_BY_NAME)}"
        )
    config_class.validate()
    return config_class
