"""
Configuration settings for different environments
"""
import logging
import os
import secrets
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _require_in_production(var_name, default):
    """Return env var value. In production, warn loudly if still using default."""
    value = os.environ.get(var_name, "")
    if value:
        return value
    env = os.environ.get("FLASK_ENV", "development")
    if env not in ("development", "testing") and default:
        logging.getLogger(__name__).warning(
            "%s is using an insecure default. Set it via environment variable!", var_name
        )
    return default


def _database_url():
    url = os.environ.get("DATABASE_URL", "")
    if not url:
        return "sqlite:///yenko.db"
    # Fix postgres:// to postgresql:// for SQLAlchemy 2.x
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _env_flag(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "on", "1", "yes")


class Config:
    """Base configuration"""
    SECRET_KEY = _require_in_production('SECRET_KEY', 'dev-only-' + secrets.token_hex(16))

    # Session tokens
    JWT_SECRET = _require_in_production('JWT_SECRET', 'dev-only-' + secrets.token_hex(32))
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # OTP store: Redis when REDIS_URL is set, process memory otherwise
    REDIS_URL = os.environ.get('REDIS_URL', '')
    OTP_TTL_SECONDS = 5 * 60
    # How long an expired code is kept so verification can report it as expired
    OTP_RETENTION_SECONDS = int(os.environ.get('OTP_RETENTION_SECONDS', 60 * 60))
    OTP_LENGTH = 6
    # Echo the code back in the request-otp response (never in production)
    OTP_DEV_MODE = _env_flag('OTP_DEV_MODE', 'true')

    # Twilio SMS
    TWILIO_ACCOUNT_SID = os.environ.get('TWILIO_ACCOUNT_SID', '')
    TWILIO_AUTH_TOKEN = os.environ.get('TWILIO_AUTH_TOKEN', '')
    TWILIO_FROM_NUMBER = os.environ.get('TWILIO_FROM_NUMBER', '')

    # Paystack
    PAYMENT_GATEWAY = os.environ.get('PAYMENT_GATEWAY', 'mock')
    PAYSTACK_SECRET_KEY = os.environ.get('PAYSTACK_SECRET_KEY', '')
    PAYSTACK_BASE_URL = os.environ.get('PAYSTACK_BASE_URL', 'https://api.paystack.co')
    PAYSTACK_CALLBACK_URL = os.environ.get('PAYSTACK_CALLBACK_URL', '')

    # Admin bootstrap
    SUPER_ADMIN_KEY = os.environ.get('SUPER_ADMIN_KEY', '')

    # Pricing (cedis)
    BASE_FARE = float(os.environ.get('BASE_FARE', '3.0'))
    PER_KM_BASIC = float(os.environ.get('PER_KM_BASIC', '1.2'))
    PER_KM_PREMIUM = float(os.environ.get('PER_KM_PREMIUM', '1.8'))
    PLATFORM_COMMISSION = 0.12
    DEFAULT_DISTANCE_KM = float(os.environ.get('DEFAULT_DISTANCE_KM', '20'))
    AVERAGE_SPEED_KMH = 27.0
    DEFAULT_PICKUP_ETA_MINUTES = 10

    # CORS
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'

    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1MB

    # Logging / monitoring
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SENTRY_DSN = os.environ.get('SENTRY_DSN', '')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    OTP_DEV_MODE = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""
    TESTING = True
    DEBUG = False

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    JWT_SECRET = 'test-jwt-secret'
    SECRET_KEY = 'test-secret-key'

    REDIS_URL = ''
    OTP_DEV_MODE = True

    TWILIO_ACCOUNT_SID = ''
    TWILIO_AUTH_TOKEN = ''
    TWILIO_FROM_NUMBER = ''

    PAYMENT_GATEWAY = 'mock'
    PAYSTACK_SECRET_KEY = 'sk_test_webhook_secret'
    SUPER_ADMIN_KEY = 'test-super-admin-key'

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'

    CORS_ORIGINS = ['http://localhost:5173', 'http://localhost:3000']

    LOG_LEVEL = 'WARNING'
    SENTRY_DSN = ''


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
