"""
Configuration profiles for the Kandoo Foundation API

Every value can be overridden from the environment. Development and testing
profiles fall back to insecure defaults; the production profile refuses to start
without a token secret and database password.
"""

import os
from urllib.parse import quote_plus

from sqlalchemy.pool import QueuePool


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing"""


INSECURE_TOKEN_SECRET = 'dev-secret-key-change-in-production'


def _database_uri():
    url = os.environ.get('DATABASE_URL')
    if url:
        return url
    user = os.environ.get('DB_USER', 'root')
    password = os.environ.get('DB_PASSWORD', '')
    host = os.environ.get('DB_HOST', 'localhost')
    port = os.environ.get('DB_PORT', '3306')
    name = os.environ.get('DB_NAME', 'kandoo_foundation')
    credentials = quote_plus(user)
    if password:
        credentials += ':' + quote_plus(password)
    return f'mysql+pymysql://{credentials}@{host}:{port}/{name}'


class Config:
    ENV_NAME = 'base'

    JWT_SECRET = os.environ.get('JWT_SECRET')
    TOKEN_EXPIRATION_SECONDS = int(os.environ.get('TOKEN_EXPIRATION_SECONDS', 3600))

    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    DB_POOL_SIZE = int(os.environ.get('DB_POOL_SIZE', 10))
    DB_POOL_TIMEOUT = int(os.environ.get('DB_POOL_TIMEOUT', 30))

    # Fixed-size pool; requests queue for a connection instead of overflowing
    SQLALCHEMY_ENGINE_OPTIONS = {
        'poolclass': QueuePool,
        'pool_size': DB_POOL_SIZE,
        'max_overflow': 0,
        'pool_timeout': DB_POOL_TIMEOUT,
        'pool_recycle': 600,
        'pool_pre_ping': True,
        'pool_reset_on_return': 'rollback',
    }

    CORS_ORIGIN = os.environ.get('CORS_ORIGIN', 'http://localhost:3000')
    PORT = int(os.environ.get('PORT', 5000))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    SKIP_DB_INIT = False
    TESTING = False
    DEBUG = False

    @classmethod
    def validate(cls):
        """Return a list of warnings; raise ConfigurationError for fatal problems"""
        warnings = []
        if not cls.JWT_SECRET:
            warnings.append('JWT_SECRET is not set, using an insecure development secret')
        if not os.environ.get('DB_PASSWORD') and not os.environ.get('DATABASE_URL'):
            warnings.append('DB_PASSWORD is not set, connecting without a password')
        return warnings

    @classmethod
    def token_secret(cls):
        return cls.JWT_SECRET or INSECURE_TOKEN_SECRET


class DevelopmentConfig(Config):
    ENV_NAME = 'development'
    DEBUG = True


class TestingConfig(Config):
    ENV_NAME = 'testing'
    TESTING = True
    JWT_SECRET = 'testing-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    # Flask-SQLAlchemy picks a StaticPool for in-memory SQLite
    SQLALCHEMY_ENGINE_OPTIONS = {}

    @classmethod
    def validate(cls):
        return []


class ProductionConfig(Config):
    ENV_NAME = 'production'

    @classmethod
    def validate(cls):
        missing = []
        if not cls.JWT_SECRET:
            missing.append('JWT_SECRET')
        if not os.environ.get('DB_PASSWORD') and not os.environ.get('DATABASE_URL'):
            missing.append('DB_PASSWORD')
        if missing:
            raise ConfigurationError(
                f"Missing required configuration for production: {', '.join(missing)}"
            )
        return []

    @classmethod
    def token_secret(cls):
        if not cls.JWT_SECRET:
            raise ConfigurationError('JWT_SECRET must be set in production')
        return cls.JWT_SECRET


config_by_name = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(name=None):
    """Resolve a configuration profile by name (APP_ENV / FLASK_ENV by default)"""
    name = name or os.environ.get('APP_ENV') or os.environ.get('FLASK_ENV') or 'development'
    try:
        return config_by_name[name.lower()]
    except KeyError:
        raise ConfigurationError(f"Unknown configuration profile: {name}")
