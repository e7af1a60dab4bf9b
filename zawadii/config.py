"""
Configuration management for the Zawadii rewards service.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Substrings that mark a copied example or development key
INSECURE_KEY_MARKERS = ('dev', 'change', 'default', 'example', 'secret', 'password')
MIN_SECRET_KEY_LENGTH = 32


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Beem Africa SMS gateway
    BEEM_API_KEY = os.getenv('BEEM_API_KEY')
    BEEM_SECRET_KEY = os.getenv('BEEM_SECRET_KEY')
    BEEM_SMS_SOURCE_ADDR = os.getenv('BEEM_SMS_SOURCE_ADDR')
    BEEM_SMS_URL = os.getenv('BEEM_SMS_URL', 'https://apisms.beem.africa/v1/send')
    SMS_TIMEOUT_SECONDS = int(os.getenv('SMS_TIMEOUT_SECONDS', '10'))

    # Messaging limits
    MESSAGE_MAX_LENGTH = 500

    # Pending reward reservations older than this are reclaimed by the sweep
    REWARD_RESERVATION_TIMEOUT_MINUTES = int(os.getenv('REWARD_RESERVATION_TIMEOUT_MINUTES', '15'))


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///zawadii_dev.db'  # SQLite fallback for local dev
    )


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    _db_url = os.getenv('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        # SQLAlchemy requires postgresql:// not postgres://
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = _db_url

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 300,
        'pool_pre_ping': True,  # Verify connections before using
    }

    _secret_key = os.getenv('SECRET_KEY', '')

    @classmethod
    def validate_secret_key(cls) -> str:
        """
        Check that SECRET_KEY is set to a long random value.

        Every problem found is reported together so a deploy fails once
        with the full list.

        Raises:
            RuntimeError: If SECRET_KEY is missing, short, or looks like a placeholder
        """
        key = cls._secret_key or ''
        problems = []

        if not key:
            problems.append('SECRET_KEY is not set')
        else:
            if len(key) < MIN_SECRET_KEY_LENGTH:
                problems.append(
                    f'SECRET_KEY has {len(key)} characters, '
                    f'at least {MIN_SECRET_KEY_LENGTH} are required'
                )
            found = [marker for marker in INSECURE_KEY_MARKERS if marker in key.lower()]
            if found:
                problems.append(f"SECRET_KEY looks like a placeholder (contains {', '.join(found)})")

        if problems:
            raise RuntimeError(
                'Refusing to start in production: ' + '; '.join(problems) + '. '
                'Set SECRET_KEY to the output of secrets.token_hex(32).'
            )

        return key

    SECRET_KEY = _secret_key  # Validated at app startup


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    BEEM_API_KEY = 'test-api-key'
    BEEM_SECRET_KEY = 'test-secret-key'
    BEEM_SMS_SOURCE_ADDR = 'ZAWADII'
    BEEM_SMS_URL = 'https://apisms.beem.africa/v1/send'


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Validate configuration before app startup.

    Raises:
        RuntimeError: If validation fails in production
    """
    if config_name == 'production':
        ProductionConfig.validate_secret_key()
