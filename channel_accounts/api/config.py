"""
Environment-aware configuration.
Values come from the process environment, with a local .env file loaded first if present.
Signing secrets and TTLs are read once at startup and never mutated afterwards.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_ACCESS_SECRET = "dev-access-secret-change-me-before-deploying"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me-before-deploying"


def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///channel-accounts.db")
    SQL_ECHO = False

    # Access and refresh tokens are signed with distinct secrets so one can never
    # be replayed as the other.
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "channel-accounts")
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", DEV_ACCESS_SECRET)
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", DEV_REFRESH_SECRET)
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "864000")))

    # argon2id work factor
    ARGON2_TIME_COST = int(os.getenv("ARGON2_TIME_COST", "3"))
    ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "65536"))
    ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "4"))

    ACCESS_TOKEN_COOKIE = os.getenv("ACCESS_TOKEN_COOKIE", "access_token")
    REFRESH_TOKEN_COOKIE = os.getenv("REFRESH_TOKEN_COOKIE", "refresh_token")
    COOKIE_SECURE = _bool_env("COOKIE_SECURE", "true")
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Lax")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQL_ECHO = _bool_env("SQL_ECHO", "false")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef"
    # Cheap hashing keeps the suite fast
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 1024
    ARGON2_PARALLELISM = 1
    COOKIE_SECURE = False


class ProductionConfig(BaseConfig):
    DEBUG = False


CONFIGS = {
    "dev": DevelopmentConfig,
    "development": DevelopmentConfig,
    "test": TestingConfig,
    "testing": TestingConfig,
    "prod": ProductionConfig,
    "production": ProductionConfig,
}


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    return CONFIGS.get(env, DevelopmentConfig)


def check_secrets(config) -> None:
    """Refuse to run production with development or shared signing secrets."""
    if config.get("DEBUG") or config.get("TESTING"):
        return
    access = config.get("ACCESS_TOKEN_SECRET")
    refresh = config.get("REFRESH_TOKEN_SECRET")
    if access in (None, "", DEV_ACCESS_SECRET) or refresh in (None, "", DEV_REFRESH_SECRET):
        raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be set in production")
    if access == refresh:
        raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
