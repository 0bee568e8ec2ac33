"""
Configuration setup for the session service.

This module handles all configuration initialization including:
- Logging
- Session cookie settings
- Session storage backend selection
- Environment variables parsing
"""
import os
import logging
from typing import Optional

from dotenv import load_dotenv

from session import CookieOptions, InMemoryBackend, SessionBackend, SessionSettings

load_dotenv()

logger = logging.getLogger('service.config')

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
SESSION_BACKENDS = ['memory', 'redis', 'sql', 'mongo']


def configure_logging() -> str:
    """
    Configure root logging from the LOG_LEVEL environment variable.

    Returns:
        The log level actually applied
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LOG_LEVELS:
        logging.warning(f"Invalid LOG_LEVEL '{log_level}', using INFO. Valid levels: {', '.join(VALID_LOG_LEVELS)}")
        log_level = 'INFO'

    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return log_level


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def build_session_backend(backend_name: Optional[str] = None) -> SessionBackend:
    """
    Create the storage backend named by SESSION_BACKEND.

    Redis falls back to the in-memory backend when no client can be created.
    """
    backend_name = (backend_name or os.getenv("SESSION_BACKEND", "memory")).lower()
    if backend_name not in SESSION_BACKENDS:
        raise ValueError(f"SESSION_BACKEND must be one of {SESSION_BACKENDS}, got {backend_name!r}")

    if backend_name == "redis":
        from session.backends.redis_backend import RedisBackend
        from service.redis_client import get_redis_client

        redis_client = get_redis_client()
        if not redis_client:
            logger.warning("Could not get Redis client, falling back to InMemoryBackend for sessions")
            return InMemoryBackend()
        return RedisBackend(redis_client=redis_client, key_prefix=os.getenv("REDIS_SESSION_PREFIX", "session:"))

    if backend_name == "sql":
        from session.backends.sql_backend import SQLBackend

        database_url = os.getenv("SESSION_DATABASE_URL")
        if not database_url:
            raise ValueError("SESSION_DATABASE_URL environment variable must be set for the sql backend")
        return SQLBackend.from_url(database_url)

    if backend_name == "mongo":
        from motor.motor_asyncio import AsyncIOMotorClient
        from session.backends.mongo_backend import COL, MongoBackend

        client = AsyncIOMotorClient(os.getenv("MONGO_URI", "mongodb://localhost:27017"))
        db = client[os.getenv("MONGO_DB", "sessions")]
        return MongoBackend(db[os.getenv("MONGO_SESSION_COLLECTION", COL)])

    return InMemoryBackend()


def load_session_settings(store_adapter: Optional[SessionBackend] = None) -> SessionSettings:
    """Build SessionSettings from environment variables."""
    cookie_options = CookieOptions(
        domain=os.getenv("COOKIE_DOMAIN") or None,
        path=os.getenv("COOKIE_PATH", "/"),
        # For development, allow insecure cookies over HTTP
        secure=_env_bool("SECURE_COOKIES", "true"),
        samesite=os.getenv("COOKIE_SAMESITE", "lax").lower(),
        max_age=_env_int("COOKIE_MAX_AGE"),
    )

    settings = SessionSettings(
        cookie_name=os.getenv("SESSION_COOKIE_NAME", "session"),
        store_adapter=store_adapter or build_session_backend(),
        cookie_options=cookie_options,
        ttl=_env_int("SESSION_TTL"),
        secret_key=os.getenv("SESSION_SECRET_KEY") or None,
    )
    logger.info(
        f"Session settings loaded: cookie={settings.cookie_name} backend={type(settings.store_adapter).__name__} "
        f"ttl={settings.ttl} signed={settings.secret_key is not None}"
    )
    return settings
