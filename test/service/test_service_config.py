import pytest

from session import InMemoryBackend
from service.config import build_session_backend, configure_logging, load_session_settings


def test_load_session_settings_from_env(monkeypatch):
    monkeypatch.setenv("SESSION_COOKIE_NAME", "app_sid")
    monkeypatch.setenv("SESSION_TTL", "900")
    monkeypatch.setenv("SECURE_COOKIES", "false")
    monkeypatch.setenv("COOKIE_SAMESITE", "Strict")
    monkeypatch.setenv("SESSION_SECRET_KEY", "s3cret")
    monkeypatch.setenv("SESSION_BACKEND", "memory")

    settings = load_session_settings()

    assert settings.cookie_name == "app_sid"
    assert settings.ttl == 900
    assert settings.cookie_max_age == 840
    assert settings.cookie_options.secure is False
    assert settings.cookie_options.samesite == "strict"
    assert settings.secret_key == "s3cret"
    assert isinstance(settings.store_adapter, InMemoryBackend)


def test_load_session_settings_defaults(monkeypatch):
    for name in ("SESSION_COOKIE_NAME", "SESSION_TTL", "SECURE_COOKIES", "COOKIE_SAMESITE", "SESSION_SECRET_KEY", "COOKIE_MAX_AGE"):
        monkeypatch.delenv(name, raising=False)
    backend = InMemoryBackend()

    settings = load_session_settings(store_adapter=backend)

    assert settings.cookie_name == "session"
    assert settings.ttl is None
    assert settings.cookie_options.secure is True
    assert settings.secret_key is None
    assert settings.store_adapter is backend


def test_invalid_ttl_is_rejected(monkeypatch):
    monkeypatch.setenv("SESSION_TTL", "soon")

    with pytest.raises(ValueError, match="SESSION_TTL"):
        load_session_settings(store_adapter=InMemoryBackend())


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError, match="SESSION_BACKEND"):
        build_session_backend("cassandra")


def test_sql_backend_requires_database_url(monkeypatch):
    monkeypatch.delenv("SESSION_DATABASE_URL", raising=False)

    with pytest.raises(ValueError, match="SESSION_DATABASE_URL"):
        build_session_backend("sql")


def test_redis_backend_falls_back_to_memory(monkeypatch):
    monkeypatch.setattr("service.redis_client.get_redis_client", lambda: None)

    assert isinstance(build_session_backend("redis"), InMemoryBackend)


def test_configure_logging_rejects_unknown_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert configure_logging() == "INFO"
