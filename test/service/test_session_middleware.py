"""
Tests for the session middleware wired into the FastAPI app.

Cookies are passed explicitly through the Cookie header so each test controls
exactly what the client sends.
"""
import logging

import pytest
import pytest_asyncio
from fastapi import Request
from httpx import ASGITransport, AsyncClient

from session import CookieOptions, SessionManager
from service import create_app

COOKIE_NAME = "my_app_sid"


def cookie_header(value: str) -> dict:
    return {"Cookie": f"{COOKIE_NAME}={value}"}


def set_cookie_header(response) -> str:
    return response.headers.get("set-cookie", "")


@pytest.fixture
def app_factory(make_settings, clock):
    def _make(**overrides):
        overrides.setdefault("cookie_options", CookieOptions(secure=False))
        settings = make_settings(**overrides)
        return create_app(settings, SessionManager(settings, clock=clock))

    return _make


@pytest_asyncio.fixture
async def client(app_factory):
    async with AsyncClient(transport=ASGITransport(app=app_factory()), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_first_request_sets_cookie(client, initial_session):
    response = await client.get("/session")

    assert response.status_code == 200
    assert response.json()["id"] == "sid-1"
    assert response.json()["data"] == initial_session
    assert response.cookies.get(COOKIE_NAME) == "sid-1"

    header = set_cookie_header(response).lower()
    assert "httponly" in header
    assert "samesite=lax" in header
    assert "path=/" in header
    assert "max-age" not in header


@pytest.mark.asyncio
async def test_revisit_keeps_session_without_new_cookie(client):
    first = await client.get("/session")
    sid = first.cookies.get(COOKIE_NAME)

    second = await client.get("/session", headers=cookie_header(sid))

    assert second.json()["id"] == sid
    assert "set-cookie" not in second.headers


@pytest.mark.asyncio
async def test_changes_are_saved_after_the_handler(client, memory_backend):
    sid = (await client.get("/session")).cookies.get(COOKIE_NAME)

    patched = await client.patch("/session", json={"whatever_you_want": "hello"}, headers=cookie_header(sid))
    assert patched.status_code == 200
    assert "set-cookie" not in patched.headers

    stored = await memory_backend.read(sid)
    assert stored.data["whatever_you_want"] == "hello"

    again = await client.get("/session", headers=cookie_header(sid))
    assert again.json()["data"]["whatever_you_want"] == "hello"


@pytest.mark.asyncio
async def test_destroy_clears_cookie_and_record(client, memory_backend):
    sid = (await client.get("/session")).cookies.get(COOKIE_NAME)

    response = await client.post("/session/destroy", headers=cookie_header(sid))

    assert response.json() == {"destroyed": True}
    assert "max-age=0" in set_cookie_header(response).lower()
    assert await memory_backend.read(sid) is None

    stale = await client.get("/session", headers=cookie_header(sid))
    assert stale.json()["id"] != sid
    assert stale.cookies.get(COOKIE_NAME) == stale.json()["id"]


@pytest.mark.asyncio
async def test_unknown_cookie_gets_replacement_session(client, memory_backend):
    response = await client.get("/session", headers=cookie_header("forged-id"))

    new_sid = response.json()["id"]
    assert new_sid != "forged-id"
    assert response.cookies.get(COOKIE_NAME) == new_sid
    assert await memory_backend.read(new_sid) is not None
    assert await memory_backend.read("forged-id") is None


@pytest.mark.asyncio
async def test_failing_handler_does_not_save_session(app_factory, memory_backend, initial_session):
    app = app_factory()

    @app.get("/explode")
    async def explode(request: Request):
        request.state.session_context.session.data["whatever_you_want"] = "half done"
        raise RuntimeError("boom")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        sid = (await client.get("/session")).cookies.get(COOKIE_NAME)
        response = await client.get("/explode", headers=cookie_header(sid))

    assert response.status_code == 500
    assert response.json()["error_code"] == "internal_error"
    assert (await memory_backend.read(sid)).data == initial_session


@pytest.mark.asyncio
async def test_ttl_sets_cookie_max_age(app_factory):
    app = app_factory(ttl=3600)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/session")

    assert "max-age=3540" in set_cookie_header(response).lower()
    assert response.json()["expires_at"] == response.json()["created_at"] + 3600


@pytest.mark.asyncio
async def test_signed_cookies(app_factory):
    app = app_factory(secret_key="test-secret")
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        first = await client.get("/session")
        signed = first.cookies.get(COOKIE_NAME)
        assert signed.startswith("sid-1.")

        revisit = await client.get("/session", headers=cookie_header(signed))
        assert revisit.json()["id"] == "sid-1"

        tampered = await client.get("/session", headers=cookie_header("sid-1.forged-signature"))
        assert tampered.json()["id"] == "sid-2"
        assert tampered.cookies.get(COOKIE_NAME).startswith("sid-2.")

        unsigned = await client.get("/session", headers=cookie_header("sid-1"))
        assert unsigned.json()["id"] == "sid-3"


@pytest.mark.asyncio
async def test_request_metadata_is_stored(client, memory_backend):
    response = await client.get(
        "/session",
        headers={"X-Forwarded-For": "127.0.0.1, 203.0.113.5", "User-Agent": "pytest-agent"},
    )

    stored = await memory_backend.read(response.json()["id"])
    assert stored.metadata.client_address == "203.0.113.5"
    assert stored.metadata.user_agent == "pytest-agent"


@pytest.mark.asyncio
async def test_status(client):
    response = await client.get("/status")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_requests_are_traced_with_session_outcome(client, caplog):
    caplog.set_level(logging.DEBUG, logger="service.middleware")

    first = await client.get("/session")
    sid = first.cookies.get(COOKIE_NAME)
    await client.patch("/session", json={"whatever_you_want": "hello"}, headers=cookie_header(sid))

    traces = [record.getMessage() for record in caplog.records if "SESSION_TRACE" in record.getMessage()]
    assert len(traces) == 2
    assert "GET /session -> 200" in traces[0]
    assert "cookie_in=False" in traces[0]
    assert f"session={sid} state=no_cookie cookie=set saved=False" in traces[0]
    assert "PATCH /session -> 200" in traces[1]
    assert "cookie_in=True" in traces[1]
    assert f"session={sid} state=cookie_with_id cookie=none saved=True" in traces[1]


@pytest.mark.asyncio
async def test_failing_handler_is_logged_with_its_session(app_factory, caplog):
    app = app_factory()

    @app.get("/explode")
    async def explode():
        raise RuntimeError("boom")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        sid = (await client.get("/session")).cookies.get(COOKIE_NAME)
        with caplog.at_level(logging.ERROR, logger="service.middleware"):
            response = await client.get("/explode", headers=cookie_header(sid))

    assert response.status_code == 500
    errors = [record for record in caplog.records if record.levelno == logging.ERROR and "GET /explode" in record.getMessage()]
    assert len(errors) == 1
    assert "session changes discarded" in errors[0].getMessage()
    assert f"session={sid}" in errors[0].getMessage()
    assert "boom" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_short_ttl_cookie_expires_before_session(app_factory):
    app = app_factory(ttl=30)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/session")

    assert "max-age=15" in set_cookie_header(response).lower()
