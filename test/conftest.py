import sys
import logging
from pathlib import Path

import pytest

# Add the src directory to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from session import InMemoryBackend, SessionManager, SessionSettings


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SequentialIds:
    """Id generator yielding sid-1, sid-2, ..."""

    def __init__(self, prefix: str = "sid"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.INFO)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def initial_session():
    return {
        "whatever_you_want": "<unset>",
        "a_nullable_prop": None,
        "my_super_object": {"foo": "<unset>", "bar": 0, "baz": "<unset>"},
    }


@pytest.fixture
def memory_backend(clock):
    backend = InMemoryBackend(clock=clock)
    yield backend
    backend.clear()


@pytest.fixture
def make_settings(memory_backend, ids, initial_session):
    def _make(**overrides) -> SessionSettings:
        options = {
            "cookie_name": "my_app_sid",
            "store_adapter": memory_backend,
            "initial_session": initial_session,
            "get_uniq_id": ids,
        }
        options.update(overrides)
        return SessionSettings(**options)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def manager(settings, clock):
    return SessionManager(settings, clock=clock)
