import json

import pytest
from fastapi.testclient import TestClient

from cas_proxy.app import create_app
from cas_proxy.config import Settings
from cas_proxy.session_codec import SessionCodec
from tests.helpers import BACKEND_URL, CAS_BASE_URL, FRONTEND_URL, SESSION_KEY, FakeUpstreams


@pytest.fixture
def settings():
    return Settings(
        cas_base_url=CAS_BASE_URL,
        frontend_url=FRONTEND_URL,
        backend_url=BACKEND_URL,
        session_key=SESSION_KEY,
    )


@pytest.fixture
def upstreams():
    return FakeUpstreams()


@pytest.fixture
def codec(settings):
    return SessionCodec(settings)


@pytest.fixture
def client(settings, upstreams):
    app = create_app(settings, transport=upstreams.transport)
    return TestClient(app)


@pytest.fixture
def session_cookie(codec):
    """Запечатанная cookie с произвольными значениями сессии."""

    def _make(values) -> str:
        return codec.sealer.seal(json.dumps(values))

    return _make

