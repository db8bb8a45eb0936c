import time

import pytest
from cryptography.fernet import Fernet

from cas_proxy.sealing import CookieSealer


@pytest.fixture
def sealer():
    return CookieSealer(CookieSealer.generate_key())


def test_open_returns_sealed_data(sealer):
    assert sealer.open(sealer.seal('{"proxy-session-key": 1}')) == '{"proxy-session-key": 1}'


def test_sealed_value_is_cookie_safe(sealer):
    sealed = sealer.seal("x" * 50)
    assert "=" not in sealed
    assert '"' not in sealed


def test_tampered_value_is_rejected(sealer):
    sealed = sealer.seal("data")
    tampered = sealed[:-4] + ("AAAA" if not sealed.endswith("AAAA") else "BBBB")
    with pytest.raises(ValueError):
        sealer.open(tampered)


def test_garbage_is_rejected(sealer):
    with pytest.raises(ValueError):
        sealer.open("не base64 вовсе")


def test_other_key_cannot_open(sealer):
    other = CookieSealer(CookieSealer.generate_key())
    with pytest.raises(ValueError):
        other.open(sealer.seal("data"))


def test_expired_value_is_rejected():
    key = Fernet.generate_key().decode("utf-8")
    sealer = CookieSealer(key, max_age=60)
    token = Fernet(key.encode("utf-8")).encrypt_at_time(b"data", int(time.time()) - 3600)
    with pytest.raises(ValueError):
        sealer.open(token.decode("ascii").rstrip("="))


@pytest.mark.parametrize("key", ["", "short", "bm90LWEtMzItYnl0ZS1rZXk="])
def test_invalid_key_is_refused(key):
    with pytest.raises(ValueError):
        CookieSealer(key)
