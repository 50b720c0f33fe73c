import pytest
from fastapi import HTTPException

from arcaide_server.auth.security import get_current_user
from arcaide_server.auth.models import UserContext

from conftest import create_token


class MockCredentials:
    def __init__(self, token):
        self.credentials = token


def test_valid_token_accepted(settings):
    token = create_token(sub="user-42", name="Dungeon Master")
    user = get_current_user(MockCredentials(token), settings)

    assert isinstance(user, UserContext)
    assert user.user_id == "user-42"
    assert user.username == "Dungeon Master"


def test_missing_credentials_rejected(settings):
    with pytest.raises(HTTPException) as excinfo:
        get_current_user(None, settings)
    assert excinfo.value.status_code == 401
    assert excinfo.value.headers["WWW-Authenticate"] == "Bearer"


def test_expired_token_rejected(settings):
    token = create_token(expired=True)

    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token), settings)
    assert excinfo.value.status_code == 401
    assert "expired" in excinfo.value.detail


def test_wrong_issuer_rejected(settings):
    token = create_token(issuer="someone-else")

    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token), settings)
    assert excinfo.value.status_code == 401
    assert "issuer" in excinfo.value.detail


def test_wrong_audience_rejected(settings):
    token = create_token(audience="wrong-audience")

    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token), settings)
    assert excinfo.value.status_code == 401
    assert "audience" in excinfo.value.detail


def test_wrong_signature_rejected(settings):
    token = create_token(secret="wrong-secret-key-that-is-long-enough")

    with pytest.raises(HTTPException) as excinfo:
        get_current_user(MockCredentials(token), settings)
    assert excinfo.value.status_code == 401
    assert "Invalid" in excinfo.value.detail


def test_user_context_is_immutable():
    user = UserContext(user_id="user-1")
    with pytest.raises(Exception):
        user.user_id = "user-2"


def test_routes_require_token(client):
    resp = client.get("/campaigns")
    assert resp.status_code == 401


def test_health_is_public(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
