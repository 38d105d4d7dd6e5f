"""Session tokens and header extraction."""

import uuid

import jwt
import pytest

from grievance_api.core.config import settings
from grievance_api.core.security import create_session_token, decode_session_token, extract_token


def _token():
    return create_session_token(
        user_id=uuid.uuid4(),
        email="s@uni.ac.in",
        roles=[{"role_name": "nodal_officer", "department_id": 2, "department_name": "Hostel"}],
        token_version=1,
    )


def test_round_trip_carries_role_payload():
    payload = decode_session_token(_token())
    assert payload["roles"][0]["role_name"] == "nodal_officer"
    assert payload["token_version"] == 1
    assert payload["exp"] - payload["iat"] == settings.JWT_EXPIRES_HOURS * 3600


def test_previous_secret_still_verifies(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "old-secret")
    token = _token()
    monkeypatch.setattr(settings, "JWT_SECRET", "new-secret")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "old-secret")

    assert decode_session_token(token)["email"] == "s@uni.ac.in"


def test_unknown_secret_is_rejected(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "other")
    token = _token()
    monkeypatch.setattr(settings, "JWT_SECRET", "mine")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "")

    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


def test_extract_token_prefers_portal_header():
    assert extract_token({"x-auth-token": " abc "}) == "abc"
    assert extract_token({"authorization": "Bearer xyz"}) == "xyz"
    assert extract_token({"authorization": "Basic xyz"}) is None
    assert extract_token({}) is None
