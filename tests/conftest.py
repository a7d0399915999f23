"""
Pytest fixtures for the test suite.

Route tests build bare ``APIRoute`` objects; no app or server is needed to
exercise the binder. Demo-app tests use FastAPI's ``TestClient``.
"""
from __future__ import annotations

import pytest
from fastapi.routing import APIRoute

from route_auth.schemes import AuthorizationCodeFlow, PasswordFlow, bearer, oauth2
from route_auth.settings import get_settings


def _endpoint() -> dict[str, str]:
    return {"status": "ok"}


@pytest.fixture
def make_route():
    """Factory for a plain route; extra kwargs go to ``APIRoute``."""

    def _make(path: str = "/items", methods: list[str] | None = None, **kwargs) -> APIRoute:
        return APIRoute(path, _endpoint, methods=methods or ["GET"], **kwargs)

    return _make


@pytest.fixture
def jwt_bearer():
    return bearer(format="JWT")


@pytest.fixture
def password_oauth():
    return oauth2(
        PasswordFlow(token_url="https://auth.example.com/token"),
        scopes={"items:read": "Read items", "items:write": "Write items"},
    )


@pytest.fixture
def code_oauth():
    return oauth2(
        AuthorizationCodeFlow(
            authorization_url="https://auth.example.com/authorize",
            token_url="https://auth.example.com/token",
        ),
        scopes={"profile": "Read profile"},
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached per process; clear around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
