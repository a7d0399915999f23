"""
Named OpenAPI security schemes and their constructors.

Background for newcomers:
    OpenAPI describes authentication in two places. The document's
    ``components.securitySchemes`` section *declares* each mechanism under a
    name (``"http_bearer_JWT": {"type": "http", "scheme": "bearer", ...}``),
    and each operation's ``security`` list *requires* some of them by that
    name, optionally with OAuth2 scopes.

    ``AuthSchemeObject`` pairs a FastAPI OpenAPI scheme model with the name it
    is published under. When no name is given, one is derived from the scheme
    content (``auto_name``), so building the same scheme twice yields equal
    values that deduplicate cleanly when attached to a route.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from fastapi.openapi.models import (
    APIKey,
    APIKeyIn,
    HTTPBase,
    OAuth2,
    OAuthFlowAuthorizationCode,
    OAuthFlowClientCredentials,
    OAuthFlowImplicit,
    OAuthFlowPassword,
    OAuthFlows,
    OpenIdConnect,
    SecurityScheme,
)
from fastapi.openapi.models import HTTPBearer as HTTPBearerModel

__all__ = [
    "AuthSchemeObject",
    "AuthorizationCodeFlow",
    "ClientCredentialsFlow",
    "ImplicitFlow",
    "PasswordFlow",
    "all_scopes",
    "api_key",
    "auto_name",
    "basic",
    "bearer",
    "oauth2",
    "openid_connect",
]

DEFAULT_API_KEY_NAME = "X-API-Key"

# Name segments for OAuth2 flows, in the order they appear in derived names.
_FLOW_NAME_ORDER = ("password", "clientCredentials", "authorizationCode", "implicit")
# Order in which flow scopes are collected.
_FLOW_SCOPE_ORDER = ("implicit", "authorizationCode", "clientCredentials", "password")


def auto_name(scheme: SecurityScheme) -> str:
    """
    Derive a deterministic name from the scheme content.

    Segments (skipped when absent): type, HTTP scheme, bearer format,
    API-key location, then one token per OAuth2 flow present.

    The API-key ``name`` is not a segment, so two API-key schemes that differ
    only by header name get the same derived name. Pass an explicit ``id`` to
    keep such schemes apart.
    """

    segments: list[str | None] = [
        scheme.type_.value,
        getattr(scheme, "scheme", None),
        getattr(scheme, "bearerFormat", None),
    ]
    location = getattr(scheme, "in_", None)
    segments.append(location.value if location is not None else None)

    flows = getattr(scheme, "flows", None)
    if flows is not None:
        segments.extend(flow if getattr(flows, flow) is not None else None for flow in _FLOW_NAME_ORDER)

    return "_".join(s for s in segments if s)


def all_scopes(scheme: SecurityScheme) -> list[str]:
    """Scope names declared across the scheme's OAuth2 flows (empty otherwise)."""

    flows = getattr(scheme, "flows", None)
    if flows is None:
        return []

    scopes: list[str] = []
    for flow_name in _FLOW_SCOPE_ORDER:
        flow = getattr(flows, flow_name)
        if flow is None:
            continue
        for scope in flow.scopes:
            if scope not in scopes:
                scopes.append(scope)
    return scopes


class AuthSchemeObject:
    """
    A security scheme plus the name it is published under.

    Immutable: the scheme model is copied on the way in and on the way out,
    so neither the caller's instance nor ``obj.scheme`` can change the value.
    Equality and hashing use ``id`` and the scheme's serialized content.
    """

    __slots__ = ("_id", "_scheme", "_content")

    def __init__(self, scheme: SecurityScheme, id: str | None = None) -> None:
        self._scheme = scheme.model_copy(deep=True)
        self._content = json.dumps(self._scheme.model_dump(mode="json", by_alias=True), sort_keys=True)
        self._id = id or auto_name(self._scheme)

    @property
    def id(self) -> str:
        return self._id

    @property
    def scheme(self) -> SecurityScheme:
        return self._scheme.model_copy(deep=True)

    @property
    def scopes(self) -> list[str]:
        return all_scopes(self._scheme)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthSchemeObject):
            return NotImplemented
        return (self._id, self._content) == (other._id, other._content)

    def __hash__(self) -> int:
        return hash((self._id, self._content))

    def __repr__(self) -> str:
        return f"AuthSchemeObject(id={self._id!r}, scheme={self._scheme!r})"


# OAuth2 flow configuration. Each object builds an ``OAuthFlows`` holding
# exactly one flow; URL requirements are enforced by the FastAPI models.


@dataclass(frozen=True)
class ImplicitFlow:
    authorization_url: str

    def to_flows(self, refresh_url: str | None, scopes: dict[str, str]) -> OAuthFlows:
        return OAuthFlows(
            implicit=OAuthFlowImplicit(
                authorizationUrl=self.authorization_url,
                refreshUrl=refresh_url,
                scopes=scopes,
            )
        )


@dataclass(frozen=True)
class PasswordFlow:
    token_url: str

    def to_flows(self, refresh_url: str | None, scopes: dict[str, str]) -> OAuthFlows:
        return OAuthFlows(
            password=OAuthFlowPassword(tokenUrl=self.token_url, refreshUrl=refresh_url, scopes=scopes)
        )


@dataclass(frozen=True)
class ClientCredentialsFlow:
    token_url: str

    def to_flows(self, refresh_url: str | None, scopes: dict[str, str]) -> OAuthFlows:
        return OAuthFlows(
            clientCredentials=OAuthFlowClientCredentials(
                tokenUrl=self.token_url,
                refreshUrl=refresh_url,
                scopes=scopes,
            )
        )


@dataclass(frozen=True)
class AuthorizationCodeFlow:
    authorization_url: str
    token_url: str

    def to_flows(self, refresh_url: str | None, scopes: dict[str, str]) -> OAuthFlows:
        return OAuthFlows(
            authorizationCode=OAuthFlowAuthorizationCode(
                authorizationUrl=self.authorization_url,
                tokenUrl=self.token_url,
                refreshUrl=refresh_url,
                scopes=scopes,
            )
        )


OAuth2Flow = ImplicitFlow | PasswordFlow | ClientCredentialsFlow | AuthorizationCodeFlow


def basic(id: str | None = None, description: str | None = None) -> AuthSchemeObject:
    """
    HTTP Basic authentication.

    The client sends ``Authorization: Basic <base64(username:password)>``.
    """

    return AuthSchemeObject(HTTPBase(scheme="basic", description=description), id=id)


def api_key(
    id: str | None = None,
    name: str = DEFAULT_API_KEY_NAME,
    location: APIKeyIn = APIKeyIn.header,
    description: str | None = None,
) -> AuthSchemeObject:
    """
    A static key sent in a header, query parameter or cookie called ``name``.
    """

    scheme = APIKey(**{"in": location}, name=name, description=description)
    return AuthSchemeObject(scheme, id=id)


def bearer(
    id: str | None = None,
    format: str | None = None,
    description: str | None = None,
) -> AuthSchemeObject:
    """
    Bearer token authentication: ``Authorization: Bearer <token>``.

    ``format`` is a documentation hint only (e.g. ``"JWT"``).
    """

    return AuthSchemeObject(HTTPBearerModel(bearerFormat=format, description=description), id=id)


def oauth2(
    flow: OAuth2Flow,
    id: str | None = None,
    refresh_url: str | None = None,
    scopes: dict[str, str] | None = None,
    description: str | None = None,
) -> AuthSchemeObject:
    """
    OAuth 2.0 with a single flow.

    ``scopes`` maps scope name to a human readable description. When a route
    is bound without explicit scopes, all of them are required.
    """

    scheme = OAuth2(flows=flow.to_flows(refresh_url, dict(scopes or {})), description=description)
    return AuthSchemeObject(scheme, id=id)


def openid_connect(url: str, id: str | None = None, description: str | None = None) -> AuthSchemeObject:
    """OpenID Connect discovery; ``url`` points at the provider's configuration document."""

    return AuthSchemeObject(OpenIdConnect(openIdConnectUrl=url, description=description), id=id)
