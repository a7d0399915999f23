from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import yaml
from fastapi.openapi.models import APIKeyIn
from pydantic import BaseModel, Field, model_validator

from route_auth.schemes import (
    DEFAULT_API_KEY_NAME,
    AuthorizationCodeFlow,
    AuthSchemeObject,
    ClientCredentialsFlow,
    ImplicitFlow,
    OAuth2Flow,
    PasswordFlow,
    api_key,
    basic,
    bearer,
    oauth2,
    openid_connect,
)

logger = logging.getLogger(__name__)


class _SchemeBase(BaseModel):
    id: str | None = None
    description: str | None = None


class BasicScheme(_SchemeBase):
    kind: Literal["basic"]

    def build(self) -> AuthSchemeObject:
        return basic(id=self.id, description=self.description)


class ApiKeyScheme(_SchemeBase):
    kind: Literal["apiKey"]
    name: str = DEFAULT_API_KEY_NAME
    location: APIKeyIn = APIKeyIn.header

    def build(self) -> AuthSchemeObject:
        return api_key(id=self.id, name=self.name, location=self.location, description=self.description)


class BearerScheme(_SchemeBase):
    kind: Literal["bearer"]
    format: str | None = None

    def build(self) -> AuthSchemeObject:
        return bearer(id=self.id, format=self.format, description=self.description)


# URL fields each OAuth2 flow needs.
_FLOW_URLS: dict[str, tuple[str, ...]] = {
    "implicit": ("authorization_url",),
    "password": ("token_url",),
    "clientCredentials": ("token_url",),
    "authorizationCode": ("authorization_url", "token_url"),
}


class OAuth2Scheme(_SchemeBase):
    kind: Literal["oauth2"]
    flow: Literal["implicit", "password", "clientCredentials", "authorizationCode"]
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None
    scopes: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_flow_urls(self) -> OAuth2Scheme:
        missing = [f for f in _FLOW_URLS[self.flow] if not getattr(self, f)]
        if missing:
            raise ValueError(f"OAuth2 flow '{self.flow}' requires: {', '.join(missing)}")
        return self

    def oauth2_flow(self) -> OAuth2Flow:
        if self.flow == "implicit":
            return ImplicitFlow(authorization_url=self.authorization_url)
        if self.flow == "password":
            return PasswordFlow(token_url=self.token_url)
        if self.flow == "clientCredentials":
            return ClientCredentialsFlow(token_url=self.token_url)
        return AuthorizationCodeFlow(authorization_url=self.authorization_url, token_url=self.token_url)

    def build(self) -> AuthSchemeObject:
        return oauth2(
            self.oauth2_flow(),
            id=self.id,
            refresh_url=self.refresh_url,
            scopes=self.scopes,
            description=self.description,
        )


class OpenIdConnectScheme(_SchemeBase):
    kind: Literal["openIdConnect"]
    url: str

    def build(self) -> AuthSchemeObject:
        return openid_connect(url=self.url, id=self.id, description=self.description)


SchemeDeclaration = Annotated[
    Union[BasicScheme, ApiKeyScheme, BearerScheme, OAuth2Scheme, OpenIdConnectScheme],
    Field(discriminator="kind"),
]


class DefaultRule(BaseModel):
    auth: list[str] = Field(default_factory=list)
    scopes: list[str] = Field(default_factory=list)


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    # None inherits the default rule; [] declares the route public.
    auth: list[str] | None = None
    scopes: list[str] = Field(default_factory=list)

    def normalized_methods(self) -> set[str]:
        return {m.upper() for m in self.methods}


class SecurityConfigModel(BaseModel):
    schemes: dict[str, SchemeDeclaration] = Field(default_factory=dict)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)


@dataclass(frozen=True)
class EffectiveRule:
    """
    Fully-resolved rule (defaults applied, references resolved) for a route.
    """

    schemes: tuple[AuthSchemeObject, ...]
    scopes: tuple[str, ...]


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # Convert "/reports/{id}" -> r"^/reports/[^/]+$"
    parts = re.split(r"(\{[^/}]+\})", path_template)
    regex = "".join("[^/]+" if part.startswith("{") else re.escape(part) for part in parts)
    return re.compile(rf"^{regex}$")


class SecurityConfig:
    """
    Runtime helper around validated config: built schemes + route matching.
    """

    def __init__(self, model: SecurityConfigModel):
        self.model = model
        self._schemes: dict[str, AuthSchemeObject] = {ref: decl.build() for ref, decl in model.schemes.items()}

        self._check_references("default", model.default.auth)
        for rule in model.routes:
            self._check_references(rule.path, rule.auth or [])

        # Prefer exact matches over templates.
        self._exact_rules: dict[str, list[RouteRule]] = {}
        for r in self.model.routes:
            self._exact_rules.setdefault(r.path, []).append(r)
        self._compiled_rules = [(_path_template_to_regex(r.path), r) for r in self.model.routes]

    def _check_references(self, where: str, refs: list[str]) -> None:
        unknown = [ref for ref in refs if ref not in self._schemes]
        if unknown:
            raise ValueError(f"Unknown security scheme reference(s) {unknown} in {where!r}")

    @property
    def schemes(self) -> dict[str, AuthSchemeObject]:
        return dict(self._schemes)

    def scheme(self, ref: str) -> AuthSchemeObject:
        return self._schemes[ref]

    def match(self, path: str, method: str) -> EffectiveRule:
        """
        Find the best matching rule for (path, method), then apply defaults.
        """

        method = method.upper()

        # 1) exact path match
        for candidate in self._exact_rules.get(path, []):
            if method in candidate.normalized_methods():
                return self._effective(candidate)

        # 2) template match
        for regex, candidate in self._compiled_rules:
            if method in candidate.normalized_methods() and regex.match(path):
                return self._effective(candidate)

        # 3) no match -> defaults
        default = self.model.default
        return EffectiveRule(
            schemes=tuple(self._schemes[ref] for ref in default.auth),
            scopes=tuple(default.scopes),
        )

    def _effective(self, rule: RouteRule) -> EffectiveRule:
        default = self.model.default
        if rule.auth is None:
            refs = default.auth
            scopes = rule.scopes or default.scopes
        else:
            refs = rule.auth
            scopes = rule.scopes
        return EffectiveRule(
            schemes=tuple(self._schemes[ref] for ref in refs),
            scopes=tuple(scopes),
        )


def load_security_config(path: Path) -> SecurityConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")

    model = SecurityConfigModel.model_validate(raw["security"])
    config = SecurityConfig(model)
    logger.info(
        "Loaded security config path=%s schemes=%d routes=%d",
        path,
        len(model.schemes),
        len(model.routes),
    )
    return config
