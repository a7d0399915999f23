"""
Declarative OpenAPI security metadata for FastAPI routes.

Build schemes with the constructors in ``route_auth.schemes``, bind them to
routes with ``attach_auth`` / ``@auth`` / a YAML security config, and
publish them with ``configure_openapi``.
"""

from .binder import SecurityRequirement, attach_auth, securities
from .config import SecurityConfig, load_security_config
from .decorators import auth
from .openapi import collect_security_schemes, configure_openapi
from .routing import AuthRoute, apply_security_config, secure_routes
from .schemes import (
    AuthorizationCodeFlow,
    AuthSchemeObject,
    ClientCredentialsFlow,
    ImplicitFlow,
    PasswordFlow,
    all_scopes,
    api_key,
    auto_name,
    basic,
    bearer,
    oauth2,
    openid_connect,
)

__all__ = [
    "AuthRoute",
    "AuthSchemeObject",
    "AuthorizationCodeFlow",
    "ClientCredentialsFlow",
    "ImplicitFlow",
    "PasswordFlow",
    "SecurityConfig",
    "SecurityRequirement",
    "all_scopes",
    "api_key",
    "apply_security_config",
    "attach_auth",
    "auth",
    "auto_name",
    "basic",
    "bearer",
    "collect_security_schemes",
    "configure_openapi",
    "load_security_config",
    "oauth2",
    "openid_connect",
    "secure_routes",
    "securities",
]
