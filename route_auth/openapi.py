"""Publish route-attached security schemes in the generated OpenAPI document."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.openapi.utils import get_openapi
from starlette.routing import BaseRoute

from route_auth.schemes import AuthSchemeObject

logger = logging.getLogger(__name__)

__all__ = ["collect_security_schemes", "configure_openapi", "encode_scheme"]


def encode_scheme(auth: AuthSchemeObject) -> dict[str, Any]:
    return jsonable_encoder(auth.scheme, by_alias=True, exclude_none=True)


def collect_security_schemes(routes: Iterable[BaseRoute]) -> dict[str, dict[str, Any]]:
    """
    Map every scheme id found on ``routes`` to its OpenAPI definition.

    Two different definitions under one id cannot both be published; the
    first one seen wins.
    """

    schemes: dict[str, dict[str, Any]] = {}
    for route in routes:
        for auth in getattr(route, "auths", ()):
            encoded = encode_scheme(auth)
            existing = schemes.get(auth.id)
            if existing is None:
                schemes[auth.id] = encoded
            elif existing != encoded:
                logger.warning(
                    "Conflicting definitions for security scheme id=%s path=%s; keeping the first",
                    auth.id,
                    getattr(route, "path", "?"),
                )
    return schemes


def _merge_operation_security(schema: dict[str, Any]) -> None:
    """
    Collapse single-name requirements that appear more than once in an
    operation, unioning their scopes.

    FastAPI appends ``openapi_extra["security"]`` to requirements it derived
    from ``Security()`` dependencies, so the same name can show up twice.
    """

    for path_item in schema.get("paths", {}).values():
        for operation in path_item.values():
            if not isinstance(operation, dict) or "security" not in operation:
                continue

            merged: list[dict[str, list[str]]] = []
            by_name: dict[str, list[str]] = {}
            for requirement in operation["security"]:
                if len(requirement) != 1:
                    if requirement not in merged:
                        merged.append(requirement)
                    continue
                ((name, scopes),) = requirement.items()
                if name in by_name:
                    by_name[name].extend(s for s in scopes if s not in by_name[name])
                    continue
                by_name[name] = list(scopes)
                merged.append({name: by_name[name]})
            operation["security"] = merged


def configure_openapi(app: FastAPI) -> None:
    """Configure the app's OpenAPI schema with route-attached security schemes."""

    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        # Same arguments FastAPI.openapi() forwards, so app metadata survives.
        schema = get_openapi(
            title=app.title,
            version=app.version,
            openapi_version=app.openapi_version,
            summary=app.summary,
            description=app.description,
            terms_of_service=app.terms_of_service,
            contact=app.contact,
            license_info=app.license_info,
            routes=app.routes,
            webhooks=app.webhooks.routes,
            tags=app.openapi_tags,
            servers=app.servers,
            separate_input_output_schemas=app.separate_input_output_schemas,
        )

        collected = collect_security_schemes(app.routes)
        if collected:
            components = schema.setdefault("components", {}).setdefault("securitySchemes", {})
            for name, definition in collected.items():
                # Schemes FastAPI derived from Security() dependencies stay as they are.
                components.setdefault(name, definition)
        _merge_operation_security(schema)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi
