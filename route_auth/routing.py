from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from route_auth.binder import attach_auth, merge_auth
from route_auth.config import SecurityConfig
from route_auth.decorators import endpoint_auth
from route_auth.schemes import AuthSchemeObject

logger = logging.getLogger(__name__)


class AuthRoute(APIRoute):
    """
    ``APIRoute`` that binds ``@auth(...)`` metadata found on its endpoint.

    Use as ``APIRouter(route_class=AuthRoute)``. ``include_router`` rebuilds
    routes with the same class, so bindings are re-read from the endpoint and
    merged with the ``security`` already carried in ``openapi_extra``.
    """

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        super().__init__(path, endpoint, **kwargs)

        auths: tuple[AuthSchemeObject, ...] = ()
        extra = self.openapi_extra
        for binding in endpoint_auth(endpoint):
            auths, extra = merge_auth(auths, extra, binding.schemes, binding.scopes)

        self.auths = auths
        self.openapi_extra = extra


def secure_routes(
    router: APIRouter | FastAPI,
    schemes: Iterable[AuthSchemeObject],
    scopes: Iterable[str] = (),
    *,
    include: Callable[[APIRoute], bool] | None = None,
) -> int:
    """
    Bind ``schemes`` to every API route of ``router`` (optionally filtered).

    Routes are replaced in ``router.routes``; returns how many were bound.
    For a ``FastAPI`` app, call this after ``include_router`` so the bound
    copies are the ones the app serves and documents.
    """

    schemes = tuple(schemes)
    scopes = tuple(scopes)
    count = 0
    for index, route in enumerate(router.routes):
        if not isinstance(route, APIRoute):
            continue
        if include is not None and not include(route):
            continue
        router.routes[index] = attach_auth(route, schemes, scopes)
        count += 1
    return count


def apply_security_config(router: APIRouter | FastAPI, config: SecurityConfig) -> int:
    """
    Bind every API route according to the rule matched for each of its methods.

    Routes whose rules carry no schemes are left as they are.
    """

    count = 0
    for index, route in enumerate(router.routes):
        if not isinstance(route, APIRoute):
            continue

        updated = route
        for method in sorted(route.methods or ()):
            rule = config.match(route.path, method)
            if rule.schemes:
                updated = attach_auth(updated, rule.schemes, rule.scopes)

        if updated is not route:
            router.routes[index] = updated
            count += 1

    logger.info("Applied security config to %d route(s)", count)
    return count
