from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from fastapi.routing import APIRoute

from route_auth.schemes import AuthSchemeObject, all_scopes

logger = logging.getLogger(__name__)

__all__ = [
    "SecurityRequirement",
    "attach_auth",
    "merge_auth",
    "merge_auths",
    "route_auths",
    "route_requirements",
    "securities",
]


@dataclass(frozen=True)
class SecurityRequirement:
    """
    One entry of an operation's ``security`` list: a scheme name plus the
    scopes demanded for it.
    """

    name: str
    scopes: tuple[str, ...] = ()

    def to_openapi(self) -> dict[str, list[str]]:
        return {self.name: list(self.scopes)}

    @classmethod
    def from_openapi(cls, security: Iterable[Mapping[str, Sequence[str]]] | None) -> list[SecurityRequirement]:
        # A requirement object with several keys means "all of these"; each
        # key is still looked up by name on its own.
        requirements: list[SecurityRequirement] = []
        for entry in security or ():
            for name, scopes in entry.items():
                requirements.append(cls(name=name, scopes=tuple(scopes)))
        return requirements


def _ordered_union(*groups: Iterable[str]) -> tuple[str, ...]:
    merged: list[str] = []
    for group in groups:
        for item in group:
            if item not in merged:
                merged.append(item)
    return tuple(merged)


def merge_auths(
    existing: Iterable[AuthSchemeObject],
    new: Iterable[AuthSchemeObject],
) -> tuple[AuthSchemeObject, ...]:
    """Existing schemes first, then new ones not already present (value equality)."""

    merged: list[AuthSchemeObject] = []
    for auth in [*existing, *new]:
        if auth not in merged:
            merged.append(auth)
    return tuple(merged)


def securities(
    auths: Sequence[AuthSchemeObject],
    scopes: Iterable[str] = (),
    old: Sequence[SecurityRequirement] | None = None,
) -> list[SecurityRequirement] | None:
    """
    Build the requirement list for ``auths``.

    Scopes for each scheme are the previously recorded scopes for its name
    followed by ``scopes``. When both are empty, every scope the scheme
    declares is required. Returns ``None`` for an empty scheme set so that
    "no auth" stays distinguishable from "auth with no scopes".
    """

    scopes = tuple(scopes)
    requirements: list[SecurityRequirement] = []
    emitted: set[str] = set()

    for auth in auths:
        if auth.id in emitted:
            logger.warning(
                "Security scheme id collision id=%s; distinct schemes share this name, keeping the first",
                auth.id,
            )
            continue
        emitted.add(auth.id)

        previous = next((r.scopes for r in old or () if r.name == auth.id), ())
        merged = _ordered_union(previous, scopes)
        requirements.append(SecurityRequirement(name=auth.id, scopes=merged or tuple(all_scopes(auth.scheme))))

    return requirements or None


def merge_auth(
    auths: Iterable[AuthSchemeObject],
    openapi_extra: Mapping[str, Any] | None,
    schemes: Iterable[AuthSchemeObject],
    scopes: Iterable[str] = (),
) -> tuple[tuple[AuthSchemeObject, ...], dict[str, Any] | None]:
    """
    Core merge used by both ``attach_auth`` and ``AuthRoute``.

    Returns the new scheme tuple and a new ``openapi_extra`` mapping; the
    inputs are left untouched.
    """

    merged = merge_auths(auths, schemes)
    old = SecurityRequirement.from_openapi((openapi_extra or {}).get("security"))
    requirements = securities(merged, scopes, old)

    extra = dict(openapi_extra or {})
    if requirements is None:
        extra.pop("security", None)
    else:
        extra["security"] = [r.to_openapi() for r in requirements]
    return merged, (extra or None)


def route_auths(route: APIRoute) -> tuple[AuthSchemeObject, ...]:
    return tuple(getattr(route, "auths", ()))


def route_requirements(route: APIRoute) -> list[SecurityRequirement] | None:
    security = (route.openapi_extra or {}).get("security")
    if security is None:
        return None
    return SecurityRequirement.from_openapi(security)


def attach_auth(
    route: APIRoute,
    schemes: Iterable[AuthSchemeObject],
    scopes: Iterable[str] = (),
) -> APIRoute:
    """
    Return a copy of ``route`` with ``schemes`` merged into its security.

    The original route object is not modified. Callers swap the returned
    route into the router's ``routes`` list (see ``route_auth.routing``).
    """

    auths, extra = merge_auth(route_auths(route), route.openapi_extra, schemes, scopes)

    updated = copy.copy(route)
    updated.auths = auths
    updated.openapi_extra = extra
    logger.debug(
        "Bound security path=%s methods=%s ids=%s",
        route.path,
        sorted(route.methods or ()),
        [a.id for a in auths],
    )
    return updated
