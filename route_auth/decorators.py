from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from route_auth.schemes import AuthSchemeObject

AUTH_ATTRIBUTE = "__route_auth__"


@dataclass(frozen=True)
class AuthBinding:
    """One ``@auth(...)`` application: schemes to attach plus extra scopes."""

    schemes: tuple[AuthSchemeObject, ...]
    scopes: tuple[str, ...] = ()


def auth(*schemes: AuthSchemeObject, scopes: Iterable[str] = ()) -> Callable:
    """
    Decorator-style API.

    Implementation detail:
    - This decorator does NOT touch the route itself.
    - It attaches metadata that ``AuthRoute`` reads when FastAPI builds the
      route, so it must sit *below* ``@router.get(...)`` and friends.
    - Stacked decorators are applied bottom-up, which is also the order in
      which their bindings are merged.
    """

    binding = AuthBinding(schemes=tuple(schemes), scopes=tuple(scopes))

    def decorator(fn: Callable) -> Callable:
        existing = tuple(getattr(fn, AUTH_ATTRIBUTE, ()))
        setattr(fn, AUTH_ATTRIBUTE, existing + (binding,))
        return fn

    return decorator


def endpoint_auth(endpoint: Callable | None) -> tuple[AuthBinding, ...]:
    if endpoint is None:
        return ()
    return tuple(getattr(endpoint, AUTH_ATTRIBUTE, ()))
