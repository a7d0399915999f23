from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level of the ``route_auth`` logger tree.

    Handlers belong to the host app (or uvicorn). At DEBUG every route
    binding is logged with its scheme ids; id collisions and conflicting
    component definitions are logged at WARNING regardless.
    """

    normalized = level.upper()
    logging.getLogger("route_auth").setLevel(normalized)
    # Ensure child loggers under route_auth.* inherit this level.
    logging.getLogger("route_auth").propagate = True
