"""
Static route registry.

Route keys map to handler constructors registered at startup. Unknown keys
resolve to NotFoundController.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .controller import (
    NotFoundController,
    PluginController,
    Renderer,
    RequestContext,
    RequestHandler,
)

logger = logging.getLogger(__name__)

ROUTE_VAR = "route"

HandlerFactory = Callable[[RequestContext, Renderer], RequestHandler]


class Router:
    """Maps route keys to handler constructors.

    Example:
        >>> router = Router(default=HomeController)
        >>> @router.route("enroll")
        ... class EnrollController(PluginController): ...
        >>> router.resolve({"route": "enroll"})
        <class 'EnrollController'>
    """

    def __init__(
        self,
        routes: Mapping[str, HandlerFactory] | None = None,
        default: HandlerFactory | None = None,
        not_found: HandlerFactory = NotFoundController,
    ) -> None:
        self._routes: dict[str, HandlerFactory] = dict(routes or {})
        self._default = default
        self._not_found = not_found

    def register(self, key: str, factory: HandlerFactory) -> None:
        """Register a handler constructor under a route key.

        Raises:
            ValueError: If the key is already registered
        """
        if key in self._routes:
            raise ValueError(f"Route already registered: {key}")
        self._routes[key] = factory

    def route(self, key: str) -> Callable[[HandlerFactory], HandlerFactory]:
        """Decorator form of register()."""

        def decorator(factory: HandlerFactory) -> HandlerFactory:
            self.register(key, factory)
            return factory

        return decorator

    def resolve(self, request: Mapping[str, Any]) -> HandlerFactory:
        """Pick the handler constructor for a request's variables."""
        key = request.get(ROUTE_VAR)
        if not key:
            return self._default or PluginController
        factory = self._routes.get(key)
        if factory is None:
            logger.info("No route for request", extra={"route": key})
            return self._not_found
        return factory

    def __contains__(self, key: object) -> bool:
        return key in self._routes
