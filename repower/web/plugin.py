"""
Entry point between the host page and plugin handlers.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..config import PluginConfig
from .controller import Renderer, RequestContext
from .csrf import CsrfTokenStore
from .routes import Router

logger = logging.getLogger(__name__)


class Plugin:
    """Dispatches one host request to its handler and returns the HTML.

    Attributes:
        conn: Storage connection supplied by the host
        user: Current username
        config: Plugin configuration
        renderer: Template renderer
        router: Route registry
    """

    def __init__(
        self,
        conn: Any,
        user: str | None,
        config: PluginConfig,
        renderer: Renderer,
        router: Router | None = None,
    ) -> None:
        self.conn = conn
        self.user = user
        self.config = config
        self.renderer = renderer
        self.router = router or Router()

    def set_renderer(self, renderer: Renderer) -> None:
        self.renderer = renderer

    def authorize(self) -> bool:
        """Override to restrict plugin access."""
        return True

    def request_to_response(
        self,
        get: Mapping[str, Any],
        post: Mapping[str, Any],
        request: Mapping[str, Any] | None = None,
        csrf_tokens: CsrfTokenStore | None = None,
    ) -> str:
        """Route a request and return the response HTML.

        Args:
            get: Query string variables
            post: Form variables
            request: Variables used for routing (defaults to get merged with post)
            csrf_tokens: The session's token store
        """
        if request is None:
            request = {**get, **post}
        factory = self.router.resolve(request)
        context = RequestContext(
            get=get,
            post=post,
            user=self.user,
            conn=self.conn,
            config=self.config,
            csrf_tokens=csrf_tokens if csrf_tokens is not None else CsrfTokenStore(),
        )
        logger.debug(
            "Dispatching request",
            extra={"route": request.get("route"), "user": self.user},
        )
        return factory(context, self.renderer).process_request()
