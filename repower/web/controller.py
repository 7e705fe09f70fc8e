"""
Request handlers for plugin pages.

A PluginController turns one request (GET and POST variables plus the
current user) into response HTML through a host-supplied renderer.

How to change safely:
    - Subclasses override handle_get/handle_post, not process_request
    - Keep rendering behind the Renderer protocol; no template engine here
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..config import PluginConfig
from .csrf import CsrfTokenStore


class Renderer(Protocol):
    """Anything that renders a named template with parameters."""

    def render(self, template: str, params: Mapping[str, Any]) -> str: ...


class RequestHandler(Protocol):
    """A constructed handler for one request."""

    def process_request(self) -> str: ...


@dataclass(frozen=True)
class RequestContext:
    """Everything a handler needs about one request.

    Attributes:
        get: Query string variables
        post: Form variables
        user: Current username
        conn: Storage connection supplied by the host
        config: Plugin configuration
        csrf_tokens: The session's CSRF token store
    """

    get: Mapping[str, Any] = field(default_factory=dict)
    post: Mapping[str, Any] = field(default_factory=dict)
    user: str | None = None
    conn: Any = None
    config: PluginConfig = field(default_factory=PluginConfig)
    csrf_tokens: CsrfTokenStore = field(default_factory=CsrfTokenStore)


class PluginController:
    """Base handler: POST requests go to handle_post, all others to handle_get."""

    default_template = "default.html"

    def __init__(self, context: RequestContext, renderer: Renderer) -> None:
        self.context = context
        self.renderer = renderer

    @property
    def get(self) -> Mapping[str, Any]:
        return self.context.get

    @property
    def post(self) -> Mapping[str, Any]:
        return self.context.post

    def process_request(self) -> str:
        if self.post:
            return self.handle_post()
        return self.handle_get()

    def render(self, template: str, params: Mapping[str, Any] | None = None) -> str:
        return self.renderer.render(template, params or {})

    def handle_get(self) -> str:
        return self.render(self.default_template, {})

    def validate_post(self) -> bool:
        return True

    def handle_post(self) -> str:
        # Forwards to handle_get unless overridden.
        return self.handle_get()

    def generate_csrf_token(self) -> str:
        return self.context.csrf_tokens.generate()

    def verify_csrf_token(self, token: str | None = None) -> bool:
        """Verify and consume a token, defaulting to the csrf_token POST var."""
        if not token:
            token = self.post.get("csrf_token")
        return self.context.csrf_tokens.verify(token)


class NotFoundController(PluginController):
    """Rendered when no route matches the request."""

    def handle_get(self) -> str:
        return self.render("not_found.html", {"PID": self.get.get("pid")})
