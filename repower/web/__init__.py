"""
Web module for repower - plugin request handling.

This module handles:
- Static routing from a route key to a handler constructor
- Base request handler with GET/POST dispatch
- Per-session single-use CSRF tokens

Rendering is delegated to a host-supplied Renderer; no template engine
is bundled.
"""

from .controller import (
    NotFoundController,
    PluginController,
    Renderer,
    RequestContext,
    RequestHandler,
)
from .csrf import CsrfTokenStore
from .plugin import Plugin
from .routes import Router

__all__ = [
    "NotFoundController",
    "PluginController",
    "Renderer",
    "RequestContext",
    "RequestHandler",
    "CsrfTokenStore",
    "Plugin",
    "Router",
]
