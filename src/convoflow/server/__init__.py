"""HTTP server for convoflow."""

from convoflow.server.api import app, create_app

__all__ = ["app", "create_app"]
