"""Observability module for convoflow."""

from convoflow.observability.logging import ContextLogger, setup_logging

__all__ = ["ContextLogger", "setup_logging"]
