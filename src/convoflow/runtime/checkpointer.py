"""Session store factory.

Supports multiple backends:
- memory: In-memory (development/testing)
- sqlite: SQLite file-based (local persistence)
"""

import logging
from pathlib import Path

from convoflow.core.errors import ConfigError
from convoflow.persistence.memory import InMemorySessionStore
from convoflow.persistence.sqlite import SqliteSessionStore

logger = logging.getLogger(__name__)


def create_session_store(
    backend: str = "memory",
    **kwargs,
) -> InMemorySessionStore | SqliteSessionStore:
    """Create a session store instance.

    Args:
        backend: Store type ("memory" or "sqlite").
        kwargs: Backend-specific arguments:
            - sqlite: db_path (str or Path) - path to SQLite file

    Returns:
        Session store implementing the SessionStore protocol.

    Raises:
        ConfigError: If the backend is unknown.
    """
    if backend == "memory":
        logger.debug("Creating in-memory session store")
        return InMemorySessionStore()

    if backend == "sqlite":
        db_path = Path(kwargs.get("db_path", "convoflow.db"))
        logger.info(f"Creating SQLite session store at {db_path}")
        return SqliteSessionStore(db_path)

    raise ConfigError(f"Unknown session store backend: {backend}")
