"""Tests for the session store factory."""

import pytest

from convoflow.core.errors import ConfigError
from convoflow.persistence.memory import InMemorySessionStore
from convoflow.persistence.sqlite import SqliteSessionStore
from convoflow.runtime.checkpointer import create_session_store


def test_memory_backend():
    """Test the memory backend is the default."""
    assert isinstance(create_session_store(), InMemorySessionStore)


def test_sqlite_backend(tmp_path):
    """Test the sqlite backend receives its path."""
    store = create_session_store("sqlite", db_path=tmp_path / "sessions.db")

    assert isinstance(store, SqliteSessionStore)
    assert store.db_path == tmp_path / "sessions.db"


def test_unknown_backend():
    """Test unknown backends raise ConfigError."""
    with pytest.raises(ConfigError, match="Unknown session store backend"):
        create_session_store("redis")
