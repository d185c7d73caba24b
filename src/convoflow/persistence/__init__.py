from convoflow.persistence.memory import InMemorySessionStore
from convoflow.persistence.sqlite import SqliteSessionStore

__all__ = ["InMemorySessionStore", "SqliteSessionStore"]
