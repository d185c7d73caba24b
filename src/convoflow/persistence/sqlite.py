"""SQLite session store built on aiosqlite.

One row per (tenant, user, session) triple holding the JSON-serialized
state. Rows are never deleted by the engine; ``delete_older_than`` exists
for external retention jobs.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
from pydantic import ValidationError

from convoflow.core.errors import PersistenceError
from convoflow.core.state import SessionState, state_from_json, state_to_json

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS session_states (
    tenant_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    session_id TEXT NOT NULL,
    state_data TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (tenant_id, user_id, session_id)
)
"""

_UPDATED_INDEX = """
CREATE INDEX IF NOT EXISTS idx_session_states_updated_at
ON session_states(updated_at)
"""


class SqliteSessionStore:
    """Persistent session store for a single process."""

    def __init__(self, db_path: str | Path = "convoflow.db"):
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the connection and create the schema (idempotent)."""
        async with self._init_lock:
            if self._connection is not None:
                return
            if str(self.db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                connection = await aiosqlite.connect(str(self.db_path))
                await connection.execute(_SCHEMA)
                await connection.execute(_UPDATED_INDEX)
                await connection.commit()
            except aiosqlite.Error as e:
                raise PersistenceError(
                    f"Cannot open session database: {e}", path=str(self.db_path)
                ) from e
            self._connection = connection
            logger.info(f"SQLite session store ready at {self.db_path}")

    async def _conn(self) -> aiosqlite.Connection:
        if self._connection is None:
            await self.initialize()
        assert self._connection is not None
        return self._connection

    async def load(self, tenant_id: str, user_id: str, session_id: str) -> SessionState | None:
        connection = await self._conn()
        try:
            cursor = await connection.execute(
                """
                SELECT state_data FROM session_states
                WHERE tenant_id = ? AND user_id = ? AND session_id = ?
                """,
                (tenant_id, user_id, session_id),
            )
            row = await cursor.fetchone()
            await cursor.close()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Cannot load session: {e}", tenant_id=tenant_id, session_id=session_id
            ) from e

        if row is None:
            return None
        try:
            return state_from_json(row[0])
        except ValidationError as e:
            raise PersistenceError(
                f"Stored session is corrupt: {e}", tenant_id=tenant_id, session_id=session_id
            ) from e

    async def save(
        self,
        tenant_id: str,
        user_id: str,
        session_id: str,
        state: SessionState,
    ) -> None:
        connection = await self._conn()
        try:
            await connection.execute(
                """
                INSERT OR REPLACE INTO session_states
                (tenant_id, user_id, session_id, state_data, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    tenant_id,
                    user_id,
                    session_id,
                    state_to_json(state),
                    datetime.now(UTC).isoformat(),
                ),
            )
            await connection.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Cannot save session: {e}", tenant_id=tenant_id, session_id=session_id
            ) from e

    async def delete(self, tenant_id: str, user_id: str, session_id: str) -> bool:
        connection = await self._conn()
        cursor = await connection.execute(
            "DELETE FROM session_states WHERE tenant_id = ? AND user_id = ? AND session_id = ?",
            (tenant_id, user_id, session_id),
        )
        await connection.commit()
        return cursor.rowcount > 0

    async def delete_older_than(self, seconds: float) -> int:
        """Delete sessions not saved within ``seconds``. Returns the number removed."""
        cutoff = (datetime.now(UTC) - timedelta(seconds=seconds)).isoformat()
        connection = await self._conn()
        cursor = await connection.execute(
            "DELETE FROM session_states WHERE updated_at < ?", (cutoff,)
        )
        await connection.commit()
        removed = cursor.rowcount
        logger.info(f"Deleted {removed} sessions idle for more than {seconds}s")
        return removed

    async def close(self) -> None:
        """Close database connection"""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
