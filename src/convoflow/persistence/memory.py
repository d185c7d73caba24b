"""In-memory session store (development/testing)."""

import logging

from convoflow.core.state import SessionKey, SessionState

logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """Keeps session states in a dict.

    States are deep-copied on the way in and out so callers never share a
    live object with the store.
    """

    def __init__(self) -> None:
        self._states: dict[SessionKey, SessionState] = {}

    def __len__(self) -> int:
        return len(self._states)

    async def load(self, tenant_id: str, user_id: str, session_id: str) -> SessionState | None:
        state = self._states.get((tenant_id, user_id, session_id))
        return state.model_copy(deep=True) if state is not None else None

    async def save(
        self,
        tenant_id: str,
        user_id: str,
        session_id: str,
        state: SessionState,
    ) -> None:
        self._states[(tenant_id, user_id, session_id)] = state.model_copy(deep=True)

    async def delete(self, tenant_id: str, user_id: str, session_id: str) -> bool:
        return self._states.pop((tenant_id, user_id, session_id), None) is not None

    async def close(self) -> None:
        pass
