"""FastAPI dependencies for server endpoints.

Uses dependency injection instead of global state for better
testability and multi-worker safety.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, cast

from fastapi import Depends, HTTPException, Request

if TYPE_CHECKING:
    from convoflow.runtime.engine import ConversationEngine


def get_engine(request: Request) -> ConversationEngine:
    """Dependency to get the initialized ConversationEngine.

    Raises:
        HTTPException: 503 if the engine is not initialized
    """
    engine = getattr(request.app.state, "engine", None)

    if engine is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service temporarily unavailable",
                "message": "Server is starting up. Please try again in a few seconds.",
            },
        )

    # Import at runtime to avoid circular imports
    from convoflow.runtime.engine import ConversationEngine as ConversationEngineClass

    return cast(ConversationEngineClass, engine)


# Type aliases for cleaner endpoint signatures
EngineDep = Annotated["ConversationEngine", Depends(get_engine)]
