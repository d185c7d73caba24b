"""convoflow FastAPI Application.

Thin JSON adapter over ConversationEngine. Channel transport and message
rendering stay with the host calling these endpoints.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from convoflow.__version__ import __version__, get_version_info
from convoflow.core.errors import CompileError, ConfigError, TemplateNotFoundError
from convoflow.runtime.engine import ConversationEngine
from convoflow.server.dependencies import EngineDep
from convoflow.server.errors import create_error_response, global_exception_handler
from convoflow.server.models import (
    ChatRequest,
    ChatResponse,
    ComponentStatus,
    HealthResponse,
    MessageModel,
    ReadinessResponse,
    RecompileResponse,
    ResetResponse,
    SessionResponse,
    VersionResponse,
)

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "CONVOFLOW_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "convoflow.yaml"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - initialize on startup, cleanup on shutdown."""
    from dotenv import load_dotenv

    load_dotenv()

    if getattr(app.state, "engine", None) is not None:
        # Engine injected by create_app
        yield
        return

    config_path = os.environ.get(CONFIG_PATH_ENV)
    if not config_path and os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH

    if not config_path:
        logger.warning(
            f"{CONFIG_PATH_ENV} not set and {DEFAULT_CONFIG_PATH} not found. "
            "App will start unconfigured."
        )
        yield
        return

    logger.info(f"Loading config from {config_path}")
    try:
        from convoflow.config.loader import ConfigLoader

        config = ConfigLoader.load(config_path)
        engine = ConversationEngine.from_config(config)
    except ConfigError as e:
        logger.error(f"Failed to load config: {e}")
        yield
        return

    app.state.engine = engine
    app.state.config = config
    logger.info(f"Conversation engine ready for {len(config.tenants)} tenants.")
    try:
        yield
    finally:
        logger.info("Conversation engine cleanup...")
        await engine.close()
        app.state.engine = None


app = FastAPI(
    title="convoflow",
    description="Multi-tenant conversational flow interpreter",
    version=__version__,
    lifespan=lifespan,
)

app.add_exception_handler(Exception, global_exception_handler)


@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe for Kubernetes."""
    engine = getattr(request.app.state, "engine", None)

    components: dict[str, ComponentStatus] = {}
    status: Literal["healthy", "starting", "degraded", "unhealthy"] = "healthy"

    if not engine:
        status = "starting"
    else:
        components["cache"] = ComponentStatus(
            name="cache", status="healthy", message=f"{len(engine.cache)} compiled templates"
        )

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now().isoformat(),
        components=components,
    )


@app.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe for Kubernetes."""
    engine = getattr(request.app.state, "engine", None)

    if not engine:
        return ReadinessResponse(
            ready=False, message="Engine not initialized", checks={"engine": False}
        )

    return ReadinessResponse(ready=True, message="Service is ready", checks={"engine": True})


@app.get("/startup")
async def startup_check(request: Request) -> JSONResponse:
    """Startup probe for Kubernetes."""
    engine = getattr(request.app.state, "engine", None)
    if engine:
        return JSONResponse(status_code=200, content={"status": "started"})
    return JSONResponse(status_code=503, content={"status": "starting"})


@app.post("/chat", response_model=ChatResponse)
async def process_message(
    request: ChatRequest,
    engine: EngineDep,
) -> ChatResponse:
    """Process a user message and return the outbound messages."""
    result = await engine.handle_message(
        request.tenant_id, request.user_id, request.session_id, request.message
    )
    state = result.state
    return ChatResponse(
        messages=[MessageModel.from_outbound(message) for message in result.messages],
        status=state.status.value,
        current_node_id=state.current_node_id,
        awaiting_input=state.awaiting_input,
        lead_handle=state.lead_handle,
    )


@app.get("/sessions/{tenant_id}/{user_id}/{session_id}", response_model=SessionResponse)
async def get_session(
    tenant_id: str,
    user_id: str,
    session_id: str,
    engine: EngineDep,
) -> SessionResponse:
    """Get the stored state of a session."""
    state = await engine.get_session(tenant_id, user_id, session_id)
    if state is None:
        raise HTTPException(status_code=404, detail={"error": "Session not found"})
    return SessionResponse.from_state(state)


@app.delete("/sessions/{tenant_id}/{user_id}/{session_id}", response_model=ResetResponse)
async def reset_session(
    tenant_id: str,
    user_id: str,
    session_id: str,
    engine: EngineDep,
) -> ResetResponse:
    """Reset a session to a fresh Idle state."""
    await engine.reset_session(tenant_id, user_id, session_id)
    return ResetResponse(success=True, message="Session reset")


@app.post("/templates/{tenant_id}/{template_id}/recompile", response_model=RecompileResponse)
async def recompile_template(
    tenant_id: str,
    template_id: str,
    engine: EngineDep,
) -> RecompileResponse:
    """Re-read a template and replace its compiled graph."""
    try:
        graph = await engine.recompile(tenant_id, template_id)
    except (CompileError, ConfigError, TemplateNotFoundError) as e:
        raise create_error_response(
            e, tenant_id=tenant_id, endpoint=f"/templates/{tenant_id}/{template_id}/recompile"
        ) from e
    return RecompileResponse(
        tenant_id=tenant_id,
        template_id=template_id,
        nodes=len(graph.nodes),
        triggers=list(graph.triggers),
    )


@app.get("/version", response_model=VersionResponse)
def get_version() -> VersionResponse:
    """Get detailed version information."""
    info = get_version_info()
    return VersionResponse(
        version=str(info["full"]),
        major=int(info["major"]),
        minor=int(info["minor"]),
        patch=str(info["patch"]),
    )


def create_app(engine: ConversationEngine | None = None) -> FastAPI:
    """Factory function."""
    if engine:
        app.state.engine = engine
    return app
