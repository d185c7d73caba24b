"""Conversation engine: the host-facing API that runs turns for many sessions.

Per turn the engine holds the session's lock, loads its state, picks the
compiled graph, runs the interpreter, applies (or queues) side effects and
saves. Internal failures degrade into a user-visible message, never into
an exception at the host boundary.
"""

import asyncio
import logging
from collections.abc import Sequence

from convoflow.actions.dispatcher import SideEffectDispatcher
from convoflow.actions.effects import SideEffect
from convoflow.actions.leads import InMemoryLeadService
from convoflow.catalog.static import StaticCatalogProvider, StaticTenantVariableProvider
from convoflow.compiler.cache import FlowCache, create_eviction_policy
from convoflow.compiler.flow_compiler import build_fallback_graph
from convoflow.config.repository import ConfigTemplateRepository
from convoflow.config.settings import EngineConfig, EngineSettings
from convoflow.core.constants import DispatchMode
from convoflow.core.errors import (
    CompileError,
    ConfigError,
    PersistenceError,
    SideEffectFailure,
    TemplateNotFoundError,
)
from convoflow.core.graph import FlowGraph
from convoflow.core.interfaces import (
    CatalogProvider,
    LeadService,
    SessionStore,
    TemplateRepository,
    TenantVariableProvider,
)
from convoflow.core.state import SessionKey, SessionState, create_session_state
from convoflow.core.types import OutboundMessage, TurnResult
from convoflow.observability.logging import ContextLogger
from convoflow.runtime.checkpointer import create_session_store
from convoflow.runtime.interpreter import FlowInterpreter, TurnOutcome
from convoflow.runtime.locks import KeyedLock

logger = logging.getLogger(__name__)

UNAVAILABLE_TEMPLATE_ID = "__unavailable__"


class ConversationEngine:
    """Runs conversational turns for (tenant, user, session) triples."""

    def __init__(
        self,
        settings: EngineSettings | None,
        templates: TemplateRepository,
        store: SessionStore,
        lead_service: LeadService,
        catalog: CatalogProvider | None = None,
        tenant_variables: TenantVariableProvider | None = None,
        cache: FlowCache | None = None,
    ):
        """
        Args:
            settings: Engine settings (defaults when None)
            templates: Source of tenant templates
            store: Session persistence
            lead_service: Host lead and sales-funnel operations
            catalog: Catalog lookup for catalog-backed option sets
            tenant_variables: Tenant system variables for substitution
            cache: Compiled graph cache (built from ``templates`` when None)
        """
        self.settings = settings or EngineSettings()
        self.templates = templates
        self.store = store
        self.catalog = catalog
        self.tenant_variables = tenant_variables
        self.cache = cache or FlowCache(
            templates,
            policy=create_eviction_policy(self.settings.cache.max_entries),
            catalog=catalog,
        )
        self.interpreter = FlowInterpreter(self.settings, catalog=catalog)
        self.dispatcher = SideEffectDispatcher(
            lead_service, stage_aliases=self.settings.side_effects.stage_aliases
        )
        self._locks = KeyedLock()
        self._jobs: dict[SessionKey, asyncio.Task[None]] = {}
        self._log = ContextLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        lead_service: LeadService | None = None,
        store: SessionStore | None = None,
    ) -> "ConversationEngine":
        """Build an engine whose templates, catalog and variables come from configuration."""
        settings = config.settings
        if store is None:
            store = create_session_store(
                settings.persistence.backend, db_path=settings.persistence.path
            )
        return cls(
            settings,
            templates=ConfigTemplateRepository(config),
            store=store,
            lead_service=lead_service or InMemoryLeadService(),
            catalog=StaticCatalogProvider.from_config(config),
            tenant_variables=StaticTenantVariableProvider.from_config(config),
        )

    async def handle_message(
        self,
        tenant_id: str,
        user_id: str,
        session_id: str,
        text: str,
    ) -> TurnResult:
        """Process one inbound message and return the outbound messages.

        At most one turn per (tenant, user, session) runs at a time; turns of
        other sessions are never blocked.
        """
        key: SessionKey = (tenant_id, user_id, session_id)
        log = self._log.with_context(tenant=tenant_id, user=user_id, session=session_id)

        async with self._locks.hold(key):
            state = await self._load(key, log)
            graph = await self._select_graph(state, text, log)
            variables = await self._variables_for(tenant_id)

            try:
                outcome = await self.interpreter.run_turn(graph, state, text, variables)
            except Exception:
                log.exception("Unexpected error while running turn")
                broken = state.model_copy(deep=True)
                broken.go_idle()
                outcome = TurnOutcome(
                    messages=[OutboundMessage(text=self.settings.messages.circuit_breaker)],
                    state=broken,
                )

            new_state = outcome.state
            background = self.settings.side_effects.mode is DispatchMode.BACKGROUND
            if outcome.effects and not background:
                await self.dispatcher.apply(new_state, outcome.effects)

            await self._save(key, new_state, log)

            if outcome.effects and background:
                self._enqueue(key, outcome.effects)

        log.info(
            f"Turn {new_state.turn_count} on '{graph.template_id}': "
            f"{len(outcome.messages)} messages, node={new_state.current_node_id}, "
            f"status={new_state.status.value}"
        )
        return TurnResult(messages=outcome.messages, state=new_state)

    async def get_session(
        self, tenant_id: str, user_id: str, session_id: str
    ) -> SessionState | None:
        return await self.store.load(tenant_id, user_id, session_id)

    async def reset_session(self, tenant_id: str, user_id: str, session_id: str) -> SessionState:
        """Replace a session's state with a fresh Idle one."""
        key: SessionKey = (tenant_id, user_id, session_id)
        async with self._locks.hold(key):
            state = create_session_state(tenant_id, user_id, session_id)
            await self.store.save(tenant_id, user_id, session_id, state)
        logger.info(f"Reset session {key}")
        return state

    async def recompile(self, tenant_id: str, template_id: str) -> FlowGraph:
        """Explicitly re-read and recompile a template, replacing the cached graph."""
        return await self.cache.recompile(tenant_id, template_id)

    async def drain(self) -> None:
        """Wait until every queued background side effect has run."""
        while self._jobs:
            await asyncio.gather(*list(self._jobs.values()), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()

    # Persistence

    async def _load(self, key: SessionKey, log: logging.LoggerAdapter) -> SessionState:
        try:
            state = await self.store.load(*key)
        except Exception as e:
            error = e if isinstance(e, PersistenceError) else PersistenceError(str(e))
            log.warning(f"Could not load session, starting fresh: {error}")
            state = None
        return state if state is not None else create_session_state(*key)

    async def _save(
        self, key: SessionKey, state: SessionState, log: logging.LoggerAdapter
    ) -> None:
        for attempt in (1, 2):
            try:
                await self.store.save(*key, state)
                return
            except Exception as e:
                if attempt == 1:
                    log.warning(f"Saving session failed, retrying: {e}")
                else:
                    log.error(f"Saving session failed twice, state of this turn is lost: {e}")

    # Template selection

    async def _select_graph(
        self, state: SessionState, text: str, log: logging.LoggerAdapter
    ) -> FlowGraph:
        tenant_id = state.tenant_id
        if not state.is_idle and state.template_id:
            return await self._graph(tenant_id, state.template_id, log)

        try:
            active = await self.templates.active_templates(tenant_id)
        except Exception as e:
            log.error(f"Could not list active templates: {e}")
            active = []

        if not active:
            log.warning("Tenant has no active template")
            return build_fallback_graph(
                tenant_id, UNAVAILABLE_TEMPLATE_ID, self.settings.messages.unavailable
            )

        for template_id in active:
            try:
                graph = await self.cache.get_or_compile(tenant_id, template_id)
            except (CompileError, ConfigError, TemplateNotFoundError):
                continue
            if graph.matches_trigger(text):
                log.debug(f"Message matches a trigger of template '{template_id}'")
                return graph

        template_id = state.template_id if state.template_id in active else active[0]
        return await self._graph(tenant_id, template_id, log)

    async def _graph(
        self, tenant_id: str, template_id: str, log: logging.LoggerAdapter
    ) -> FlowGraph:
        try:
            return await self.cache.get_or_compile(tenant_id, template_id)
        except (CompileError, ConfigError, TemplateNotFoundError) as e:
            log.error(f"Template '{template_id}' unavailable, serving fallback graph: {e}")
            return build_fallback_graph(tenant_id, template_id, self.settings.messages.unavailable)

    async def _variables_for(self, tenant_id: str) -> dict[str, str]:
        if self.tenant_variables is None:
            return {}
        try:
            return await self.tenant_variables.get_variables(tenant_id)
        except Exception as e:
            logger.warning(f"Could not load system variables of tenant '{tenant_id}': {e}")
            return {}

    # Background side effects

    def _enqueue(self, key: SessionKey, effects: Sequence[SideEffect]) -> None:
        previous = self._jobs.get(key)
        task = asyncio.create_task(self._run_effects(key, list(effects), previous))
        self._jobs[key] = task

        def _forget(done: asyncio.Task[None]) -> None:
            if self._jobs.get(key) is done:
                del self._jobs[key]

        task.add_done_callback(_forget)

    async def _run_effects(
        self,
        key: SessionKey,
        effects: list[SideEffect],
        previous: asyncio.Task[None] | None,
    ) -> None:
        if previous is not None:
            await asyncio.gather(previous, return_exceptions=True)

        log = self._log.with_context(tenant=key[0], user=key[1], session=key[2])
        async with self._locks.hold(key):
            # Effects only ever apply to the stored state, never to a fresh one
            try:
                state = await self.store.load(*key)
            except Exception as e:
                failure = SideEffectFailure(
                    f"Could not load session, {len(effects)} side effects skipped: {e}",
                    tenant_id=key[0],
                    session=key[2],
                )
                log.error(str(failure), exc_info=True)
                return
            if state is None:
                failure = SideEffectFailure(
                    f"Session has no stored state, {len(effects)} side effects skipped",
                    tenant_id=key[0],
                    session=key[2],
                )
                log.error(str(failure))
                return
            await self.dispatcher.apply(state, effects)
            await self._save(key, state, log)
        log.debug(f"Applied {len(effects)} background side effects")
