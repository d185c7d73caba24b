"""Side-effect dispatcher: applies lead and stage intents against a LeadService."""

import logging
from collections.abc import Mapping, Sequence

from convoflow.actions.effects import CreateLead, SideEffect, TransitionStage
from convoflow.config.settings import DEFAULT_STAGE_ALIASES
from convoflow.core.errors import SideEffectFailure
from convoflow.core.interfaces import LeadService
from convoflow.core.state import SessionState
from convoflow.du.vocabulary import fold

logger = logging.getLogger(__name__)


def normalize_stage(stage_id: str, aliases: Mapping[str, str] | None = None) -> str:
    """Map a declared stage name to its canonical id.

    Examples:
        >>> normalize_stage("Prospectando")
        'prospecting'
        >>> normalize_stage("stage-42")
        'stage-42'
    """
    table = DEFAULT_STAGE_ALIASES if aliases is None else aliases
    key = fold(stage_id.strip())
    for alias, canonical in table.items():
        if fold(alias) == key:
            return canonical
    return stage_id.strip()


class SideEffectDispatcher:
    """Executes side effect intents in order.

    Failures never propagate: each one is logged as a SideEffectFailure and
    the remaining intents still run.
    """

    def __init__(self, lead_service: LeadService, stage_aliases: Mapping[str, str] | None = None):
        self.lead_service = lead_service
        self.stage_aliases = stage_aliases

    async def apply(self, state: SessionState, effects: Sequence[SideEffect]) -> SessionState:
        """Apply intents to the lead service, recording results on ``state``.

        Args:
            state: Session the effects belong to; mutated in place
            effects: Intents in the order the turn produced them

        Returns:
            The same state, with ``lead_handle`` / ``lead_pending`` updated
        """
        for effect in effects:
            match effect:
                case CreateLead():
                    await self._create_lead(state, effect)
                case TransitionStage():
                    await self._transition(state, effect)
        return state

    async def _create_lead(self, state: SessionState, effect: CreateLead) -> None:
        if state.lead_handle:
            logger.debug(f"Session {state.key} already has lead {state.lead_handle}")
            state.lead_pending = False
            return
        try:
            handle = await self.lead_service.create_lead(state.tenant_id, dict(effect.fields))
        except Exception as e:
            failure = SideEffectFailure(
                f"Lead creation failed: {e}", tenant_id=state.tenant_id, session=state.session_id
            )
            logger.error(str(failure), exc_info=True)
            state.lead_pending = False
            return
        state.lead_handle = handle
        state.lead_pending = False
        logger.info(f"Lead {handle} created for session {state.key}")

    async def _transition(self, state: SessionState, effect: TransitionStage) -> None:
        if not state.lead_handle:
            logger.debug(
                f"Skipping stage '{effect.stage_id}' from node '{effect.node_id}': no lead yet"
            )
            return
        stage_id = normalize_stage(effect.stage_id, self.stage_aliases)
        try:
            await self.lead_service.transition_stage(state.tenant_id, state.lead_handle, stage_id)
        except Exception as e:
            failure = SideEffectFailure(
                f"Stage transition failed: {e}",
                tenant_id=state.tenant_id,
                lead=state.lead_handle,
                stage=stage_id,
            )
            logger.error(str(failure), exc_info=True)
            return
        logger.debug(f"Lead {state.lead_handle} moved to '{stage_id}' by node '{effect.node_id}'")
