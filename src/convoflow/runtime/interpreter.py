"""Flow interpreter: runs one conversational turn against a compiled graph.

A turn moves the session through at most these phases:

    Idle           the message activates the entry node (it is not input)
    AwaitingInput  the message is captured or resolved against options
    Advancing      no-input nodes are processed until a node needs input
                   or the conversation ends

Advancing is an explicit loop guarded by a per-turn hop limit and a
per-node repeat limit, so every turn terminates even on cyclic graphs.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from convoflow.actions.effects import CreateLead, SideEffect, TransitionStage
from convoflow.config.settings import EngineSettings
from convoflow.core.constants import ConversationStatus
from convoflow.core.errors import CircuitBreakerTripped, ResolutionFailure
from convoflow.core.expression import lookup, substitute
from convoflow.core.graph import (
    ConditionNode,
    FlowGraph,
    InputNode,
    MessageNode,
    Node,
    OptionItem,
    OptionSetNode,
    StartNode,
    TerminalNode,
)
from convoflow.core.interfaces import CatalogProvider
from convoflow.core.state import SessionState
from convoflow.core.types import OutboundMessage
from convoflow.du.resolver import AnswerResolver
from convoflow.du.validators import invalid_message_for, validate_input

logger = logging.getLogger(__name__)

HOP_LIMIT = "hop_limit"
REPEAT_LIMIT = "repeat_limit"


@dataclass
class TurnOutcome:
    """Result of one interpreter turn, before side effects are applied."""

    messages: list[OutboundMessage]
    state: SessionState
    effects: list[SideEffect] = field(default_factory=list)
    tripped: CircuitBreakerTripped | None = None


@dataclass
class _Turn:
    graph: FlowGraph
    state: SessionState
    tenant_variables: Mapping[str, str]
    messages: list[OutboundMessage] = field(default_factory=list)
    effects: list[SideEffect] = field(default_factory=list)
    hops: int = 0
    visits: dict[str, int] = field(default_factory=dict)


class FlowInterpreter:
    """Deterministic graph interpreter.

    The interpreter holds no per-session data: everything a turn needs is
    in the graph, the state it is given and the message.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        resolver: AnswerResolver | None = None,
        catalog: CatalogProvider | None = None,
    ):
        self.settings = settings or EngineSettings()
        self.resolver = resolver or AnswerResolver()
        self.catalog = catalog

    async def run_turn(
        self,
        graph: FlowGraph,
        state: SessionState,
        message: str,
        tenant_variables: Mapping[str, str] | None = None,
    ) -> TurnOutcome:
        """Process one inbound message.

        Args:
            graph: Compiled graph of the session's template
            state: Session state as loaded; never mutated
            message: Raw user message
            tenant_variables: Tenant-level system variables for substitution

        Returns:
            Outbound messages, the advanced copy of the state and the side
            effect intents recorded during the turn
        """
        state = state.model_copy(deep=True)
        state.turn_count += 1
        state.updated_at = datetime.now(UTC)
        state.template_id = graph.template_id
        turn = _Turn(graph=graph, state=state, tenant_variables=tenant_variables or {})

        if state.current_node_id is not None and not graph.has_node(state.current_node_id):
            logger.warning(
                f"Session {state.key} points at node '{state.current_node_id}' which is not in "
                f"template '{graph.template_id}'; restarting from the entry"
            )
            state.go_idle()

        if state.is_idle:
            if state.status is ConversationStatus.COMPLETED:
                logger.debug(f"Re-activating completed conversation {state.key}")
            state.status = ConversationStatus.ACTIVE
            start_at: str | None = graph.entry_node_id
        elif state.awaiting_input:
            node_id = state.awaiting_node_id or state.current_node_id
            if node_id is None or not graph.has_node(node_id):
                logger.warning(f"Awaiting node '{node_id}' vanished; restarting from the entry")
                state.go_idle()
                start_at = graph.entry_node_id
            else:
                consumed, start_at = await self._consume(turn, graph.node(node_id), message)
                if not consumed:
                    return TurnOutcome(messages=turn.messages, state=state, effects=turn.effects)
        else:
            start_at = state.current_node_id

        effects_before_advance = len(turn.effects)
        try:
            await self._advance(turn, start_at)
        except CircuitBreakerTripped as e:
            logger.warning(f"Circuit breaker tripped for session {state.key}: {e}")
            state.go_idle()
            return TurnOutcome(
                messages=[OutboundMessage(text=self.settings.messages.circuit_breaker)],
                state=state,
                effects=turn.effects[:effects_before_advance],
                tripped=e,
            )

        return TurnOutcome(messages=turn.messages, state=state, effects=turn.effects)

    # Input handling

    async def _consume(self, turn: _Turn, node: Node, message: str) -> tuple[bool, str | None]:
        """Consume the reply for the awaiting node.

        Returns:
            ``(consumed, next_node_id)``; ``consumed`` is False when the reply
            was rejected and the node re-prompted
        """
        state = turn.state
        graph = turn.graph

        match node:
            case InputNode():
                if not validate_input(message, node.input_type):
                    logger.debug(f"Reply rejected by '{node.input_type}' validator at '{node.id}'")
                    self._emit(turn, node.invalid_message or invalid_message_for(node.input_type))
                    self._emit(turn, node.prompt)
                    return False, None
                state.clear_awaiting()
                self._capture(turn, node.variable_name, message.strip())
                return True, graph.next_node_id(node.id)

            case MessageNode():
                state.clear_awaiting()
                if node.variable_name:
                    self._capture(turn, node.variable_name, message.strip())
                return True, graph.next_node_id(node.id)

            case ConditionNode() | OptionSetNode():
                options = self._known_options(state, node)
                two_way = isinstance(node, ConditionNode) and len(options) == 2
                try:
                    resolution = self.resolver.resolve(message, options, two_way_condition=two_way)
                except ResolutionFailure:
                    logger.debug(f"Reply '{message}' did not resolve at '{node.id}'")
                    self._emit(
                        turn, node.invalid_message or self.settings.messages.invalid_option
                    )
                    self._emit_prompt(turn, node, options)
                    return False, None

                logger.debug(
                    f"Resolved '{message}' at '{node.id}' to option {resolution.index + 1} "
                    f"({resolution.strategy})"
                )
                state.clear_awaiting()
                if node.variable_name:
                    self._capture(turn, node.variable_name, resolution.option.value)
                return True, graph.option_target(node.id, resolution.index)

            case _:
                logger.warning(f"Node '{node.id}' of kind '{node.kind}' cannot await input")
                state.clear_awaiting()
                return True, graph.next_node_id(node.id)

    def _capture(self, turn: _Turn, variable: str, value: str) -> None:
        state = turn.state
        graph = turn.graph
        state.variables[variable] = value

        if not graph.is_lead_variable(variable):
            return
        if state.lead_handle or state.lead_pending:
            return

        name = self._first_value(state.variables, graph.name_variables)
        phone = self._first_value(state.variables, graph.phone_variables)
        if name is None or phone is None:
            return

        turn.effects.append(
            CreateLead(fields={"name": name, "phone": phone, "variables": dict(state.variables)})
        )
        state.lead_pending = True
        logger.info(f"Lead capture complete for session {state.key}")

    @staticmethod
    def _first_value(variables: Mapping[str, str], names: frozenset[str]) -> str | None:
        for name in sorted(names):
            value = variables.get(name)
            if value:
                return value
        return None

    # Advancing

    async def _advance(self, turn: _Turn, node_id: str | None) -> None:
        state = turn.state
        graph = turn.graph
        limits = self.settings.limits
        current = node_id

        while True:
            if current is None:
                logger.debug(f"No outgoing edge; conversation {state.key} completed")
                state.complete()
                return

            turn.hops += 1
            if turn.hops > limits.max_hops_per_turn:
                raise CircuitBreakerTripped(
                    "Too many nodes in one turn", reason=HOP_LIMIT, node_id=current
                )
            repeats = turn.visits.get(current, 0) + 1
            turn.visits[current] = repeats
            if repeats > limits.max_node_repeats:
                raise CircuitBreakerTripped(
                    "Node repeated too often in one turn", reason=REPEAT_LIMIT, node_id=current
                )

            state.mark_visited(current)
            state.current_node_id = current
            node = graph.node(current)
            if node.stage_target:
                turn.effects.append(TransitionStage(stage_id=node.stage_target, node_id=node.id))

            match node:
                case StartNode():
                    if node.text:
                        self._emit(turn, node.text)
                    current = graph.next_node_id(node.id)

                case MessageNode():
                    if node.text:
                        self._emit(turn, node.text)
                    if node.wait_for_response:
                        state.await_input(node.id, node.variable_name)
                        return
                    current = graph.next_node_id(node.id)

                case InputNode():
                    self._emit(turn, node.prompt)
                    state.await_input(node.id, node.variable_name)
                    return

                case ConditionNode():
                    target = self._resolve_silently(turn, node)
                    if target is not None:
                        current = target
                        continue
                    self._emit_prompt(turn, node, node.branches)
                    state.await_input(node.id, node.variable_name)
                    return

                case OptionSetNode():
                    options = await self._options_for(turn, node)
                    if not options:
                        if node.empty_message:
                            self._emit(turn, node.empty_message)
                        current = graph.next_node_id(node.id)
                        continue
                    self._emit_prompt(turn, node, options)
                    state.await_input(node.id, node.variable_name)
                    return

                case TerminalNode():
                    if node.text:
                        self._emit(turn, node.text)
                    state.complete()
                    return

    def _resolve_silently(self, turn: _Turn, node: ConditionNode) -> str | None:
        """Route a condition whose variable already holds a value without asking."""
        if not node.variable_name:
            return None
        value = lookup(node.variable_name, turn.state.variables)
        if value is None:
            return None
        try:
            resolution = self.resolver.resolve(value, node.branches, len(node.branches) == 2)
        except ResolutionFailure:
            return None
        target = turn.graph.option_target(node.id, resolution.index)
        if target is not None:
            logger.debug(f"Condition '{node.id}' resolved from '{node.variable_name}'")
        return target

    # Options

    def _known_options(self, state: SessionState, node: Node) -> Sequence[OptionItem]:
        if isinstance(node, ConditionNode):
            return node.branches
        if isinstance(node, OptionSetNode):
            return state.resolved_options.get(node.id) or node.options
        return ()

    async def _options_for(self, turn: _Turn, node: OptionSetNode) -> Sequence[OptionItem]:
        """Options of a node, looking catalog-backed ones up once per session."""
        if not node.is_catalog_backed or node.options:
            return node.options

        state = turn.state
        cached = state.resolved_options.get(node.id)
        if cached:
            return cached

        if self.catalog is None:
            logger.warning(f"Node '{node.id}' needs the catalog but no provider is configured")
            return ()

        filter_context: dict[str, str] = {
            **state.variables,
            **{
                key: substitute(value, state.variables, turn.tenant_variables)
                for key, value in node.catalog_filter.items()
            },
            "source": node.source.value,
        }
        try:
            items = list(await self.catalog.list_options(state.tenant_id, filter_context))
        except Exception as e:
            logger.error(f"Catalog lookup for node '{node.id}' failed: {e}", exc_info=True)
            return ()

        if items:
            state.resolved_options[node.id] = items
        return items

    # Output

    def _emit(self, turn: _Turn, text: str) -> None:
        turn.messages.append(
            OutboundMessage(
                text=substitute(text, turn.state.variables, turn.tenant_variables),
            )
        )

    def _emit_prompt(
        self, turn: _Turn, node: ConditionNode | OptionSetNode, options: Sequence[OptionItem]
    ) -> None:
        variables = turn.state.variables
        turn.messages.append(
            OutboundMessage(
                text=substitute(node.prompt, variables, turn.tenant_variables),
                options=[
                    option.model_copy(
                        update={"label": substitute(option.label, variables, turn.tenant_variables)}
                    )
                    for option in options
                ],
            )
        )
