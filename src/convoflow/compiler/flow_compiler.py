"""Flow compiler that translates a raw template definition into a FlowGraph"""

import logging
from collections import deque

from convoflow.compiler.factory import get_factory_for_type
from convoflow.compiler.option_table import build_option_table
from convoflow.config.models import TemplateDefinition
from convoflow.core.constants import DEFAULT_ENTRY_TRIGGERS, InputType
from convoflow.core.errors import CompileError
from convoflow.core.expression import placeholders
from convoflow.core.graph import (
    ConditionNode,
    Edge,
    FlowGraph,
    InputNode,
    MessageNode,
    Node,
    OptionSetNode,
    OptionTable,
    StartNode,
    TerminalNode,
)
from convoflow.core.interfaces import CatalogProvider
from convoflow.du.vocabulary import is_name_variable, is_phone_variable

logger = logging.getLogger(__name__)

FALLBACK_START_ID = "__start__"
FALLBACK_END_ID = "__end__"


def graph_id(tenant_id: str, template_id: str) -> str:
    return f"{tenant_id}:{template_id}"


class FlowCompiler:
    """Compiles raw template definitions to executable flow graphs.

    The output is a pure function of the input: nodes keep their declared
    order, edges are read in declared order and every tie is broken by
    that order.
    """

    def compile(
        self,
        template: TemplateDefinition,
        tenant_id: str,
        template_id: str,
    ) -> FlowGraph:
        """
        Compile a template.

        Args:
            template: Raw definition as authored in the editor
            tenant_id: Owning tenant
            template_id: Template identifier within the tenant

        Returns:
            Immutable FlowGraph with one OptionTable per option-bearing node

        Raises:
            CompileError: Unknown node type, duplicate node id, missing or
                ambiguous entry, dangling edge or unparseable source handle
        """
        nodes = self._compile_nodes(template)
        return self._assemble(template, nodes, tenant_id, template_id)

    async def compile_with_catalog(
        self,
        template: TemplateDefinition,
        tenant_id: str,
        template_id: str,
        catalog: CatalogProvider,
    ) -> FlowGraph:
        """
        Compile a template, pre-filling catalog option sets with a static filter.

        Catalog nodes without a filter, with a filter referencing session
        variables, or whose lookup fails keep an empty option list and are
        looked up when they become current.
        """
        nodes = self._compile_nodes(template)
        for node_id, node in nodes.items():
            if not isinstance(node, OptionSetNode) or not node.is_catalog_backed:
                continue
            if not node.catalog_filter:
                continue
            if any(placeholders(value) for value in node.catalog_filter.values()):
                logger.debug(f"Catalog filter of node '{node_id}' depends on session variables")
                continue
            filter_context = {**node.catalog_filter, "source": node.source.value}
            try:
                items = await catalog.list_options(tenant_id, filter_context)
            except Exception as e:
                logger.warning(
                    f"Catalog lookup for node '{node_id}' failed at compile time, "
                    f"deferring to runtime: {e}"
                )
                continue
            if items:
                nodes[node_id] = node.model_copy(update={"options": tuple(items)})
        return self._assemble(template, nodes, tenant_id, template_id)

    def _compile_nodes(self, template: TemplateDefinition) -> dict[str, Node]:
        nodes: dict[str, Node] = {}
        for raw in template.nodes:
            if raw.id in nodes:
                raise CompileError("Duplicate node id", node_id=raw.id)
            try:
                factory = get_factory_for_type(raw.type)
            except CompileError as e:
                raise CompileError(e.message, node_id=raw.id) from e
            nodes[raw.id] = factory.create(raw)

        logger.debug(f"Compiled {len(nodes)} nodes")
        return nodes

    def _assemble(
        self,
        template: TemplateDefinition,
        nodes: dict[str, Node],
        tenant_id: str,
        template_id: str,
    ) -> FlowGraph:
        entry = self._find_entry(nodes)
        edges = self._compile_edges(template, nodes)

        outgoing: dict[str, list[Edge]] = {}
        for edge in edges:
            outgoing.setdefault(edge.source, []).append(edge)

        successors: dict[str, str] = {}
        option_tables: dict[str, OptionTable] = {}
        for node_id, node in nodes.items():
            node_edges = outgoing.get(node_id, [])
            if isinstance(node, ConditionNode | OptionSetNode):
                option_tables[node_id] = build_option_table(node, node_edges)
            elif node_edges:
                if isinstance(node, TerminalNode):
                    logger.warning(f"Terminal node '{node_id}' has outgoing edges; ignored")
                    continue
                successors[node_id] = node_edges[0].target
                if len(node_edges) > 1:
                    logger.warning(
                        f"Node '{node_id}' has {len(node_edges)} outgoing edges; "
                        f"following the first to '{node_edges[0].target}'"
                    )

        name_variables, phone_variables = self._tag_lead_variables(nodes)

        graph = FlowGraph(
            id=graph_id(tenant_id, template_id),
            tenant_id=tenant_id,
            template_id=template_id,
            triggers=entry.keywords or DEFAULT_ENTRY_TRIGGERS,
            entry_node_id=entry.id,
            nodes=nodes,
            edges=tuple(edges),
            successors=successors,
            option_tables=option_tables,
            name_variables=frozenset(name_variables),
            phone_variables=frozenset(phone_variables),
        )
        self._warn_unreachable(graph)

        logger.info(
            f"Compiled template '{template_id}' for tenant '{tenant_id}': "
            f"{len(nodes)} nodes, {len(edges)} edges, {len(option_tables)} option tables"
        )
        return graph

    def _find_entry(self, nodes: dict[str, Node]) -> StartNode:
        starts = [node for node in nodes.values() if isinstance(node, StartNode)]
        if not starts:
            raise CompileError("Template has no declared entry (start node)")
        if len(starts) > 1:
            raise CompileError(
                "Template declares more than one start node",
                start_nodes=[node.id for node in starts],
            )
        return starts[0]

    def _compile_edges(self, template: TemplateDefinition, nodes: dict[str, Node]) -> list[Edge]:
        edges: list[Edge] = []
        for raw in template.edges:
            if raw.source not in nodes:
                raise CompileError(
                    "Edge references a missing source node", source=raw.source, target=raw.target
                )
            if raw.target not in nodes:
                raise CompileError(
                    "Edge references a missing target node", source=raw.source, target=raw.target
                )
            handle = raw.source_handle
            node = nodes[raw.source]
            if handle and not isinstance(node, ConditionNode | OptionSetNode):
                logger.debug(f"Ignoring source handle '{handle}' on node '{raw.source}'")
                handle = None
            edges.append(Edge(source=raw.source, target=raw.target, handle=handle))
        return edges

    def _tag_lead_variables(self, nodes: dict[str, Node]) -> tuple[set[str], set[str]]:
        """Tag name-class and phone-class capture variables.

        An input node's declared type wins; otherwise the variable name is
        matched against the name and phone vocabularies.
        """
        names: set[str] = set()
        phones: set[str] = set()
        for node in nodes.values():
            if isinstance(node, InputNode):
                variable, declared = node.variable_name, node.input_type
            elif isinstance(node, MessageNode) and node.variable_name:
                variable, declared = node.variable_name, InputType.TEXT.value
            else:
                continue

            if declared == InputType.NAME.value:
                names.add(variable)
            elif declared == InputType.PHONE.value:
                phones.add(variable)
            elif declared == InputType.TEXT.value:
                if is_phone_variable(variable):
                    phones.add(variable)
                elif is_name_variable(variable):
                    names.add(variable)
        return names, phones

    def _warn_unreachable(self, graph: FlowGraph) -> None:
        reachable = {graph.entry_node_id}
        queue = deque([graph.entry_node_id])
        adjacency: dict[str, list[str]] = {}
        for edge in graph.edges:
            adjacency.setdefault(edge.source, []).append(edge.target)
        while queue:
            for target in adjacency.get(queue.popleft(), []):
                if target not in reachable:
                    reachable.add(target)
                    queue.append(target)

        unreachable = [node_id for node_id in graph.nodes if node_id not in reachable]
        if unreachable:
            logger.warning(
                f"Template '{graph.template_id}' has nodes unreachable from the entry: "
                f"{unreachable}"
            )


def build_fallback_graph(tenant_id: str, template_id: str, message: str) -> FlowGraph:
    """Graph served when a template does not compile: entry straight to a terminal."""
    nodes: dict[str, Node] = {
        FALLBACK_START_ID: StartNode(id=FALLBACK_START_ID),
        FALLBACK_END_ID: TerminalNode(id=FALLBACK_END_ID, text=message),
    }
    return FlowGraph(
        id=graph_id(tenant_id, template_id),
        tenant_id=tenant_id,
        template_id=template_id,
        triggers=DEFAULT_ENTRY_TRIGGERS,
        entry_node_id=FALLBACK_START_ID,
        nodes=nodes,
        edges=(Edge(source=FALLBACK_START_ID, target=FALLBACK_END_ID),),
        successors={FALLBACK_START_ID: FALLBACK_END_ID},
    )
