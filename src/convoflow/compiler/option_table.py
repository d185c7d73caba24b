"""Option tables: dense option index -> target node id per option-bearing node.

Editors encode the option an edge leaves from in its source handle, in a
handful of shapes:

    handle-0, option-2, btn-1, 3    trailing 0-based index
    true / yes / si, false / no     condition branches 0 and 1
    Premium                         an option's value or label
    default / else                  the fallback edge

Edges without a handle are the fallback edge.
"""

import logging
import re
from collections.abc import Sequence

from convoflow.core.errors import CompileError
from convoflow.core.graph import ConditionNode, Edge, OptionBearingNode, OptionItem, OptionTable
from convoflow.du.vocabulary import fold

logger = logging.getLogger(__name__)

_TRAILING_INDEX = re.compile(r"(?:^|\D)(\d+)$")
_SEGMENTS = re.compile(r"[-_:\s]+")

TRUE_HANDLES = frozenset({"true", "yes", "si", "affirmative"})
FALSE_HANDLES = frozenset({"false", "no", "negative"})
DEFAULT_HANDLES = frozenset({"default", "else", "fallback", "otherwise", "next"})


def _options_of(node: OptionBearingNode) -> Sequence[OptionItem]:
    return node.branches if isinstance(node, ConditionNode) else node.options


def parse_handle(handle: str | None, node: OptionBearingNode) -> int | None:
    """Return the 0-based option index a handle refers to, None for the fallback edge.

    Raises:
        CompileError: If the handle cannot be mapped to an option
    """
    if handle is None or not handle.strip():
        return None

    folded = fold(handle.strip())
    last_segment = _SEGMENTS.split(folded)[-1]
    if folded in DEFAULT_HANDLES or last_segment in DEFAULT_HANDLES:
        return None

    options = _options_of(node)
    for index, option in enumerate(options):
        if folded in (fold(option.value), fold(option.label)):
            return index

    match = _TRAILING_INDEX.search(folded)
    if match:
        return int(match.group(1))

    if isinstance(node, ConditionNode):
        if last_segment in TRUE_HANDLES:
            return 0
        if last_segment in FALSE_HANDLES:
            return 1

    for index, option in enumerate(options):
        if last_segment in (fold(option.value), fold(option.label)):
            return index

    raise CompileError(
        f"Cannot map source handle '{handle}' to an option", node_id=node.id, handle=handle
    )


def build_option_table(node: OptionBearingNode, edges: Sequence[Edge]) -> OptionTable:
    """Build the option table of one node from its outgoing edges.

    Edges are taken in declared order; when two edges claim the same
    option (or both are fallback edges) the first one wins.

    Raises:
        CompileError: If a handle cannot be parsed, or a manual option set
            routes an index it does not declare
    """
    options = _options_of(node)
    fixed_options = isinstance(node, ConditionNode) or not node.is_catalog_backed

    routed: dict[int, str] = {}
    default_target: str | None = None

    for edge in edges:
        index = parse_handle(edge.handle, node)
        if index is None:
            if default_target is None:
                default_target = edge.target
            else:
                logger.warning(
                    f"Node '{node.id}' has several fallback edges; keeping '{default_target}', "
                    f"ignoring '{edge.target}'"
                )
            continue

        if fixed_options and index >= len(options):
            raise CompileError(
                f"Source handle '{edge.handle}' routes option {index + 1} "
                f"but the node declares {len(options)}",
                node_id=node.id,
            )
        if index in routed:
            logger.warning(
                f"Node '{node.id}' routes option {index + 1} twice; keeping '{routed[index]}', "
                f"ignoring '{edge.target}'"
            )
            continue
        routed[index] = edge.target

    size = max([len(options), *(index + 1 for index in routed)])
    targets = tuple(routed.get(index) for index in range(size))

    unrouted = [options[i].label for i in range(len(options)) if targets[i] is None]
    if unrouted and default_target is None:
        logger.warning(f"Node '{node.id}' has options without any target: {unrouted}")

    return OptionTable(node_id=node.id, targets=targets, default_target=default_target)
