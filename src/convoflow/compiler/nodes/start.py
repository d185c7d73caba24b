from convoflow.compiler.nodes.utils import get_optional_field, get_stage_target, get_text
from convoflow.config.models import RawNode
from convoflow.core.errors import CompileError
from convoflow.core.graph import StartNode


def parse_keywords(value: object, node_id: str) -> tuple[str, ...]:
    """Keywords are a list or a comma-separated string; blanks are dropped."""
    if value is None:
        return ()
    if isinstance(value, str):
        items: list[object] = value.split(",")
    elif isinstance(value, list | tuple):
        items = list(value)
    else:
        raise CompileError("Start keywords must be a list or a string", node_id=node_id)

    keywords: list[str] = []
    for item in items:
        keyword = " ".join(str(item).split())
        if keyword and keyword.casefold() not in (k.casefold() for k in keywords):
            keywords.append(keyword)
    return tuple(keywords)


class StartNodeFactory:
    """Factory for the entry node (SRP: single responsibility)."""

    def create(self, raw: RawNode) -> StartNode:
        return StartNode(
            id=raw.id,
            text=get_text(raw),
            keywords=parse_keywords(
                get_optional_field(raw, "keywords", "triggers", "keyword"), raw.id
            ),
            stage_target=get_stage_target(raw),
        )
