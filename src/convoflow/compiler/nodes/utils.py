"""Utility functions for node factories.

Editor metadata is loosely shaped: the same concept appears under several
keys depending on the editor version (``message`` / ``question`` /
``prompt``). These helpers read the first key that is present and
normalize option lists.
"""

from typing import Any

from convoflow.config.models import RawNode
from convoflow.core.errors import CompileError
from convoflow.core.graph import OptionItem

TEXT_KEYS = ("message", "question", "prompt", "text", "content")
VARIABLE_KEYS = ("variableName", "variable_name", "variable")
OPTION_KEYS = ("options", "buttons", "items", "choices")
STAGE_KEYS = ("stageTarget", "stage_target", "salesStageId", "movesToStage")

_TRUE_WORDS = frozenset({"true", "yes", "si", "1", "on"})


def get_optional_field(raw: RawNode, *keys: str, default: Any = None) -> Any:
    """Return the first non-empty value among ``keys`` in the node data."""
    for key in keys:
        value = raw.data.get(key)
        if value is not None and value != "":
            return value
    return default


def require_field(raw: RawNode, *keys: str) -> Any:
    """Like ``get_optional_field`` but a missing value is a CompileError."""
    value = get_optional_field(raw, *keys)
    if value is None:
        raise CompileError(
            f"Node of type '{raw.type}' is missing required field "
            f"{' / '.join(repr(key) for key in keys)}",
            node_id=raw.id,
        )
    return value


def get_text(raw: RawNode, default: str | None = None) -> str | None:
    value = get_optional_field(raw, *TEXT_KEYS, default=default)
    return str(value) if value is not None else None


def _stripped(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def get_variable_name(raw: RawNode) -> str | None:
    return _stripped(get_optional_field(raw, *VARIABLE_KEYS))


def get_stage_target(raw: RawNode) -> str | None:
    return _stripped(get_optional_field(raw, *STAGE_KEYS))


def get_bool(raw: RawNode, *keys: str, default: bool = False) -> bool:
    value = get_optional_field(raw, *keys)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_WORDS


def parse_option(item: Any, raw: RawNode) -> OptionItem:
    """Turn a string or ``{label|text|title, value?, description?}`` into an OptionItem."""
    if isinstance(item, OptionItem):
        return item
    if isinstance(item, str | int | float):
        return OptionItem(label=str(item))
    if isinstance(item, dict):
        label = item.get("label") or item.get("text") or item.get("title") or item.get("body")
        if label is None and item.get("value") is not None:
            label = item["value"]
        if label is None:
            raise CompileError("Option has no label", node_id=raw.id, option=item)
        value = item.get("value")
        description = item.get("description")
        return OptionItem(
            label=str(label),
            value=str(value) if value is not None else "",
            description=str(description) if description is not None else None,
        )
    raise CompileError(
        f"Unsupported option of type {type(item).__name__}", node_id=raw.id, option=item
    )


def get_options(raw: RawNode, *keys: str) -> tuple[OptionItem, ...]:
    """Parse the option list stored under the first present key."""
    items = get_optional_field(raw, *(keys or OPTION_KEYS), default=[])
    if not isinstance(items, list | tuple):
        raise CompileError("Options must be a list", node_id=raw.id)
    return tuple(parse_option(item, raw) for item in items)
