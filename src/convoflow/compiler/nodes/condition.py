from convoflow.compiler.nodes.utils import (
    OPTION_KEYS,
    get_optional_field,
    get_options,
    get_stage_target,
    get_text,
    get_variable_name,
)
from convoflow.config.models import RawNode
from convoflow.core.constants import DEFAULT_OPTION_PROMPT
from convoflow.core.graph import ConditionNode, OptionItem

# Branches of a condition that declares none: branch 0 is "yes", branch 1 is "no"
DEFAULT_BRANCHES = (OptionItem(label="Yes", value="yes"), OptionItem(label="No", value="no"))


class ConditionNodeFactory:
    """Factory for branching nodes (SRP: single responsibility)."""

    def create(self, raw: RawNode) -> ConditionNode:
        branches = get_options(raw, "conditions", "branches", *OPTION_KEYS)
        invalid_message = get_optional_field(raw, "invalidMessage", "errorMessage")
        return ConditionNode(
            id=raw.id,
            prompt=get_text(raw, default=DEFAULT_OPTION_PROMPT) or DEFAULT_OPTION_PROMPT,
            branches=branches or DEFAULT_BRANCHES,
            variable_name=get_variable_name(raw),
            invalid_message=str(invalid_message) if invalid_message is not None else None,
            stage_target=get_stage_target(raw),
        )
