from convoflow.compiler.nodes.utils import (
    TEXT_KEYS,
    get_optional_field,
    get_stage_target,
    get_variable_name,
    require_field,
)
from convoflow.config.models import RawNode
from convoflow.core.constants import InputType
from convoflow.core.errors import CompileError
from convoflow.core.graph import InputNode

DEFAULT_INPUT_VARIABLE = "user_input"

_INPUT_TYPES = {item.value for item in InputType}


class InputNodeFactory:
    """Factory for free-text capture nodes (SRP: single responsibility)."""

    def create(self, raw: RawNode) -> InputNode:
        """Create an input node.

        Raises:
            CompileError: If the prompt is missing or the input type is unknown
        """
        input_type = str(get_optional_field(raw, "inputType", "input_type", default="text"))
        input_type = input_type.strip().lower()
        if input_type not in _INPUT_TYPES:
            raise CompileError(
                f"Unknown input type '{input_type}'. Available: {sorted(_INPUT_TYPES)}",
                node_id=raw.id,
            )

        invalid_message = get_optional_field(raw, "invalidMessage", "errorMessage")
        return InputNode(
            id=raw.id,
            prompt=str(require_field(raw, *TEXT_KEYS)),
            variable_name=get_variable_name(raw) or DEFAULT_INPUT_VARIABLE,
            input_type=input_type,
            invalid_message=str(invalid_message) if invalid_message is not None else None,
            stage_target=get_stage_target(raw),
        )
