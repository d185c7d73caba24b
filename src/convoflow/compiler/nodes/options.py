from convoflow.compiler.nodes.utils import (
    OPTION_KEYS,
    get_optional_field,
    get_options,
    get_stage_target,
    get_text,
    get_variable_name,
)
from convoflow.config.models import RawNode
from convoflow.core.constants import (
    DEFAULT_OPTION_PROMPT,
    DEFAULT_SELECTION_VARIABLES,
    OptionSource,
)
from convoflow.core.errors import CompileError
from convoflow.core.graph import OptionSetNode


class OptionSetNodeFactory:
    """Factory for option set nodes.

    One instance per option source: the manual factory reads the choices
    from the node, the catalog factories leave them to the catalog lookup.
    """

    def __init__(self, source: OptionSource = OptionSource.MANUAL):
        self.source = source

    def create(self, raw: RawNode) -> OptionSetNode:
        options = get_options(raw, *OPTION_KEYS)
        if self.source is OptionSource.MANUAL and not options:
            raise CompileError("Option set declares no options", node_id=raw.id)

        catalog_filter = get_optional_field(raw, "filter", "catalogFilter", default={})
        if not isinstance(catalog_filter, dict):
            raise CompileError("Catalog filter must be a mapping", node_id=raw.id)

        variable_name = get_variable_name(raw)
        if variable_name is None and self.source is not OptionSource.MANUAL:
            variable_name = DEFAULT_SELECTION_VARIABLES[self.source.value]

        empty_message = get_optional_field(raw, "emptyMessage", "noResultsMessage")
        invalid_message = get_optional_field(raw, "invalidMessage", "errorMessage")
        return OptionSetNode(
            id=raw.id,
            prompt=get_text(raw, default=DEFAULT_OPTION_PROMPT) or DEFAULT_OPTION_PROMPT,
            source=self.source,
            options=options,
            variable_name=variable_name,
            catalog_filter={str(k): str(v) for k, v in catalog_filter.items()},
            empty_message=str(empty_message) if empty_message is not None else None,
            invalid_message=str(invalid_message) if invalid_message is not None else None,
            stage_target=get_stage_target(raw),
        )
