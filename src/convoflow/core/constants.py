"""Core constants and enums."""

from enum import Enum

# Circuit breaker defaults (overridable through EngineSettings.limits)
MAX_HOPS_PER_TURN = 10
MAX_NODE_REPEATS = 3

CIRCUIT_BREAKER_MESSAGE = (
    "Sorry, something went wrong on our side. Please send a message to start again."
)
UNAVAILABLE_MESSAGE = "Sorry, this assistant is not available right now."
INVALID_OPTION_MESSAGE = "Please choose one of the available options."
DEFAULT_OPTION_PROMPT = "Please select an option:"

# Used when a start node declares no keywords of its own
DEFAULT_ENTRY_TRIGGERS = ("hola", "hello", "hi", "start", "inicio")

# Variables that receive the selection of catalog-backed option nodes
DEFAULT_SELECTION_VARIABLES = {
    "categories": "selected_category",
    "products": "selected_product",
    "availability": "selected_slot",
}


class NodeKind(str, Enum):
    """Variants of a compiled conversation node."""

    START = "start"
    MESSAGE = "message"
    INPUT = "input"
    CONDITION = "condition"
    OPTIONS = "options"
    END = "end"


class OptionSource(str, Enum):
    """Where an option set takes its choices from."""

    MANUAL = "manual"
    CATEGORIES = "categories"
    PRODUCTS = "products"
    AVAILABILITY = "availability"


class ConversationStatus(str, Enum):
    """Lifecycle of a conversation within a session."""

    ACTIVE = "active"
    COMPLETED = "completed"


class InputType(str, Enum):
    """Validation classes for input nodes."""

    TEXT = "text"
    NAME = "name"
    PHONE = "phone"
    EMAIL = "email"
    NUMBER = "number"


class DispatchMode(str, Enum):
    """When side effects run relative to the turn."""

    INLINE = "inline"
    BACKGROUND = "background"
