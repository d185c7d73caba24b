"""Input validation for captured replies.

Input nodes declare an ``input_type``; a reply is only captured when the
validator registered for that type accepts it.

Usage:
    from convoflow.du.validators import register_validator, validate_input

    register_validator("zip", lambda value: value.isdigit() and len(value) == 5)

    validate_input("12345", "zip")
"""

import re
from collections.abc import Callable

from convoflow.core.constants import InputType

ValidatorFn = Callable[[str], bool]

_validators: dict[str, ValidatorFn] = {}

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE = re.compile(r"^[\+]?[1-9][\d]{7,15}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-\(\)]")
_NAME = re.compile(r"^[a-zA-ZÀ-ÿ\s]+$")

DEFAULT_INVALID_MESSAGES = {
    InputType.TEXT.value: "Please enter a response.",
    InputType.NAME.value: "Please enter a valid name.",
    InputType.PHONE.value: "Please enter a valid phone number.",
    InputType.EMAIL.value: "Please enter a valid email address.",
    InputType.NUMBER.value: "Please enter a number.",
}


def register_validator(input_type: str, fn: ValidatorFn) -> None:
    """Register a validator for an input type."""
    _validators[input_type] = fn


def get_validator(input_type: str) -> ValidatorFn | None:
    return _validators.get(input_type)


def validate_input(value: str, input_type: str | None) -> bool:
    """Check a reply against the validator of an input type.

    Unknown types only require a non-empty reply.
    """
    value = value.strip()
    if not value:
        return False
    validator = _validators.get(input_type or InputType.TEXT.value)
    if validator is None:
        return True
    return validator(value)


def invalid_message_for(input_type: str | None) -> str:
    return DEFAULT_INVALID_MESSAGES.get(
        input_type or InputType.TEXT.value, DEFAULT_INVALID_MESSAGES[InputType.TEXT.value]
    )


def clear_validators() -> None:
    """Drop custom validators and restore the built-in ones (for testing)."""
    _validators.clear()
    _register_builtins()


def _validate_name(value: str) -> bool:
    return len(value) >= 2 and bool(_NAME.match(value))


def _validate_phone(value: str) -> bool:
    return bool(_PHONE.match(_PHONE_SEPARATORS.sub("", value)))


def _validate_email(value: str) -> bool:
    return bool(_EMAIL.match(value))


def _validate_number(value: str) -> bool:
    try:
        float(value.replace(",", "."))
    except ValueError:
        return False
    return True


def _register_builtins() -> None:
    register_validator(InputType.TEXT.value, lambda value: bool(value))
    register_validator(InputType.NAME.value, _validate_name)
    register_validator(InputType.PHONE.value, _validate_phone)
    register_validator(InputType.EMAIL.value, _validate_email)
    register_validator(InputType.NUMBER.value, _validate_number)


_register_builtins()
