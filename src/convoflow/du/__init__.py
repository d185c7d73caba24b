"""Deterministic understanding of user replies: option resolution and input checks."""

from convoflow.du.resolver import AnswerResolver, Resolution
from convoflow.du.validators import validate_input

__all__ = ["AnswerResolver", "Resolution", "validate_input"]
