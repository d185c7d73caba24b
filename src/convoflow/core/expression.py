"""Variable substitution for node text.

Supports:
- Placeholders: "Thanks {{name}}!", "{{ company_name }}"
- Scope priority: session variables, then tenant system variables
- Name variants: {{userName}} also finds user_name / user-name
- Unresolved placeholders stay literal and are logged
"""

import logging
import re
from collections.abc import Mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)([A-Z])")


def name_variants(name: str) -> list[str]:
    """Spellings tried for a variable name, exact name first.

    Examples:
        >>> name_variants("userName")
        ['userName', 'user_name', 'user-name']
        >>> name_variants("nombre_usuario")
        ['nombre_usuario', 'nombre-usuario', 'nombreUsuario']
    """
    snake = _CAMEL_BOUNDARY.sub(r"_\1", name).replace("-", "_").lower()
    kebab = snake.replace("_", "-")
    head, *rest = snake.split("_")
    camel = head + "".join(part.capitalize() for part in rest)

    variants: list[str] = []
    for candidate in (name, snake, kebab, camel):
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def lookup(name: str, *scopes: Mapping[str, str]) -> str | None:
    """Find a variable across scopes in priority order.

    Within each scope the exact name wins over its variants. Empty values
    count as unset.
    """
    variants = name_variants(name)
    for scope in scopes:
        for candidate in variants:
            value = scope.get(candidate)
            if value is not None and value != "":
                return str(value)
    return None


def placeholders(text: str) -> list[str]:
    """Names referenced by placeholders in a text, in order of appearance."""
    return [match.group(1) for match in _PLACEHOLDER.finditer(text or "")]


def substitute(
    text: str,
    session_vars: Mapping[str, str],
    tenant_vars: Mapping[str, str] | None = None,
) -> str:
    """Replace ``{{name}}`` placeholders in a text.

    Args:
        text: Node text
        session_vars: The session VariableBag (highest priority)
        tenant_vars: Tenant-level system variables

    Returns:
        Text with resolved placeholders replaced. Unresolved placeholders are
        left exactly as written so a misconfigured template stays visible.

    Examples:
        >>> substitute("thanks {{name}}", {"name": "Ana"})
        'thanks Ana'
        >>> substitute("hi {{missing}}", {})
        'hi {{missing}}'
    """
    if not text or "{{" not in text:
        return text

    scopes = (session_vars, tenant_vars or {})

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = lookup(name, *scopes)
        if value is None:
            logger.warning(f"Unresolved variable '{{{{{name}}}}}' left in outbound text")
            return match.group(0)
        return value

    return _PLACEHOLDER.sub(_replace, text)
