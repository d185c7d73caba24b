"""Fixed word lists used by answer resolution and variable tagging.

The lists carry the Spanish and English words the templates in production
are written in. They are matched after casefolding and accent folding.
"""

import re
import unicodedata

AFFIRMATIVE_WORDS = frozenset(
    {
        "si",
        "yes",
        "s",
        "ok",
        "okay",
        "claro",
        "dale",
        "bueno",
        "correcto",
        "confirmar",
        "confirmo",
        "acepto",
        "sure",
        "yeah",
        "yep",
        "afirmativo",
    }
)
AFFIRMATIVE_PHRASES = ("por supuesto", "of course", "esta bien")

NEGATIVE_WORDS = frozenset(
    {
        "no",
        "n",
        "nope",
        "nah",
        "negativo",
        "cancelar",
        "cancelo",
        "rechazo",
        "declino",
        "nunca",
    }
)
NEGATIVE_PHRASES = ("no gracias", "no thanks", "de ninguna manera")

# Variable-name tokens that mark lead-capture classes
NAME_TOKENS = frozenset({"name", "nombre", "nombres"})
PHONE_TOKENS = frozenset(
    {"phone", "telefono", "tel", "celular", "movil", "mobile", "whatsapp", "cellphone"}
)
# Tokens that disqualify a variable from the name class (company_name, nombre_producto)
NON_PERSON_TOKENS = frozenset(
    {
        "company",
        "business",
        "empresa",
        "negocio",
        "product",
        "producto",
        "category",
        "categoria",
        "file",
        "user",
        "usuario",
    }
)

_TOKEN_SPLIT = re.compile(r"[^0-9a-z]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def fold(text: str) -> str:
    """Casefold and strip accents: 'Sí' -> 'si'."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def tokens(text: str) -> list[str]:
    """Accent-folded alphanumeric tokens of a text."""
    return [token for token in _TOKEN_SPLIT.split(fold(text)) if token]


def variable_tokens(name: str) -> set[str]:
    """Tokens of a variable name in any casing style."""
    return set(tokens(_CAMEL_BOUNDARY.sub("_", name)))


def is_name_variable(name: str) -> bool:
    parts = variable_tokens(name)
    if parts & {"user", "usuario"} and parts & NAME_TOKENS and len(parts) == 2:
        # user_name / userName / nombre_usuario
        return True
    return bool(parts & NAME_TOKENS) and not parts & NON_PERSON_TOKENS


def is_phone_variable(name: str) -> bool:
    return bool(variable_tokens(name) & PHONE_TOKENS)


def _matches(reply: str, words: frozenset[str], phrases: tuple[str, ...]) -> bool:
    reply_tokens = tokens(reply)
    if any(token in words for token in reply_tokens):
        return True
    normalized = " ".join(reply_tokens)
    return any(phrase in normalized for phrase in phrases)


def is_affirmative(reply: str) -> bool:
    return _matches(reply, AFFIRMATIVE_WORDS, AFFIRMATIVE_PHRASES)


def is_negative(reply: str) -> bool:
    return _matches(reply, NEGATIVE_WORDS, NEGATIVE_PHRASES)
