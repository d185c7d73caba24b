"""Tests for variable substitution."""

import logging

import pytest

from convoflow.core.expression import lookup, name_variants, placeholders, substitute


def test_substitute_session_variable():
    """Test placeholder is replaced by a session variable."""
    # Arrange & Act
    result = substitute("thanks {{name}}", {"name": "Ana"})

    # Assert
    assert result == "thanks Ana"


def test_substitute_tolerates_inner_whitespace():
    """Test placeholders with spaces inside the braces."""
    assert substitute("Hi {{ name }}!", {"name": "Ana"}) == "Hi Ana!"


def test_session_variable_shadows_tenant_variable():
    """Test session scope wins over tenant scope."""
    # Arrange
    session = {"company_name": "Session Co"}
    tenant = {"company_name": "Tenant Co"}

    # Act
    result = substitute("Welcome to {{company_name}}", session, tenant)

    # Assert
    assert result == "Welcome to Session Co"


def test_tenant_variable_used_when_session_lacks_it():
    """Test fallback to tenant system variables."""
    assert substitute("I'm {{agent}}", {}, {"agent": "Laura"}) == "I'm Laura"


def test_unresolved_placeholder_left_literal(caplog):
    """Test unresolved placeholders are kept as written and logged."""
    # Act
    with caplog.at_level(logging.WARNING, logger="convoflow.core.expression"):
        result = substitute("Hi {{missing}}", {"name": "Ana"})

    # Assert
    assert result == "Hi {{missing}}"
    (record,) = caplog.records
    assert record.levelno == logging.WARNING
    assert record.name == "convoflow.core.expression"
    assert "{{missing}}" in record.getMessage()


def test_empty_value_counts_as_unset():
    """Test an empty session value falls through to the tenant scope."""
    assert substitute("{{name}}", {"name": ""}, {"name": "Default"}) == "Default"


@pytest.mark.parametrize(
    "placeholder,variables",
    [
        ("userName", {"user_name": "Ana"}),
        ("user_name", {"userName": "Ana"}),
        ("user-name", {"user_name": "Ana"}),
    ],
)
def test_name_variants_resolve(placeholder, variables):
    """Test camelCase, snake_case and kebab-case spellings find each other."""
    assert substitute(f"{{{{{placeholder}}}}}", variables) == "Ana"


def test_exact_name_wins_over_variant():
    """Test exact spelling is preferred within one scope."""
    # Arrange
    variables = {"userName": "exact", "user_name": "variant"}

    # Act & Assert
    assert lookup("userName", variables) == "exact"


def test_name_variants_order():
    """Test variants start with the name as written."""
    assert name_variants("userName") == ["userName", "user_name", "user-name"]


def test_placeholders_in_order():
    """Test placeholder names are listed in order of appearance."""
    assert placeholders("{{a}} and {{ b }} then {{a}}") == ["a", "b", "a"]


def test_text_without_placeholders_returned_unchanged():
    """Test plain text passes through."""
    assert substitute("plain", {}) == "plain"
    assert substitute("", {}) == ""
