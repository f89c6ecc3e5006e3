"""Test security vulnerabilities in filter parsing."""

import pytest

from src.core import db_client


@pytest.mark.unit
def test_filter_parsing_escaped_double_quotes():
    """Test that filter parser correctly handles escaped double quotes."""
    # This value simulates what sanitize_param produces for 'Q3 "final" review'
    query = 'task_description = "Q3 \\"final\\" review"'

    _, params = db_client._parse_single_comparison(query)

    assert params == ['Q3 "final" review']


@pytest.mark.unit
def test_filter_parsing_single_quotes_escaped():
    """Test that filter parser correctly handles escaped single quotes in single-quoted strings."""
    query = "assigned_to = 'O\\'Reilly'"

    _, params = db_client._parse_single_comparison(query)

    assert params == ["O'Reilly"]


@pytest.mark.unit
def test_filter_parsing_backslash():
    """Test that filter parser correctly handles backslashes."""
    value = db_client.sanitize_param("C:\\temp")
    query = f'notes = "{value}"'

    _, params = db_client._parse_single_comparison(query)

    assert params == ["C:\\temp"]


@pytest.mark.unit
def test_trailing_text_is_rejected():
    """Text after the closing quote is a syntax error, not silently dropped."""
    with pytest.raises(ValueError, match="Invalid filter syntax"):
        db_client._parse_single_comparison('project = "OPS" OR 1=1')


@pytest.mark.unit
def test_two_character_operators():
    assert db_client._parse_single_comparison("task_no >= 3") == ("task_no >= ?", [3])
    assert db_client._parse_single_comparison('due_date <= "2024-01-31"') == ("due_date <= ?", ["2024-01-31"])


@pytest.mark.unit
def test_injection_attempt_is_parameterized():
    """Test that injection attempts are treated as values, not SQL."""
    malicious_value = 'OPS" OR 1=1 --'
    query = f'project = "{db_client.sanitize_param(malicious_value)}"'

    cond, params = db_client._parse_single_comparison(query)

    assert cond == "project = ?"
    assert params == [malicious_value]
