"""Unit tests for filter and sort translation in the SQLite client."""

import pytest

from src.core.db_client import parse_filter, parse_sort, sanitize_param


@pytest.mark.unit
class TestParseFilter:
    """Tests for parse_filter."""

    def test_empty_filter(self):
        assert parse_filter("") == ("", [])

    def test_and_conditions(self):
        clause, params = parse_filter('is_archived = false && project = "OPS"')

        assert clause == "is_archived = ? AND project = ?"
        assert params == [False, "OPS"]

    def test_null_checks(self):
        clause, params = parse_filter("is_archived = true && archived_at != null")

        assert clause == "is_archived = ? AND archived_at IS NOT NULL"
        assert params == [True]
        assert parse_filter("completed_at = null") == ("completed_at IS NULL", [])

    def test_bare_literals_are_typed(self):
        assert parse_filter("task_no = 12") == ("task_no = ?", [12])
        assert parse_filter("est_hours >= 1.5") == ("est_hours >= ?", [1.5])
        assert parse_filter("done != true") == ("done != ?", [True])

    def test_quoted_values_stay_strings(self):
        clause, params = parse_filter('stage_gates = "007" && task_type = "true" && assigned_to = "12.5"')

        assert clause == "stage_gates = ? AND task_type = ? AND assigned_to = ?"
        assert params == ["007", "true", "12.5"]

    def test_like_needs_quoted_value(self):
        with pytest.raises(ValueError, match="LIKE needs a quoted value"):
            parse_filter("notes ~ 5")

    def test_like_escapes_wildcards(self):
        clause, params = parse_filter('notes ~ "50%_off"')

        assert clause == "notes LIKE ? ESCAPE '\\'"
        assert params == ["%50\\%\\_off%"]

    def test_or_group(self):
        clause, params = parse_filter('(priority = "High" || priority = "Medium") && done = false')

        assert clause == "(priority = ? OR priority = ?) AND done = ?"
        assert params == ["High", "Medium", False]

    def test_invalid_syntax(self):
        with pytest.raises(ValueError, match="Invalid filter syntax"):
            parse_filter("project OPS")


@pytest.mark.unit
class TestParseSort:
    """Tests for parse_sort."""

    @pytest.mark.parametrize(
        ("sort", "expected"),
        [
            ("-archived_at", "archived_at DESC, id ASC"),
            ("+due_date", "due_date ASC, id ASC"),
            ("task_no desc", "task_no DESC, id ASC"),
            ("", "id ASC"),
            ("due_date; DROP TABLE tasks", "id ASC"),
        ],
    )
    def test_sort(self, sort, expected):
        assert parse_sort(sort) == expected


@pytest.mark.unit
class TestSanitizeParam:
    """Tests for sanitize_param."""

    def test_escapes_quotes(self):
        assert sanitize_param('OPS" || 1=1') == 'OPS\\" || 1=1'
