"""Unit tests for the task field lookup table."""

import pytest

from src.domain.options import FIELD_CONFIGS, TaskField, field_label, get_field_config


@pytest.mark.unit
class TestFieldConfigs:
    """Tests for field labels and options."""

    def test_enumerated_fields_list_their_values(self):
        assert [o.value for o in FIELD_CONFIGS[TaskField.PRIORITY].options] == ["High", "Medium", "Low"]
        assert "Overdue" in [o.value for o in FIELD_CONFIGS[TaskField.STATUS].options]

    def test_free_text_fields_have_no_options(self):
        assert FIELD_CONFIGS[TaskField.STAGE_GATES].options == []

    def test_lookup_by_name(self):
        assert get_field_config("task_type").label == "Task Type"
        assert get_field_config("password") is None

    def test_label_falls_back_to_title_case(self):
        assert field_label("assigned_to") == "Assigned To"
        assert field_label("est_hours") == "Est Hours"
