"""Tests for field validation rules."""

import pytest

from tasktimer.engine.validation import parse_payload, validate_category, validate_task
from tasktimer.errors import ValidationError
from tasktimer.models.task import TaskCreate, TaskPatch


class TestValidateTask:

    def test_valid_task(self):
        assert validate_task({"title": "x", "target_time": 0, "elapsed_time": 0}) == {}

    def test_title_required(self):
        assert validate_task({}) == {"title": "Title is required."}
        assert validate_task({"title": None}) == {"title": "Title is required."}

    def test_partial_skips_absent_title(self):
        assert validate_task({"description": "d"}, partial=True) == {}

    def test_partial_checks_present_title(self):
        assert validate_task({"title": ""}, partial=True) == {"title": "Title is required."}

    def test_negative_numbers(self):
        errors = validate_task({"title": "x", "target_time": -0.5, "elapsed_time": -1})
        assert errors == {
            "targetTime": "Target time cannot be negative.",
            "elapsedTime": "Elapsed time cannot be negative.",
        }


class TestValidateCategory:

    def test_name_required(self):
        assert validate_category({"name": ""}) == {"name": "Category name is required."}

    def test_partial(self):
        assert validate_category({"color": "red"}, partial=True) == {}


class TestParsePayload:

    def test_accepts_camel_and_snake_keys(self):
        assert parse_payload(TaskCreate, {"title": "x", "targetTime": 5}).target_time == 5
        assert parse_payload(TaskCreate, {"title": "x", "target_time": 5}).target_time == 5

    def test_passes_model_instances_through(self):
        patch = TaskPatch(order=1)
        assert parse_payload(TaskPatch, patch) is patch

    def test_type_errors_become_field_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(TaskPatch, {"targetTime": "soon"})
        assert list(exc_info.value.errors) == ["targetTime"]

    def test_unknown_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(TaskPatch, {"owner": "me"})
        assert exc_info.value.errors == {"owner": "Unknown field."}
