"""Unit tests for the task kind and its inner validators."""

from __future__ import annotations

import pytest

from trailkit.errors import ConfigParseError, ConfigValidationError, InvalidInput, LimitReached
from trailkit.kinds.base import BlockState, Context


@pytest.fixture
def task_kind(registry):
    return registry.get("task")


@pytest.fixture
def pincode_task(make_block):
    data = {
        "task_name": "Open the chest",
        "inner_type": "pincode",
        "inner_data": {"prompt": "Chest code", "pincode": "0451"},
    }
    return make_block("task", data, points=40)


class TestTaskValidation:

    def test_delegates_to_inner_kind(self, task_kind, pincode_task, fresh_state):
        state = task_kind.validate_player_input(pincode_task, fresh_state, {"pincode": list("0451")})
        assert (state.is_complete, state.points_awarded) == (True, 40)
        assert state.block_id == "block-1"

    def test_wraps_inner_errors(self, task_kind, pincode_task, fresh_state):
        with pytest.raises(InvalidInput) as exc_info:
            task_kind.validate_player_input(pincode_task, fresh_state, {"pincode": ["1"]})
        assert exc_info.value.message == "validation failed for task 'Open the chest': pincode length mismatch"

    def test_wraps_limit_errors(self, task_kind, make_block):
        block = make_block(
            "task", {"task_name": "Selfie", "inner_type": "photo", "inner_data": {"max_images": 1}}, points=5
        )
        full = BlockState(block_id="block-1", team_id="team-a", player_data={"images": ["/a.jpg"]})
        with pytest.raises(LimitReached, match="^validation failed for task 'Selfie'"):
            task_kind.validate_player_input(block, full, {"url": ["/b.jpg"]})

    def test_unconfigured_task(self, task_kind, make_block, fresh_state):
        with pytest.raises(InvalidInput, match="not properly configured"):
            task_kind.validate_player_input(make_block("task"), fresh_state, {})

    def test_complete_button(self, task_kind, make_block, fresh_state):
        block = make_block("task", {"task_name": "Wave", "inner_type": "complete_button"}, points=3)
        state = task_kind.validate_player_input(block, fresh_state, {})
        assert (state.is_complete, state.points_awarded) == (True, 3)

    def test_inner_block_inherits_points(self, task_kind, pincode_task):
        inner = task_kind.inner_block(pincode_task)
        assert inner.id == "block-1_inner"
        assert inner.type == "pincode"
        assert inner.context is Context.TASK_VALIDATION
        assert inner.points == 40

    def test_rejects_inner_kind_outside_task_palette(self, task_kind):
        with pytest.raises(ConfigParseError):
            task_kind.parse_config({"task_name": "x", "inner_type": "markdown"})

    def test_rejects_unreadable_inner_data(self, task_kind):
        with pytest.raises(ConfigParseError):
            task_kind.parse_config({"inner_type": "quiz_block", "inner_data": {"options": 3}})


class TestTaskForm:

    def test_choosing_inner_type_uses_defaults(self, task_kind, make_block):
        block = task_kind.update_from_form(
            make_block("task"), {"task_name": ["Scan it"], "inner_type": ["qr_code"], "points": ["25"]}
        )
        assert block.points == 25
        assert block.config.inner_type == "qr_code"
        assert block.config.inner_data == {"instructions": "Find and scan the QR code to complete this task"}

    def test_inner_fields_are_forwarded(self, task_kind, pincode_task):
        form = {"inner_type": ["pincode"], "prompt": ["New prompt"], "pincode": ["9999"]}
        block = task_kind.update_from_form(pincode_task, form)
        assert block.config.task_name == "Open the chest"
        assert block.points == 40
        assert block.config.inner_data["pincode"] == "9999"
        assert block.config.inner_data["prompt"] == "New prompt"

    def test_switching_inner_type_resets_inner_data(self, task_kind, pincode_task):
        block = task_kind.update_from_form(pincode_task, {"inner_type": ["complete_button"]})
        assert block.config.inner_data == {"text": "Mark as complete"}

    def test_requires_inner_type(self, task_kind, make_block):
        with pytest.raises(ConfigValidationError) as exc_info:
            task_kind.update_from_form(make_block("task"), {"task_name": ["Lonely"]})
        assert "inner_type" in exc_info.value.field_errors

    def test_rejects_unusable_inner_type(self, task_kind, make_block):
        with pytest.raises(ConfigValidationError):
            task_kind.update_from_form(make_block("task"), {"inner_type": ["sorting"]})

    def test_task_name_length(self, task_kind, pincode_task):
        with pytest.raises(ConfigValidationError):
            task_kind.update_from_form(pincode_task, {"task_name": ["x" * 201]})

    def test_config_form_merges_inner_form(self, task_kind, pincode_task):
        form = task_kind.config_form(pincode_task)
        assert form["task_name"] == ["Open the chest"]
        assert form["inner_type"] == ["pincode"]
        assert form["pincode"] == ["0451"]
        assert form["points"] == ["40"]

    def test_stored_inner_data_is_normalised(self, task_kind):
        """Inner payloads saved before a field existed read back with its default."""
        config = task_kind.parse_config(
            {"task_name": "Old", "inner_type": "pincode", "inner_data": {"prompt": "P", "pincode": "12"}}
        )
        assert config.inner_data == {"prompt": "P", "pincode": "12", "unlocked_content": ""}

    def test_round_trip(self, task_kind, pincode_task):
        again = task_kind.update_from_form(pincode_task, task_kind.config_form(pincode_task))
        assert again.data == pincode_task.data
        assert again.points == pincode_task.points
