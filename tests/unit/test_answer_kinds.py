"""Unit tests for the password and pincode kinds."""

from __future__ import annotations

import pytest

from trailkit.errors import ConfigValidationError, InvalidInput
from trailkit.kinds.answer import answers_match


@pytest.fixture
def pincode_block(make_block):
    return make_block("pincode", {"prompt": "Door code", "pincode": "12345"}, points=50)


@pytest.fixture
def answer_block(make_block):
    return make_block("answer", {"prompt": "Capital of France?", "answer": "Paris"}, points=20)


class TestPincode:

    def test_happy_path(self, registry, pincode_block, fresh_state):
        state = registry.get("pincode").validate_player_input(
            pincode_block, fresh_state, {"pincode": ["1", "2", "3", "4", "5"]}
        )
        assert state.is_complete
        assert state.points_awarded == 50
        assert state.player_data == {"attempts": 1, "guesses": ["12345"]}

    def test_wrong_length_changes_nothing(self, registry, pincode_block, fresh_state):
        with pytest.raises(InvalidInput, match="length mismatch"):
            registry.get("pincode").validate_player_input(pincode_block, fresh_state, {"pincode": ["1", "2", "3"]})
        assert fresh_state.player_data == {}

    def test_multi_character_input(self, registry, pincode_block, fresh_state):
        with pytest.raises(InvalidInput, match="single character"):
            registry.get("pincode").validate_player_input(
                pincode_block, fresh_state, {"pincode": ["12", "3", "4", "5", ""]}
            )

    def test_missing(self, registry, pincode_block, fresh_state):
        with pytest.raises(InvalidInput, match="required"):
            registry.get("pincode").validate_player_input(pincode_block, fresh_state, {})

    def test_wrong_code_records_attempt(self, registry, pincode_block, fresh_state):
        kind = registry.get("pincode")
        state = kind.validate_player_input(pincode_block, fresh_state, {"pincode": list("54321")})
        assert not state.is_complete
        assert state.points_awarded == 0
        state = kind.validate_player_input(pincode_block, state, {"pincode": list("12345")})
        assert state.is_complete
        assert state.player_data == {"attempts": 2, "guesses": ["54321", "12345"]}

    def test_completed_state_is_final(self, registry, pincode_block, fresh_state):
        kind = registry.get("pincode")
        done = kind.validate_player_input(pincode_block, fresh_state, {"pincode": list("12345")})
        assert kind.validate_player_input(pincode_block, done, {"pincode": list("00000")}) == done

    def test_form_requires_code(self, registry, make_block):
        with pytest.raises(ConfigValidationError) as exc_info:
            registry.get("pincode").update_from_form(make_block("pincode"), {"prompt": ["Code"]})
        assert "pincode" in exc_info.value.field_errors


class TestAnswer:

    def test_correct(self, registry, answer_block, fresh_state):
        state = registry.get("answer").validate_player_input(answer_block, fresh_state, {"answer": ["Paris"]})
        assert (state.is_complete, state.points_awarded) == (True, 20)

    def test_wrong_answer_is_not_an_error(self, registry, answer_block, fresh_state):
        state = registry.get("answer").validate_player_input(answer_block, fresh_state, {"answer": ["Lyon"]})
        assert not state.is_complete
        assert state.player_data == {"attempts": 1, "guesses": ["Lyon"]}

    def test_exact_match_by_default(self, registry, answer_block, fresh_state):
        state = registry.get("answer").validate_player_input(answer_block, fresh_state, {"answer": ["paris "]})
        assert not state.is_complete

    def test_missing_answer(self, registry, answer_block, fresh_state):
        with pytest.raises(InvalidInput):
            registry.get("answer").validate_player_input(answer_block, fresh_state, {})

    def test_fuzzy_matching(self):
        assert answers_match("Eiffel  Tower", " eiffel tower ", fuzzy=True)
        assert not answers_match("Eiffel Tower", "eiffel tower")
        assert not answers_match("Eiffel Tower", "Eiffel", fuzzy=True)

    def test_form(self, registry, make_block):
        block = registry.get("answer").update_from_form(
            make_block("answer"), {"prompt": ["Q"], "answer": ["A"], "points": ["15"], "fuzzy": ["on"]}
        )
        assert block.points == 15
        assert block.data == {"prompt": "Q", "answer": "A", "fuzzy": True}
