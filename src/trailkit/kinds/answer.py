"""Password kind: players type the answer to a prompt.

A wrong guess is not an error. It is recorded and the block stays open.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from trailkit.errors import InvalidInput
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model


class AnswerConfig(BaseModel):
    prompt: str = ""
    answer: str = ""
    fuzzy: bool = False


class AnswerProgress(BaseModel):
    attempts: int = 0
    guesses: list[str] = Field(default_factory=list)


def _normalise(text: str) -> str:
    return " ".join(text.split()).casefold()


def answers_match(expected: str, guess: str, fuzzy: bool = False) -> bool:
    """Exact comparison, or whitespace- and case-insensitive when ``fuzzy``."""
    if fuzzy:
        return _normalise(guess) == _normalise(expected)
    return guess == expected


class AnswerKind:
    type = "answer"
    name = "Password"
    description = "Players enter the correct answer to a prompt."
    icon = "key-round"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.CHECKPOINT, Context.TASK_VALIDATION})

    def parse_config(self, data: Mapping[str, Any] | None) -> AnswerConfig:
        return parse_config_model(AnswerConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        fields = forms.require_fields(form, "prompt", "answer")
        config = AnswerConfig(prompt=fields["prompt"], answer=fields["answer"], fuzzy=forms.checkbox(form, "fuzzy"))
        return block.with_config(config, points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        return {"prompt": block.config.prompt}

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        if state.is_complete:
            return state
        if not forms.has(form, "answer"):
            raise InvalidInput("answer is a required field")

        config: AnswerConfig = block.config
        guess = forms.first(form, "answer")
        progress = state.progress(AnswerProgress)
        progress.attempts += 1
        progress.guesses.append(guess)

        if not answers_match(config.answer, guess, config.fuzzy):
            return state.advance(progress=progress)
        return state.advance(progress=progress, is_complete=True, points_awarded=block.points)
