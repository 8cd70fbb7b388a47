"""Quiz kind: single- or multiple-choice questions with optional retries.

Single choice is all or nothing. Multiple choice scores one mark per option
whose selected-ness matches its ``is_correct`` flag and awards
``round(points * marks / options)``, rounding halves up.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from trailkit.errors import ConfigValidationError
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model
from trailkit.kinds.randomness import secure_shuffle


class QuizOption(BaseModel):
    id: str
    text: str
    is_correct: bool = False
    order: int = 0


class QuizConfig(BaseModel):
    question: str = ""
    options: list[QuizOption] = Field(default_factory=list)
    multiple_choice: bool = False
    randomize_order: bool = False
    retry_enabled: bool = False


class QuizProgress(BaseModel):
    selected_options: list[str] = Field(default_factory=list)
    attempts: int = 0
    is_correct: bool = False


def score_quiz(config: QuizConfig, points: int, selected: list[str]) -> tuple[int, bool]:
    """Return ``(points_awarded, is_correct)`` for a selection."""
    correct_ids = {option.id for option in config.options if option.is_correct}
    if not config.options or not correct_ids:
        return 0, False

    if not config.multiple_choice:
        if len(selected) == 1 and selected[0] in correct_ids:
            return points, True
        return 0, False

    chosen = set(selected)
    marks = sum(1 for option in config.options if (option.id in chosen) == option.is_correct)
    total = len(config.options)
    if marks == total:
        return points, True
    return int(points * marks / total + 0.5), False


def shuffled_options(config: QuizConfig) -> list[QuizOption]:
    """Options in display order; stored order is never changed."""
    ordered = sorted(config.options, key=lambda option: option.order)
    if config.randomize_order:
        return secure_shuffle(ordered)
    return ordered


class QuizKind:
    type = "quiz_block"
    name = "Quiz"
    description = "Ask a question with single or multiple correct answers."
    icon = "circle-help"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.CHECKPOINT, Context.TASK_VALIDATION})

    def parse_config(self, data: Mapping[str, Any] | None) -> QuizConfig:
        return parse_config_model(QuizConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        multiple_choice = forms.checkbox(form, "multiple_choice")
        texts = forms.values(form, "option_text")
        ids = forms.values(form, "option_id")
        marked = set(forms.values(form, "option_correct"))

        options: list[QuizOption] = []
        for index, text in enumerate(texts):
            if not text.strip():
                continue
            option_id = ids[index].strip() if index < len(ids) and ids[index].strip() else f"option_{index}"
            options.append(QuizOption(id=option_id, text=text, is_correct=option_id in marked, order=len(options)))

        correct = sum(1 for option in options if option.is_correct)
        if options and correct == 0:
            raise ConfigValidationError.for_field("option_correct", "at least one option must be marked as correct")
        if not multiple_choice and correct > 1:
            raise ConfigValidationError.for_field(
                "option_correct", "single-choice quizzes must have exactly one correct option"
            )

        config = QuizConfig(
            question=forms.first(form, "question"),
            options=options,
            multiple_choice=multiple_choice,
            randomize_order=forms.checkbox(form, "randomize_order"),
            retry_enabled=forms.checkbox(form, "retry_enabled"),
        )
        return block.with_config(config, points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        config: QuizConfig = block.config
        form: dict[str, list[str]] = {
            "question": [config.question],
            "option_text": [option.text for option in config.options],
            "option_id": [option.id for option in config.options],
            "option_correct": [option.id for option in config.options if option.is_correct],
            "points": [str(block.points)],
        }
        for flag in ("multiple_choice", "randomize_order", "retry_enabled"):
            if getattr(config, flag):
                form[flag] = ["on"]
        return form

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        config: QuizConfig = block.config
        return {
            "question": config.question,
            "multiple_choice": config.multiple_choice,
            "retry_enabled": config.retry_enabled,
            "options": [{"id": option.id, "text": option.text} for option in shuffled_options(config)],
        }

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        if state.is_complete:
            return state

        config: QuizConfig = block.config
        selected = forms.non_empty(forms.values(form, "quiz_option"))
        progress = state.progress(QuizProgress)
        progress.attempts += 1
        progress.selected_options = selected

        if not selected:
            progress.is_correct = False
            return state.advance(progress=progress, is_complete=False, points_awarded=0)

        points, correct = score_quiz(config, block.points, selected)
        progress.is_correct = correct

        if not config.retry_enabled or correct:
            return state.advance(progress=progress, is_complete=True, points_awarded=points)
        # Retrying: partial credit is kept for multiple choice only.
        return state.advance(
            progress=progress,
            is_complete=False,
            points_awarded=points if config.multiple_choice else 0,
        )
