"""Sorting kind: players put items into their authored order."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from trailkit.errors import ConfigValidationError, InvalidInput
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model
from trailkit.kinds.randomness import deterministic_shuffle

ALL_OR_NOTHING = "all_or_nothing"
CORRECT_ITEM_CORRECT_PLACE = "correct_item_correct_place"
RETRY_UNTIL_CORRECT = "retry_until_correct"

SCORING_SCHEMES = {
    ALL_OR_NOTHING: "All or nothing",
    CORRECT_ITEM_CORRECT_PLACE: "Correct item, correct place",
    RETRY_UNTIL_CORRECT: "Retry until correct",
}

ScoringScheme = Literal["all_or_nothing", "correct_item_correct_place", "retry_until_correct"]


class SortingItem(BaseModel):
    id: str
    description: str
    position: int  # 1-based


class SortingConfig(BaseModel):
    content: str = ""
    items: list[SortingItem] = Field(default_factory=list)
    scoring_scheme: ScoringScheme = ALL_OR_NOTHING


class SortingProgress(BaseModel):
    player_order: list[str] = Field(default_factory=list)
    shuffle_order: list[str] = Field(default_factory=list)
    attempts: int = 0
    is_correct: bool = False


def correct_placements(config: SortingConfig, order: list[str]) -> int:
    """Count indices whose item was authored at that position."""
    positions = {item.id: item.position for item in config.items}
    return sum(1 for index, item_id in enumerate(order) if positions.get(item_id) == index + 1)


def order_is_correct(config: SortingConfig, order: list[str]) -> bool:
    return len(order) == len(config.items) and correct_placements(config, order) == len(config.items)


def initial_order(block: Block, team_id: str) -> list[str]:
    """The team's reproducible starting shuffle of item ids."""
    config: SortingConfig = block.config
    ordered = [item.id for item in sorted(config.items, key=lambda item: item.position)]
    return deterministic_shuffle(ordered, block.id + team_id)


def display_order(block: Block, state: BlockState) -> list[str]:
    """Item ids in the order the team should see them."""
    progress = state.progress(SortingProgress)
    if progress.player_order:
        return progress.player_order
    if progress.shuffle_order:
        return progress.shuffle_order
    return initial_order(block, state.team_id)


class SortingKind:
    type = "sorting"
    name = "Sorting"
    description = "Players arrange items into the correct order."
    icon = "arrow-down-up"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.CHECKPOINT})

    def parse_config(self, data: Mapping[str, Any] | None) -> SortingConfig:
        return parse_config_model(SortingConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        scheme = forms.first(form, "scoring_scheme").strip() or ALL_OR_NOTHING
        if scheme not in SCORING_SCHEMES:
            raise ConfigValidationError.for_field("scoring_scheme", "unknown scoring scheme")

        descriptions = forms.values(form, "sorting-items")
        ids = forms.values(form, "sorting-item-ids")
        items: list[SortingItem] = []
        for index, description in enumerate(descriptions):
            if not description.strip():
                continue
            item_id = ids[index] if index < len(ids) and ids[index] else str(uuid.uuid4())
            # Positions stay dense when blank rows are skipped.
            items.append(SortingItem(id=item_id, description=description, position=len(items) + 1))

        config = SortingConfig(content=forms.first(form, "content"), items=items, scoring_scheme=scheme)
        return block.with_config(config, points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        config: SortingConfig = block.config
        ordered = sorted(config.items, key=lambda item: item.position)
        return {
            "content": [config.content],
            "scoring_scheme": [config.scoring_scheme],
            "sorting-items": [item.description for item in ordered],
            "sorting-item-ids": [item.id for item in ordered],
            "points": [str(block.points)],
        }

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        """Items in the team's display order, without their positions."""
        config: SortingConfig = block.config
        by_id = {item.id: item for item in config.items}
        order = [item_id for item_id in display_order(block, state) if item_id in by_id]
        # Items added after the team last sorted go at the end.
        order += [item.id for item in config.items if item.id not in order]
        return {
            "content": config.content,
            "scoring_scheme": config.scoring_scheme,
            "items": [{"id": item_id, "description": by_id[item_id].description} for item_id in order],
        }

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        config: SortingConfig = block.config
        progress = state.progress(SortingProgress)

        if config.scoring_scheme == RETRY_UNTIL_CORRECT and progress.is_correct:
            return state
        if state.is_complete:
            return state

        order = forms.non_empty(forms.values(form, "sorting-item-order"))
        if not order:
            raise InvalidInput("sorting order is required")

        if not progress.shuffle_order:
            progress.shuffle_order = initial_order(block, state.team_id)
        progress.player_order = order
        progress.attempts += 1
        progress.is_correct = order_is_correct(config, order)

        if config.scoring_scheme == CORRECT_ITEM_CORRECT_PLACE:
            awarded = block.points * correct_placements(config, order) // len(config.items) if config.items else 0
            return state.advance(progress=progress, is_complete=True, points_awarded=awarded)

        awarded = block.points if progress.is_correct else 0
        if config.scoring_scheme == RETRY_UNTIL_CORRECT:
            return state.advance(progress=progress, is_complete=progress.is_correct, points_awarded=awarded)
        return state.advance(progress=progress, is_complete=True, points_awarded=awarded)
