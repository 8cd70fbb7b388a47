"""Checklist kind: teams tick off every item on a list."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from trailkit.errors import InvalidInput
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model


class ChecklistItem(BaseModel):
    id: str
    description: str


class ChecklistConfig(BaseModel):
    content: str = ""
    items: list[ChecklistItem] = Field(default_factory=list)


class ChecklistProgress(BaseModel):
    checked_items: list[str] = Field(default_factory=list)


class ChecklistKind:
    type = "checklist"
    name = "Checklist"
    description = "A list of things to do that players tick off."
    icon = "list-checks"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT})

    def parse_config(self, data: Mapping[str, Any] | None) -> ChecklistConfig:
        return parse_config_model(ChecklistConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        descriptions = forms.values(form, "checklist-items")
        ids = forms.values(form, "checklist-item-ids")
        items = [
            ChecklistItem(
                id=ids[index] if index < len(ids) and ids[index] else str(uuid.uuid4()),
                description=description,
            )
            for index, description in enumerate(descriptions)
            if description.strip()
        ]
        return block.with_config(ChecklistConfig(content=forms.first(form, "content"), items=items), points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        config: ChecklistConfig = block.config
        return {
            "content": [config.content],
            "checklist-items": [item.description for item in config.items],
            "checklist-item-ids": [item.id for item in config.items],
            "points": [str(block.points)],
        }

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        if state.is_complete:
            return state

        config: ChecklistConfig = block.config
        known = [item.id for item in config.items]
        ticked = list(dict.fromkeys(forms.non_empty(forms.values(form, "checklist-item"))))
        unknown = [item_id for item_id in ticked if item_id not in known]
        if unknown:
            raise InvalidInput(f"unknown checklist item {unknown[0]!r}")

        progress = state.progress(ChecklistProgress)
        progress.checked_items = ticked
        done = set(known) <= set(ticked)
        return state.advance(progress=progress, is_complete=done, points_awarded=block.points if done else 0)
