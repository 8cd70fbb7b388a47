"""Clue kind: a hidden clue revealed at a points cost."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model

DEFAULT_BUTTON_LABEL = "Reveal Clue"


class ClueConfig(BaseModel):
    clue_text: str = ""
    description_text: str = ""
    button_label: str = DEFAULT_BUTTON_LABEL


class ClueProgress(BaseModel):
    is_revealed: bool = False


class ClueKind:
    type = "clue"
    name = "Clue"
    description = "Players can reveal a clue by spending points."
    icon = "lightbulb"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.LOCATION_CLUES})

    def parse_config(self, data: Mapping[str, Any] | None) -> ClueConfig:
        return parse_config_model(ClueConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        # Points are a cost: stored negative whatever sign the admin typed.
        cost = -abs(forms.parse_points(form))
        config = ClueConfig(
            clue_text=forms.first(form, "clue_text"),
            description_text=forms.first(form, "description_text"),
            button_label=forms.first(form, "button_label").strip() or DEFAULT_BUTTON_LABEL,
        )
        return block.with_config(config, points=cost)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=abs(block.points))

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        config: ClueConfig = block.config
        revealed = state.progress(ClueProgress).is_revealed
        return {
            "description_text": config.description_text,
            "button_label": config.button_label,
            "clue_text": config.clue_text if revealed else "",
        }

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        if forms.first(form, "reveal_clue") != "true":
            return state
        progress = state.progress(ClueProgress)
        if progress.is_revealed:
            return state
        progress.is_revealed = True
        return state.advance(progress=progress, is_complete=True, points_awarded=block.points)
