"""Random clue: each team sees one clue, picked deterministically from a list."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from trailkit.errors import ConfigValidationError
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, mark_complete, parse_config_model
from trailkit.kinds.randomness import pick_index

NO_CLUES_MESSAGE = "No clues available"


class RandomClueConfig(BaseModel):
    clues: list[str] = Field(default_factory=list)


def get_clue(config: RandomClueConfig, team_code: str, block_id: str) -> str:
    """The clue shown to ``team_code``; stable for a given block and clue list."""
    if not config.clues:
        return NO_CLUES_MESSAGE
    return config.clues[pick_index(team_code, block_id, len(config.clues))]


class RandomClueKind:
    type = "random_clue"
    name = "Random Clue"
    description = "Shows each team one clue picked at random from a list."
    icon = "shuffle"
    requires_validation = False
    valid_contexts = frozenset({Context.LOCATION_CLUES})

    def parse_config(self, data: Mapping[str, Any] | None) -> RandomClueConfig:
        return parse_config_model(RandomClueConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        clues = [clue.strip() for clue in forms.non_empty(forms.values(form, "clues"))]
        if not clues:
            raise ConfigValidationError.for_field("clues", "at least one clue is required")
        return block.with_config(RandomClueConfig(clues=clues))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        return {"clue": get_clue(block.config, state.team_id, block.id)}

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)
