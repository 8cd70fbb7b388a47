"""Rating kind: a star rating collected from the team."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from trailkit.errors import ConfigValidationError, InvalidInput
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model

DEFAULT_MAX_RATING = 5


class RatingConfig(BaseModel):
    prompt: str = ""
    max_rating: int = Field(default=DEFAULT_MAX_RATING, ge=3, le=10)


class RatingProgress(BaseModel):
    rating: int = 0


class RatingKind:
    type = "rating"
    name = "Rating"
    description = "Players provide a star rating for feedback or assessment."
    icon = "star"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT})

    def parse_config(self, data: Mapping[str, Any] | None) -> RatingConfig:
        return parse_config_model(RatingConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        fields = forms.require_fields(form, "prompt")
        max_rating = forms.optional_int(form, "max_rating", DEFAULT_MAX_RATING)
        if not 3 <= max_rating <= 10:
            raise ConfigValidationError.for_field("max_rating", "max_rating must be between 3 and 10")
        return block.with_config(RatingConfig(prompt=fields["prompt"], max_rating=max_rating), points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        config: RatingConfig = block.config
        raw = forms.first(form, "rating").strip()
        if not raw:
            raise InvalidInput("rating is required")
        try:
            rating = int(raw, 10)
        except ValueError:
            raise InvalidInput("rating must be a number") from None
        if not 1 <= rating <= config.max_rating:
            raise InvalidInput(f"rating must be between 1 and {config.max_rating}")
        # A team may change its rating; the award does not change.
        return state.advance(progress=RatingProgress(rating=rating), is_complete=True, points_awarded=block.points)
