"""Pincode kind: one input per character, compared as a whole code."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from trailkit.errors import InvalidInput
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model


class PincodeConfig(BaseModel):
    prompt: str = ""
    pincode: str = ""
    unlocked_content: str = ""


class PincodeProgress(BaseModel):
    attempts: int = 0
    guesses: list[str] = Field(default_factory=list)


class PincodeKind:
    type = "pincode"
    name = "Pincode"
    description = "Players enter a numeric or letter code to unlock content."
    icon = "rectangle-ellipsis"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.CHECKPOINT, Context.TASK_VALIDATION})

    def parse_config(self, data: Mapping[str, Any] | None) -> PincodeConfig:
        return parse_config_model(PincodeConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        fields = forms.require_fields(form, "prompt", "pincode")
        config = PincodeConfig(
            prompt=fields["prompt"],
            pincode=fields["pincode"].strip(),
            unlocked_content=forms.first(form, "unlocked_content"),
        )
        return block.with_config(config, points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        """Prompt and code length; the unlocked content once the code is found."""
        config: PincodeConfig = block.config
        return {
            "prompt": config.prompt,
            "length": len(config.pincode),
            "unlocked_content": config.unlocked_content if state.is_complete else "",
        }

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        if state.is_complete:
            return state

        config: PincodeConfig = block.config
        digits = forms.values(form, "pincode")
        if not digits:
            raise InvalidInput("pincode is a required field")
        if len(digits) != len(config.pincode):
            raise InvalidInput("pincode length mismatch")
        if any(len(digit) != 1 for digit in digits):
            raise InvalidInput("pincode must be a single character per input")

        guess = "".join(digits)
        progress = state.progress(PincodeProgress)
        progress.attempts += 1
        progress.guesses.append(guess)

        if guess != config.pincode:
            return state.advance(progress=progress)
        return state.advance(progress=progress, is_complete=True, points_awarded=block.points)
