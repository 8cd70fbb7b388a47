"""Lobby and start-page display kinds.

These gate nothing; a submission marks them complete and awards the block's
configured points.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from trailkit.errors import ConfigValidationError
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, mark_complete, parse_config_model

LOBBY_CONTEXTS = frozenset({Context.LOBBY, Context.START})

BUTTON_STYLES = {
    "primary": "Primary",
    "secondary": "Secondary",
    "accent": "Accent",
    "neutral": "Neutral",
}


class GameStatusAlertConfig(BaseModel):
    closed_message: str = ""
    scheduled_message: str = ""
    show_countdown: bool = False


class GameStatusAlertKind:
    type = "game_status_alert"
    name = "Game Status"
    description = "Display game status as an alert with optional countdown timer."
    icon = "clock-alert"
    requires_validation = False
    valid_contexts = LOBBY_CONTEXTS

    def parse_config(self, data: Mapping[str, Any] | None) -> GameStatusAlertConfig:
        return parse_config_model(GameStatusAlertConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        config = GameStatusAlertConfig(
            closed_message=forms.first(form, "closed_message"),
            scheduled_message=forms.first(form, "scheduled_message"),
            show_countdown=forms.checkbox(form, "show_countdown"),
        )
        return block.with_config(config, points=forms.parse_points(form))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state, block.points)


class StartGameButtonConfig(BaseModel):
    scheduled_button_text: str = ""
    active_button_text: str = ""
    button_style: str = "primary"


class StartGameButtonKind:
    type = "start_game_button"
    name = "Start Button"
    description = "A button that lets teams begin once the game opens."
    icon = "play"
    requires_validation = False
    valid_contexts = LOBBY_CONTEXTS

    def parse_config(self, data: Mapping[str, Any] | None) -> StartGameButtonConfig:
        return parse_config_model(StartGameButtonConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        style = forms.first(form, "button_style").strip() or "primary"
        if style not in BUTTON_STYLES:
            raise ConfigValidationError.for_field("button_style", "unknown button style")
        config = StartGameButtonConfig(
            scheduled_button_text=forms.first(form, "scheduled_button_text"),
            active_button_text=forms.first(form, "active_button_text"),
            button_style=style,
        )
        return block.with_config(config, points=forms.parse_points(form))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state, block.points)


class TeamNameConfig(BaseModel):
    button_text: str = ""
    allow_changing: bool = False


class TeamNameKind:
    type = "team_name"
    name = "Team Name"
    description = "Allow players to set or change their team name."
    icon = "signature"
    requires_validation = False
    valid_contexts = LOBBY_CONTEXTS | {Context.LOCATION_CONTENT}

    def parse_config(self, data: Mapping[str, Any] | None) -> TeamNameConfig:
        return parse_config_model(TeamNameConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        config = TeamNameConfig(
            button_text=forms.first(form, "button_text"),
            allow_changing=forms.checkbox(form, "allow_changing"),
        )
        return block.with_config(config, points=forms.parse_points(form))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state, block.points)
