"""Broker kind: teams pay points for information.

The team is always charged exactly what it bid. The best tier whose price is
covered by the bid is delivered; otherwise the default information is.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from trailkit.errors import ConfigValidationError, InvalidInput
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model


class InformationTier(BaseModel):
    points_required: int
    content: str


class BrokerConfig(BaseModel):
    prompt: str = ""
    default_info: str = ""
    information_tiers: list[InformationTier] = Field(default_factory=list)

    @field_validator("information_tiers")
    @classmethod
    def _ascending(cls, tiers: list[InformationTier]) -> list[InformationTier]:
        return sorted(tiers, key=lambda tier: tier.points_required)


class BrokerProgress(BaseModel):
    points_paid: int = 0
    info_received: str = ""
    has_purchased: bool = False


def select_information(config: BrokerConfig, bid: int) -> str:
    """Content of the highest tier priced at or below ``bid``, else the default."""
    chosen = config.default_info
    if bid <= 0:
        return chosen
    for tier in config.information_tiers:
        if tier.points_required > bid:
            break
        chosen = tier.content
    return chosen


class BrokerKind:
    type = "broker"
    name = "Broker"
    description = "Players pay points to unlock information; paying more may buy better information."
    icon = "handshake"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.LOCATION_CLUES})

    def parse_config(self, data: Mapping[str, Any] | None) -> BrokerConfig:
        return parse_config_model(BrokerConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        tiers: list[InformationTier] = []
        for raw_points, content in zip(forms.values(form, "tier_points"), forms.values(form, "tier_content")):
            if not raw_points.strip() or not content.strip():
                continue
            try:
                required = int(raw_points.strip(), 10)
            except ValueError:
                raise ConfigValidationError.for_field("tier_points", "tier points must be integers") from None
            # Zero and below are reserved for the default information.
            if required <= 0:
                continue
            tiers.append(InformationTier(points_required=required, content=content))

        config = BrokerConfig(
            prompt=forms.first(form, "prompt"),
            default_info=forms.first(form, "default_info"),
            information_tiers=tiers,
        )
        # The price is the bid; the block itself carries no award.
        return block.with_config(config, points=0)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        config: BrokerConfig = block.config
        return {
            "prompt": [config.prompt],
            "default_info": [config.default_info],
            "tier_points": [str(tier.points_required) for tier in config.information_tiers],
            "tier_content": [tier.content for tier in config.information_tiers],
        }

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        """Prompt and tier prices; bought information lives in the team's state."""
        config: BrokerConfig = block.config
        return {
            "prompt": config.prompt,
            "prices": [tier.points_required for tier in config.information_tiers],
        }

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        if state.is_complete:
            return state

        raw = forms.first(form, "points_bid").strip()
        if not raw:
            return state
        try:
            bid = int(raw, 10)
        except ValueError:
            raise InvalidInput("points bid must be an integer") from None
        bid = max(bid, 0)

        progress = BrokerProgress(
            points_paid=bid,
            info_received=select_information(block.config, bid),
            has_purchased=True,
        )
        return state.advance(progress=progress, is_complete=True, points_awarded=-bid)
