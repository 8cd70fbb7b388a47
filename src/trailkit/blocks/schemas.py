"""Request/response schemas for block endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from trailkit.kinds.base import Block, BlockKind, BlockState, Context

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class FormPayload(BaseModel):
    """A form in ``field -> [values]`` shape."""

    form: dict[str, list[str]] = Field(default_factory=dict)


class CreateBlockRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    context: Context
    type: str = Field(..., min_length=1)


class ReorderRequest(BaseModel):
    block_ids: list[str] = Field(..., min_length=1)


class DuplicateRequest(BaseModel):
    old_owner_id: str = Field(..., min_length=1)
    new_owner_id: str = Field(..., min_length=1)


class SubmitRequest(FormPayload):
    team_id: str = Field(..., min_length=1)


class ResetTeamsRequest(BaseModel):
    team_codes: list[str] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class KindResponse(BaseModel):
    type: str
    name: str
    description: str
    icon: str
    requires_validation: bool

    @classmethod
    def from_kind(cls, kind: BlockKind) -> KindResponse:
        return cls(
            type=kind.type,
            name=kind.name,
            description=kind.description,
            icon=kind.icon,
            requires_validation=kind.requires_validation,
        )


class BlockResponse(BaseModel):
    id: str
    owner_id: str
    type: str
    context: Context
    data: dict[str, Any]
    ordering: int
    points: int
    validation_required: bool

    @classmethod
    def from_block(cls, block: Block, data: dict[str, Any] | None = None) -> BlockResponse:
        """``data`` replaces the stored payload, for player-facing views."""
        return cls(
            id=block.id,
            owner_id=block.owner_id,
            type=block.type,
            context=block.context,
            data=block.data if data is None else data,
            ordering=block.ordering,
            points=block.points,
            validation_required=block.validation_required,
        )


class StateResponse(BaseModel):
    block_id: str
    team_id: str
    is_complete: bool
    points_awarded: int
    player_data: dict[str, Any]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_state(cls, state: BlockState) -> StateResponse:
        return cls(
            block_id=state.block_id,
            team_id=state.team_id,
            is_complete=state.is_complete,
            points_awarded=state.points_awarded,
            player_data=state.player_data,
            created_at=state.created_at,
            updated_at=state.updated_at,
        )


class BlockWithStateResponse(BaseModel):
    block: BlockResponse
    state: StateResponse


class SubmitResponse(BaseModel):
    is_complete: bool
    points_awarded: int
    delta_points: int
    state: StateResponse


class CountResponse(BaseModel):
    count: int
