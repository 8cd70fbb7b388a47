"""Block router: all /api/v1/blocks/* endpoints.

Admin endpoints require the ``X-User-Id`` header set by the outer auth layer
and check ownership. Player endpoints trust the caller for the team id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from trailkit.blocks.schemas import (
    BlockResponse,
    BlockWithStateResponse,
    CountResponse,
    CreateBlockRequest,
    DuplicateRequest,
    FormPayload,
    KindResponse,
    ReorderRequest,
    ResetTeamsRequest,
    StateResponse,
    SubmitRequest,
    SubmitResponse,
)
from trailkit.blocks.service import BlockService
from trailkit.blocks.validation import ValidationDispatcher
from trailkit.dependencies import get_block_service, get_current_user_id, get_dispatcher
from trailkit.kinds.base import Context

router = APIRouter(prefix="/api/v1/blocks", tags=["Blocks"])


# ---------------------------------------------------------------------------
# Authoring
# ---------------------------------------------------------------------------


@router.get("/kinds", response_model=list[KindResponse])
async def list_kinds(
    context: Context = Query(...),  # noqa: B008
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> list[KindResponse]:
    """The block palette for a context."""
    return [KindResponse.from_kind(kind) for kind in service.kinds_for_context(context)]


@router.post("", response_model=BlockResponse, status_code=201)
async def create_block(
    body: CreateBlockRequest,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> BlockResponse:
    await service.authorize_owner(user_id, body.owner_id)
    block = await service.new_block(body.owner_id, body.context, body.type)
    return BlockResponse.from_block(block)


@router.get("/{block_id}/form", response_model=FormPayload)
async def get_block_form(
    block_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> FormPayload:
    """Current configuration as form values, for pre-filling the editor."""
    await service.authorize_block(user_id, block_id)
    return FormPayload(form=await service.config_form(block_id))


@router.put("/{block_id}", response_model=BlockResponse)
async def update_block(
    block_id: str,
    body: FormPayload,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> BlockResponse:
    await service.authorize_block(user_id, block_id)
    block = await service.update_from_form(block_id, body.form)
    return BlockResponse.from_block(block)


@router.post("/reorder", status_code=204)
async def reorder_blocks(
    body: ReorderRequest,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> Response:
    for block_id in body.block_ids:
        await service.authorize_block(user_id, block_id)
    await service.reorder(body.block_ids)
    return Response(status_code=204)


@router.delete("/{block_id}", status_code=204)
async def delete_block(
    block_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> Response:
    await service.authorize_block(user_id, block_id)
    await service.delete_block(block_id)
    return Response(status_code=204)


@router.post("/duplicate", response_model=list[BlockResponse])
async def duplicate_blocks(
    body: DuplicateRequest,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> list[BlockResponse]:
    await service.authorize_owner(user_id, body.old_owner_id)
    await service.authorize_owner(user_id, body.new_owner_id)
    blocks = await service.duplicate(body.old_owner_id, body.new_owner_id)
    return [BlockResponse.from_block(block) for block in blocks]


@router.post("/teams/reset", response_model=CountResponse)
async def reset_teams(
    body: ResetTeamsRequest,
    _user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> CountResponse:
    """Drop every block state for the given teams.

    Team codes are not tied to an owner here, so the outer engine must check
    that the acting admin runs the game those teams play in. This route only
    requires an admin identity to be present.
    """
    return CountResponse(count=await service.reset_teams(body.team_codes))


# ---------------------------------------------------------------------------
# Play
# ---------------------------------------------------------------------------


@router.get("/owners/{owner_id}", response_model=list[BlockWithStateResponse])
async def list_owner_blocks(
    owner_id: str,
    team_id: str = Query(..., min_length=1),
    context: Context | None = Query(None),  # noqa: B008
    service: BlockService = Depends(get_block_service),  # noqa: B008
) -> list[BlockWithStateResponse]:
    """The team's view of an owner's blocks; answer keys are never included."""
    pairs = await service.find_with_states(owner_id, team_id, context)
    return [
        BlockWithStateResponse(
            block=BlockResponse.from_block(block, data=service.player_view(block, state)),
            state=StateResponse.from_state(state),
        )
        for block, state in pairs
    ]


@router.post("/{block_id}/submit", response_model=SubmitResponse)
async def submit_block(
    block_id: str,
    body: SubmitRequest,
    dispatcher: ValidationDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> SubmitResponse:
    result = await dispatcher.submit(block_id, body.team_id, body.form)
    return SubmitResponse(
        is_complete=result.is_complete,
        points_awarded=result.points_awarded,
        delta_points=result.delta_points,
        state=StateResponse.from_state(result.state),
    )
