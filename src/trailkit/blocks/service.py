"""Block authoring, cloning and team reset orchestration."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from trailkit.errors import NotAuthorized
from trailkit.kinds.base import Block, BlockKind, BlockState, Context, FormData

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from trailkit.blocks.repository import BlockRepository
    from trailkit.blocks.state_repository import BlockStateRepository

logger = structlog.get_logger()


class BlockService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        blocks: BlockRepository,
        states: BlockStateRepository,
    ) -> None:
        self._sessions = session_factory
        self._blocks = blocks
        self._states = states

    # --- Authorization ---

    async def authorize_owner(self, user_id: str, owner_id: str) -> None:
        if not user_id or not await self._blocks.user_owns_owner(user_id, owner_id):
            raise NotAuthorized("you do not have access to this owner")

    async def authorize_block(self, user_id: str, block_id: str) -> None:
        if not user_id or not await self._blocks.user_owns_block(user_id, block_id):
            raise NotAuthorized("you do not have access to this block")

    # --- Authoring ---

    def kinds_for_context(self, context: Context | str) -> list[BlockKind]:
        return self._blocks.registry.blocks_for_context(context)

    async def new_block(self, owner_id: str, context: Context | str, block_type: str, points: int = 0) -> Block:
        """Create a block with the kind's default configuration at the end of its group."""
        draft = self._blocks.registry.new_block(block_type, owner_id, context, points=points)
        block = await self._blocks.create(draft, owner_id, draft.context)
        logger.info("block_created", block_id=block.id, block_type=block_type, owner_id=owner_id)
        return block

    async def update_from_form(self, block_id: str, form: FormData) -> Block:
        block = await self._blocks.get_by_id(block_id)
        kind = self._blocks.registry.get(block.type)
        updated = kind.update_from_form(block, form)
        return await self._blocks.update(updated)

    async def config_form(self, block_id: str) -> dict[str, list[str]]:
        block = await self._blocks.get_by_id(block_id)
        return self._blocks.registry.get(block.type).config_form(block)

    async def reorder(self, block_ids: Sequence[str]) -> None:
        await self._blocks.reorder(block_ids)

    # --- Removal ---

    async def delete_block(self, block_id: str) -> None:
        """Delete a block and every team's state for it in one transaction."""
        async with self._sessions() as session, session.begin():
            await self._states.delete_by_block_id(session, block_id)
            await self._blocks.delete(session, block_id)
        logger.info("block_deleted", block_id=block_id)

    async def delete_owner_blocks(self, owner_id: str) -> int:
        """Delete all of an owner's blocks and their states in one transaction."""
        async with self._sessions() as session, session.begin():
            block_ids = await self._blocks.delete_by_owner(session, owner_id)
            await self._states.delete_by_block_ids(session, block_ids)
        logger.info("owner_blocks_deleted", owner_id=owner_id, count=len(block_ids))
        return len(block_ids)

    async def reset_teams(self, team_codes: Sequence[str]) -> int:
        async with self._sessions() as session, session.begin():
            removed = await self._states.delete_by_team_codes(session, team_codes)
        logger.info("teams_reset", teams=len(team_codes), states_removed=removed)
        return removed

    # --- Cloning ---

    async def duplicate(self, old_owner_id: str, new_owner_id: str) -> list[Block]:
        return await self._blocks.duplicate_by_owner(old_owner_id, new_owner_id)

    # --- Play-side reads ---

    async def find_with_states(
        self,
        owner_id: str,
        team_id: str,
        context: Context | str | None = None,
    ) -> list[tuple[Block, BlockState]]:
        """Each block paired with the team's state; missing states are fresh and unsaved."""
        blocks, states = await self._states.find_blocks_and_states_by_owner_and_team(owner_id, team_id, context)
        return [(block, states.get(block.id) or self._states.new_state(block.id, team_id)) for block in blocks]

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        return self._blocks.registry.player_view(block, state)

    async def validation_outstanding(
        self,
        owner_id: str,
        team_id: str,
        context: Context | str | None = Context.LOCATION_CONTENT,
    ) -> bool:
        """True while any validation-required block is incomplete for the team."""
        pairs = await self.find_with_states(owner_id, team_id, context)
        return any(block.validation_required and not state.is_complete for block, state in pairs)
