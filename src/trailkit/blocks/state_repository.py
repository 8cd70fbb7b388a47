"""Block-state repository: per-(block, team) progress rows.

Rows are created lazily by the dispatcher, never here. Writes are guarded
by the row ``version``: ``update`` only succeeds against the version it
read, and a duplicate ``create`` collides on the primary key. Both losers
surface ``ConcurrentSubmission``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError

from trailkit.blocks.io import bounded
from trailkit.config import get_settings
from trailkit.db.models import ContentBlock, TeamBlockState
from trailkit.errors import ConcurrentSubmission
from trailkit.kinds.base import Block, BlockState, Context
from trailkit.kinds.registry import BlockRegistry, default_registry

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


def to_state(row: TeamBlockState) -> BlockState:
    return BlockState(
        block_id=row.block_id,
        team_id=row.team_id,
        is_complete=row.is_complete,
        points_awarded=row.points_awarded,
        player_data=dict(row.player_data or {}),
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class BlockStateRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: BlockRegistry | None = None,
        timeout: float | None = None,
    ) -> None:
        self._sessions = session_factory
        self._registry = registry or default_registry
        self._timeout = timeout if timeout is not None else get_settings().io_timeout_seconds

    def new_state(self, block_id: str, team_id: str) -> BlockState:
        """An empty, not yet persisted state."""
        if not team_id:
            msg = "team_id must not be empty"
            raise ValueError(msg)
        return BlockState(block_id=block_id, team_id=team_id)

    async def get(self, block_id: str, team_id: str) -> BlockState | None:
        if not team_id:
            msg = "team_id must not be empty"
            raise ValueError(msg)

        async def run() -> BlockState | None:
            async with self._sessions() as session:
                row = await session.get(TeamBlockState, (block_id, team_id))
            return to_state(row) if row is not None else None

        return await bounded(run(), self._timeout, "get block state")

    async def create(self, state: BlockState) -> BlockState:
        """Insert the first row for ``(block_id, team_id)``."""
        return await bounded(self._create(state), self._timeout, "create block state")

    async def _create(self, state: BlockState) -> BlockState:
        now = datetime.now(timezone.utc)
        row = TeamBlockState(
            block_id=state.block_id,
            team_id=state.team_id,
            is_complete=state.is_complete,
            points_awarded=state.points_awarded,
            player_data=state.player_data,
            version=1,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._sessions() as session, session.begin():
                session.add(row)
        except IntegrityError as exc:
            msg = f"state for block {state.block_id} and team {state.team_id} was created concurrently"
            raise ConcurrentSubmission(msg) from exc
        return state.model_copy(update={"version": 1, "created_at": now, "updated_at": now})

    async def update(self, state: BlockState) -> BlockState:
        """Write ``state`` if nobody else has since the version it was read at."""
        return await bounded(self._update(state), self._timeout, "update block state")

    async def _update(self, state: BlockState) -> BlockState:
        now = datetime.now(timezone.utc)
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                update(TeamBlockState)
                .where(
                    TeamBlockState.block_id == state.block_id,
                    TeamBlockState.team_id == state.team_id,
                    TeamBlockState.version == state.version,
                )
                .values(
                    is_complete=state.is_complete,
                    points_awarded=state.points_awarded,
                    player_data=state.player_data,
                    version=state.version + 1,
                    updated_at=now,
                )
            )
        if result.rowcount == 0:
            msg = f"state for block {state.block_id} and team {state.team_id} changed concurrently"
            raise ConcurrentSubmission(msg)
        return state.model_copy(update={"version": state.version + 1, "updated_at": now})

    async def delete(self, block_id: str, team_id: str) -> None:
        async def run() -> None:
            async with self._sessions() as session, session.begin():
                await session.execute(
                    delete(TeamBlockState).where(
                        TeamBlockState.block_id == block_id, TeamBlockState.team_id == team_id
                    )
                )

        await bounded(run(), self._timeout, "delete block state")

    async def delete_by_block_id(self, tx: AsyncSession, block_id: str) -> int:
        """Remove every team's state for ``block_id`` inside ``tx``."""
        return await bounded(
            self._delete_where(tx, TeamBlockState.block_id == block_id), self._timeout, "delete block states"
        )

    async def delete_by_block_ids(self, tx: AsyncSession, block_ids: Sequence[str]) -> int:
        if not block_ids:
            return 0
        return await bounded(
            self._delete_where(tx, TeamBlockState.block_id.in_(list(block_ids))), self._timeout, "delete block states"
        )

    async def delete_by_team_codes(self, tx: AsyncSession, team_codes: Sequence[str]) -> int:
        """Reset teams: drop all of their block states inside ``tx``."""
        if not team_codes:
            return 0
        return await bounded(
            self._delete_where(tx, TeamBlockState.team_id.in_(list(team_codes))), self._timeout, "reset team states"
        )

    async def _delete_where(self, tx: AsyncSession, clause) -> int:  # noqa: ANN001
        result = await tx.execute(delete(TeamBlockState).where(clause))
        return result.rowcount or 0

    async def find_blocks_and_states_by_owner_and_team(
        self,
        owner_id: str,
        team_id: str,
        context: Context | str | None = None,
    ) -> tuple[list[Block], dict[str, BlockState]]:
        """Blocks of ``owner_id`` in order, plus ``team_id``'s existing states keyed by block id.

        Blocks without a state row are simply absent from the mapping.
        """
        if not team_id:
            msg = "team_id must not be empty"
            raise ValueError(msg)
        return await bounded(self._find(owner_id, team_id, context), self._timeout, "find blocks and states")

    async def _find(
        self, owner_id: str, team_id: str, context: Context | str | None
    ) -> tuple[list[Block], dict[str, BlockState]]:
        stmt = (
            select(ContentBlock, TeamBlockState)
            .outerjoin(
                TeamBlockState,
                and_(TeamBlockState.block_id == ContentBlock.id, TeamBlockState.team_id == team_id),
            )
            .where(ContentBlock.owner_id == owner_id)
        )
        if context is not None:
            stmt = stmt.where(ContentBlock.context == Context(context).value)
        stmt = stmt.order_by(ContentBlock.context, ContentBlock.ordering)

        async with self._sessions() as session:
            rows = (await session.execute(stmt)).all()

        blocks: list[Block] = []
        states: dict[str, BlockState] = {}
        for block_row, state_row in rows:
            blocks.append(
                self._registry.build(
                    id=block_row.id,
                    owner_id=block_row.owner_id,
                    type=block_row.type,
                    context=block_row.context,
                    data=block_row.data,
                    ordering=block_row.ordering,
                    points=block_row.points,
                    validation_required=block_row.validation_required,
                )
            )
            if state_row is not None:
                states[block_row.id] = to_state(state_row)
        return blocks, states
