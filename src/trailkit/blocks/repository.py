"""Block repository: block definitions, dense ordering, cloning, ownership.

Within one ``(owner_id, context)`` group the ``ordering`` values are always
exactly ``0..N-1``. ``create`` appends, ``reorder`` rewrites the group and
``delete`` re-packs it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update

from trailkit.blocks.io import bounded
from trailkit.config import get_settings
from trailkit.db.models import ContentBlock, Instance, Location, new_id
from trailkit.errors import BlockNotFound, ConfigValidationError
from trailkit.kinds.base import Block, Context
from trailkit.kinds.registry import BlockRegistry, default_registry

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class BlockRepository:
    """Persistence of block definitions.

    Methods taking ``tx`` run inside the caller's transaction so that state
    rows for the affected blocks can be removed in the same unit of work.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: BlockRegistry | None = None,
        timeout: float | None = None,
    ) -> None:
        self._sessions = session_factory
        self._registry = registry or default_registry
        self._timeout = timeout if timeout is not None else get_settings().io_timeout_seconds

    @property
    def registry(self) -> BlockRegistry:
        return self._registry

    def to_block(self, row: ContentBlock) -> Block:
        return self._registry.build(
            id=row.id,
            owner_id=row.owner_id,
            type=row.type,
            context=row.context,
            data=row.data,
            ordering=row.ordering,
            points=row.points,
            validation_required=row.validation_required,
        )

    # --- Create / read ---

    async def create(self, block: Block, owner_id: str, context: Context | str) -> Block:
        """Persist ``block`` at the end of its ``(owner_id, context)`` group."""
        return await bounded(self._create(block, owner_id, Context(context)), self._timeout, "create block")

    async def _create(self, block: Block, owner_id: str, context: Context) -> Block:
        kind = self._registry.get(block.type)
        if context not in kind.valid_contexts:
            raise ConfigValidationError.for_field("context", f"{kind.name} blocks cannot be used in {context.value}")

        async with self._sessions() as session, session.begin():
            count = await session.scalar(
                select(func.count())
                .select_from(ContentBlock)
                .where(ContentBlock.owner_id == owner_id, ContentBlock.context == context.value)
            )
            row = ContentBlock(
                id=new_id(),
                owner_id=owner_id,
                type=block.type,
                context=context.value,
                data=block.data,
                ordering=count or 0,
                points=block.points,
                validation_required=kind.requires_validation,
            )
            session.add(row)

        logger.debug("Created %s block %s for owner %s", row.type, row.id, owner_id)
        return self.to_block(row)

    async def get_by_id(self, block_id: str) -> Block:
        return await bounded(self._get_by_id(block_id), self._timeout, "get block")

    async def _get_by_id(self, block_id: str) -> Block:
        async with self._sessions() as session:
            row = await session.get(ContentBlock, block_id)
        if row is None:
            raise BlockNotFound(block_id)
        return self.to_block(row)

    async def find_by_owner(self, owner_id: str) -> list[Block]:
        stmt = (
            select(ContentBlock)
            .where(ContentBlock.owner_id == owner_id)
            .order_by(ContentBlock.context, ContentBlock.ordering)
        )
        return await bounded(self._fetch(stmt), self._timeout, "find blocks")

    async def find_by_owner_and_context(self, owner_id: str, context: Context | str) -> list[Block]:
        stmt = (
            select(ContentBlock)
            .where(ContentBlock.owner_id == owner_id, ContentBlock.context == Context(context).value)
            .order_by(ContentBlock.ordering)
        )
        return await bounded(self._fetch(stmt), self._timeout, "find blocks")

    async def _fetch(self, stmt) -> list[Block]:  # noqa: ANN001
        async with self._sessions() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self.to_block(row) for row in rows]

    # --- Update / reorder ---

    async def update(self, block: Block) -> Block:
        """Write back ``data``, ``ordering`` and ``points``; nothing else changes."""
        return await bounded(self._update(block), self._timeout, "update block")

    async def _update(self, block: Block) -> Block:
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                update(ContentBlock)
                .where(ContentBlock.id == block.id)
                .values(data=block.data, ordering=block.ordering, points=block.points)
            )
            if result.rowcount == 0:
                raise BlockNotFound(block.id)
        return block

    async def reorder(self, block_ids: Sequence[str]) -> None:
        """Give the i-th id ``ordering = i``, atomically. Unknown ids abort the whole call."""
        await bounded(self._reorder(block_ids), self._timeout, "reorder blocks")

    async def _reorder(self, block_ids: Sequence[str]) -> None:
        async with self._sessions() as session, session.begin():
            for position, block_id in enumerate(block_ids):
                result = await session.execute(
                    update(ContentBlock).where(ContentBlock.id == block_id).values(ordering=position)
                )
                if result.rowcount == 0:
                    raise BlockNotFound(block_id)

    # --- Transactional delete ---

    async def delete(self, tx: AsyncSession, block_id: str) -> None:
        """Delete one block and re-pack its group. Caller removes its state rows in ``tx``."""
        await bounded(self._delete(tx, block_id), self._timeout, "delete block")

    async def _delete(self, tx: AsyncSession, block_id: str) -> None:
        row = await tx.get(ContentBlock, block_id)
        if row is None:
            raise BlockNotFound(block_id)
        owner_id, context = row.owner_id, row.context
        await tx.delete(row)
        await tx.flush()

        remaining = (
            await tx.execute(
                select(ContentBlock)
                .where(ContentBlock.owner_id == owner_id, ContentBlock.context == context)
                .order_by(ContentBlock.ordering)
            )
        ).scalars().all()
        for position, sibling in enumerate(remaining):
            sibling.ordering = position
        await tx.flush()

    async def delete_by_owner(self, tx: AsyncSession, owner_id: str) -> list[str]:
        """Delete every block of ``owner_id``; returns the removed ids."""
        return await bounded(self._delete_by_owner(tx, owner_id), self._timeout, "delete blocks")

    async def _delete_by_owner(self, tx: AsyncSession, owner_id: str) -> list[str]:
        rows = (await tx.execute(select(ContentBlock).where(ContentBlock.owner_id == owner_id))).scalars().all()
        ids = [row.id for row in rows]
        for row in rows:
            await tx.delete(row)
        await tx.flush()
        return ids

    # --- Cloning ---

    async def duplicate_by_owner(self, old_owner_id: str, new_owner_id: str) -> list[Block]:
        async def run() -> list[Block]:
            async with self._sessions() as session, session.begin():
                return await self._duplicate(session, old_owner_id, new_owner_id)

        return await bounded(run(), self._timeout, "duplicate blocks")

    async def duplicate_by_owner_tx(self, tx: AsyncSession, old_owner_id: str, new_owner_id: str) -> list[Block]:
        """Copy all of ``old_owner_id``'s blocks to ``new_owner_id`` inside ``tx``. State is not copied."""
        return await bounded(self._duplicate(tx, old_owner_id, new_owner_id), self._timeout, "duplicate blocks")

    async def _duplicate(self, tx: AsyncSession, old_owner_id: str, new_owner_id: str) -> list[Block]:
        rows = (
            await tx.execute(
                select(ContentBlock)
                .where(ContentBlock.owner_id == old_owner_id)
                .order_by(ContentBlock.context, ContentBlock.ordering)
            )
        ).scalars().all()
        copies = [
            ContentBlock(
                id=new_id(),
                owner_id=new_owner_id,
                type=row.type,
                context=row.context,
                data=dict(row.data),
                ordering=row.ordering,
                points=row.points,
                validation_required=row.validation_required,
            )
            for row in rows
        ]
        tx.add_all(copies)
        await tx.flush()
        logger.info("Duplicated %d blocks from %s to %s", len(copies), old_owner_id, new_owner_id)
        return [self.to_block(copy) for copy in copies]

    # --- Ownership ---

    async def user_owns_owner(self, user_id: str, owner_id: str) -> bool:
        """True when ``owner_id`` is an instance of ``user_id`` or a location in one."""
        return await bounded(self._user_owns_owner(user_id, owner_id), self._timeout, "check ownership")

    async def _user_owns_owner(self, user_id: str, owner_id: str) -> bool:
        async with self._sessions() as session:
            instance = await session.scalar(
                select(Instance.id).where(Instance.id == owner_id, Instance.user_id == user_id)
            )
            if instance is not None:
                return True
            location = await session.scalar(
                select(Location.id)
                .join(Instance, Instance.id == Location.instance_id)
                .where(Location.id == owner_id, Instance.user_id == user_id)
            )
        return location is not None

    async def user_owns_block(self, user_id: str, block_id: str) -> bool:
        async def run() -> bool:
            async with self._sessions() as session:
                owner_id = await session.scalar(select(ContentBlock.owner_id).where(ContentBlock.id == block_id))
            if owner_id is None:
                return False
            return await self._user_owns_owner(user_id, owner_id)

        return await bounded(run(), self._timeout, "check ownership")
