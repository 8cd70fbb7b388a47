"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Header, HTTPException

from trailkit.blocks.repository import BlockRepository
from trailkit.blocks.service import BlockService
from trailkit.blocks.state_repository import BlockStateRepository
from trailkit.blocks.validation import ValidationDispatcher
from trailkit.database import get_session_factory
from trailkit.kinds.registry import get_registry


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """The acting admin, as asserted by the outer auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def get_block_repository() -> BlockRepository:
    return BlockRepository(get_session_factory(), get_registry())


def get_state_repository() -> BlockStateRepository:
    return BlockStateRepository(get_session_factory(), get_registry())


def get_block_service() -> BlockService:
    return BlockService(get_session_factory(), get_block_repository(), get_state_repository())


def get_dispatcher() -> ValidationDispatcher:
    return ValidationDispatcher(get_block_repository(), get_state_repository())
