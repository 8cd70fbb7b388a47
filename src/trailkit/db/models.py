"""ORM models for blocks, per-team block state and block owners."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, false, func
from sqlalchemy.orm import Mapped, mapped_column

from trailkit.db.base import Base, JSONDocument


def new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Owners
# ---------------------------------------------------------------------------


class Instance(Base):
    """A game instance; the root of block ownership."""

    __tablename__ = "instances"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")


class Location(Base):
    """A location within an instance."""

    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    instance_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("instances.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


class ContentBlock(Base):
    """Maps to the 'blocks' table. ``data`` is opaque to everything but the kind."""

    __tablename__ = "blocks"
    __table_args__ = (Index("ix_blocks_owner_context_ordering", "owner_id", "context", "ordering"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    context: Mapped[str] = mapped_column(String(32), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    ordering: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    validation_required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TeamBlockState(Base):
    """Per-(block, team) progress. ``version`` backs optimistic locking."""

    __tablename__ = "team_block_states"

    block_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    team_id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    player_data: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
