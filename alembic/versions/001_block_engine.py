"""Block engine schema: owners, blocks and per-team block state.

Creates instances, locations, blocks and team_block_states. This is the
single baseline revision; later changes chain from it.

Revision ID: 001_block_engine
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_block_engine"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create block engine tables."""
    # --- Owners ---
    op.create_table(
        "instances",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), server_default="", nullable=False),
    )
    op.create_index("ix_instances_user_id", "instances", ["user_id"])

    op.create_table(
        "locations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "instance_id",
            sa.String(36),
            sa.ForeignKey("instances.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), server_default="", nullable=False),
    )
    op.create_index("ix_locations_instance_id", "locations", ["instance_id"])

    # --- Blocks ---
    op.create_table(
        "blocks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("context", sa.String(32), nullable=False),
        sa.Column("data", JSON_DOCUMENT, nullable=False),
        sa.Column("ordering", sa.Integer(), server_default="0", nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("validation_required", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_blocks_owner_context_ordering", "blocks", ["owner_id", "context", "ordering"])

    # --- Per-team state ---
    op.create_table(
        "team_block_states",
        sa.Column("block_id", sa.String(36), primary_key=True),
        sa.Column("team_id", sa.String(64), primary_key=True),
        sa.Column("is_complete", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("points_awarded", sa.Integer(), server_default="0", nullable=False),
        sa.Column("player_data", JSON_DOCUMENT, nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_team_block_states_team_id", "team_block_states", ["team_id"])


def downgrade() -> None:
    """Drop block engine tables."""
    op.drop_table("team_block_states")
    op.drop_table("blocks")
    op.drop_table("locations")
    op.drop_table("instances")
