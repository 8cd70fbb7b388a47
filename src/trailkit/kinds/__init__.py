"""Block kinds, the typed block/state views and the kind registry."""

from trailkit.kinds.base import Block, BlockKind, BlockState, Context, FormData
from trailkit.kinds.registry import (
    BlockRegistry,
    blocks_for_context,
    build_default_registry,
    can_be_used_in,
    default_registry,
    get_registry,
)

__all__ = [
    "Block",
    "BlockKind",
    "BlockRegistry",
    "BlockState",
    "Context",
    "FormData",
    "blocks_for_context",
    "build_default_registry",
    "can_be_used_in",
    "default_registry",
    "get_registry",
]
