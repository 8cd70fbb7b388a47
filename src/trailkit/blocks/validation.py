"""Validation dispatcher: load block and team state, run the kind, persist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trailkit.errors import ConcurrentSubmission, InvalidInput, LimitReached

if TYPE_CHECKING:
    from trailkit.blocks.repository import BlockRepository
    from trailkit.blocks.state_repository import BlockStateRepository
    from trailkit.kinds.base import Block, BlockState, FormData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """What the outer game engine needs back from a submission."""

    block: Block
    state: BlockState
    previous_points: int
    written: bool

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete

    @property
    def points_awarded(self) -> int:
        return self.state.points_awarded

    @property
    def delta_points(self) -> int:
        return self.state.points_awarded - self.previous_points


class ValidationDispatcher:
    def __init__(self, blocks: BlockRepository, states: BlockStateRepository) -> None:
        self._blocks = blocks
        self._states = states

    async def submit(self, block_id: str, team_id: str, form: FormData) -> SubmissionResult:
        """Evaluate one player submission.

        Points are set on the state row, not accumulated. When the kind
        returns the state unchanged nothing is written. A lost optimistic
        lock raises ConcurrentSubmission and the caller may retry.
        """
        if not team_id:
            raise InvalidInput("team is required")

        block = await self._blocks.get_by_id(block_id)
        kind = self._blocks.registry.get(block.type)
        current = await self._states.get(block_id, team_id)
        if current is None:
            current = self._states.new_state(block_id, team_id)

        try:
            new_state = kind.validate_player_input(block, current, form)
        except (InvalidInput, LimitReached) as exc:
            logger.info("Rejected %s submission for block %s by team %s: %s", block.type, block_id, team_id, exc)
            raise

        if new_state == current:
            return SubmissionResult(block=block, state=current, previous_points=current.points_awarded, written=False)

        try:
            if current.is_persisted:
                saved = await self._states.update(new_state)
            else:
                saved = await self._states.create(new_state)
        except ConcurrentSubmission:
            logger.warning("Concurrent submission for block %s by team %s", block_id, team_id)
            raise

        return SubmissionResult(block=block, state=saved, previous_points=current.points_awarded, written=True)
