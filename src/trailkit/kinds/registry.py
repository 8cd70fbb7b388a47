"""Block registry: type tag -> kind, plus context filtering."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from trailkit.errors import ConfigValidationError, UnknownBlockKind
from trailkit.kinds.answer import AnswerKind
from trailkit.kinds.base import Block, BlockKind, BlockState, Context, RedactsConfig
from trailkit.kinds.broker import BrokerKind
from trailkit.kinds.checklist import ChecklistKind
from trailkit.kinds.clue import ClueKind
from trailkit.kinds.content import (
    AlertKind,
    ButtonKind,
    DividerKind,
    HeaderKind,
    ImageKind,
    MarkdownKind,
    QRCodeKind,
    YoutubeKind,
)
from trailkit.kinds.lobby import GameStatusAlertKind, StartGameButtonKind, TeamNameKind
from trailkit.kinds.photo import PhotoKind
from trailkit.kinds.pincode import PincodeKind
from trailkit.kinds.quiz import QuizKind
from trailkit.kinds.random_clue import RandomClueKind
from trailkit.kinds.rating import RatingKind
from trailkit.kinds.sorting import SortingKind
from trailkit.kinds.task import CompleteButtonKind, TaskKind


class BlockRegistry:
    """The set of kinds available, keyed by type tag, in registration order."""

    def __init__(self) -> None:
        self._kinds: dict[str, BlockKind] = {}

    def register(self, kind: BlockKind) -> None:
        if kind.type in self._kinds:
            msg = f"block type {kind.type!r} is already registered"
            raise ValueError(msg)
        self._kinds[kind.type] = kind

    def get(self, block_type: str) -> BlockKind:
        try:
            return self._kinds[block_type]
        except KeyError:
            raise UnknownBlockKind(block_type) from None

    def __contains__(self, block_type: object) -> bool:
        return block_type in self._kinds

    def __iter__(self) -> Iterator[BlockKind]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)

    def blocks_for_context(self, context: Context | str) -> list[BlockKind]:
        """Kinds offered in the admin palette for ``context``."""
        ctx = Context(context)
        return [kind for kind in self._kinds.values() if ctx in kind.valid_contexts]

    def can_be_used_in(self, block_type: str, context: Context | str) -> bool:
        kind = self._kinds.get(block_type)
        return kind is not None and Context(context) in kind.valid_contexts

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        """The payload a team is shown for ``block``, with answers held back."""
        kind = self.get(block.type)
        if isinstance(kind, RedactsConfig):
            return kind.player_view(block, state)
        return block.data

    def build(
        self,
        *,
        id: str,
        owner_id: str,
        type: str,
        context: Context | str,
        data: Mapping[str, Any] | None,
        ordering: int = 0,
        points: int = 0,
        validation_required: bool | None = None,
    ) -> Block:
        """Construct the typed block for a stored record."""
        kind = self.get(type)
        return Block(
            id=id,
            owner_id=owner_id,
            type=type,
            context=Context(context),
            config=kind.parse_config(data),
            ordering=ordering,
            points=points,
            validation_required=kind.requires_validation if validation_required is None else validation_required,
        )

    def new_block(self, block_type: str, owner_id: str, context: Context | str, points: int = 0) -> Block:
        """An unsaved block with default configuration, checked against ``context``."""
        kind = self.get(block_type)
        ctx = Context(context)
        if ctx not in kind.valid_contexts:
            raise ConfigValidationError.for_field("context", f"{kind.name} blocks cannot be used in {ctx.value}")
        return Block(
            id="",
            owner_id=owner_id,
            type=block_type,
            context=ctx,
            config=kind.parse_config({}),
            points=points,
            validation_required=kind.requires_validation,
        )


def build_default_registry() -> BlockRegistry:
    registry = BlockRegistry()
    for kind in (
        MarkdownKind(),
        DividerKind(),
        AlertKind(),
        ButtonKind(),
        HeaderKind(),
        ImageKind(),
        YoutubeKind(),
        AnswerKind(),
        PincodeKind(),
        ChecklistKind(),
        SortingKind(),
        PhotoKind(),
        QuizKind(),
        BrokerKind(),
        ClueKind(),
        RandomClueKind(),
        RatingKind(),
        QRCodeKind(),
        CompleteButtonKind(),
        GameStatusAlertKind(),
        StartGameButtonKind(),
        TeamNameKind(),
    ):
        registry.register(kind)
    registry.register(TaskKind(registry))
    return registry


default_registry = build_default_registry()


def get_registry() -> BlockRegistry:
    return default_registry


def blocks_for_context(context: Context | str) -> list[BlockKind]:
    return default_registry.blocks_for_context(context)


def can_be_used_in(block_type: str, context: Context | str) -> bool:
    return default_registry.can_be_used_in(block_type, context)
