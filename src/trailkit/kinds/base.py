"""Core types shared by every block kind.

A block is a plain record (``Block``) whose ``config`` is the kind's own
pydantic model. Kinds are independent classes satisfying the ``BlockKind``
protocol; the registry maps a type tag to the kind. The engine never reads
``config`` or ``BlockState.player_data`` itself.
"""

from __future__ import annotations

import copy
import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from trailkit.errors import ConfigParseError

FormData = Mapping[str, Sequence[str]]

ConfigT = TypeVar("ConfigT", bound=BaseModel)
ProgressT = TypeVar("ProgressT", bound=BaseModel)


class Context(str, enum.Enum):
    """Lifecycle slot in which a block is rendered."""

    LOBBY = "lobby"
    LOCATION_CONTENT = "location_content"
    LOCATION_CLUES = "location_clues"
    CHECKPOINT = "checkpoint"
    START = "start"
    FINISH = "finish"
    TASK_VALIDATION = "task_validation"


# Contexts where static page content may appear.
PAGE_CONTEXTS = frozenset({
    Context.LOCATION_CONTENT,
    Context.LOBBY,
    Context.START,
    Context.FINISH,
})


@dataclass
class Block:
    """Typed view of a persisted block record."""

    id: str
    owner_id: str
    type: str
    context: Context
    config: BaseModel
    ordering: int = 0
    points: int = 0
    validation_required: bool = False

    @property
    def data(self) -> dict[str, Any]:
        """The opaque payload as stored."""
        return serialize_config(self.config)

    def with_config(self, config: BaseModel, points: int | None = None) -> Block:
        """Return a copy carrying new configuration (and optionally points)."""
        return replace(self, config=config, points=self.points if points is None else points)


class BlockState(BaseModel):
    """Per-(block, team) progress record.

    ``version`` is 0 until the row is first persisted; the state repository
    bumps it on every write and uses it for optimistic locking.
    """

    block_id: str
    team_id: str
    is_complete: bool = False
    points_awarded: int = 0
    player_data: dict[str, Any] = Field(default_factory=dict)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_persisted(self) -> bool:
        return self.version > 0

    def progress(self, model: type[ProgressT]) -> ProgressT:
        """Parse ``player_data`` into the kind's progress model."""
        try:
            return model.model_validate(copy.deepcopy(self.player_data))
        except ValidationError as exc:
            msg = f"player data for block {self.block_id} is unreadable"
            raise ConfigParseError(msg) from exc

    def advance(
        self,
        *,
        progress: BaseModel | None = None,
        is_complete: bool | None = None,
        points_awarded: int | None = None,
    ) -> BlockState:
        """Return a new state with the given changes applied; ``self`` is untouched."""
        update: dict[str, Any] = {}
        if progress is not None:
            update["player_data"] = progress.model_dump(mode="json")
        if is_complete is not None:
            update["is_complete"] = is_complete
        if points_awarded is not None:
            update["points_awarded"] = points_awarded
        return self.model_copy(update=update, deep=True)


class BlockKind(Protocol):
    """Capability interface every block kind provides."""

    type: str
    name: str
    description: str
    icon: str
    requires_validation: bool
    valid_contexts: frozenset[Context]

    def parse_config(self, data: Mapping[str, Any] | None) -> BaseModel:
        """Deserialize the stored payload. Raises ConfigParseError."""
        ...

    def update_from_form(self, block: Block, form: FormData) -> Block:
        """Build new configuration from admin form values. Raises ConfigValidationError."""
        ...

    def config_form(self, block: Block) -> dict[str, list[str]]:
        """Render the configuration back into form values."""
        ...

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        """Pure: compute the next state or raise InvalidInput / LimitReached."""
        ...


@runtime_checkable
class RedactsConfig(Protocol):
    """Kinds whose stored configuration holds answers players must not see.

    ``player_view`` returns what a team may be shown for ``block``. Kinds
    without it are shown their stored payload as is.
    """

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]: ...


def parse_config_model(model: type[ConfigT], data: Mapping[str, Any] | None, block_type: str) -> ConfigT:
    """Validate a stored payload against a kind's config model."""
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as exc:
        msg = f"{block_type} configuration is unreadable ({exc.error_count()} invalid field(s))"
        raise ConfigParseError(msg) from exc


def serialize_config(config: BaseModel) -> dict[str, Any]:
    return config.model_dump(mode="json")


def mark_complete(state: BlockState, points: int = 0) -> BlockState:
    """Passive submission: complete, with the given award."""
    return state.advance(is_complete=True, points_awarded=points)
