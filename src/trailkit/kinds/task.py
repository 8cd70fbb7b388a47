"""Task kind and its complete-button validator.

A task wraps one inner block from the ``task_validation`` palette. The task
owns the name and the points; the inner block owns how completion is proven.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from trailkit.errors import ConfigParseError, ConfigValidationError, InvalidInput, LimitReached
from trailkit.kinds import forms
from trailkit.kinds.base import (
    Block,
    BlockKind,
    BlockState,
    Context,
    FormData,
    mark_complete,
    parse_config_model,
    serialize_config,
)

if TYPE_CHECKING:
    from trailkit.kinds.registry import BlockRegistry

MAX_TASK_NAME_LENGTH = 200
TASK_FIELDS = frozenset({"task_name", "points", "inner_type"})

# Starting configuration when an inner kind is first chosen.
INNER_DEFAULTS: dict[str, dict[str, Any]] = {
    "qr_code": {"instructions": "Find and scan the QR code to complete this task"},
}

# --- Complete button ---

DEFAULT_COMPLETE_TEXT = "Mark as complete"


class CompleteButtonConfig(BaseModel):
    text: str = DEFAULT_COMPLETE_TEXT


class CompleteButtonKind:
    type = "complete_button"
    name = "Complete Button"
    description = "A simple button that marks a task as complete when clicked."
    icon = "circle-check-big"
    requires_validation = True
    valid_contexts = frozenset({Context.TASK_VALIDATION})

    def parse_config(self, data: Mapping[str, Any] | None) -> CompleteButtonConfig:
        return parse_config_model(CompleteButtonConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        text = forms.first(form, "text").strip() or DEFAULT_COMPLETE_TEXT
        return block.with_config(CompleteButtonConfig(text=text))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state, block.points)


# --- Task ---


class TaskConfig(BaseModel):
    task_name: str = ""
    inner_type: str = ""
    inner_data: dict[str, Any] = Field(default_factory=dict)


class TaskKind:
    type = "task"
    name = "Task"
    description = "A task that teams complete and prove in a chosen way."
    icon = "list-todo"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT})

    def __init__(self, registry: BlockRegistry) -> None:
        self._registry = registry

    def _inner_kind(self, inner_type: str) -> BlockKind:
        if not self._registry.can_be_used_in(inner_type, Context.TASK_VALIDATION):
            raise ConfigParseError(f"block type {inner_type!r} cannot be used for task validation")
        return self._registry.get(inner_type)

    def parse_config(self, data: Mapping[str, Any] | None) -> TaskConfig:
        config = parse_config_model(TaskConfig, data, self.type)
        if not config.inner_type:
            return config
        # Stored inner data may predate fields the inner kind has since gained.
        inner_config = self._inner_kind(config.inner_type).parse_config(config.inner_data)
        return config.model_copy(update={"inner_data": serialize_config(inner_config)})

    def inner_block(self, block: Block) -> Block:
        """Materialise the wrapped block; it inherits the task's points."""
        config: TaskConfig = block.config
        kind = self._inner_kind(config.inner_type)
        return Block(
            id=f"{block.id}_inner",
            owner_id=block.owner_id,
            type=config.inner_type,
            context=Context.TASK_VALIDATION,
            config=kind.parse_config(config.inner_data),
            points=block.points,
            validation_required=kind.requires_validation,
        )

    def update_from_form(self, block: Block, form: FormData) -> Block:
        config: TaskConfig = block.config
        task_name = forms.first(form, "task_name") if forms.has(form, "task_name") else config.task_name
        if len(task_name) > MAX_TASK_NAME_LENGTH:
            raise ConfigValidationError.for_field(
                "task_name", f"task name exceeds maximum length of {MAX_TASK_NAME_LENGTH} characters"
            )
        points = forms.parse_points(form, block.points)

        inner_type = forms.first(form, "inner_type").strip()
        if inner_type and inner_type != config.inner_type:
            if not self._registry.can_be_used_in(inner_type, Context.TASK_VALIDATION):
                raise ConfigValidationError.for_field(
                    "inner_type", f"block type {inner_type} cannot be used for task validation"
                )
            kind = self._registry.get(inner_type)
            inner_data = serialize_config(kind.parse_config(INNER_DEFAULTS.get(inner_type, {})))
        else:
            inner_type = config.inner_type
            inner_data = dict(config.inner_data)
            inner_form = {key: value for key, value in form.items() if key not in TASK_FIELDS}
            if inner_type and inner_form:
                inner = self.inner_block(block)
                updated = self._registry.get(inner_type).update_from_form(inner, inner_form)
                inner_data = updated.data

        if not inner_type:
            raise ConfigValidationError.for_field("inner_type", "choose how the task is validated")
        new_config = TaskConfig(task_name=task_name, inner_type=inner_type, inner_data=inner_data)
        return block.with_config(new_config, points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        config: TaskConfig = block.config
        form: dict[str, list[str]] = {}
        if config.inner_type:
            inner = self.inner_block(block)
            form.update(self._registry.get(config.inner_type).config_form(inner))
            form.pop("points", None)
        form["task_name"] = [config.task_name]
        form["inner_type"] = [config.inner_type]
        form["points"] = [str(block.points)]
        return form

    def player_view(self, block: Block, state: BlockState) -> dict[str, Any]:
        config: TaskConfig = block.config
        view: dict[str, Any] = {"task_name": config.task_name, "inner_type": config.inner_type, "inner_data": {}}
        if config.inner_type:
            view["inner_data"] = self._registry.player_view(self.inner_block(block), state)
        return view

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        config: TaskConfig = block.config
        if not config.inner_type:
            raise InvalidInput("this task is not properly configured - please contact the game administrator")

        inner = self.inner_block(block)
        try:
            return self._registry.get(inner.type).validate_player_input(inner, state, form)
        except (InvalidInput, LimitReached) as exc:
            raise type(exc)(f"validation failed for task '{config.task_name}': {exc.message}") from exc
