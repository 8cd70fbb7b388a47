"""Photo kind: teams upload up to ``max_images`` pictures.

Completion tracks the current image count, so deleting a photo below the cap
reopens the block and zeroes its points.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from trailkit.errors import ConfigValidationError, InvalidInput, LimitReached
from trailkit.kinds import forms
from trailkit.kinds.base import Block, BlockState, Context, FormData, parse_config_model

MIN_IMAGES = 1
MAX_IMAGES = 5


class PhotoConfig(BaseModel):
    prompt: str = ""
    max_images: int = Field(default=MIN_IMAGES, ge=MIN_IMAGES, le=MAX_IMAGES)

    @field_validator("max_images", mode="before")
    @classmethod
    def _unset_means_one(cls, value: Any) -> Any:
        # Rows written before the field existed store 0 or null.
        if value in (None, 0, ""):
            return MIN_IMAGES
        return value


class PhotoProgress(BaseModel):
    images: list[str] = Field(default_factory=list)


def image_urls(state: BlockState) -> list[str]:
    return state.progress(PhotoProgress).images


class PhotoKind:
    type = "photo"
    name = "Photo"
    description = "Teams upload photos as proof of a challenge."
    icon = "camera"
    requires_validation = True
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.TASK_VALIDATION})

    def parse_config(self, data: Mapping[str, Any] | None) -> PhotoConfig:
        return parse_config_model(PhotoConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        points = forms.parse_points(form)
        fields = forms.require_fields(form, "prompt")
        max_images = forms.optional_int(form, "max_images", MIN_IMAGES)
        if not MIN_IMAGES <= max_images <= MAX_IMAGES:
            raise ConfigValidationError.for_field(
                "max_images", f"max_images must be between {MIN_IMAGES} and {MAX_IMAGES}"
            )
        return block.with_config(PhotoConfig(prompt=fields["prompt"], max_images=max_images), points=points)

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config, points=block.points)

    def _settle(self, block: Block, state: BlockState, progress: PhotoProgress) -> BlockState:
        complete = len(progress.images) >= block.config.max_images
        return state.advance(
            progress=progress,
            is_complete=complete,
            points_awarded=block.points if complete else 0,
        )

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        config: PhotoConfig = block.config
        progress = state.progress(PhotoProgress)

        deletions = forms.values(form, "delete")
        if deletions:
            progress.images = [url for url in progress.images if url != deletions[0]]
            return self._settle(block, state, progress)

        urls = forms.values(form, "url")
        if not urls:
            raise InvalidInput("photo is a required field")
        if len(progress.images) >= config.max_images:
            raise LimitReached(f"maximum of {config.max_images} images allowed")
        for url in urls:
            if not url.strip():
                raise InvalidInput("photo is a required field")
            if not forms.is_request_uri(url):
                raise InvalidInput("invalid URL")

        progress.images = (progress.images + urls)[: config.max_images]
        return self._settle(block, state, progress)
