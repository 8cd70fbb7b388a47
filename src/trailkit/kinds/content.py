"""Passive content kinds: markdown, header, divider, alert, image, youtube, button, qr_code.

Submitting any of these marks the block complete and awards nothing.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Literal
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel

from trailkit.errors import ConfigValidationError
from trailkit.kinds import forms
from trailkit.kinds.base import (
    PAGE_CONTEXTS,
    Block,
    BlockState,
    Context,
    FormData,
    mark_complete,
    parse_config_model,
)

# --- Markdown ---


class MarkdownConfig(BaseModel):
    content: str = ""


class MarkdownKind:
    type = "markdown"
    name = "Markdown"
    description = "Formatted text written in markdown."
    icon = "text"
    requires_validation = False
    valid_contexts = PAGE_CONTEXTS | {Context.LOCATION_CLUES}

    def parse_config(self, data: Mapping[str, Any] | None) -> MarkdownConfig:
        return parse_config_model(MarkdownConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        return block.with_config(MarkdownConfig(content=forms.first(form, "content")))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- Header ---

TITLE_SIZES = ("small", "medium", "large")


class HeaderConfig(BaseModel):
    icon: str = ""
    title_text: str = ""
    title_size: Literal["small", "medium", "large"] = "medium"


class HeaderKind:
    type = "header"
    name = "Header"
    description = "A title with an optional icon to open a section."
    icon = "heading"
    requires_validation = False
    valid_contexts = PAGE_CONTEXTS

    def parse_config(self, data: Mapping[str, Any] | None) -> HeaderConfig:
        return parse_config_model(HeaderConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        # Absent keys read as empty strings.
        icon = forms.first(form, "icon").strip()
        title = forms.first(form, "title_text").strip()
        size = forms.first(form, "title_size").strip() or "medium"

        errors: dict[str, str] = {}
        if not icon and not title:
            errors["title_text"] = "a title or an icon must be provided"
        if size not in TITLE_SIZES:
            errors["title_size"] = f"title size must be one of {', '.join(TITLE_SIZES)}"
        if errors:
            raise ConfigValidationError(errors)
        return block.with_config(HeaderConfig(icon=icon, title_text=title, title_size=size))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- Divider ---


class DividerConfig(BaseModel):
    title: str = ""


class DividerKind:
    type = "divider"
    name = "Divider"
    description = "A horizontal rule, optionally labelled."
    icon = "separator-horizontal"
    requires_validation = False
    valid_contexts = PAGE_CONTEXTS

    def parse_config(self, data: Mapping[str, Any] | None) -> DividerConfig:
        return parse_config_model(DividerConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        return block.with_config(DividerConfig(title=forms.first(form, "title").strip()))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- Alert ---

ALERT_VARIANTS = ("info", "success", "warning", "danger")


class AlertConfig(BaseModel):
    content: str = ""
    variant: str = "info"


class AlertKind:
    type = "alert"
    name = "Alert"
    description = "A highlighted notice in one of several styles."
    icon = "triangle-alert"
    requires_validation = False
    valid_contexts = PAGE_CONTEXTS

    def parse_config(self, data: Mapping[str, Any] | None) -> AlertConfig:
        return parse_config_model(AlertConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        variant = forms.first(form, "variant").strip() or "info"
        if variant not in ALERT_VARIANTS:
            raise ConfigValidationError.for_field("variant", f"variant must be one of {', '.join(ALERT_VARIANTS)}")
        return block.with_config(AlertConfig(content=forms.first(form, "content"), variant=variant))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- Image ---


class ImageConfig(BaseModel):
    url: str = ""
    caption: str = ""
    link: str = ""


class ImageKind:
    type = "image"
    name = "Image"
    description = "A picture with an optional caption and link."
    icon = "image"
    requires_validation = False
    valid_contexts = PAGE_CONTEXTS | {Context.LOCATION_CLUES}

    def parse_config(self, data: Mapping[str, Any] | None) -> ImageConfig:
        return parse_config_model(ImageConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        url = forms.first(form, "url").strip()
        link = forms.first(form, "link").strip()

        errors: dict[str, str] = {}
        if not url:
            errors["url"] = "url is a required field"
        elif not forms.is_request_uri(url):
            errors["url"] = "url must be a valid URL"
        if link and not forms.is_request_uri(link):
            errors["link"] = "link must be a valid URL"
        if errors:
            raise ConfigValidationError(errors)
        return block.with_config(ImageConfig(url=url, caption=forms.first(form, "caption"), link=link))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- YouTube ---

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")
_YOUTUBE_HOSTS = frozenset({"youtube.com", "youtube-nocookie.com"})


def extract_video_id(value: str) -> str | None:
    """Pull the video id out of a bare id or any common YouTube URL shape."""
    value = value.strip()
    if _VIDEO_ID.match(value):
        return value
    try:
        parts = urlsplit(value)
    except ValueError:
        return None
    host = parts.netloc.lower().removeprefix("www.").removeprefix("m.")
    segments = [segment for segment in parts.path.split("/") if segment]

    candidate = ""
    if host == "youtu.be" and segments:
        candidate = segments[0]
    elif host in _YOUTUBE_HOSTS:
        if parts.path == "/watch":
            candidate = parse_qs(parts.query).get("v", [""])[0]
        elif len(segments) >= 2 and segments[0] in ("embed", "shorts", "live", "v"):
            candidate = segments[1]
    return candidate if _VIDEO_ID.match(candidate) else None


class YoutubeConfig(BaseModel):
    url: str = ""
    video_id: str = ""


class YoutubeKind:
    type = "youtube"
    name = "YouTube Video"
    description = "An embedded YouTube video."
    icon = "youtube"
    requires_validation = False
    valid_contexts = frozenset({Context.LOCATION_CONTENT, Context.START, Context.FINISH})

    def parse_config(self, data: Mapping[str, Any] | None) -> YoutubeConfig:
        return parse_config_model(YoutubeConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        url = forms.first(form, "url").strip()
        if not url:
            raise ConfigValidationError.for_field("url", "url is a required field")
        video_id = extract_video_id(url)
        if video_id is None:
            raise ConfigValidationError.for_field("url", "url is not a recognised YouTube link")
        return block.with_config(YoutubeConfig(url=url, video_id=video_id))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return {"url": [block.config.url]}

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- Button ---

BUTTON_VARIANTS = {
    "primary": "Primary",
    "secondary": "Secondary",
    "neutral": "Neutral",
    "accent": "Accent",
    "info": "Info",
    "success": "Success",
    "warning": "Warning",
    "error": "Error",
}


class ButtonConfig(BaseModel):
    link: str = ""
    text: str = ""
    variant: str = "primary"


class ButtonKind:
    type = "button"
    name = "Button"
    description = "A call-to-action button that opens a link."
    icon = "mouse-pointer-click"
    requires_validation = False
    valid_contexts = PAGE_CONTEXTS

    def parse_config(self, data: Mapping[str, Any] | None) -> ButtonConfig:
        return parse_config_model(ButtonConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        link = forms.first(form, "link").strip()
        variant = forms.first(form, "variant").strip() or "primary"

        errors: dict[str, str] = {}
        if link and not forms.is_request_uri(link):
            errors["link"] = "link must be a valid URL"
        if variant not in BUTTON_VARIANTS:
            errors["variant"] = "unknown button variant"
        if errors:
            raise ConfigValidationError(errors)
        return block.with_config(ButtonConfig(link=link, text=forms.first(form, "text").strip(), variant=variant))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state)


# --- QR code (task validation only) ---


class QRCodeConfig(BaseModel):
    instructions: str = ""


class QRCodeKind:
    type = "qr_code"
    name = "QR Code"
    description = "Players scan a generated QR code to finish a task."
    icon = "qr-code"
    requires_validation = False
    valid_contexts = frozenset({Context.TASK_VALIDATION})

    def parse_config(self, data: Mapping[str, Any] | None) -> QRCodeConfig:
        return parse_config_model(QRCodeConfig, data, self.type)

    def update_from_form(self, block: Block, form: FormData) -> Block:
        return block.with_config(QRCodeConfig(instructions=forms.first(form, "instructions").strip()))

    def config_form(self, block: Block) -> dict[str, list[str]]:
        return forms.flat_form(block.config)

    def validate_player_input(self, block: Block, state: BlockState, form: FormData) -> BlockState:
        return mark_complete(state, block.points)
