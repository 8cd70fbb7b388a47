"""Form-semantics helpers shared by the kinds.

Forms are ``map[str, list[str]]``. Numeric fields are base-10 text where an
empty string means unset; checkboxes are on when present with ``on`` or
``true`` and off when absent.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel

from trailkit.errors import ConfigValidationError
from trailkit.kinds.base import FormData

CHECKBOX_ON = frozenset({"on", "true"})


def values(form: FormData, key: str) -> list[str]:
    return list(form.get(key) or ())


def first(form: FormData, key: str, default: str = "") -> str:
    """First value for ``key``; absent keys and empty lists read as ``default``."""
    found = form.get(key) or ()
    return found[0] if found else default


def has(form: FormData, key: str) -> bool:
    return bool(form.get(key))


def checkbox(form: FormData, key: str) -> bool:
    return first(form, key).strip().lower() in CHECKBOX_ON


def optional_int(form: FormData, key: str, default: int) -> int:
    """Parse an optional integer field. Raises ConfigValidationError on bad text."""
    raw = first(form, key).strip()
    if raw == "":
        return default
    try:
        return int(raw, 10)
    except ValueError:
        raise ConfigValidationError.for_field(key, f"{key} must be an integer") from None


def parse_points(form: FormData, default: int = 0) -> int:
    return optional_int(form, "points", default)


def require_fields(form: FormData, *keys: str) -> dict[str, str]:
    """Return the first value of each key, reporting every missing one at once."""
    missing = {key: f"{key} is a required field" for key in keys if not first(form, key).strip()}
    if missing:
        raise ConfigValidationError(missing)
    return {key: first(form, key) for key in keys}


def non_empty(items: list[str]) -> list[str]:
    return [item for item in items if item.strip()]


def is_request_uri(value: str) -> bool:
    """True for an absolute URI or an absolute path, as an HTTP request line allows."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if parts.scheme:
        return bool(parts.netloc or parts.path)
    return value.startswith("/")


def flat_form(config: BaseModel, points: int | None = None) -> dict[str, list[str]]:
    """Render a flat config model as form values (booleans as checkboxes)."""
    form: dict[str, list[str]] = {}
    dumped: dict[str, Any] = config.model_dump(mode="json")
    for key, value in dumped.items():
        if isinstance(value, bool):
            if value:
                form[key] = ["on"]
        elif isinstance(value, list):
            form[key] = [str(item) for item in value]
        elif value is not None:
            form[key] = [str(value)]
    if points is not None:
        form["points"] = [str(points)]
    return form
