"""Error kinds raised by block kinds, repositories and the dispatcher.

Kinds only ever raise InvalidInput, LimitReached, ConfigValidationError and
ConfigParseError. Everything else originates in the repositories, the
dispatcher or the services.
"""

from __future__ import annotations


class TrailkitError(Exception):
    """Base class: a short human message plus a stable machine code."""

    code = "internal"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownBlockKind(TrailkitError):
    """The block type tag is not registered."""

    code = "unknown_block_kind"
    status_code = 400

    def __init__(self, block_type: str) -> None:
        super().__init__(f"block type {block_type!r} is not registered")
        self.block_type = block_type


class ConfigParseError(TrailkitError):
    """Stored data cannot be read by the kind."""

    code = "config_parse_error"
    status_code = 422


class ConfigValidationError(TrailkitError):
    """Admin form input was rejected; carries per-field messages."""

    code = "config_validation_error"
    status_code = 422

    def __init__(self, field_errors: dict[str, str]) -> None:
        message = "; ".join(f"{field}: {msg}" for field, msg in field_errors.items())
        super().__init__(message or "invalid configuration")
        self.field_errors = dict(field_errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> ConfigValidationError:
        return cls({field: message})


class InvalidInput(TrailkitError):
    """Player form input is malformed. No state change."""

    code = "invalid_input"
    status_code = 400


class LimitReached(TrailkitError):
    """A kind-specific capacity was exceeded (e.g. photo count)."""

    code = "limit_reached"
    status_code = 400


class NotAuthorized(TrailkitError):
    code = "not_authorized"
    status_code = 403


class BlockNotFound(TrailkitError):
    code = "block_not_found"
    status_code = 404

    def __init__(self, block_id: str) -> None:
        super().__init__(f"block {block_id!r} not found")
        self.block_id = block_id


class ConcurrentSubmission(TrailkitError):
    """Optimistic-lock conflict on a per-team state row. Safe to retry."""

    code = "concurrent_submission"
    status_code = 409


class Timeout(TrailkitError):
    """A store call exceeded its deadline."""

    code = "timeout"
    status_code = 504


class InternalError(TrailkitError):
    code = "internal"
    status_code = 500
