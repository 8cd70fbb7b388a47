"""Middleware registration for the block API."""

from fastapi import FastAPI

from trailkit.config import Settings
from trailkit.middleware.cors import setup_cors
from trailkit.middleware.error_handler import setup_error_handlers
from trailkit.middleware.logging import setup_logging
from trailkit.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Logging first, then handlers; CORS is added last and so runs outermost."""
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
