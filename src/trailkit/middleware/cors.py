"""CORS for the admin editor and the player app."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trailkit.config import Settings

# Headers the block API reads from browsers.
ALLOWED_HEADERS = ["Content-Type", "X-Request-Id", "X-User-Id"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=ALLOWED_HEADERS,
        expose_headers=["X-Request-Id"],
    )
