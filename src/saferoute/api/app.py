"""
FastAPI application wiring.

This file creates the `FastAPI` instance and applies CORS from settings.
Business logic lives in `saferoute.engine`; request handling in `saferoute.api.routes`.
"""

from __future__ import annotations

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from saferoute.config.settings import get_settings
from saferoute.core.logging import configure_logging

from .routes import router

settings = get_settings()
configure_logging(settings)

app = FastAPI(title=f"{settings.app.name} API", version="0.1.0")

# Override with SAFEROUTE_CORS_ORIGINS="http://localhost:3000,https://maps.example.org".
if settings.app.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.app.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(router)
