"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from echosphere.config import get_settings
from echosphere.db.engine import engine, create_all
from echosphere.api.router import api_router

logger = logging.getLogger(__name__)

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all()
    if not _settings.ai.openai_api_key and not _settings.ai.anthropic_api_key:
        logger.warning("No AI credentials configured; /api/analyze will answer 503")
    yield
    await engine.dispose()


app = FastAPI(
    title="EchoSphere",
    description="Geo-located civic feedback with AI classification and a live per-city feed.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)

# Uploaded attachments are served locally when a public base URL points here
_upload_dir = Path(_settings.storage.upload_dir)
if _settings.storage.public_base_url:
    _upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(_upload_dir)), name="uploads")
