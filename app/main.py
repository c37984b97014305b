from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from app.voice import router as voice_router
from logging_config import configure_logging
from storage.config_store import build_default_store, read_device_host


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    store = build_default_store()
    logger.info("Voice service ready; device host is %s", read_device_host(store))
    try:
        yield
    finally:
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Storeroom Voice Monitor",
        description="Voice-assistant sessions that read storeroom sensors and open the fan.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    app.include_router(voice_router)
    return app

app = create_app()
