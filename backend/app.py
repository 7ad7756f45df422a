"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.v1 import api_router
from api.v1.media import router as media_router
from core import settings
from services import ensure_bucket

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def prepare_media_bucket() -> bool:
    """Create the media bucket once; startup continues if MinIO is not reachable yet."""
    try:
        await asyncio.to_thread(ensure_bucket)
    except Exception as exc:
        logger.warning(
            "Media bucket is not ready; uploads will fail until it exists",
            extra={"bucket": settings.minio_bucket},
            exc_info=exc,
        )
        return False
    return True


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await prepare_media_bucket()
    yield


def create_app() -> FastAPI:
    configure_logging()

    application = FastAPI(title=settings.app_name, lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(api_router)
    application.include_router(media_router)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
