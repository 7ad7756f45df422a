"""Public media URLs: redirect a stored media URL to a short-lived signed URL."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from api.deps import get_portfolio_service
from core import settings
from services import presign_media_url
from services.portfolios import MediaNotFoundError, PortfolioService, build_media_url

router = APIRouter(prefix=f"/{settings.media_url_prefix.strip('/')}", tags=["media"])

SIGNED_MEDIA_URL_TTL_SECONDS = 120
MEDIA_NO_STORE_CACHE_CONTROL = "no-store"


@router.get("/{portfolio_id}/{project_id}/{filename}")
async def redirect_to_media(
    portfolio_id: str,
    project_id: str,
    filename: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> RedirectResponse:
    url = build_media_url(settings.media_url_prefix, portfolio_id, project_id, filename)
    try:
        media = await service.get_media_by_url(url)
    except MediaNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Media not found",
        ) from exc

    signed_url = presign_media_url(
        media.url,
        expires_seconds=SIGNED_MEDIA_URL_TTL_SECONDS,
    )
    return RedirectResponse(
        signed_url,
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        headers={"Cache-Control": MEDIA_NO_STORE_CACHE_CONTROL},
    )
