"""Portfolio, project, section and media endpoints."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status

from api.deps import get_current_user, get_portfolio_service
from core import settings
from models import User
from services import (
    UploadTooLargeError,
    delete_media_bytes,
    read_upload_file,
    store_media_bytes,
)
from services.portfolios import (
    InputValidationError,
    InvalidMediaTypeError,
    MediaCreate,
    MediaView,
    NotFoundError,
    PortfolioCreate,
    PortfolioError,
    PortfolioService,
    PortfolioUpdate,
    PortfolioView,
    ProjectCreate,
    ProjectUpdate,
    ProjectView,
    SectionCreate,
    SectionUpdate,
    SectionView,
    StoreFailureError,
    SubdomainTakenError,
    UnauthorizedError,
)

router = APIRouter(prefix="/portfolios", tags=["portfolios"])
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: tuple[tuple[type[PortfolioError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (SubdomainTakenError, status.HTTP_409_CONFLICT),
    (InvalidMediaTypeError, status.HTTP_400_BAD_REQUEST),
    (InputValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
)


@contextmanager
def _translate_portfolio_errors() -> Iterator[None]:
    try:
        yield
    except StoreFailureError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
    except PortfolioError as exc:
        for error_type, status_code in ERROR_STATUS_CODES:
            if isinstance(exc, error_type):
                raise HTTPException(status_code=status_code, detail=exc.message) from exc
        raise


async def _discard_media_objects(
    service: PortfolioService,
    media: Iterable[MediaView],
) -> None:
    for item in media:
        try:
            # Re-uploading a file name reuses its URL; keep bytes another record still serves.
            if await service.is_media_url_in_use(item.url):
                continue
            await asyncio.to_thread(delete_media_bytes, item.url)
        except Exception as exc:
            logger.warning(
                "Failed to delete media object",
                extra={"media_url": item.url},
                exc_info=exc,
            )


# Portfolios


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PortfolioView)
async def create_portfolio(
    payload: PortfolioCreate,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> PortfolioView:
    with _translate_portfolio_errors():
        return await service.create_portfolio(current_user.id, payload)


@router.get("", response_model=list[PortfolioView])
async def list_my_portfolios(
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> list[PortfolioView]:
    with _translate_portfolio_errors():
        return await service.list_owner_portfolios(current_user.id)


@router.get("/subdomain/{subdomain}", response_model=PortfolioView)
async def get_portfolio_by_subdomain(
    subdomain: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioView:
    with _translate_portfolio_errors():
        return await service.get_portfolio_by_subdomain(subdomain)


@router.get("/{portfolio_id}", response_model=PortfolioView)
async def get_portfolio(
    portfolio_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioView:
    with _translate_portfolio_errors():
        return await service.get_portfolio(portfolio_id)


@router.api_route("/{portfolio_id}", methods=["PUT", "PATCH"], response_model=PortfolioView)
async def update_portfolio(
    portfolio_id: str,
    payload: PortfolioUpdate,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> PortfolioView:
    with _translate_portfolio_errors():
        return await service.update_portfolio(portfolio_id, current_user.id, payload)


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio(
    portfolio_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> Response:
    with _translate_portfolio_errors():
        removed = await service.delete_portfolio(portfolio_id, current_user.id)
    await _discard_media_objects(
        service,
        [item for project in removed.projects for item in project.media],
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Projects


@router.post(
    "/{portfolio_id}/projects",
    status_code=status.HTTP_201_CREATED,
    response_model=ProjectView,
)
async def add_project(
    portfolio_id: str,
    payload: ProjectCreate,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> ProjectView:
    with _translate_portfolio_errors():
        return await service.add_project(portfolio_id, current_user.id, payload)


@router.api_route(
    "/{portfolio_id}/projects/{project_id}",
    methods=["PUT", "PATCH"],
    response_model=ProjectView,
)
async def update_project(
    portfolio_id: str,
    project_id: str,
    payload: ProjectUpdate,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> ProjectView:
    with _translate_portfolio_errors():
        return await service.update_project(portfolio_id, project_id, current_user.id, payload)


@router.delete("/{portfolio_id}/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    portfolio_id: str,
    project_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> Response:
    with _translate_portfolio_errors():
        removed = await service.delete_project(portfolio_id, project_id, current_user.id)
    await _discard_media_objects(service, removed.media)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Sections


@router.post(
    "/{portfolio_id}/sections",
    status_code=status.HTTP_201_CREATED,
    response_model=SectionView,
)
async def add_section(
    portfolio_id: str,
    payload: SectionCreate,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> SectionView:
    with _translate_portfolio_errors():
        return await service.add_section(portfolio_id, current_user.id, payload)


@router.api_route(
    "/{portfolio_id}/sections/{section_id}",
    methods=["PUT", "PATCH"],
    response_model=SectionView,
)
async def update_section(
    portfolio_id: str,
    section_id: str,
    payload: SectionUpdate,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> SectionView:
    with _translate_portfolio_errors():
        return await service.update_section(portfolio_id, section_id, current_user.id, payload)


@router.delete("/{portfolio_id}/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_section(
    portfolio_id: str,
    section_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> Response:
    with _translate_portfolio_errors():
        await service.delete_section(portfolio_id, section_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Media


@router.post(
    "/{portfolio_id}/projects/{project_id}/media",
    status_code=status.HTTP_201_CREATED,
    response_model=MediaView,
)
async def add_media(
    portfolio_id: str,
    project_id: str,
    file: UploadFile = File(...),
    media_type: str | None = Form(default=None, alias="type"),
    caption: str = Form(default=""),
    order: int = Form(default=0),
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> MediaView:
    try:
        data = await read_upload_file(file, settings.upload_max_bytes)
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    with _translate_portfolio_errors():
        media = await service.add_media(
            portfolio_id,
            project_id,
            current_user.id,
            MediaCreate(type=media_type, caption=caption, order=order),
            file.filename or "",
        )

    try:
        await asyncio.to_thread(
            store_media_bytes,
            media.url,
            data,
            content_type=file.content_type or "application/octet-stream",
        )
    except Exception as exc:
        logger.warning(
            "Failed to store media bytes; removing media record",
            extra={"media_url": media.url},
            exc_info=exc,
        )
        try:
            await service.delete_media(portfolio_id, project_id, media.id, current_user.id)
        except PortfolioError as cleanup_error:
            logger.warning(
                "Failed to remove media record after upload failure",
                extra={"media_id": media.id},
                exc_info=cleanup_error,
            )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store media",
        ) from exc
    return media


@router.delete(
    "/{portfolio_id}/projects/{project_id}/media/{media_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_media(
    portfolio_id: str,
    project_id: str,
    media_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
    current_user: User = Depends(get_current_user),
) -> Response:
    with _translate_portfolio_errors():
        removed = await service.delete_media(portfolio_id, project_id, media_id, current_user.id)
    await _discard_media_objects(service, [removed])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
