from __future__ import annotations

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from ..core.errors import (
    DuplicateError,
    GalleryError,
    InvalidNameError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
)
from ..services.gallery import Gallery
from ..services.gallery_index import SORT_KEYS
from ..services.session import get_session_manager


def status_for(exc: GalleryError) -> int:
    if isinstance(exc, DuplicateError):
        return 409
    if isinstance(exc, InvalidNameError):
        return 422
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, UnauthorizedError):
        return 401
    if isinstance(exc, TransportError):
        return 502
    return 500


async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def current_gallery() -> Gallery:
    return get_session_manager().require_gallery()


def validate_sort(sort: str) -> str:
    if sort not in SORT_KEYS:
        raise HTTPException(
            status_code=422, detail=f"sort must be one of {', '.join(SORT_KEYS)}"
        )
    return sort
