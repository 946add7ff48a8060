import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .api import folders, images, notifications, session
from .api._utils import gallery_error_handler
from .core import config
from .core.errors import GalleryError
from .core.log import setup_logger
from .models.session import Credential
from .services.session import get_session_manager

logger = logging.getLogger(__name__)

app = FastAPI(title="Repo Gallery API", version="0.1.0")

# GZip compression for JSON responses
app.add_middleware(GZipMiddleware, minimum_size=1000)

# CORS: allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(GalleryError, gallery_error_handler)


@app.on_event("startup")
async def _on_startup():
    setup_logger()
    sm = get_session_manager()
    if config.GITHUB_TOKEN and config.GITHUB_REPO:
        # Server-held token wins over whatever a previous user stored
        try:
            await sm.authenticate(
                Credential(token=config.GITHUB_TOKEN, repo=config.GITHUB_REPO),
                persist=False,
            )
        except GalleryError as e:
            logger.error("Configured GITHUB_TOKEN was rejected: %s", e)
        return
    await sm.restore()


@app.on_event("shutdown")
async def _on_shutdown():
    await get_session_manager().aclose()


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(session.router, prefix="/session", tags=["session"])
app.include_router(folders.router, prefix="/folders", tags=["folders"])
app.include_router(images.router, prefix="/images", tags=["images"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
