"""Error taxonomy shared by the contents client and the gallery engine."""

from __future__ import annotations


class GalleryError(Exception):
    """Base error for gallery operations."""


class DuplicateError(GalleryError):
    """A folder or file name collides with an existing one."""


class InvalidNameError(GalleryError):
    """A name normalizes to nothing usable."""


class NotFoundError(GalleryError):
    """The backend reports that the path does not exist."""


class UnauthorizedError(GalleryError):
    """The credential was rejected or has expired."""


class TransportError(GalleryError):
    """Network or service failure; ``status`` is set when the backend answered."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
