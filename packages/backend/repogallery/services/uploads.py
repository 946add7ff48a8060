from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import TYPE_CHECKING, Iterable

from PIL import Image as PILImage

from ..core.errors import GalleryError, NotFoundError
from ..models.image import Image
from .naming import is_image_name, join_path

if TYPE_CHECKING:
    from .contents_client import ContentsClient
    from .gallery_index import GalleryIndex
    from .notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass
class FilePayload:
    name: str
    data: bytes


@dataclass
class UploadResult:
    name: str
    status: str  # uploaded|duplicate|rejected|error
    path: str | None = None
    content_hash: str | None = None
    error: str | None = None


def probe_image(data: bytes) -> bool:
    """True when Pillow recognizes the bytes as an image."""
    try:
        with PILImage.open(BytesIO(data)) as img:
            img.verify()
        return True
    except Exception:
        return False


class ImageManager:
    def __init__(
        self, client: "ContentsClient", index: "GalleryIndex", notifier: "Notifier"
    ) -> None:
        self.client = client
        self.index = index
        self.notifier = notifier

    async def upload(
        self, files: Iterable[FilePayload], target_folder: str
    ) -> list[UploadResult]:
        """Upload a batch concurrently; one file's failure never stops the others.

        Names already loaded for ``target_folder`` (or repeated within the
        batch) are rejected without a backend call. Writes carry no hash, so a
        same-named blob this client has not seen yet is overwritten by the
        backend. Once every file has settled and at least one was written, the
        active folder is reloaded from the backend.
        """
        if target_folder not in self.index.folders:
            e = NotFoundError(f"Folder '{target_folder}' does not exist")
            self.notifier.failure("Upload failed", e)
            raise e

        files = list(files)
        known = self.index.image_names(target_folder)
        seen: set[str] = set()
        duplicates: list[bool] = []
        for f in files:
            duplicates.append(f.name in known or f.name in seen)
            seen.add(f.name)

        results = await asyncio.gather(
            *(
                self._upload_one(f, target_folder, dup)
                for f, dup in zip(files, duplicates)
            ),
            return_exceptions=True,
        )
        outcome: list[UploadResult] = []
        for f, r in zip(files, results):
            if isinstance(r, BaseException):
                logger.error("Unexpected upload failure for %s: %r", f.name, r)
                self.notifier.error(f"Upload of '{f.name}' failed: {r}")
                r = UploadResult(name=f.name, status="error", error=str(r))
            outcome.append(r)

        if any(r.status == "uploaded" for r in outcome):
            try:
                await self.index.reload_images()
            except GalleryError as e:
                self.notifier.failure("Could not reload images after upload", e)
        return outcome

    async def _upload_one(
        self, f: FilePayload, target_folder: str, duplicate: bool
    ) -> UploadResult:
        if duplicate:
            self.notifier.error(
                f"Image '{f.name}' already exists in folder '{target_folder}'"
            )
            return UploadResult(name=f.name, status="duplicate")
        if not is_image_name(f.name) or not probe_image(f.data):
            self.notifier.error(f"'{f.name}' is not a supported image")
            return UploadResult(name=f.name, status="rejected")

        path = join_path(target_folder, f.name)
        try:
            written = await self.client.write_file(
                path, f.data, message=f"feat: Add image {f.name}"
            )
        except GalleryError as e:
            self.notifier.failure(f"Upload of '{f.name}' failed", e)
            return UploadResult(name=f.name, status="error", path=path, error=str(e))
        self.notifier.success(f"Uploaded {f.name}")
        return UploadResult(
            name=f.name, status="uploaded", path=written.path, content_hash=written.content_hash
        )

    async def delete(self, image: Image) -> None:
        """Delete with the last-known hash; a stale hash is a backend error."""
        try:
            await self.client.delete_file(
                image.path, image.content_hash, message=f"feat: Delete image {image.name}"
            )
        except GalleryError as e:
            self.notifier.failure(f"Could not delete '{image.name}'", e)
            raise
        self.index.remove_image(image.path)
        self.notifier.success(f"Deleted {image.name}")
