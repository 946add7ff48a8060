from __future__ import annotations

from typing import TYPE_CHECKING

from .folders import FolderManager
from .gallery_index import GalleryIndex
from .notifications import Notifier
from .uploads import ImageManager

if TYPE_CHECKING:
    from .contents_client import ContentsClient


class Gallery:
    """One engine instance bound to one verified contents client."""

    def __init__(
        self,
        client: "ContentsClient",
        *,
        notifier: Notifier | None = None,
        page_size: int | None = None,
    ) -> None:
        self.client = client
        self.notifier = notifier or Notifier()
        self.index = GalleryIndex(client, notifier=self.notifier, page_size=page_size)
        self.folders = FolderManager(client, self.index, self.notifier)
        self.images = ImageManager(client, self.index, self.notifier)

    async def open(self) -> None:
        await self.index.refresh()

    async def close(self) -> None:
        await self.client.aclose()
