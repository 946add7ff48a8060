from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..core import config
from ..core.errors import GalleryError, NotFoundError
from ..models.image import Image, PageView
from .naming import is_image_name

if TYPE_CHECKING:
    from .contents_client import ContentsClient
    from .notifications import Notifier

logger = logging.getLogger(__name__)

SORT_KEYS = ("name_asc", "name_desc", "date_asc", "date_desc")
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _instant(image: Image) -> datetime:
    ts = image.modified_at
    if ts is None:
        return _OLDEST
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def sort_images(images: list[Image], sort: str) -> list[Image]:
    if sort not in SORT_KEYS:
        raise ValueError(f"unknown sort key '{sort}'")
    field, direction = sort.split("_", 1)
    if field == "name":
        key = lambda im: im.name  # noqa: E731
    else:
        # name breaks ties so images without a timestamp keep a fixed order
        key = lambda im: (_instant(im), im.name)  # noqa: E731
    return sorted(images, key=key, reverse=direction == "desc")


def total_pages_for(count: int, page_size: int) -> int:
    return math.ceil(count / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    return max(1, min(int(page), max(1, total_pages)))


def visible_images(
    images: list[Image], filter: str, sort: str, page: int, page_size: int
) -> PageView:
    needle = (filter or "").lower()
    matching = [im for im in images if needle in im.name.lower()]
    ordered = sort_images(matching, sort)
    total_pages = total_pages_for(len(matching), page_size)
    page = clamp_page(page, total_pages)
    start = (page - 1) * page_size
    return PageView(
        items=ordered[start : start + page_size],
        page=page,
        total_pages=total_pages,
        total=len(matching),
    )


class GalleryIndex:
    """In-memory folders plus the active folder's images and view state.

    Only ever mutated between awaits, so concurrent loads need no locking;
    a generation counter makes sure a load that finishes after the user moved
    on is dropped instead of applied.
    """

    def __init__(
        self,
        client: "ContentsClient",
        *,
        notifier: "Notifier | None" = None,
        page_size: int | None = None,
    ) -> None:
        self.client = client
        self.notifier = notifier
        self.page_size = page_size or config.PAGE_SIZE
        self.folders: list[str] = []
        self.active_folder: str | None = None
        self.images: list[Image] = []
        self.filter = ""
        self.sort = "name_asc"
        self.page = 1
        self.loading = False
        self._generation = 0
        self._load_task: asyncio.Task | None = None

    # --- folders ---

    async def load_folders(self) -> list[str]:
        try:
            entries = await self.client.list_directory("")
        except NotFoundError:
            # An empty repository has no root listing at all
            entries = []
        self.folders = [e.name for e in entries if e.is_dir]
        if self.active_folder not in self.folders:
            self._activate(self.folders[0] if self.folders else None)
        return list(self.folders)

    def add_folder(self, folder_id: str) -> None:
        if folder_id not in self.folders:
            self.folders.append(folder_id)

    def replace_folder(self, old_id: str, new_id: str) -> None:
        if old_id in self.folders:
            self.folders[self.folders.index(old_id)] = new_id
        else:
            self.add_folder(new_id)

    def remove_folder(self, folder_id: str) -> None:
        if folder_id in self.folders:
            self.folders.remove(folder_id)

    def _activate(self, folder_id: str | None) -> None:
        self.active_folder = folder_id
        # Never show the previous folder's images, not even for a frame
        self.images = []
        self.filter = ""
        self.page = 1
        self._generation += 1
        # a superseded load no longer owns the flag
        self.loading = False

    def select_folder(self, folder_id: str | None) -> asyncio.Task | None:
        """Switch the active folder and schedule its image load.

        Returns the load task; callers may await it or let it run. An earlier
        load still in flight is not cancelled, its result is discarded.
        """
        if folder_id is not None and folder_id not in self.folders:
            raise NotFoundError(f"Folder '{folder_id}' does not exist")
        self._activate(folder_id)
        if folder_id is None:
            return None
        self.loading = True
        self._load_task = asyncio.create_task(self._load_in_background(folder_id))
        return self._load_task

    async def wait_loaded(self) -> None:
        if self._load_task is not None:
            await self._load_task

    async def _load_in_background(self, folder_id: str) -> None:
        try:
            await self.load_images(folder_id)
        except GalleryError as e:
            if self.notifier is not None:
                self.notifier.failure(f"Could not load folder '{folder_id}'", e)
            else:
                logger.warning("Could not load folder %s: %s", folder_id, e)

    # --- images ---

    async def fetch_images(self, folder_id: str) -> list[Image]:
        """List the folder, then resolve every image's last commit time concurrently."""
        try:
            entries = await self.client.list_directory(folder_id)
        except NotFoundError:
            return []
        files = [e for e in entries if e.is_file and is_image_name(e.name)]
        results = await asyncio.gather(
            *(self._last_modified(e.path) for e in files), return_exceptions=True
        )
        images: list[Image] = []
        for entry, result in zip(files, results):
            if isinstance(result, BaseException):
                logger.warning("History lookup failed for %s: %s", entry.path, result)
                result = None
            images.append(Image.from_entry(entry, result))
        return images

    async def _last_modified(self, path: str) -> datetime | None:
        history = await self.client.list_history(path, 1)
        return history[0].committed_at if history else None

    async def load_images(self, folder_id: str) -> list[Image]:
        """Load a folder's images and publish them if the folder is still active."""
        generation = self._generation
        self.loading = True
        try:
            images = await self.fetch_images(folder_id)
        finally:
            if generation == self._generation:
                self.loading = False
        if generation != self._generation or folder_id != self.active_folder:
            logger.debug("Discarding stale image load for %s", folder_id)
            return images
        self.images = images
        self.page = clamp_page(self.page, self._filtered_pages())
        return images

    async def reload_images(self) -> list[Image]:
        if self.active_folder is None:
            self.images = []
            self.loading = False
            return []
        # Supersede any load still in flight
        self._generation += 1
        return await self.load_images(self.active_folder)

    async def refresh(self) -> None:
        await self.load_folders()
        await self.reload_images()

    def image_names(self, folder_id: str) -> set[str]:
        if folder_id != self.active_folder:
            return set()
        return {im.name for im in self.images}

    def find_image(self, path: str) -> Image | None:
        for im in self.images:
            if im.path == path:
                return im
        return None

    def remove_image(self, path: str) -> None:
        self.images = [im for im in self.images if im.path != path]
        self.page = clamp_page(self.page, self._filtered_pages())

    # --- view state ---

    def _filtered_pages(self) -> int:
        needle = self.filter.lower()
        count = sum(1 for im in self.images if needle in im.name.lower())
        return total_pages_for(count, self.page_size)

    def set_filter(self, text: str) -> None:
        self.filter = text or ""
        self.page = 1

    def set_sort(self, sort: str) -> None:
        if sort not in SORT_KEYS:
            raise ValueError(f"unknown sort key '{sort}'")
        self.sort = sort

    def set_page(self, page: int) -> int:
        self.page = clamp_page(page, self._filtered_pages())
        return self.page

    def view(self) -> PageView:
        result = visible_images(
            self.images, self.filter, self.sort, self.page, self.page_size
        )
        self.page = result.page
        return result
