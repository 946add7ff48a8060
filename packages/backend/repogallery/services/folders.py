"""Folder workflows emulated on top of per-file create/read/delete.

None of these are transactions. A failure part-way through leaves the backend
in a well-defined partial state (documented per operation) and the local
folder set is re-synchronized from the backend instead of guessed.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.errors import DuplicateError, GalleryError, NotFoundError
from ..models.contents import Entry
from .naming import PLACEHOLDER_NAME, placeholder_path, require_folder_id

if TYPE_CHECKING:
    from .contents_client import ContentsClient
    from .gallery_index import GalleryIndex
    from .notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass
class FolderOperation:
    id: str
    kind: str  # create|delete|rename
    folder: str
    target: str | None = None
    status: str = "idle"  # idle|in_progress|committed|failed
    total: int = 0
    done: int = 0
    error: str | None = None
    started_at: float | None = None
    finished_at: float | None = None


class FolderManager:
    def __init__(
        self,
        client: "ContentsClient",
        index: "GalleryIndex",
        notifier: "Notifier",
        *,
        history_size: int = 20,
    ) -> None:
        self.client = client
        self.index = index
        self.notifier = notifier
        self._history_size = history_size
        self._operations: list[FolderOperation] = []

    def list_operations(self, limit: int = 20) -> list[FolderOperation]:
        # newest first
        return self._operations[::-1][: max(1, int(limit))]

    def _begin(self, kind: str, folder: str, target: str | None = None) -> FolderOperation:
        op = FolderOperation(id=uuid.uuid4().hex, kind=kind, folder=folder, target=target)
        op.status = "in_progress"
        op.started_at = time.time()
        self._operations.append(op)
        del self._operations[: -self._history_size]
        return op

    def _commit(self, op: FolderOperation, message: str) -> None:
        op.status = "committed"
        op.finished_at = time.time()
        self.notifier.success(message)

    def _fail(self, op: FolderOperation, context: str, exc: GalleryError) -> None:
        op.status = "failed"
        op.error = str(exc)
        op.finished_at = time.time()
        self.notifier.failure(context, exc)

    async def _resync(self) -> None:
        try:
            await self.index.refresh()
        except GalleryError as e:
            logger.warning("Re-sync after failed folder operation failed: %s", e)

    async def _collect_blobs(self, folder: str) -> list[Entry]:
        """Every file under ``folder``, sub-directories included, in listing order."""
        blobs: list[Entry] = []
        for entry in await self.client.list_directory(folder):
            if entry.is_dir:
                blobs.extend(await self._collect_blobs(entry.path))
            elif entry.is_file:
                blobs.append(entry)
        return blobs

    # --- create ---

    async def create(self, name: str) -> str:
        try:
            folder_id = require_folder_id(name)
            if folder_id in self.index.folders:
                raise DuplicateError(f"Folder '{folder_id}' already exists")
        except GalleryError as e:
            self.notifier.failure("Could not create folder", e)
            raise
        op = self._begin("create", folder_id)
        try:
            await self.client.write_file(
                placeholder_path(folder_id),
                b"",
                message=f"feat: Create folder '{folder_id}'",
            )
        except GalleryError as e:
            self._fail(op, f"Could not create folder '{folder_id}'", e)
            raise
        op.total = op.done = 1
        self.index.add_folder(folder_id)
        self.index.select_folder(folder_id)
        self._commit(op, f"Folder '{folder_id}' created")
        return folder_id

    # --- delete ---

    async def delete(self, folder_id: str) -> FolderOperation:
        """Delete every blob of the folder, one after another.

        A folder that is already gone counts as deleted. When a blob deletion
        fails the blobs before it stay deleted, the id stays in the folder set
        and retrying the whole delete is the way to finish it.
        """
        op = self._begin("delete", folder_id)
        try:
            blobs = await self._collect_blobs(folder_id)
        except NotFoundError:
            blobs = []
        except GalleryError as e:
            self._fail(op, f"Could not delete folder '{folder_id}'", e)
            raise
        op.total = len(blobs)
        try:
            for blob in blobs:
                await self.client.delete_file(
                    blob.path,
                    blob.content_hash,
                    message=f"feat: Delete '{blob.path}'",
                )
                op.done += 1
        except GalleryError as e:
            logger.warning(
                "Folder %s partially deleted (%d/%d blobs)", folder_id, op.done, op.total
            )
            self._fail(op, f"Folder '{folder_id}' only partially deleted", e)
            await self._resync()
            raise

        was_active = self.index.active_folder == folder_id
        self.index.remove_folder(folder_id)
        if was_active:
            self.index.select_folder(self.index.folders[0] if self.index.folders else None)
        self._commit(op, f"Folder '{folder_id}' deleted")
        return op

    # --- rename ---

    async def rename(self, old_id: str, new_name: str) -> FolderOperation | None:
        """Move every blob of ``old_id`` under a new identifier.

        Per file: read, write under the new id, delete the original, each step
        awaited before the next. The first failing step stops the move; files
        already moved stay under the new id, the rest stay under the old one.
        Returns None when the name normalizes to ``old_id``.
        """
        try:
            new_id = require_folder_id(new_name)
            if new_id == old_id:
                return None
            if new_id in self.index.folders:
                raise DuplicateError(f"Folder '{new_id}' already exists")
        except GalleryError as e:
            self.notifier.failure(f"Could not rename '{old_id}'", e)
            raise

        op = self._begin("rename", old_id, new_id)
        try:
            blobs = await self._collect_blobs(old_id)
            op.total = len(blobs)
            if all(b.name == PLACEHOLDER_NAME for b in blobs):
                await self._move_empty(old_id, new_id, blobs, op)
            else:
                for blob in blobs:
                    await self._move_blob(blob, old_id, new_id)
                    op.done += 1
        except GalleryError as e:
            logger.warning(
                "Rename %s -> %s stopped after %d/%d files", old_id, new_id, op.done, op.total
            )
            self._fail(op, f"Could not rename '{old_id}' to '{new_id}'", e)
            await self._resync()
            raise

        self.index.replace_folder(old_id, new_id)
        self.index.select_folder(new_id)
        self._commit(op, f"Folder '{old_id}' renamed to '{new_id}'")
        return op

    async def _move_empty(
        self, old_id: str, new_id: str, blobs: list[Entry], op: FolderOperation
    ) -> None:
        await self.client.write_file(
            placeholder_path(new_id), b"", message=f"feat: Create folder '{new_id}'"
        )
        for blob in blobs:
            await self.client.delete_file(
                blob.path, blob.content_hash, message=f"feat: Remove folder '{old_id}'"
            )
            op.done += 1

    async def _move_blob(self, blob: Entry, old_id: str, new_id: str) -> None:
        relative = blob.path[len(old_id) + 1 :]
        target = f"{new_id}/{relative}"
        source = await self.client.read_file(blob.path)
        await self.client.write_file(
            target, source.content, message=f"refactor: Move '{blob.path}' to '{target}'"
        )
        await self.client.delete_file(
            blob.path,
            source.content_hash or blob.content_hash,
            message=f"refactor: Move '{blob.path}' to '{target}'",
        )
