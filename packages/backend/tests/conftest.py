"""Pytest configuration and fixtures."""

import asyncio
import hashlib
import itertools
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from PIL import Image as PILImage

from repogallery.core.errors import NotFoundError, TransportError
from repogallery.models.contents import Entry, FileContent, HistoryEntry, WriteResult
from repogallery.services.gallery import Gallery
from repogallery.services.notifications import Notifier


class FakeContents:
    """In-memory contents backend exposing the ContentsClient operations.

    Every call is logged in ``calls`` as ``(op, path)``. ``fail(op, path)``
    makes that call raise; ``delays[path]`` makes calls on that path sleep.
    """

    def __init__(self, files: dict[str, bytes] | None = None):
        self.files: dict[str, tuple[bytes, str]] = {}
        self.history: dict[str, datetime] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.delays: dict[str, float] = {}
        self.closed = False
        self._counter = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for path, data in (files or {}).items():
            self._store(path, data)

    # --- test helpers ---

    def _store(self, path: str, data: bytes) -> str:
        sha = hashlib.sha1(data + str(next(self._counter)).encode()).hexdigest()
        self.files[path] = (data, sha)
        self._clock += timedelta(minutes=1)
        self.history[path] = self._clock
        return sha

    def fail(self, op: str, path: str, exc: Exception | None = None) -> None:
        self.failures[(op, path)] = exc or TransportError("boom", status=500)

    def count(self, op: str) -> int:
        return sum(1 for o, _ in self.calls if o == op)

    def paths_under(self, folder: str) -> set[str]:
        return {p for p in self.files if p.startswith(folder + "/")}

    def top_level_dirs(self) -> set[str]:
        return {p.split("/", 1)[0] for p in self.files if "/" in p}

    def sha_of(self, path: str) -> str:
        return self.files[path][1]

    async def _enter(self, op: str, path: str) -> None:
        self.calls.append((op, path))
        delay = self.delays.get(path)
        if delay:
            await asyncio.sleep(delay)
        exc = self.failures.get((op, path))
        if exc is not None:
            raise exc

    # --- client interface ---

    async def verify(self) -> None:
        await self._enter("verify", "")

    async def list_directory(self, path: str) -> list[Entry]:
        await self._enter("list", path)
        prefix = path.strip("/")
        prefix = prefix + "/" if prefix else ""
        children: dict[str, Entry] = {}
        for p, (data, sha) in self.files.items():
            if not p.startswith(prefix):
                continue
            head, sep, _ = p[len(prefix) :].partition("/")
            if sep:
                children.setdefault(
                    head, Entry(name=head, path=prefix + head, type="dir", content_hash="")
                )
            else:
                children[head] = Entry(
                    name=head,
                    path=p,
                    type="file",
                    content_hash=sha,
                    size=len(data),
                    download_url=f"https://raw.example/{p}",
                )
        if not children:
            raise NotFoundError(f"{path or '/'} not found")
        return [children[k] for k in sorted(children)]

    async def read_file(self, path: str) -> FileContent:
        await self._enter("read", path)
        if path not in self.files:
            raise NotFoundError(f"{path} not found")
        data, sha = self.files[path]
        return FileContent(path=path, content=data, content_hash=sha)

    async def write_file(self, path, content, content_hash=None, message=None) -> WriteResult:
        await self._enter("write", path)
        if content_hash is not None and self.files.get(path, (b"", None))[1] != content_hash:
            raise TransportError(f"{path} does not match {content_hash}", status=409)
        sha = self._store(path, content)
        return WriteResult(path=path, content_hash=sha)

    async def delete_file(self, path, content_hash, message=None) -> None:
        await self._enter("delete", path)
        if path not in self.files:
            raise NotFoundError(f"{path} not found")
        if self.files[path][1] != content_hash:
            raise TransportError(f"{path} does not match {content_hash}", status=409)
        del self.files[path]
        self.history.pop(path, None)

    async def list_history(self, path: str, limit: int = 1) -> list[HistoryEntry]:
        await self._enter("history", path)
        if path not in self.history:
            return []
        return [HistoryEntry(sha=f"c-{path}", committed_at=self.history[path])][:limit]

    async def aclose(self) -> None:
        self.closed = True


def make_png(color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    PILImage.new("RGB", (2, 2), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def backend() -> FakeContents:
    return FakeContents(
        {
            "photos/.keep": b"",
            "photos/a.jpg": b"jpeg-a",
            "photos/b.jpg": b"jpeg-b",
            "empty/.keep": b"",
        }
    )


@pytest.fixture
def gallery(backend) -> Gallery:
    return Gallery(backend, notifier=Notifier(ttl_s=60))
