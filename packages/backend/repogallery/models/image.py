from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .contents import Entry


class Image(BaseModel):
    path: str
    name: str
    content_hash: str = Field(..., alias="sha")
    download_url: Optional[str] = None
    size: int = 0
    # None when the history lookup failed; sorts as the oldest instant
    modified_at: Optional[datetime] = None

    class Config:
        populate_by_name = True

    @property
    def folder(self) -> str:
        return self.path.rsplit("/", 1)[0] if "/" in self.path else ""

    @classmethod
    def from_entry(cls, entry: Entry, modified_at: datetime | None = None) -> "Image":
        return cls(
            path=entry.path,
            name=entry.name,
            content_hash=entry.content_hash,
            download_url=entry.download_url,
            size=entry.size,
            modified_at=modified_at,
        )


class PageView(BaseModel):
    items: list[Image] = []
    page: int = 1
    total_pages: int = 0
    total: int = 0
