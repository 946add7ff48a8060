from __future__ import annotations
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class Entry(BaseModel):
    """One item of a directory listing."""

    name: str
    path: str
    type: Literal["file", "dir", "symlink", "submodule"] = "file"
    content_hash: str = Field("", alias="sha")
    size: int = 0
    download_url: Optional[str] = None

    class Config:
        populate_by_name = True

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"

    @property
    def is_file(self) -> bool:
        return self.type == "file"


class FileContent(BaseModel):
    path: str
    content: bytes
    content_hash: str


class WriteResult(BaseModel):
    path: str
    content_hash: str


class HistoryEntry(BaseModel):
    sha: str
    committed_at: datetime
    message: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "HistoryEntry":
        commit = data.get("commit") or {}
        # committer date moves with rebases/merges, author date is the fallback
        stamp = (commit.get("committer") or {}).get("date") or (
            commit.get("author") or {}
        ).get("date")
        return cls(
            sha=str(data.get("sha") or ""),
            committed_at=stamp,
            message=str(commit.get("message") or ""),
        )
