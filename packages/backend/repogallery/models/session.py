from __future__ import annotations
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel


class Credential(BaseModel):
    token: str
    repo: str = ""
    mode: Literal["direct", "proxy"] = "direct"
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires <= now


class TokenLogin(BaseModel):
    token: str
    repo: str


class PasswordLogin(BaseModel):
    user: str
    password: str
