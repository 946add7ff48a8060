from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from ..core import config
from ..core.errors import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    id: int
    message: str
    kind: str = "success"  # success|error
    created_at: float = field(default_factory=time.time)


class Notifier:
    """Transient, auto-dismissing notifications for the presentation layer."""

    def __init__(
        self,
        ttl_s: float | None = None,
        clock: Callable[[], float] = time.time,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self.ttl_s = config.NOTIFY_TTL_S if ttl_s is None else ttl_s
        self._clock = clock
        # Set by the session so a rejected credential forces a logout
        self.on_unauthorized = on_unauthorized
        self._ids = itertools.count(1)
        self._items: list[Notification] = []

    def push(self, message: str, kind: str = "success") -> Notification:
        self._prune()
        n = Notification(
            id=next(self._ids), message=message, kind=kind, created_at=self._clock()
        )
        self._items.append(n)
        if kind == "error":
            logger.warning(message)
        else:
            logger.info(message)
        return n

    def success(self, message: str) -> Notification:
        return self.push(message, "success")

    def error(self, message: str) -> Notification:
        return self.push(message, "error")

    def failure(self, context: str, exc: Exception) -> Notification:
        n = self.error(f"{context}: {exc}")
        if isinstance(exc, UnauthorizedError) and self.on_unauthorized is not None:
            self.on_unauthorized()
        return n

    def _prune(self) -> None:
        cutoff = self._clock() - self.ttl_s
        self._items = [n for n in self._items if n.created_at > cutoff]

    def active(self) -> list[Notification]:
        self._prune()
        return list(self._items)

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) != before
