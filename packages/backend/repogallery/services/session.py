"""Credential lifecycle: unauthenticated -> verifying -> authenticated -> unauthenticated.

The session owns the Gallery built for the verified credential. Any
UnauthorizedError reported by the engine invalidates the session, which drops
the stored credential.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Awaitable, Callable

from pydantic import ValidationError

from ..core import config
from ..core.errors import GalleryError, TransportError, UnauthorizedError
from ..models.session import Credential
from .contents_client import ContentsClient, ProxyContentsClient, exchange_login
from .gallery import Gallery
from .notifications import Notifier

logger = logging.getLogger(__name__)


class CredentialStore:
    """The persisted credential, one JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else config.CREDENTIAL_PATH

    def load(self) -> Credential | None:
        if not self.path.exists():
            return None
        try:
            return Credential.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable credential file %s: %s", self.path, e)
            return None

    def save(self, credential: Credential) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(credential.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def default_client_factory(credential: Credential) -> ContentsClient:
    if credential.mode == "proxy":
        return ProxyContentsClient(config.PROXY_URL, credential.token, credential.repo)
    return ContentsClient(credential.repo, credential.token)


class SessionManager:
    def __init__(
        self,
        store: CredentialStore | None = None,
        *,
        client_factory: Callable[[Credential], ContentsClient] = default_client_factory,
        login: Callable[[str, str, str], Awaitable[str]] = exchange_login,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store or CredentialStore()
        self._client_factory = client_factory
        self._login = login
        self.notifier = notifier or Notifier()
        self.notifier.on_unauthorized = self.invalidate
        self.state = "unauthenticated"  # unauthenticated|verifying|authenticated
        self.reason: str | None = None  # why we last left "authenticated"
        self.credential: Credential | None = None
        self._gallery: Gallery | None = None
        self._retired: list[Gallery] = []

    @property
    def gallery(self) -> Gallery | None:
        if self.state != "authenticated":
            return None
        if self.credential is not None and self.credential.is_expired():
            self.invalidate("expired")
            return None
        return self._gallery

    def require_gallery(self) -> Gallery:
        gallery = self.gallery
        if gallery is None:
            raise UnauthorizedError(
                "Session expired" if self.reason == "expired" else "Not signed in"
            )
        return gallery

    async def authenticate(self, credential: Credential, *, persist: bool = True) -> Gallery:
        """Verify ``credential`` with one backend call, then build the gallery on it."""
        if credential.is_expired():
            raise UnauthorizedError("Session expired")
        await self._teardown()
        self.state = "verifying"
        client = self._client_factory(credential)
        try:
            await client.verify()
        except GalleryError as e:
            await client.aclose()
            self.state = "unauthenticated"
            self.reason = "rejected"
            logger.warning("Credential verification failed: %s", e)
            raise

        self.credential = credential
        self.state = "authenticated"
        self.reason = None
        self._gallery = Gallery(client, notifier=self.notifier)
        if persist:
            self.store.save(credential)
        logger.info("Signed in (%s mode) to %s", credential.mode, credential.repo or "proxy")
        try:
            await self._gallery.open()
        except GalleryError as e:
            self.notifier.failure("Could not load folders", e)
        return self._gallery

    async def sign_in_with_token(self, token: str, repo: str) -> Gallery:
        return await self.authenticate(Credential(token=token, repo=repo, mode="direct"))

    async def sign_in_with_password(self, user: str, password: str) -> Gallery:
        if not config.PROXY_URL or not config.PROXY_LOGIN_URL:
            raise TransportError("Proxy login is not configured")
        token = await self._login(config.PROXY_LOGIN_URL, user, password)
        credential = Credential(
            token=token,
            repo=config.GITHUB_REPO,
            mode="proxy",
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=config.SESSION_TTL_S),
        )
        return await self.authenticate(credential)

    async def restore(self) -> bool:
        """Trust a stored credential only after it passes verification."""
        credential = self.store.load()
        if credential is None:
            return False
        if credential.is_expired():
            logger.info("Stored credential expired, discarding it")
            self.store.clear()
            self.reason = "expired"
            return False
        try:
            await self.authenticate(credential, persist=False)
        except GalleryError:
            self.store.clear()
            return False
        return True

    def invalidate(self, reason: str = "rejected") -> None:
        if self._gallery is not None:
            self._retired.append(self._gallery)
            self._gallery = None
        if self.state == "authenticated":
            logger.warning("Session invalidated (%s)", reason)
        self.state = "unauthenticated"
        self.reason = reason
        self.credential = None
        self.store.clear()

    async def logout(self) -> None:
        self.invalidate("logout")
        await self._teardown()

    async def _teardown(self) -> None:
        if self._gallery is not None:
            self._retired.append(self._gallery)
            self._gallery = None
        retired, self._retired = self._retired, []
        for gallery in retired:
            await gallery.close()

    async def aclose(self) -> None:
        await self._teardown()
        self.state = "unauthenticated"


_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager
