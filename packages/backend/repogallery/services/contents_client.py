"""Typed async client for a repository contents API (GitHub-compatible).

Only this module sees raw JSON; everything it returns is a validated model
from ``models.contents``. There are no retries here, callers decide.
"""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..core import config
from ..core.errors import NotFoundError, TransportError, UnauthorizedError
from ..models.contents import Entry, FileContent, HistoryEntry, WriteResult

logger = logging.getLogger(__name__)


def _quote_path(path: str) -> str:
    return quote(path.strip("/"), safe="/")


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class ContentsClient:
    """Direct client: the token is sent on every call."""

    def __init__(
        self,
        repo: str,
        token: str,
        *,
        api_base: str | None = None,
        branch: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.repo = repo.strip("/")
        self.token = token
        self.api_base = (api_base or config.GITHUB_API_BASE).rstrip("/")
        self.branch = branch if branch is not None else config.GITHUB_BRANCH
        self._http = httpx.AsyncClient(
            timeout=timeout or config.HTTP_TIMEOUT_S,
            transport=transport,
            follow_redirects=True,
        )
        self._api_calls = 0

    @property
    def api_calls(self) -> int:
        return self._api_calls

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(
        self, method: str, repo_path: str, body: dict[str, Any] | None
    ) -> httpx.Response:
        return await self._http.request(
            method,
            f"{self.api_base}/repos/{self.repo}{repo_path}",
            headers={
                "Authorization": f"token {self.token}",
                "Accept": "application/vnd.github.v3+json",
            },
            json=body,
        )

    async def _request(
        self, method: str, repo_path: str, body: dict[str, Any] | None = None
    ) -> Any:
        logger.debug("%s %s", method, repo_path)
        try:
            response = await self._send(method, repo_path, body)
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
        self._api_calls += 1

        status = response.status_code
        if status == 404:
            raise NotFoundError(_error_message(response))
        if status == 401:
            raise UnauthorizedError(_error_message(response))
        if status >= 400:
            raise TransportError(_error_message(response), status=status)
        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError("Malformed response from backend", status=status) from e

    def _ref_query(self) -> str:
        return f"?ref={quote(self.branch)}" if self.branch else ""

    async def verify(self) -> None:
        """One cheap call that fails with UnauthorizedError/NotFoundError on a bad credential."""
        await self._request("GET", "")

    async def list_directory(self, path: str) -> list[Entry]:
        data = await self._request(
            "GET", f"/contents/{_quote_path(path)}{self._ref_query()}"
        )
        if not isinstance(data, list):
            # Contents API answers a file path with a single object
            raise TransportError(f"'{path}' is not a directory")
        try:
            return [Entry.model_validate(item) for item in data]
        except ValidationError as e:
            raise TransportError(f"Malformed directory listing for '{path}'") from e

    async def read_file(self, path: str) -> FileContent:
        data = await self._request(
            "GET", f"/contents/{_quote_path(path)}{self._ref_query()}"
        )
        if not isinstance(data, dict) or data.get("type") != "file":
            raise TransportError(f"'{path}' is not a file")
        sha = str(data.get("sha") or "")
        encoded = data.get("content") or ""
        if not encoded and data.get("encoding") == "none" and sha:
            # Files over 1 MB come back without inline content
            blob = await self._request("GET", f"/git/blobs/{sha}")
            encoded = (blob or {}).get("content") or ""
        try:
            content = base64.b64decode(encoded)
        except ValueError as e:
            raise TransportError(f"Undecodable content for '{path}'") from e
        return FileContent(path=path, content=content, content_hash=sha)

    async def write_file(
        self,
        path: str,
        content: bytes,
        content_hash: str | None = None,
        message: str | None = None,
    ) -> WriteResult:
        body: dict[str, Any] = {
            "message": message or f"Update {path}",
            "content": base64.b64encode(content).decode("ascii"),
        }
        if content_hash:
            body["sha"] = content_hash
        if self.branch:
            body["branch"] = self.branch
        data = await self._request("PUT", f"/contents/{_quote_path(path)}", body)
        item = (data or {}).get("content") if isinstance(data, dict) else None
        if not isinstance(item, dict) or not item.get("sha"):
            raise TransportError(f"Backend did not confirm write of '{path}'")
        try:
            entry = Entry.model_validate(item)
        except ValidationError as e:
            raise TransportError(f"Malformed write response for '{path}'") from e
        return WriteResult(path=entry.path, content_hash=entry.content_hash)

    async def delete_file(
        self, path: str, content_hash: str, message: str | None = None
    ) -> None:
        body: dict[str, Any] = {
            "message": message or f"Delete {path}",
            "sha": content_hash,
        }
        if self.branch:
            body["branch"] = self.branch
        await self._request("DELETE", f"/contents/{_quote_path(path)}", body)

    async def list_history(self, path: str, limit: int = 1) -> list[HistoryEntry]:
        query = f"?path={quote(path.strip('/'), safe='')}&per_page={max(1, int(limit))}"
        if self.branch:
            query += f"&sha={quote(self.branch)}"
        data = await self._request("GET", f"/commits{query}")
        if not isinstance(data, list):
            raise TransportError(f"Malformed history for '{path}'")
        try:
            return [HistoryEntry.from_api(item) for item in data[:limit]]
        except (ValidationError, AttributeError) as e:
            raise TransportError(f"Malformed history for '{path}'") from e


class ProxyContentsClient(ContentsClient):
    """Same operations, forwarded by a trusted proxy that holds the real token.

    ``token`` is the short-lived session token issued by the proxy's login
    exchange; ``repo`` is informational since the proxy pins the repository.
    """

    def __init__(self, proxy_url: str, token: str, repo: str = "", **kwargs) -> None:
        super().__init__(repo, token, **kwargs)
        self.proxy_url = proxy_url

    async def _send(
        self, method: str, repo_path: str, body: dict[str, Any] | None
    ) -> httpx.Response:
        return await self._http.post(
            self.proxy_url,
            headers={"Authorization": f"Bearer {self.token}"},
            json={"method": method, "githubPath": repo_path, "body": body},
        )


async def exchange_login(
    login_url: str,
    user: str,
    password: str,
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Trade user/password for a session token at the proxy's login endpoint."""
    async with httpx.AsyncClient(
        timeout=timeout or config.HTTP_TIMEOUT_S, transport=transport
    ) as client:
        try:
            r = await client.post(login_url, json={"user": user, "pass": password})
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
    if r.status_code in (400, 401, 403):
        raise UnauthorizedError(_error_message(r))
    if r.status_code >= 400:
        raise TransportError(_error_message(r), status=r.status_code)
    try:
        token = r.json().get("token")
    except (ValueError, AttributeError):
        token = None
    if not token:
        raise TransportError("Login response did not contain a token")
    return str(token)
