"""Remote artifact storage over the GitHub contents API.

The pipeline only needs two operations: read a file with its revision
marker (the blob sha) and write a file, optionally conditioned on that
marker. Everything about HTTP, auth and base64 transport stays here.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from publisher.config import Settings
from publisher.errors import StaleRevisionError, WriteError

logger = logging.getLogger(__name__)

_GITHUB_API_URL = "https://api.github.com"
_TIMEOUT = 30.0
_CONFLICT_STATUSES = frozenset({409, 422})


@dataclass(frozen=True)
class StoredFile:
    """Content of a remote file and its revision marker."""

    content: bytes
    revision: str


class RemoteStore(Protocol):
    async def read(self, path: str) -> StoredFile | None: ...

    async def write(
        self,
        path: str,
        content: bytes,
        revision: str | None,
        message: str,
    ) -> str: ...


class GitHubContentStore:
    """RemoteStore backed by a branch of a GitHub repository."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owner = settings.repo_owner
        self._repo = settings.repo_name
        self._branch = settings.branch
        self._client = client or httpx.AsyncClient(
            base_url=_GITHUB_API_URL,
            timeout=_TIMEOUT,
            headers={
                "Authorization": f"Bearer {settings.gh_token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def __aenter__(self) -> GitHubContentStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self._owner}/{self._repo}/contents/{path}"

    async def read(self, path: str) -> StoredFile | None:
        """Read a file from the target branch.

        Returns:
            The decoded file and its sha, or None when the file does not exist.

        Raises:
            WriteError: On any hosting API failure other than 404.
        """
        try:
            response = await self._client.get(
                self._contents_url(path), params={"ref": self._branch}
            )
        except httpx.HTTPError as exc:
            raise WriteError(f"Network error reading {path}: {exc}") from exc

        if response.status_code == 404:
            logger.debug("Remote file %s does not exist", path)
            return None
        if response.is_error:
            raise WriteError(
                f"Failed to read {path}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        body: dict[str, Any] = response.json()
        encoded = body.get("content") or ""
        return StoredFile(
            content=base64.b64decode(encoded),
            revision=body["sha"],
        )

    async def write(
        self,
        path: str,
        content: bytes,
        revision: str | None,
        message: str,
    ) -> str:
        """Create or overwrite a file on the target branch.

        Args:
            path: Repository-relative file path.
            content: Raw file bytes.
            revision: sha of the file being replaced, or None to create.
            message: Commit message.

        Returns:
            The sha of the newly written blob.

        Raises:
            StaleRevisionError: The revision no longer matches the branch.
            WriteError: Any other hosting API failure.
        """
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self._branch,
        }
        if revision:
            payload["sha"] = revision

        try:
            response = await self._client.put(self._contents_url(path), json=payload)
        except httpx.HTTPError as exc:
            raise WriteError(f"Network error writing {path}: {exc}") from exc

        if response.status_code in _CONFLICT_STATUSES:
            raise StaleRevisionError(
                f"Revision conflict writing {path}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if response.is_error:
            raise WriteError(
                f"Failed to write {path}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        new_revision = response.json()["content"]["sha"]
        logger.info("Wrote %s (%d bytes)", path, len(content))
        return new_revision
