"""Async client for the GitHub-compatible host REST API."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from repodiag.config import HostConfig
from repodiag.exceptions import HostApiError
from repodiag.host.models import EntryKind, RepoInfo, RepoTree, TreeEntry
from repodiag.host.refs import RepoRef

logger = structlog.get_logger()

JSON_ACCEPT = "application/vnd.github+json"
RAW_ACCEPT = "application/vnd.github.v3.raw"


class GitHubClient:
    """Reads repository metadata, trees and file contents.

    Every required call raises HostApiError on a non-success status.
    Optional content fetches (``fetch_optional``, ``fetch_many``,
    ``get_readme``) degrade to an empty string instead.

    Example:
        >>> async with GitHubClient(token="ghp_...") as gh:
        ...     info = await gh.get_repo_info(RepoRef("octocat", "hello"))
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        config: HostConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Optional bearer token for private repositories.
            config: Host endpoints and timeout.
            client: Shared httpx client; one is created and owned if omitted.
        """
        self.config = config or HostConfig()
        self._token = token or None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, accept: str = JSON_ACCEPT) -> dict[str, str]:
        headers = {"Accept": accept}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def api_url(self, ref: RepoRef, suffix: str = "") -> str:
        base = self.config.api_base.rstrip("/")
        return f"{base}/repos/{ref.owner}/{ref.repo}{suffix}"

    def raw_url(self, ref: RepoRef, branch: str, path: str) -> str:
        """Build the raw-content URL for a path at a branch."""
        base = self.config.raw_base.rstrip("/")
        return f"{base}/{ref.owner}/{ref.repo}/{quote(branch, safe='')}/{quote(path)}"

    async def _get(
        self,
        url: str,
        *,
        accept: str = JSON_ACCEPT,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.get(url, headers=self._headers(accept), params=params)
        except httpx.HTTPError as e:
            msg = f"Host request failed: {e}"
            raise HostApiError(msg, url=url) from e

        if not response.is_success:
            msg = f"Host API error: {response.status_code}"
            raise HostApiError(msg, status=response.status_code, url=url)
        return response

    async def _get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            msg = "Host returned invalid JSON"
            raise HostApiError(msg, status=response.status_code, url=url) from e

    async def get_repo_info(self, ref: RepoRef, *, max_languages: int = 5) -> RepoInfo:
        """Fetch default branch and top languages concurrently."""
        repo_data, languages = await asyncio.gather(
            self._get_json(self.api_url(ref)),
            self._get_json(self.api_url(ref, "/languages")),
        )

        ranked = sorted(
            (languages or {}).items(),
            key=lambda item: (-int(item[1] or 0), item[0]),
        )
        return RepoInfo(
            default_branch=repo_data.get("default_branch") or "main",
            languages=tuple(name for name, _ in ranked[:max_languages]),
            description=repo_data.get("description") or "",
        )

    async def get_branch_sha(self, ref: RepoRef, branch: str) -> str:
        """Resolve a branch name to its head commit SHA."""
        data = await self._get_json(self.api_url(ref, f"/branches/{quote(branch, safe='')}"))
        sha = (data.get("commit") or {}).get("sha")
        if not sha:
            msg = f"Branch {branch!r} has no head commit"
            raise HostApiError(msg, url=self.api_url(ref, f"/branches/{branch}"))
        return sha

    async def get_tree(self, ref: RepoRef, sha: str, branch: str) -> RepoTree:
        """Fetch the full recursive tree for a commit in a single call.

        Host-side truncation is recorded on the result, not raised.
        """
        data = await self._get_json(
            self.api_url(ref, f"/git/trees/{sha}"),
            params={"recursive": "1"},
        )

        entries: list[TreeEntry] = []
        for item in data.get("tree") or []:
            kind = item.get("type")
            if kind not in (EntryKind.BLOB.value, EntryKind.TREE.value):
                # Submodule commits and other node kinds carry no content
                continue
            path = item.get("path") or ""
            entries.append(
                TreeEntry(
                    path=path,
                    kind=EntryKind(kind),
                    size=item.get("size"),
                    raw_url=self.raw_url(ref, branch, path) if kind == EntryKind.BLOB.value else "",
                )
            )

        truncated = bool(data.get("truncated"))
        if truncated:
            logger.warning("Host truncated repository tree", repo=ref.full_name, entries=len(entries))

        return RepoTree(sha=sha, entries=tuple(entries), truncated=truncated)

    async def list_directory(self, ref: RepoRef, path: str) -> list[dict[str, Any]]:
        """List a directory through the contents API."""
        data = await self._get_json(self.api_url(ref, f"/contents/{quote(path)}"))
        if not isinstance(data, list):
            return []
        return data

    async def fetch_raw(self, url: str) -> str:
        """Fetch raw text content, raising on failure."""
        response = await self._get(url, accept=RAW_ACCEPT)
        return response.text

    async def fetch_optional(self, url: str, *, max_chars: int | None = None) -> str:
        """Fetch raw text content, substituting an empty string on failure."""
        try:
            text = await self.fetch_raw(url)
        except HostApiError as e:
            logger.warning("Optional fetch failed", url=url, status=e.status, error=str(e))
            return ""
        if max_chars is not None:
            return text[:max_chars]
        return text

    async def fetch_many(
        self,
        urls: Sequence[str],
        *,
        max_chars: int | None = None,
    ) -> list[str]:
        """Fetch a batch concurrently; failed members resolve to ``""``."""
        if not urls:
            return []
        return list(
            await asyncio.gather(*(self.fetch_optional(u, max_chars=max_chars) for u in urls))
        )

    async def get_readme(self, ref: RepoRef) -> str:
        """Fetch the README through the readme endpoint (raw media type)."""
        return await self.fetch_optional(self.api_url(ref, "/readme"))
