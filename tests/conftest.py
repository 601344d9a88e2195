"""Pytest fixtures for repodiag tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any
from urllib.parse import unquote

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import httpx
import pytest

from repodiag.config import ProviderConfig, ProviderType, RepodiagConfig
from repodiag.host.models import EntryKind, RepoTree, TreeEntry


def blob(path: str, size: int = 100) -> dict[str, Any]:
    """Tree item for a file."""
    return {"path": path, "type": "blob", "size": size}


def tree_dir(path: str) -> dict[str, Any]:
    """Tree item for a directory."""
    return {"path": path, "type": "tree"}


def make_tree(*items: tuple[str, int] | str, truncated: bool = False) -> RepoTree:
    """Build a RepoTree from paths or ``(path, size)`` pairs."""
    entries = []
    for item in items:
        path, size = (item, 100) if isinstance(item, str) else item
        entries.append(
            TreeEntry(
                path=path,
                kind=EntryKind.BLOB,
                size=size,
                raw_url=f"https://raw.githubusercontent.com/acme/shop/main/{path}",
            )
        )
    return RepoTree(sha="abc123", entries=tuple(entries), truncated=truncated)


class FakeGitHub:
    """In-memory GitHub API and raw-content host for httpx.MockTransport.

    Attributes:
        requests: Every request received, in order.
    """

    def __init__(
        self,
        *,
        owner: str = "acme",
        repo: str = "shop",
        branch: str = "main",
        sha: str = "abc123",
        tree: list[dict[str, Any]] | None = None,
        files: dict[str, str] | None = None,
        languages: dict[str, int] | None = None,
        truncated: bool = False,
        readme: str | None = None,
        contents: dict[str, list[dict[str, Any]]] | None = None,
        fail_files: set[str] | None = None,
        status_overrides: dict[str, int] | None = None,
        description: str = "",
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.sha = sha
        self.tree = tree or []
        self.files = files or {}
        self.languages = languages if languages is not None else {"Python": 1000}
        self.truncated = truncated
        self.readme = readme
        self.contents = contents or {}
        self.fail_files = fail_files or set()
        self.status_overrides = status_overrides or {}
        self.description = description
        self.requests: list[httpx.Request] = []

    @property
    def api_prefix(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def paths_requested(self, host: str) -> list[str]:
        return [r.url.path for r in self.requests if r.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.status_overrides:
            return httpx.Response(self.status_overrides[path], json={"message": "boom"})

        if request.url.host == "api.github.com":
            return self._api(path)
        if request.url.host == "raw.githubusercontent.com":
            return self._raw(path)
        return httpx.Response(404)

    def _api(self, path: str) -> httpx.Response:
        base = self.api_prefix
        if path == base:
            return httpx.Response(
                200,
                json={"default_branch": self.branch, "description": self.description},
            )
        if path == f"{base}/languages":
            return httpx.Response(200, json=self.languages)
        if path == f"{base}/branches/{self.branch}":
            return httpx.Response(200, json={"name": self.branch, "commit": {"sha": self.sha}})
        if path == f"{base}/git/trees/{self.sha}":
            return httpx.Response(
                200,
                json={"sha": self.sha, "tree": self.tree, "truncated": self.truncated},
            )
        if path == f"{base}/readme":
            if self.readme is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, text=self.readme)
        if path.startswith(f"{base}/contents/"):
            directory = unquote(path[len(f"{base}/contents/") :])
            if directory not in self.contents:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=self.contents[directory])
        return httpx.Response(404, json={"message": "Not Found"})

    def _raw(self, path: str) -> httpx.Response:
        prefix = f"/{self.owner}/{self.repo}/{self.branch}/"
        if not path.startswith(prefix):
            return httpx.Response(404)
        file_path = unquote(path[len(prefix) :])
        if file_path in self.fail_files:
            return httpx.Response(500, text="upstream error")
        if file_path not in self.files:
            return httpx.Response(404, text="404: Not Found")
        return httpx.Response(200, text=self.files[file_path])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def completion(content: str) -> dict[str, Any]:
    """Chat-completion success body."""
    return {
        "id": "chatcmpl-1",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


def api_error(message: str, code: str | None = None) -> dict[str, Any]:
    """Provider error body."""
    return {"error": {"message": message, "code": code, "type": "invalid_request_error"}}


class FakeProvider:
    """Scripted chat-completion endpoint.

    Each request consumes the next ``(status, body)`` pair. When the
    script runs out every further request gets a 500.
    """

    def __init__(self, responses: list[tuple[int, dict[str, Any]]]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, json=api_error("script exhausted"))
        status, body = self.responses.pop(0)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def default_config() -> RepodiagConfig:
    """Create a default RepodiagConfig."""
    return RepodiagConfig.default()


@pytest.fixture
def openai_config() -> ProviderConfig:
    """OpenAI selection with a non-default, reasoning-capable model."""
    return ProviderConfig(
        provider=ProviderType.OPENAI,
        api_key="sk-test",
        model="o4-mini-2025-04-16",
        supports_reasoning=True,
    )


@pytest.fixture
def openrouter_config() -> ProviderConfig:
    """OpenRouter selection with an explicit model."""
    return ProviderConfig(
        provider=ProviderType.OPENROUTER,
        api_key="or-test",
        model="anthropic/claude-3.5-sonnet",
    )


@pytest.fixture
def sample_repo() -> FakeGitHub:
    """A small mixed Python/TypeScript repository."""
    tree = [
        blob("README.md", 500),
        tree_dir("docs"),
        blob("docs/architecture.md", 300),
        blob("docs/setup.txt", 200),
        blob("docs/logo.png", 9000),
        blob("api/openapi.json", 2000),
        blob("package.json", 400),
        blob("requirements.txt", 80),
        tree_dir("src"),
        blob("src/routes/orders.ts", 3000),
        blob("src/services/billing.py", 5000),
        blob("src/util/strings.js", 100),
    ]
    files = {
        "README.md": "Shop is an online shop with an orders API.",
        "docs/architecture.md": "Orders flow through the billing service.",
        "docs/setup.txt": "Run make dev.",
        "api/openapi.json": json.dumps(
            {
                "openapi": "3.0.0",
                "info": {"title": "Shop", "version": "1"},
                "paths": {"/orders": {"get": {}}},
                "components": {"schemas": {"Order": {"type": "object"}}, "securitySchemes": {}},
                "x-internal": {"drop": True},
            }
        ),
        "package.json": json.dumps(
            {"dependencies": {"express": "4.18.0"}, "devDependencies": {"jest": "29.0.0"}}
        ),
        "requirements.txt": "# web\nfastapi==0.110\n\nsqlalchemy>=2\n",
        "src/routes/orders.ts": "import express from 'express';\nconst db = require('./db');\nexport const router = express.Router();\n",
        "src/services/billing.py": "import os\nfrom decimal import Decimal\n\n\ndef charge():\n    pass\n",
        "src/util/strings.js": "export const trim = (s) => s.trim();\n",
    }
    return FakeGitHub(
        tree=tree,
        files=files,
        languages={"TypeScript": 5000, "Python": 8000, "JavaScript": 100},
        description="Demo shop",
    )
