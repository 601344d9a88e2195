"""Unit tests for the GitHub host client."""

from __future__ import annotations

import httpx
import pytest
from conftest import FakeGitHub, blob, tree_dir

from repodiag.exceptions import HostApiError
from repodiag.host.client import RAW_ACCEPT, GitHubClient
from repodiag.host.models import EntryKind
from repodiag.host.refs import RepoRef

REF = RepoRef("acme", "shop")


@pytest.mark.asyncio
class TestGitHubClient:
    """Test GitHubClient against a fake host."""

    async def test_repo_info_languages_ranked(self) -> None:
        fake = FakeGitHub(
            languages={"Go": 10, "Python": 900, "Shell": 10, "TypeScript": 500, "CSS": 5, "HTML": 7},
            description="Shop",
        )
        async with fake.client() as http, GitHubClient(client=http) as gh:
            info = await gh.get_repo_info(REF)

        assert info.default_branch == "main"
        assert info.languages == ("Python", "TypeScript", "Go", "Shell", "HTML")
        assert info.description == "Shop"

    async def test_branch_and_tree(self) -> None:
        fake = FakeGitHub(
            tree=[
                blob("README.md", 42),
                tree_dir("src"),
                {"path": "vendor/lib", "type": "commit"},
                blob("src/app name.py", 7),
            ],
            truncated=True,
        )
        async with fake.client() as http, GitHubClient(client=http) as gh:
            sha = await gh.get_branch_sha(REF, "main")
            tree = await gh.get_tree(REF, sha, "main")

        assert sha == "abc123"
        assert tree.truncated
        assert [e.path for e in tree.entries] == ["README.md", "src", "src/app name.py"]
        assert tree.entries[1].kind is EntryKind.TREE
        assert tree.entries[1].raw_url == ""
        assert tree.entries[2].raw_url == (
            "https://raw.githubusercontent.com/acme/shop/main/src/app%20name.py"
        )
        tree_request = [r for r in fake.requests if "/git/trees/" in r.url.path][0]
        assert tree_request.url.params["recursive"] == "1"

    async def test_required_call_raises_on_status(self) -> None:
        fake = FakeGitHub(status_overrides={"/repos/acme/shop": 404})
        async with fake.client() as http, GitHubClient(client=http) as gh:
            with pytest.raises(HostApiError) as exc_info:
                await gh.get_repo_info(REF)
        assert exc_info.value.status == 404
        assert exc_info.value.url == "https://api.github.com/repos/acme/shop"

    async def test_transport_error_becomes_host_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            gh = GitHubClient(client=http)
            with pytest.raises(HostApiError) as exc_info:
                await gh.get_branch_sha(REF, "main")
        assert exc_info.value.status is None

    async def test_fetch_many_substitutes_empty_on_failure(self) -> None:
        fake = FakeGitHub(files={"a.md": "alpha", "b.md": "beta"}, fail_files={"b.md"})
        async with fake.client() as http, GitHubClient(client=http) as gh:
            texts = await gh.fetch_many(
                [
                    gh.raw_url(REF, "main", "a.md"),
                    gh.raw_url(REF, "main", "b.md"),
                    gh.raw_url(REF, "main", "missing.md"),
                ]
            )
        assert texts == ["alpha", "", ""]

    async def test_fetch_many_caps_length(self) -> None:
        fake = FakeGitHub(files={"big.py": "x" * 100})
        async with fake.client() as http, GitHubClient(client=http) as gh:
            (text,) = await gh.fetch_many([gh.raw_url(REF, "main", "big.py")], max_chars=10)
        assert text == "x" * 10

    async def test_fetch_many_empty(self) -> None:
        async with GitHubClient() as gh:
            assert await gh.fetch_many([]) == []

    async def test_token_and_accept_headers(self) -> None:
        fake = FakeGitHub(readme="# Hello")
        async with fake.client() as http, GitHubClient(token="ghp_abc", client=http) as gh:
            readme = await gh.get_readme(REF)

        assert readme == "# Hello"
        request = fake.requests[0]
        assert request.headers["authorization"] == "Bearer ghp_abc"
        assert request.headers["accept"] == RAW_ACCEPT

    async def test_no_token_no_authorization(self) -> None:
        fake = FakeGitHub()
        async with fake.client() as http, GitHubClient(client=http) as gh:
            await gh.get_branch_sha(REF, "main")
        assert "authorization" not in fake.requests[0].headers

    async def test_list_directory(self) -> None:
        listing = [{"path": "docs/a.md", "type": "file", "download_url": None}]
        fake = FakeGitHub(contents={"docs": listing})
        async with fake.client() as http, GitHubClient(client=http) as gh:
            assert await gh.list_directory(REF, "docs") == listing
            with pytest.raises(HostApiError):
                await gh.list_directory(REF, "doc")

    async def test_shared_client_not_closed(self) -> None:
        fake = FakeGitHub()
        async with fake.client() as http:
            async with GitHubClient(client=http):
                pass
            assert not http.is_closed
