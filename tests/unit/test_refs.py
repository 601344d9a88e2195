"""Unit tests for repository URL parsing."""

from __future__ import annotations

import pytest

from repodiag.exceptions import InvalidReference
from repodiag.host.refs import RepoRef, parse_repo_url


class TestParseRepoUrl:
    """Test parse_repo_url."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://github.com/octocat/hello", RepoRef("octocat", "hello")),
            ("https://github.com/octocat/hello.git", RepoRef("octocat", "hello")),
            ("https://github.com/octocat/hello/", RepoRef("octocat", "hello")),
            ("https://github.com/octocat/hello/tree/main/src", RepoRef("octocat", "hello")),
            ("  https://github.com/a/b  ", RepoRef("a", "b")),
        ],
    )
    def test_valid_urls(self, url: str, expected: RepoRef) -> None:
        assert parse_repo_url(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "github.com/octocat/hello",
            "https://github.com/",
            "https://github.com/octocat",
            "not a url",
        ],
    )
    def test_invalid_urls(self, url: str) -> None:
        with pytest.raises(InvalidReference) as exc_info:
            parse_repo_url(url)
        assert exc_info.value.url == url

    def test_git_suffix_only_stripped_at_end(self) -> None:
        """A .git inside the name is kept."""
        assert parse_repo_url("https://github.com/o/my.github.io").repo == "my.github.io"


class TestRepoRef:
    """Test RepoRef."""

    def test_full_name(self) -> None:
        ref = RepoRef("octocat", "hello")
        assert ref.full_name == "octocat/hello"
        assert str(ref) == "octocat/hello"
