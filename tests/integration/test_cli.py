"""Integration tests for the CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repodiag import __version__, cli
from repodiag.architecture import Architecture
from repodiag.config import ProviderConfig
from repodiag.context.builder import ContextBundle, RepoMetadata
from repodiag.exceptions import OrchestratorError
from repodiag.host.refs import RepoRef
from repodiag.llm.catalog import ModelInfo
from repodiag.pipeline import AnalysisResult

pytestmark = pytest.mark.integration

runner = CliRunner()

ENV_VARS = (
    "REPODIAG_PROVIDER",
    "REPODIAG_API_KEY",
    "REPODIAG_MODEL",
    "REPODIAG_REASONING",
    "REPODIAG_CONFIG",
    "GITHUB_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _result() -> AnalysisResult:
    record = {"nodes": [{"id": "api", "type": "service", "label": "API"}], "edges": []}
    bundle = ContextBundle(metadata=RepoMetadata(repo_ref=RepoRef("a", "b"), default_branch="main"))
    return AnalysisResult(
        bundle=bundle,
        reply=json.dumps(record),
        record=record,
        architecture=Architecture.from_record(record),
    )


class TestCli:
    """Test CLI commands."""

    def test_version(self) -> None:
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_analyze_invalid_url(self) -> None:
        result = runner.invoke(cli.app, ["analyze", "not-a-url", "-p", "openai", "-k", "sk"])
        assert result.exit_code == 1

    def test_context_invalid_url(self) -> None:
        result = runner.invoke(cli.app, ["context", "https://github.com/only-owner"])
        assert result.exit_code == 1

    def test_models_requires_key(self) -> None:
        result = runner.invoke(cli.app, ["models", "-p", "openai"])
        assert result.exit_code == 1

    def test_analyze_prints_architecture(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        seen: dict[str, ProviderConfig] = {}

        async def fake_analyze(url: str, provider: ProviderConfig, **kwargs: object) -> AnalysisResult:
            seen["provider"] = provider
            return _result()

        monkeypatch.setattr(cli, "analyze_repository", fake_analyze)
        out = tmp_path / "arch.json"
        result = runner.invoke(
            cli.app,
            ["analyze", "https://github.com/a/b", "-p", "openai", "-k", "sk", "-m", "o3", "-o", str(out)],
        )

        assert result.exit_code == 0
        assert json.loads(out.read_text())["nodes"][0]["id"] == "api"
        assert seen["provider"].model == "o3"
        assert seen["provider"].supports_reasoning is True

    def test_analyze_reasoning_flag_overrides_guess(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: dict[str, ProviderConfig] = {}

        async def fake_analyze(url: str, provider: ProviderConfig, **kwargs: object) -> AnalysisResult:
            seen["provider"] = provider
            return _result()

        monkeypatch.setattr(cli, "analyze_repository", fake_analyze)
        monkeypatch.setenv("REPODIAG_API_KEY", "sk-env")
        result = runner.invoke(
            cli.app,
            ["analyze", "https://github.com/a/b", "-p", "openai", "-m", "o3", "--no-reasoning"],
        )

        assert result.exit_code == 0
        assert seen["provider"].supports_reasoning is False
        assert seen["provider"].api_key == "sk-env"

    def test_analyze_failure_exits_nonzero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_analyze(url: str, provider: ProviderConfig, **kwargs: object) -> AnalysisResult:
            raise OrchestratorError("OpenAI error: 401 bad key", provider="openai", status=401)

        monkeypatch.setattr(cli, "analyze_repository", fake_analyze)
        result = runner.invoke(cli.app, ["analyze", "https://github.com/a/b", "-p", "openai", "-k", "x"])
        assert result.exit_code == 1

    def test_context_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class FakeBuilder:
            def __init__(self, **kwargs: object) -> None:
                pass

            async def build(self, url: str) -> ContextBundle:
                return _result().bundle

        monkeypatch.setattr(cli, "RepositoryContextBuilder", FakeBuilder)
        result = runner.invoke(cli.app, ["context", "https://github.com/a/b", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["metadata"]["owner"] == "a"
        assert data["imports_index"] == []

    def test_models_lists_ids(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_list(provider: object, api_key: str) -> list[ModelInfo]:
            return [ModelInfo(id="openrouter/auto", label="Auto Router")]

        monkeypatch.setattr(cli, "list_models", fake_list)
        result = runner.invoke(cli.app, ["models", "-p", "openrouter", "-k", "k", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": "openrouter/auto", "label": "Auto Router"}]

    @pytest.mark.parametrize(
        ("name", "value"),
        [("REPODIAG_PROVIDER", "anthropic"), ("REPODIAG_REASONING", "sometimes")],
    )
    def test_invalid_environment_exits_cleanly(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        monkeypatch.setenv(name, value)
        for args in (
            ["analyze", "https://github.com/a/b", "-k", "x"],
            ["context", "https://github.com/a/b"],
            ["models", "-k", "x"],
        ):
            result = runner.invoke(cli.app, args)
            assert result.exit_code == 1
            assert not isinstance(result.exception, ValueError)
