"""CLI interface for repodiag."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Annotated

import structlog
import typer

from repodiag import __version__
from repodiag.config import ProviderConfig, ProviderType, RepodiagConfig, Settings
from repodiag.context.builder import RepositoryContextBuilder
from repodiag.exceptions import RepodiagError
from repodiag.llm.catalog import list_models
from repodiag.llm.providers import looks_reasoning_capable
from repodiag.pipeline import analyze_repository

# Configure structlog for CLI output
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger()

app = typer.Typer(
    name="repodiag",
    help="Architecture diagrams for GitHub repositories, drafted by an LLM",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"repodiag version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """repodiag - repository architecture analysis."""
    pass


def _load_config(settings: Settings, config: Path | None) -> RepodiagConfig:
    if config is not None:
        return RepodiagConfig.load(config)
    return settings.load_config()


@app.command()
def analyze(
    url: Annotated[str, typer.Argument(help="Repository URL, e.g. https://github.com/owner/repo")],
    provider: Annotated[
        ProviderType | None,
        typer.Option("--provider", "-p", help="LLM provider (openai, openrouter)"),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", "-k", help="Provider API key (or REPODIAG_API_KEY)"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model id (provider default if omitted)"),
    ] = None,
    reasoning: Annotated[
        bool | None,
        typer.Option(
            "--reasoning/--no-reasoning",
            help="Whether the model accepts a reasoning-effort hint",
        ),
    ] = None,
    token: Annotated[
        str | None,
        typer.Option("--token", "-t", help="GitHub token for private repositories"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to repodiag.yaml config file",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Write the architecture JSON to this file"),
    ] = None,
) -> None:
    """Analyze a repository and print its architecture as JSON."""
    log = logger.bind(command="analyze")

    try:
        settings = Settings()
        selected_model = model if model is not None else settings.model
        if reasoning is None:
            reasoning = settings.reasoning
        if reasoning is None:
            reasoning = looks_reasoning_capable(selected_model)

        provider_config = ProviderConfig(
            provider=provider or settings.provider,
            api_key=api_key or settings.api_key,
            model=selected_model,
            supports_reasoning=reasoning,
        )
        cfg = _load_config(settings, config)
        result = asyncio.run(
            analyze_repository(
                url,
                provider_config,
                host_token=token or settings.github_token or None,
                config=cfg,
            )
        )
    except (RepodiagError, ValueError, FileNotFoundError) as e:
        log.error("Analysis failed", error=str(e), error_type=type(e).__name__)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    payload = json.dumps(result.architecture.to_json_dict(), indent=2, ensure_ascii=False)
    if out is not None:
        out.write_text(payload + "\n")
        typer.echo(typer.style(f"Architecture written to {out}", fg=typer.colors.GREEN))
    else:
        typer.echo(payload)


@app.command()
def context(
    url: Annotated[str, typer.Argument(help="Repository URL")],
    token: Annotated[
        str | None,
        typer.Option("--token", "-t", help="GitHub token for private repositories"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to repodiag.yaml config file",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print metadata and import index as JSON"),
    ] = False,
) -> None:
    """Print the context bundle built for a repository."""
    log = logger.bind(command="context")

    try:
        settings = Settings()
        cfg = _load_config(settings, config)
        builder = RepositoryContextBuilder(
            token=token or settings.github_token or None,
            config=cfg,
        )
        bundle = asyncio.run(builder.build(url))
    except (RepodiagError, ValueError, FileNotFoundError) as e:
        log.error("Context build failed", error=str(e), error_type=type(e).__name__)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(json.dumps(bundle.to_dict(), indent=2))
    else:
        typer.echo(bundle.context_text)


@app.command()
def models(
    provider: Annotated[
        ProviderType | None,
        typer.Option("--provider", "-p", help="LLM provider (openai, openrouter)"),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", "-k", help="Provider API key (or REPODIAG_API_KEY)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List chat models available to a provider key."""
    try:
        settings = Settings()
    except ValueError as e:
        logger.error("Invalid environment settings", error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    selected = provider or settings.provider
    key = api_key or settings.api_key
    if selected is None or not key:
        typer.echo("Error: a provider and an API key are required", err=True)
        raise typer.Exit(1)

    found = asyncio.run(list_models(selected, key))

    if json_output:
        typer.echo(json.dumps([m.to_dict() for m in found], indent=2))
        return
    for info in found:
        typer.echo(info.label if info.label == info.id else f"{info.id}  ({info.label})")


if __name__ == "__main__":
    app()
