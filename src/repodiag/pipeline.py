"""End-to-end analysis: repository context, completion, extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from repodiag.architecture import Architecture
from repodiag.config import ProviderConfig, RepodiagConfig
from repodiag.context.builder import ContextBundle, RepositoryContextBuilder
from repodiag.extract import extract_json
from repodiag.llm.orchestrator import CompletionOrchestrator
from repodiag.prompts.renderer import PromptRenderer, build_messages

logger = structlog.get_logger()


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one pipeline run produced.

    Attributes:
        bundle: Context bundle sent to the model.
        reply: Raw reply text.
        record: JSON object recovered from the reply.
        architecture: The record validated against the diagram schema.
    """

    bundle: ContextBundle
    reply: str
    record: dict[str, Any]
    architecture: Architecture


async def analyze_repository(
    url: str,
    provider: ProviderConfig,
    *,
    host_token: str | None = None,
    config: RepodiagConfig | None = None,
    host_client: httpx.AsyncClient | None = None,
    llm_client: httpx.AsyncClient | None = None,
    renderer: PromptRenderer | None = None,
) -> AnalysisResult:
    """Build context for ``url``, ask the provider, and parse the answer.

    Raises:
        InvalidReference: Unparseable repository URL.
        HostApiError: A required host call failed.
        ConfigError: Provider or key missing.
        OrchestratorError: Every cascade stage failed.
        EmptyReply, MalformedJSON: No JSON object in the reply.
        SchemaError: The object does not fit the diagram schema.
    """
    config = config or RepodiagConfig.default()
    log = logger.bind(url=url, provider=provider.provider.value if provider.provider else None)
    log.info("Starting repository analysis")

    builder = RepositoryContextBuilder(token=host_token, config=config, client=host_client)
    bundle = await builder.build(url)

    messages = build_messages(url, bundle, limits=config.limits, renderer=renderer)
    orchestrator = CompletionOrchestrator(llm=config.llm, client=llm_client)
    reply = await orchestrator.send(messages, provider)

    record = extract_json(reply)
    architecture = Architecture.from_record(record)

    dangling = architecture.dangling_edges()
    if dangling:
        log.warning("Edges reference unknown nodes", edges=[e.id for e in dangling])

    log.info(
        "Repository analysis complete",
        nodes=len(architecture.nodes),
        edges=len(architecture.edges),
    )
    return AnalysisResult(bundle=bundle, reply=reply, record=record, architecture=architecture)
