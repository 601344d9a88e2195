"""Chat-completion orchestration across providers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from repodiag.config import LLMConfig, ProviderConfig, ProviderType
from repodiag.exceptions import ConfigError, OrchestratorError
from repodiag.llm.cascade import CascadeStage, CascadeStep, plan_cascade
from repodiag.llm.messages import Message
from repodiag.llm.providers import PROVIDERS, ProviderSpec

logger = structlog.get_logger()


@dataclass
class AttemptFailure:
    """Outcome of one failed cascade step.

    Attributes:
        stage: Stage that failed.
        status: HTTP status, or None for transport failures.
        code: Provider error code, if the body carried one.
        message: Provider error message, if any.
    """

    stage: CascadeStage
    status: int | None = None
    code: str | None = None
    message: str | None = None


class _AttemptFailed(Exception):
    def __init__(self, failure: AttemptFailure) -> None:
        super().__init__(failure.message or "")
        self.failure = failure


def _error_details(response: httpx.Response) -> tuple[str | None, str | None]:
    """Pull ``error.code``/``error.message`` out of an error body, if present."""
    try:
        data = response.json()
    except ValueError:
        return None, response.text[:500] or None
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return None, None
    code = error.get("code")
    return (str(code) if code is not None else None), error.get("message")


class CompletionOrchestrator:
    """Sends a conversation to the selected provider through its cascade.

    Credentials arrive with every call in a ProviderConfig and are never
    stored on the orchestrator.

    Example:
        >>> orchestrator = CompletionOrchestrator()
        >>> text = await orchestrator.send(
        ...     [Message.system("..."), Message.user("...")],
        ...     ProviderConfig(provider=ProviderType.OPENAI, api_key="sk-..."),
        ... )
    """

    def __init__(
        self,
        *,
        llm: LLMConfig | None = None,
        client: httpx.AsyncClient | None = None,
        providers: dict[ProviderType, ProviderSpec] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            llm: Temperature, reasoning effort, timeouts and app headers.
            client: Shared httpx client; a client is opened per call if omitted.
            providers: Provider registry override (tests, self-hosted gateways).
        """
        self.llm = llm or LLMConfig()
        self.providers = providers or PROVIDERS
        self._client = client

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.llm.timeout) as client:
            yield client

    async def send(self, messages: list[Message], config: ProviderConfig) -> str:
        """Run the provider cascade and return the first successful reply.

        Args:
            messages: Conversation, system message first.
            config: Provider, key, optional model and reasoning flag.

        Returns:
            Content of the first choice's message.

        Raises:
            ConfigError: If provider or API key is missing.
            OrchestratorError: If every cascade step failed; carries the
                status and message of the last attempt.
        """
        if config.provider is None:
            msg = "No provider configured"
            raise ConfigError(msg, field="provider")
        if not config.api_key:
            msg = "No API key configured"
            raise ConfigError(msg, field="api_key")

        spec = self.providers[config.provider]
        steps = plan_cascade(spec, config, self.llm)
        headers = spec.headers(config.api_key, self.llm)
        log = logger.bind(provider=spec.provider.value)

        failures: list[AttemptFailure] = []
        async with self._client_scope() as client:
            for step in steps:
                step_log = log.bind(stage=step.stage.value, model=step.model)
                step_log.debug("Sending completion request", richness=step.richness)
                try:
                    content = await self._attempt(client, spec, headers, step, messages)
                except _AttemptFailed as e:
                    failures.append(e.failure)
                    step_log.warning(
                        "Cascade stage failed",
                        status=e.failure.status,
                        code=e.failure.code,
                        error=e.failure.message,
                    )
                    continue

                step_log.info("Completion received", chars=len(content), attempts=len(failures) + 1)
                return content

        last = failures[-1] if failures else AttemptFailure(stage=CascadeStage.FULL)
        detail = " ".join(str(p) for p in (last.status, last.message) if p)
        msg = f"{spec.display_name} error: {detail}".strip()
        log.error("All cascade stages failed", attempts=[f.stage.value for f in failures])
        raise OrchestratorError(
            msg,
            provider=spec.provider.value,
            status=last.status,
            detail=last.message,
            attempts=[f.stage for f in failures],
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        spec: ProviderSpec,
        headers: dict[str, str],
        step: CascadeStep,
        messages: list[Message],
    ) -> str:
        """One request/response; raises _AttemptFailed on any failure."""
        try:
            response = await client.post(
                spec.chat_url,
                headers=headers,
                json=step.build_body(messages),
                timeout=self.llm.timeout,
            )
        except httpx.HTTPError as e:
            raise _AttemptFailed(AttemptFailure(stage=step.stage, message=str(e))) from e

        if not response.is_success:
            code, message = _error_details(response)
            raise _AttemptFailed(
                AttemptFailure(
                    stage=step.stage,
                    status=response.status_code,
                    code=code,
                    message=message,
                )
            )

        try:
            data: Any = response.json()
        except ValueError as e:
            raise _AttemptFailed(
                AttemptFailure(
                    stage=step.stage,
                    status=response.status_code,
                    message="Provider returned invalid JSON",
                )
            ) from e

        return _reply_content(data, step.stage)


def _reply_content(data: Any, stage: CascadeStage) -> str:
    """Content of the first choice's message, or an empty string.

    Content given as a list of parts is joined from its text parts.

    Raises:
        _AttemptFailed: If the first choice carries no message object.
    """
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if message is None:
        return ""
    if not isinstance(message, dict):
        raise _AttemptFailed(
            AttemptFailure(stage=stage, status=200, message="Reply message is not an object")
        )

    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part["text"]
            for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    return ""
