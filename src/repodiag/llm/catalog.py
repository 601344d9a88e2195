"""Model discovery for chat-completion providers.

Lists the chat-capable models a key can use, falling back to a static
list when discovery fails.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from repodiag.config import LLMConfig, ProviderType
from repodiag.llm.providers import PROVIDERS, ProviderSpec

logger = structlog.get_logger()

_EXCLUDE_RE = re.compile(
    r"embedding|whisper|tts|audio|image|dall|clip|moderation|realtime", re.IGNORECASE
)
_INCLUDE_RE = re.compile(r"gpt|^o[0-9]|openrouter/auto|claude|llama|mixtral", re.IGNORECASE)
# Served only by the responses API, not chat completions
_RESPONSES_ONLY_RE = re.compile(r"deep-research", re.IGNORECASE)

OPENAI_PRIORITY = ("gpt-4.1-2025-04-14", "o4-mini-2025-04-16", "gpt-4o")
AUTO_MODEL = "openrouter/auto"


@dataclass(frozen=True)
class ModelInfo:
    """A selectable model."""

    id: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label}


def fallback_models(spec: ProviderSpec) -> list[ModelInfo]:
    return [ModelInfo(id=model_id, label=label) for model_id, label in spec.fallback_models]


def _is_chat_model(model_id: str, provider: ProviderType) -> bool:
    if not _INCLUDE_RE.search(model_id) or _EXCLUDE_RE.search(model_id):
        return False
    if provider is ProviderType.OPENAI and _RESPONSES_ONLY_RE.search(model_id):
        return False
    return True


def rank_models(provider: ProviderType, raw: list[dict[str, Any]]) -> list[ModelInfo]:
    """Filter and order a provider's raw model listing."""
    items = [
        ModelInfo(
            id=str(m["id"]),
            label=str(m.get("name") or m["id"]) if provider is ProviderType.OPENROUTER else str(m["id"]),
        )
        for m in raw
        if isinstance(m, dict) and m.get("id") and _is_chat_model(str(m["id"]), provider)
    ]

    if provider is ProviderType.OPENAI:
        def priority(item: ModelInfo) -> tuple[int, str]:
            rank = OPENAI_PRIORITY.index(item.id) if item.id in OPENAI_PRIORITY else len(OPENAI_PRIORITY)
            return rank, item.id

        return sorted(items, key=priority)

    auto = [i for i in items if i.id == AUTO_MODEL]
    rest = sorted((i for i in items if i.id != AUTO_MODEL), key=lambda i: i.label)
    return auto[:1] + rest


async def list_models(
    provider: ProviderType | None,
    api_key: str,
    *,
    llm: LLMConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[ModelInfo]:
    """List chat models available to ``api_key``.

    Returns an empty list without provider or key, and the provider's
    static fallback list when discovery fails or finds nothing.
    """
    if provider is None or not api_key:
        return []

    spec = PROVIDERS[provider]
    llm = llm or LLMConfig()
    log = logger.bind(provider=provider.value)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=llm.timeout) as own_client:
                response = await own_client.get(spec.models_url, headers=spec.headers(api_key, llm))
        else:
            response = await client.get(spec.models_url, headers=spec.headers(api_key, llm))
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        log.warning("Model discovery failed, using fallback list", error=str(e))
        return fallback_models(spec)

    raw = payload.get("data") if isinstance(payload, dict) else None
    models = rank_models(provider, raw or [])
    if not models:
        log.debug("Model discovery returned no chat models")
        return fallback_models(spec)
    return models
