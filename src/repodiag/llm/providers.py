"""Provider definitions for chat-completion endpoints."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from repodiag.config import LLMConfig, ProviderType

# Approximate: model families known to accept a reasoning-effort hint
_REASONING_MODEL_RE = re.compile(r"gpt-5|o3|o4|deep-research", re.IGNORECASE)


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of one provider.

    Attributes:
        provider: Provider type.
        display_name: Name used in errors and logs.
        base_url: API base URL (chat endpoint is ``{base_url}/chat/completions``).
        default_model: Model used when the caller selects none.
        default_model_reasoning: Whether the default model accepts a
            reasoning-effort hint.
        requires_app_headers: Whether referer/title headers are required.
        fallback_models: Static model list when discovery fails.
    """

    provider: ProviderType
    display_name: str
    base_url: str
    default_model: str
    default_model_reasoning: bool = False
    requires_app_headers: bool = False
    fallback_models: tuple[tuple[str, str], ...] = field(default=())

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @property
    def models_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models"

    def headers(self, api_key: str, llm: LLMConfig | None = None) -> dict[str, str]:
        """Request headers for this provider, bearer key included."""
        llm = llm or LLMConfig()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        if self.requires_app_headers:
            headers["HTTP-Referer"] = llm.app_url
            headers["X-Title"] = llm.app_title
        return headers


PROVIDERS: dict[ProviderType, ProviderSpec] = {
    ProviderType.OPENAI: ProviderSpec(
        provider=ProviderType.OPENAI,
        display_name="OpenAI",
        base_url="https://api.openai.com/v1",
        default_model="gpt-4.1-2025-04-14",
        fallback_models=(
            ("gpt-4.1-2025-04-14", "gpt-4.1-2025-04-14 (recommended)"),
            ("o4-mini-2025-04-16", "o4-mini-2025-04-16"),
            ("gpt-4o", "gpt-4o"),
        ),
    ),
    ProviderType.OPENROUTER: ProviderSpec(
        provider=ProviderType.OPENROUTER,
        display_name="OpenRouter",
        base_url="https://openrouter.ai/api/v1",
        default_model="openrouter/auto",
        requires_app_headers=True,
        fallback_models=(("openrouter/auto", "openrouter/auto (auto-select)"),),
    ),
}


def looks_reasoning_capable(model: str) -> bool:
    """Best-effort guess from the model name.

    Only used to suggest a default for the caller's capability flag.
    """
    return bool(_REASONING_MODEL_RE.search(model or ""))
