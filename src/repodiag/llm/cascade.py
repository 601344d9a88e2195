"""Per-provider retry/fallback cascades.

A cascade is an explicit ordered list of request shapes. The orchestrator
tries them in order; a failed step moves on to the next one and the last
failure ends the cascade. Each step is strictly narrower than the one
before it, so no request is ever re-sent verbatim.

Provider cascades:

    openai       FULL -> NO_RESPONSE_FORMAT -> BARE
                 -> DEFAULT_MODEL_FULL -> DEFAULT_MODEL_BARE
                 (the last two only when a non-default model was selected)
    openrouter   FULL -> NO_TEMPERATURE
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from repodiag.config import LLMConfig, ProviderConfig, ProviderType
from repodiag.llm.messages import Message, serialize_messages
from repodiag.llm.providers import ProviderSpec

JSON_RESPONSE_FORMAT: dict[str, str] = {"type": "json_object"}


class CascadeStage(str, Enum):
    """Named request shapes, richest first."""

    FULL = "full"
    NO_RESPONSE_FORMAT = "no_response_format"
    BARE = "bare"
    DEFAULT_MODEL_FULL = "default_model_full"
    DEFAULT_MODEL_BARE = "default_model_bare"
    NO_TEMPERATURE = "no_temperature"


@dataclass(frozen=True)
class CascadeStep:
    """One request shape of a cascade.

    Attributes:
        stage: Which stage this step implements.
        model: Model id sent in the body.
        temperature: Temperature, omitted when None.
        response_format: Structured-output hint, omitted when None.
        reasoning: Reasoning-effort hint, omitted when None.
    """

    stage: CascadeStage
    model: str
    temperature: float | None = None
    response_format: dict[str, str] | None = None
    reasoning: dict[str, str] | None = None

    @property
    def richness(self) -> int:
        """Number of optional request fields this step sends."""
        return sum(
            value is not None
            for value in (self.temperature, self.response_format, self.reasoning)
        )

    def shape(self) -> tuple[Any, ...]:
        """Everything except the stage name; equal shapes are identical requests."""
        return (
            self.model,
            self.temperature,
            tuple(sorted((self.response_format or {}).items())),
            tuple(sorted((self.reasoning or {}).items())),
        )

    def build_body(self, messages: list[Message]) -> dict[str, Any]:
        """Request body for this step."""
        body: dict[str, Any] = {"model": self.model, "messages": serialize_messages(messages)}
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.response_format is not None:
            body["response_format"] = dict(self.response_format)
        if self.reasoning is not None:
            body["reasoning"] = dict(self.reasoning)
        return body


CascadePlanner = Callable[[ProviderSpec, ProviderConfig, LLMConfig], list[CascadeStep]]


def _openai_cascade(
    spec: ProviderSpec,
    config: ProviderConfig,
    llm: LLMConfig,
) -> list[CascadeStep]:
    selected = config.model or spec.default_model
    reasoning = {"effort": llm.reasoning_effort} if config.supports_reasoning else None

    steps = [
        CascadeStep(
            CascadeStage.FULL,
            selected,
            temperature=llm.temperature,
            response_format=JSON_RESPONSE_FORMAT,
            reasoning=reasoning,
        ),
        CascadeStep(CascadeStage.NO_RESPONSE_FORMAT, selected, reasoning=reasoning),
        CascadeStep(CascadeStage.BARE, selected),
    ]

    if selected != spec.default_model:
        default_reasoning = (
            {"effort": llm.reasoning_effort} if spec.default_model_reasoning else None
        )
        steps += [
            CascadeStep(
                CascadeStage.DEFAULT_MODEL_FULL,
                spec.default_model,
                temperature=llm.temperature,
                response_format=JSON_RESPONSE_FORMAT,
                reasoning=default_reasoning,
            ),
            CascadeStep(CascadeStage.DEFAULT_MODEL_BARE, spec.default_model),
        ]

    return steps


def _openrouter_cascade(
    spec: ProviderSpec,
    config: ProviderConfig,
    llm: LLMConfig,
) -> list[CascadeStep]:
    selected = config.model or spec.default_model
    return [
        CascadeStep(CascadeStage.FULL, selected, temperature=llm.temperature),
        CascadeStep(CascadeStage.NO_TEMPERATURE, selected),
    ]


CASCADES: dict[ProviderType, CascadePlanner] = {
    ProviderType.OPENAI: _openai_cascade,
    ProviderType.OPENROUTER: _openrouter_cascade,
}


def plan_cascade(
    spec: ProviderSpec,
    config: ProviderConfig,
    llm: LLMConfig | None = None,
) -> list[CascadeStep]:
    """Ordered request shapes to try for one completion call.

    Steps identical to an earlier step are dropped (for example stage 2
    and stage 3 coincide when the model takes no reasoning hint).
    """
    planner = CASCADES[spec.provider]
    steps = planner(spec, config, llm or LLMConfig())

    unique: list[CascadeStep] = []
    seen: set[tuple[Any, ...]] = set()
    for step in steps:
        if step.shape() in seen:
            continue
        seen.add(step.shape())
        unique.append(step)
    return unique
