"""LLM provider access: messages, cascades and orchestration."""

from repodiag.llm.cascade import CascadeStage, CascadeStep, plan_cascade
from repodiag.llm.catalog import ModelInfo, list_models
from repodiag.llm.messages import Message, Role
from repodiag.llm.orchestrator import CompletionOrchestrator
from repodiag.llm.providers import PROVIDERS, ProviderSpec, looks_reasoning_capable

__all__ = [
    "PROVIDERS",
    "CascadeStage",
    "CascadeStep",
    "CompletionOrchestrator",
    "Message",
    "ModelInfo",
    "ProviderSpec",
    "Role",
    "list_models",
    "looks_reasoning_capable",
    "plan_cascade",
]
