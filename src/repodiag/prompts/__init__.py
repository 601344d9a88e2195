"""Prompt templates and message assembly."""

from repodiag.prompts.renderer import PromptRenderer, build_messages

__all__ = ["PromptRenderer", "build_messages"]
