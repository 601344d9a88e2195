"""Architecture prompt templates (Jinja2, markdown)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import jinja2
import structlog

from repodiag.config import ContextLimits
from repodiag.llm.messages import Message

if TYPE_CHECKING:
    from repodiag.context.builder import ContextBundle

logger = structlog.get_logger()

BUILTIN_TEMPLATES = Path(__file__).parent / "templates"
TEMPLATE_SUFFIX = ".md"

SYSTEM_TEMPLATE = "architecture_system"
USER_TEMPLATE = "architecture_user"


class PromptRenderer:
    """Loads ``*.md`` prompt templates from one directory.

    Missing template variables are errors, so a template and the values
    passed to it cannot drift apart silently.

    Example:
        >>> PromptRenderer().names()
        ['architecture_system', 'architecture_user']
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or BUILTIN_TEMPLATES
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            keep_trailing_newline=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )

    def render(self, template_name: str, /, **values: Any) -> str:
        """Render template ``template_name`` (suffix omitted).

        Raises:
            jinja2.TemplateNotFound: No such template in the directory.
            jinja2.UndefinedError: The template uses a value not supplied.
        """
        text = self.env.get_template(template_name + TEMPLATE_SUFFIX).render(**values)
        logger.debug("Prompt rendered", template=template_name, chars=len(text))
        return text

    def names(self) -> list[str]:
        """Template names in this directory, sorted."""
        return sorted(p.stem for p in self.templates_dir.glob("*" + TEMPLATE_SUFFIX))

    def has(self, name: str) -> bool:
        return (self.templates_dir / (name + TEMPLATE_SUFFIX)).is_file()


def build_messages(
    url: str,
    bundle: ContextBundle,
    *,
    limits: ContextLimits | None = None,
    renderer: PromptRenderer | None = None,
) -> list[Message]:
    """Assemble the system and user messages for an architecture request.

    Args:
        url: Repository URL as given by the caller.
        bundle: Context bundle for the repository.
        limits: Supplies the prompt context cap.
        renderer: Template source; the built-in templates by default.

    Returns:
        ``[system, user]``.
    """
    limits = limits or ContextLimits()
    renderer = renderer or PromptRenderer()

    return [
        Message.system(renderer.render(SYSTEM_TEMPLATE)),
        Message.user(
            renderer.render(
                USER_TEMPLATE,
                url=url,
                metadata=bundle.metadata,
                context=bundle.context_text[: limits.prompt_context_chars],
            )
        ),
    ]
