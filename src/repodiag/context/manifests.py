"""Per-category post-processing of fetched file content.

Turns raw file text into compact context blocks:
- OpenAPI/Swagger JSON: reduced to its structural keys
- package.json: flat ``name@version`` dependency list
- requirements*.txt: comma-joined requirement lines
- pyproject.toml: declared dependencies
- any other textual file: leading excerpt
"""

from __future__ import annotations

import json
import tomllib
from typing import Any

import structlog

from repodiag.config import ContextLimits
from repodiag.context.blocks import BlockCategory, ContextBlock
from repodiag.context.selection import is_api_spec, is_manifest
from repodiag.host.models import TreeEntry

logger = structlog.get_logger()

TEXT_EXTENSIONS = frozenset(
    {
        "md", "mdx", "txt", "json", "yaml", "yml", "xml", "csv",
        "ts", "tsx", "js", "jsx", "py", "rb", "go", "rs", "java", "cs", "php",
    }
)

OPENAPI_KEYS = ("openapi", "info", "servers", "paths")


def summarize_openapi(text: str, *, max_chars: int = 30_000, fallback_lines: int = 200) -> str:
    """Keep only the structural parts of an OpenAPI/Swagger JSON document.

    Retains ``openapi``, ``info``, ``servers``, ``paths`` and
    ``components.schemas``. Falls back to the first ``fallback_lines``
    lines of raw text when the document does not parse.
    """
    try:
        doc = json.loads(text)
    except ValueError:
        return "\n".join(text.splitlines()[:fallback_lines])
    if not isinstance(doc, dict):
        return "\n".join(text.splitlines()[:fallback_lines])

    reduced: dict[str, Any] = {key: doc[key] for key in OPENAPI_KEYS if key in doc}
    components = doc.get("components")
    if isinstance(components, dict) and "schemas" in components:
        reduced["components"] = {"schemas": components["schemas"]}

    return json.dumps(reduced, indent=2)[:max_chars]


def package_json_dependencies(text: str, *, limit: int = 40) -> list[str]:
    """List ``name@version`` from dependencies and devDependencies combined.

    Raises:
        ValueError: If the manifest is not a JSON object.
    """
    pkg = json.loads(text)
    if not isinstance(pkg, dict):
        msg = "package.json must be an object"
        raise ValueError(msg)

    deps: dict[str, Any] = {}
    for key in ("dependencies", "devDependencies"):
        section = pkg.get(key)
        if isinstance(section, dict):
            deps.update(section)

    return [f"{name}@{version}" for name, version in deps.items()][:limit]


def requirements_entries(text: str, *, limit: int = 80) -> list[str]:
    """Non-blank, non-comment lines of a requirements file."""
    entries: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
        if len(entries) >= limit:
            break
    return entries


def pyproject_dependencies(text: str, *, limit: int = 80) -> list[str]:
    """Declared dependencies of a pyproject.toml, optional groups included.

    Raises:
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    project = tomllib.loads(text).get("project", {})
    deps: list[str] = list(project.get("dependencies", []) or [])
    for group, extras in (project.get("optional-dependencies", {}) or {}).items():
        deps.extend(f"{dep} ({group})" for dep in extras or [])
    return deps[:limit]


def text_excerpt(entry: TreeEntry, content: str, *, max_chars: int = 8_000) -> ContextBlock | None:
    """Leading excerpt of any textual file under a path-labelled heading."""
    if entry.extension not in TEXT_EXTENSIONS:
        return None
    return ContextBlock(
        title=f"File: {entry.path}",
        body=content[:max_chars],
        sources=[entry.path],
        category=_category_for(entry),
    )


def _category_for(entry: TreeEntry) -> BlockCategory:
    if is_api_spec(entry):
        return BlockCategory.API_SPEC
    if is_manifest(entry):
        return BlockCategory.MANIFEST
    if entry.extension in ("md", "mdx", "txt"):
        return BlockCategory.DOCS
    return BlockCategory.SOURCE


def postprocess(
    entry: TreeEntry,
    content: str,
    limits: ContextLimits | None = None,
) -> ContextBlock | None:
    """Render fetched content into a context block by file category.

    Returns None for empty content and for non-textual files.
    """
    limits = limits or ContextLimits()
    if not content.strip():
        return None

    name = entry.name
    log = logger.bind(path=entry.path)

    if is_api_spec(entry) and entry.extension == "json":
        return ContextBlock(
            title=f"API spec: {entry.path}",
            body=summarize_openapi(
                content,
                max_chars=limits.openapi_chars,
                fallback_lines=limits.openapi_fallback_lines,
            ),
            sources=[entry.path],
            category=BlockCategory.API_SPEC,
        )

    if name == "package.json":
        try:
            deps = package_json_dependencies(content, limit=limits.package_json_deps)
        except ValueError as e:
            log.debug("Failed to parse package.json", error=str(e))
        else:
            return ContextBlock(
                title=f"Dependencies: {entry.path}",
                body=", ".join(deps),
                sources=[entry.path],
                category=BlockCategory.MANIFEST,
            )

    elif name == "pyproject.toml":
        try:
            deps = pyproject_dependencies(content, limit=limits.requirements_lines)
        except tomllib.TOMLDecodeError as e:
            log.debug("Failed to parse pyproject.toml", error=str(e))
        else:
            return ContextBlock(
                title=f"Dependencies: {entry.path}",
                body=", ".join(deps),
                sources=[entry.path],
                category=BlockCategory.MANIFEST,
            )
        # Unparseable TOML is still worth showing verbatim
        return ContextBlock(
            title=f"File: {entry.path}",
            body=content[: limits.file_chars],
            sources=[entry.path],
            category=BlockCategory.MANIFEST,
        )

    elif name.lower().startswith("requirements") and entry.extension == "txt":
        return ContextBlock(
            title=f"Dependencies: {entry.path}",
            body=", ".join(requirements_entries(content, limit=limits.requirements_lines)),
            sources=[entry.path],
            category=BlockCategory.MANIFEST,
        )

    return text_excerpt(entry, content, max_chars=limits.file_chars)
