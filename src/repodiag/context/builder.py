"""Main repository context builder - coordinates fetching, selection and packing.

This is the primary entry point for turning a repository URL into a
context bundle for the language model.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from repodiag.config import RepodiagConfig
from repodiag.context.blocks import BlockCategory, ContextBlock
from repodiag.context.imports import ImportRecord, build_import_index
from repodiag.context.manifests import postprocess
from repodiag.context.packer import ContextPacker
from repodiag.context.selection import DOC_EXTENSIONS, Selection, select_all
from repodiag.exceptions import HostApiError
from repodiag.host.client import GitHubClient
from repodiag.host.models import EntryKind, RepoTree, TreeEntry
from repodiag.host.refs import RepoRef, parse_repo_url

logger = structlog.get_logger()

DOC_DIRECTORIES = ("docs", "doc", "architecture", "Documentation")


@dataclass(frozen=True)
class RepoMetadata:
    """Structured repository facts carried alongside the context text.

    Attributes:
        repo_ref: Owner/repo of the analysed repository.
        default_branch: Branch the tree was read from.
        languages: Up to five languages by descending byte count.
        commit_sha: Head commit the tree snapshot belongs to.
        tree_truncated: Whether the host truncated the tree listing, in
            which case selections may be incomplete.
        description: Repository description.
    """

    repo_ref: RepoRef
    default_branch: str
    languages: tuple[str, ...] = ()
    commit_sha: str = ""
    tree_truncated: bool = False
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.repo_ref.owner,
            "repo": self.repo_ref.repo,
            "default_branch": self.default_branch,
            "languages": list(self.languages),
            "commit_sha": self.commit_sha,
            "tree_truncated": self.tree_truncated,
            "description": self.description,
        }


@dataclass(frozen=True)
class ContextBundle:
    """Capped summary of a repository handed to prompt assembly.

    Attributes:
        metadata: Structured repository facts.
        imports_index: Import records for the sampled source files.
        context_text: Assembled context, capped at the configured length.
        sources: Repository paths whose content made it into the text.
    """

    metadata: RepoMetadata
    imports_index: tuple[ImportRecord, ...] = ()
    context_text: str = ""
    sources: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "imports_index": [r.to_dict() for r in self.imports_index],
            "sources": list(self.sources),
            "context_chars": len(self.context_text),
        }


class RepositoryContextBuilder:
    """Builds a context bundle from a repository on the host.

    Example:
        >>> builder = RepositoryContextBuilder(token=None)
        >>> bundle = await builder.build("https://github.com/octocat/hello")
        >>> len(bundle.context_text) <= 120_000
        True
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        config: RepodiagConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            token: Optional host token for private repositories.
            config: Endpoints and limits; defaults apply when omitted.
            client: Shared httpx client (tests inject a mock transport).
        """
        self.config = config or RepodiagConfig.default()
        self.limits = self.config.limits
        self._token = token
        self._client = client

    async def build(self, url: str) -> ContextBundle:
        """Build the context bundle for a repository URL.

        Raises:
            InvalidReference: If the URL has no owner/repo. Raised before
                any network call.
            HostApiError: If a required host call fails.
        """
        ref = parse_repo_url(url)
        async with GitHubClient(
            token=self._token,
            config=self.config.host,
            client=self._client,
        ) as gh:
            return await self._build(gh, ref)

    async def _build(self, gh: GitHubClient, ref: RepoRef) -> ContextBundle:
        log = logger.bind(owner=ref.owner, repo=ref.repo)
        log.info("Building repository context")

        info = await gh.get_repo_info(ref, max_languages=self.limits.languages)
        sha = await gh.get_branch_sha(ref, info.default_branch)
        tree = await gh.get_tree(ref, sha, info.default_branch)
        log.debug(
            "Repository tree fetched",
            branch=info.default_branch,
            sha=sha,
            entries=len(tree.entries),
            truncated=tree.truncated,
        )

        selection = select_all(tree, self.limits)
        content_entries = selection.content_entries()
        log.debug(
            "Files selected",
            readme=selection.readme.path if selection.readme else None,
            docs=len(selection.docs),
            api_specs=len(selection.api_specs),
            manifests=len(selection.manifests),
            priority_sources=len(selection.priority_sources),
            import_sample=len(selection.import_sample),
        )

        contents, sample_contents, readme_fallback, walked_docs = await asyncio.gather(
            gh.fetch_many([e.raw_url for e in content_entries]),
            gh.fetch_many(
                [e.raw_url for e in selection.import_sample],
                max_chars=self.limits.import_chars,
            ),
            self._readme_fallback(gh, ref, selection),
            self._walk_docs(gh, ref, info.default_branch, tree, selection),
        )

        imports_index = build_import_index(
            [(e.path, text) for e, text in zip(selection.import_sample, sample_contents)],
            max_lines=self.limits.import_lines,
        )

        metadata = RepoMetadata(
            repo_ref=ref,
            default_branch=info.default_branch,
            languages=info.languages,
            commit_sha=sha,
            tree_truncated=tree.truncated,
            description=info.description,
        )

        fetched = dict(zip((e.path for e in content_entries), contents))
        blocks = self._assemble_blocks(
            metadata,
            imports_index,
            selection,
            content_entries,
            fetched,
            readme_fallback,
            walked_docs,
        )

        packed = ContextPacker(char_budget=self.limits.context_chars).pack(blocks)
        sources = tuple(
            dict.fromkeys(s for b in packed.included_blocks for s in b.sources)
        )

        log.info(
            "Repository context built",
            blocks=len(packed.included_blocks),
            excluded=len(packed.excluded_blocks),
            imports=len(imports_index),
            chars=packed.total_chars,
            truncated=packed.truncated,
        )

        return ContextBundle(
            metadata=metadata,
            imports_index=tuple(imports_index),
            context_text=packed.content,
            sources=sources,
        )

    def _assemble_blocks(
        self,
        metadata: RepoMetadata,
        imports_index: list[ImportRecord],
        selection: Selection,
        content_entries: list[TreeEntry],
        fetched: dict[str, str],
        readme_fallback: str,
        walked_docs: list[tuple[TreeEntry, str]],
    ) -> list[ContextBlock]:
        """Blocks in fixed order: metadata, imports, README, selections."""
        blocks = [metadata_block(metadata), imports_block(imports_index)]

        readme_path = selection.readme.path if selection.readme else "README"
        readme_text = fetched.get(readme_path, "") if selection.readme else readme_fallback
        blocks.append(
            ContextBlock(
                title=f"README ({readme_path})",
                body=readme_text[: self.limits.readme_chars],
                sources=[readme_path],
                category=BlockCategory.README,
            )
        )

        for entry in content_entries:
            if selection.readme and entry.path == selection.readme.path:
                continue
            block = postprocess(entry, fetched.get(entry.path, ""), self.limits)
            if block is not None:
                blocks.append(block)

        for entry, text in walked_docs:
            block = postprocess(entry, text, self.limits)
            if block is not None:
                blocks.append(block)

        return blocks

    async def _readme_fallback(
        self,
        gh: GitHubClient,
        ref: RepoRef,
        selection: Selection,
    ) -> str:
        """README through the readme endpoint when the tree has none."""
        if selection.readme is not None:
            return ""
        return await gh.get_readme(ref)

    async def _walk_docs(
        self,
        gh: GitHubClient,
        ref: RepoRef,
        branch: str,
        tree: RepoTree,
        selection: Selection,
    ) -> list[tuple[TreeEntry, str]]:
        """List documentation directories directly when the tree was cut short.

        Stops at the first directory holding md/mdx/txt files.
        """
        if not tree.truncated or selection.docs or self.limits.docs_files <= 0:
            return []

        for directory in DOC_DIRECTORIES:
            try:
                listing = await gh.list_directory(ref, directory)
            except HostApiError as e:
                logger.debug("Docs directory unavailable", directory=directory, status=e.status)
                continue

            entries = []
            for item in listing:
                path = item.get("path") or ""
                if item.get("type") != "file" or not path:
                    continue
                entry = TreeEntry(
                    path=path,
                    kind=EntryKind.BLOB,
                    size=item.get("size"),
                    raw_url=item.get("download_url") or gh.raw_url(ref, branch, path),
                )
                if entry.extension in DOC_EXTENSIONS:
                    entries.append(entry)
                if len(entries) >= self.limits.docs_files:
                    break

            if entries:
                texts = await gh.fetch_many([e.raw_url for e in entries])
                logger.debug("Docs directory walked", directory=directory, files=len(entries))
                return list(zip(entries, texts))

        return []


def metadata_block(metadata: RepoMetadata) -> ContextBlock:
    """Render repository metadata as the leading context block."""
    facts = [
        f"- Repository: {metadata.repo_ref.full_name}",
        f"- Default branch: {metadata.default_branch}",
    ]
    if metadata.commit_sha:
        facts.append(f"- Commit: {metadata.commit_sha}")
    if metadata.languages:
        facts.append(f"- Languages: {', '.join(metadata.languages)}")
    if metadata.description:
        facts.append(f"- Description: {metadata.description}")
    if metadata.tree_truncated:
        facts.append("- Note: the host truncated the file tree; file selection may be incomplete")

    return ContextBlock(
        title="Repository",
        body="\n".join(facts),
        sources=[],
        category=BlockCategory.METADATA,
    )


def imports_block(imports_index: list[ImportRecord]) -> ContextBlock:
    """Render the import index as serialized JSON."""
    return ContextBlock(
        title="Import index",
        body=json.dumps([r.to_dict() for r in imports_index], indent=2) if imports_index else "",
        sources=[r.path for r in imports_index],
        category=BlockCategory.IMPORTS,
    )
