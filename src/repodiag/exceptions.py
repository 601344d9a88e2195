"""Custom exceptions for repodiag."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class RepodiagError(Exception):
    """Base exception for all repodiag errors."""

    pass


class InvalidReference(RepodiagError):
    """Raised when a repository URL cannot be decomposed into owner and repo."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class HostApiError(RepodiagError):
    """Raised when a required host API call does not succeed."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        url: str = "",
    ) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class ConfigError(RepodiagError):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, *, field: str = "") -> None:
        super().__init__(message)
        self.field = field


class OrchestratorError(RepodiagError):
    """Raised when every stage of a provider cascade has failed.

    Carries the status and message of the last underlying attempt.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status: int | None = None,
        detail: str | None = None,
        attempts: Sequence[Any] = (),
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status = status
        self.detail = detail
        self.attempts = list(attempts)


class ExtractionError(RepodiagError):
    """Base class for structured-result extraction failures."""

    pass


class EmptyReply(ExtractionError):
    """Raised when the reply text is empty or absent."""

    pass


class MalformedJSON(ExtractionError):
    """Raised when no well-formed JSON object can be located in a reply."""

    def __init__(self, message: str, *, preview: str = "", length: int = 0) -> None:
        super().__init__(message)
        self.preview = preview
        self.length = length


class SchemaError(RepodiagError):
    """Raised when a parsed record does not match the architecture schema."""

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
