"""Configuration schema for repodiag."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class ProviderType(str, Enum):
    """Supported chat-completion providers."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"


class ProviderConfig(BaseModel):
    """Caller-supplied provider selection for one completion call.

    Attributes:
        provider: Which provider to call.
        api_key: Bearer key for the provider.
        model: Model id; the provider default is used when empty.
        supports_reasoning: Whether the selected model accepts a
            reasoning-effort hint. Supplied by the caller.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderType | None = None
    api_key: str = Field(default="", repr=False)
    model: str = ""
    supports_reasoning: bool = False

    @field_validator("model")
    @classmethod
    def strip_model(cls, v: str) -> str:
        """Model ids are compared verbatim, so drop stray whitespace."""
        return v.strip()


class HostConfig(BaseModel):
    """Code host endpoints.

    Attributes:
        api_base: Base URL of the GitHub-compatible REST API.
        raw_base: Base URL of the raw-content delivery domain.
        timeout: Request timeout in seconds.
    """

    api_base: str = "https://api.github.com"
    raw_base: str = "https://raw.githubusercontent.com"
    timeout: float = Field(default=30.0, gt=0)


class ContextLimits(BaseModel):
    """Bounds applied while building a context bundle."""

    context_chars: int = Field(default=120_000, ge=1)
    readme_chars: int = Field(default=20_000, ge=0)
    file_chars: int = Field(default=8_000, ge=0)
    openapi_chars: int = Field(default=30_000, ge=0)
    openapi_fallback_lines: int = Field(default=200, ge=0)
    package_json_deps: int = Field(default=40, ge=0)
    requirements_lines: int = Field(default=80, ge=0)
    docs_files: int = Field(default=5, ge=0)
    api_specs: int = Field(default=2, ge=0)
    manifests: int = Field(default=4, ge=0)
    priority_sources: int = Field(default=20, ge=0)
    import_sample: int = Field(default=15, ge=0)
    import_chars: int = Field(default=20_000, ge=0)
    import_lines: int = Field(default=100, ge=0)
    languages: int = Field(default=5, ge=0)
    prompt_context_chars: int = Field(default=100_000, ge=0)


class LLMConfig(BaseModel):
    """Request-shaping options shared by all providers.

    Attributes:
        temperature: Temperature sent on the richest cascade stages.
        reasoning_effort: Effort level sent to reasoning-capable models.
        timeout: Request timeout in seconds.
        app_title: Application title sent to providers that require one.
        app_url: Referer sent to providers that require one.
    """

    temperature: float = Field(default=0.2, ge=0, le=2)
    reasoning_effort: str = "high"
    timeout: float = Field(default=120.0, gt=0)
    app_title: str = "repodiag"
    app_url: str = "https://github.com/repodiag/repodiag"


class RepodiagConfig(BaseModel):
    """Complete repodiag configuration.

    Example:
        >>> config = RepodiagConfig.default()
        >>> config.limits.context_chars
        120000
    """

    version: str = "1.0"
    host: HostConfig = Field(default_factory=HostConfig)
    limits: ContextLimits = Field(default_factory=ContextLimits)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    def to_yaml(self) -> str:
        """Serialize the config to YAML."""
        data = self.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        """Save the config to a YAML file."""
        path.write_text(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_content: str) -> RepodiagConfig:
        """Parse config from YAML content.

        Args:
            yaml_content: YAML string to parse.

        Returns:
            Parsed RepodiagConfig instance.

        Raises:
            ValueError: If the YAML is invalid.
        """
        try:
            data: Any = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML: {e}"
            raise ValueError(msg) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = "Config YAML must be a mapping"
            raise ValueError(msg)

        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path) -> RepodiagConfig:
        """Load config from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the YAML is invalid.
        """
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        return cls.from_yaml(path.read_text())

    @classmethod
    def default(cls) -> RepodiagConfig:
        """Create a default configuration."""
        return cls()


class Settings(BaseSettings):
    """Credentials and defaults read from the environment.

    Environment variables:
        REPODIAG_PROVIDER: Provider name (openai, openrouter)
        REPODIAG_API_KEY: Provider API key
        REPODIAG_MODEL: Model id
        REPODIAG_REASONING: Whether the model accepts a reasoning hint
        GITHUB_TOKEN: Token for private repositories
        REPODIAG_CONFIG: Path to a YAML config file
    """

    provider: ProviderType | None = Field(default=None, validation_alias="REPODIAG_PROVIDER")
    api_key: str = Field(default="", validation_alias="REPODIAG_API_KEY", repr=False)
    model: str = Field(default="", validation_alias="REPODIAG_MODEL")
    reasoning: bool | None = Field(default=None, validation_alias="REPODIAG_REASONING")
    github_token: str = Field(default="", validation_alias="GITHUB_TOKEN", repr=False)
    config_path: Path | None = Field(default=None, validation_alias="REPODIAG_CONFIG")

    def load_config(self) -> RepodiagConfig:
        """Load the YAML config named by the environment, or defaults."""
        if self.config_path is None:
            return RepodiagConfig.default()
        return RepodiagConfig.load(self.config_path)
