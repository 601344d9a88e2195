"""Architecture diagram schema produced by the language model."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repodiag.exceptions import SchemaError


class NodeType(str, Enum):
    """Kinds of architecture node."""

    SERVICE = "service"
    DB = "db"
    API = "api"
    QUEUE = "queue"
    CACHE = "cache"
    FRONTEND = "frontend"
    EXTERNAL = "external"
    CRON = "cron"


class TableColumn(BaseModel):
    """Column of a database table."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: str
    pk: bool | None = None
    fk: str | None = None


class TableDef(BaseModel):
    """Database table shown on a ``db`` node."""

    model_config = ConfigDict(extra="ignore")

    table: str
    columns: list[TableColumn] = Field(default_factory=list)
    purpose: str | None = None


class ArchNode(BaseModel):
    """A component of the system."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    type: NodeType
    label: str
    description: str | None = None
    tech: list[str] | None = None
    notes: str | None = None
    db_schema: list[TableDef] | None = Field(default=None, alias="dbSchema")


class ArchEdge(BaseModel):
    """A communication path between two nodes."""

    model_config = ConfigDict(extra="ignore")

    id: str
    source: str
    target: str
    label: str | None = None
    protocol: str | None = None
    details: str | None = None
    security: str | None = None
    frequency: str | None = None


class Architecture(BaseModel):
    """Nodes, edges and an optional legend.

    Example:
        >>> arch = Architecture.from_record({"nodes": [], "edges": []})
        >>> arch.nodes
        []
    """

    model_config = ConfigDict(extra="ignore")

    nodes: list[ArchNode] = Field(default_factory=list)
    edges: list[ArchEdge] = Field(default_factory=list)
    legend: dict[str, str] | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Architecture:
        """Validate a parsed reply against the schema.

        Raises:
            SchemaError: If the record does not fit.
        """
        try:
            return cls.model_validate(record)
        except ValidationError as e:
            errors = [
                {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            msg = f"Reply does not match the architecture schema ({len(errors)} errors)"
            raise SchemaError(msg, errors=errors) from e

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def dangling_edges(self) -> list[ArchEdge]:
        """Edges whose source or target names no known node."""
        ids = self.node_ids()
        return [e for e in self.edges if e.source not in ids or e.target not in ids]

    def to_json_dict(self) -> dict[str, Any]:
        """Wire form, using the original camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
