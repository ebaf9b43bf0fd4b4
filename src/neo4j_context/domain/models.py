"""Domain models for the context layer.

Pure Python + Pydantic v2 + stdlib dataclasses. The driver is only referenced
for type checking; ``neo4j.Bookmarks`` values are carried around opaquely.

Covers:
  - Access modes and the explicit per-context state enum
  - Connection parameters (``DbParms``) with field-by-field override merging
  - Session and transaction configuration
  - The query descriptor tagged union (literal text vs. composable function)
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, SecretStr

if TYPE_CHECKING:
    from neo4j import Bookmarks

    from neo4j_context.ports.db_function import DbFunction

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AccessMode(enum.StrEnum):
    """Session default access mode. Values match the driver's constants."""

    READ = "READ"
    WRITE = "WRITE"


class ContextState(enum.StrEnum):
    """Lifecycle state of a single context.

    IDLE -> SESSION_OPEN -> IN_TRANSACTION -> SESSION_OPEN -> ... -> IDLE
    """

    IDLE = "idle"
    SESSION_OPEN = "session_open"
    IN_TRANSACTION = "in_transaction"


# ---------------------------------------------------------------------------
# Parameters and configuration
# ---------------------------------------------------------------------------


class DbParms(BaseModel):
    """Connection and behaviour parameters recognised by the context layer."""

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    database: str | None = None
    user: str | None = None
    password: SecretStr | None = None
    readonly: bool = False
    allow_write: bool = False
    ignore_marks: bool = False
    log_results: bool = False

    def merged(self, overrides: DbParms | Mapping[str, Any] | None) -> DbParms:
        """Answer a copy where every field explicitly set on *overrides* wins."""
        if overrides is None:
            return self
        if not isinstance(overrides, DbParms):
            overrides = DbParms.model_validate(dict(overrides))
        return self.model_copy(update=overrides.model_dump(exclude_unset=True))


@dataclass
class SessionConfig:
    """Arguments used to open a driver session."""

    database: str | None = None
    bookmarks: Bookmarks | None = None
    default_access_mode: AccessMode | None = None
    fetch_size: int | None = None
    impersonated_user: str | None = None

    def as_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if self.database is not None:
            kwargs["database"] = self.database
        if self.bookmarks is not None:
            kwargs["bookmarks"] = self.bookmarks
        if self.default_access_mode is not None:
            kwargs["default_access_mode"] = str(self.default_access_mode)
        if self.fetch_size is not None:
            kwargs["fetch_size"] = self.fetch_size
        if self.impersonated_user is not None:
            kwargs["impersonated_user"] = self.impersonated_user
        return kwargs


@dataclass
class TxConfig:
    """Transaction-level settings: timeout in seconds and metadata."""

    timeout: float | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_empty(self) -> bool:
        return self.timeout is None and not self.metadata

    def merged(self, overrides: TxConfig | None) -> TxConfig:
        if overrides is None:
            return TxConfig(self.timeout, dict(self.metadata) if self.metadata else None)
        metadata = {**(self.metadata or {}), **(overrides.metadata or {})}
        return TxConfig(
            timeout=overrides.timeout if overrides.timeout is not None else self.timeout,
            metadata=metadata or None,
        )


# ---------------------------------------------------------------------------
# Query descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CypherQuery:
    """Literal Cypher text with named parameters."""

    text: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryFunction:
    """A composable query: ``fn(db, parameters)`` that may call the executor again."""

    fn: DbFunction


QuerySpec = CypherQuery | QueryFunction


def as_query_spec(
    query: str | Mapping[str, Any] | CypherQuery | QueryFunction | Callable[..., Any],
    parameters: Mapping[str, Any] | None = None,
) -> QuerySpec:
    """Resolve caller input into a tagged query descriptor.

    Literal inputs get *parameters* merged over any parameters they already
    carry. Composable functions keep *parameters* separate; the executor hands
    them to the function on invocation.
    """
    if isinstance(query, QueryFunction):
        return query
    if isinstance(query, str):
        return CypherQuery(query, dict(parameters or {}))
    if isinstance(query, CypherQuery):
        if not parameters:
            return query
        return CypherQuery(query.text, {**query.parameters, **parameters})
    if isinstance(query, Mapping):
        text = query.get("text")
        if not isinstance(text, str):
            msg = "Query mapping must carry a 'text' string"
            raise TypeError(msg)
        return CypherQuery(text, {**(query.get("parameters") or {}), **(parameters or {})})
    if callable(query):
        return QueryFunction(query)
    msg = f"Unsupported query descriptor: {type(query).__name__}"
    raise TypeError(msg)
