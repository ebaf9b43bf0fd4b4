"""Error taxonomy for the context layer.

Pure Python. Driver exceptions are translated into these by
``neo4j_context.adapters.neo4j.errors``; the original driver error stays
attached as ``__cause__``.
"""

from __future__ import annotations


class Neo4jContextError(Exception):
    """Base class for all context-layer errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(Neo4jContextError):
    """Missing or invalid connection endpoint. Raised at context creation."""


class TransactionConflictError(Neo4jContextError):
    """A second transaction was requested while one is open on the session."""


class BackendQueryError(Neo4jContextError):
    """Any other failure surfaced by the database during execution."""


class StreamError(Neo4jContextError):
    """Failure while streaming; delivered through the observer's error callback."""
