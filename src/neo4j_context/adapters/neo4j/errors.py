"""Translation of neo4j driver exceptions into context-layer errors."""

from __future__ import annotations

from neo4j.exceptions import DriverError, Neo4jError, TransactionError

from neo4j_context.domain.errors import (
    BackendQueryError,
    Neo4jContextError,
    TransactionConflictError,
)

# Server-side refusal to start a transaction inside an open one
TRANSACTION_START_FAILED = "Neo.DatabaseError.Transaction.TransactionStartFailed"

BACKEND_ERRORS = (Neo4jError, DriverError)


def _message(exc: Exception) -> str:
    # Client-side driver errors only carry their constructor arguments
    if isinstance(exc, Neo4jError) and exc.message:
        return exc.message
    if exc.args and exc.args[0]:
        return str(exc.args[0])
    return type(exc).__name__


def translate_backend_error(exc: Exception) -> Neo4jContextError:
    """Map a driver exception onto the context-layer taxonomy."""
    code = exc.code if isinstance(exc, Neo4jError) else None
    message = _message(exc)
    if isinstance(exc, TransactionError) or code == TRANSACTION_START_FAILED:
        return TransactionConflictError(message, code=code)
    return BackendQueryError(message, code=code)


def is_retryable(exc: Exception) -> bool:
    """True when the driver's managed-transaction retry loop may retry *exc*."""
    check = getattr(exc, "is_retryable", None)
    return bool(check()) if callable(check) else False
