"""Query execution over a context's session and transaction.

Dispatch, given a resolved query descriptor:

1. IDLE: open the context's session.
2. Literal query, no active transaction: single-shot ``session.run``
   (auto-commit), then capture bookmarks. Statements that manage their own
   transactions (``CALL { ... } IN TRANSACTIONS``) only work on this path.
3. Composable function, no active transaction: ``execute_read`` or
   ``execute_write`` depending on the session's default access mode. The
   transaction handle is bound on the context for the duration of the
   transaction function so nested calls on the same context find it.
4. Active transaction: run against it directly. A second transaction is never
   begun on a context that already has one.

Bookmark capture and transaction release happen in ``finally`` blocks, so a
failed unit of work never leaves the context looking mid-transaction.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from neo4j import Query, unit_of_work

from neo4j_context.adapters.neo4j.bookmarks import handle_last_bookmarks
from neo4j_context.adapters.neo4j.errors import (
    BACKEND_ERRORS,
    is_retryable,
    translate_backend_error,
)
from neo4j_context.domain.models import (
    AccessMode,
    ContextState,
    CypherQuery,
    QueryFunction,
    QuerySpec,
    as_query_spec,
)
from neo4j_context.domain.normalize import (
    is_raw_result,
    normalize_records,
    normalize_summary,
)

if TYPE_CHECKING:
    from neo4j import AsyncManagedTransaction, EagerResult

    from neo4j_context.adapters.neo4j.context import DbContext

QueryInput = str | Mapping[str, Any] | CypherQuery | QueryFunction | Any


def _describe(spec: QuerySpec) -> str:
    if isinstance(spec, CypherQuery):
        return spec.text
    return getattr(spec.fn, "__name__", repr(spec.fn))


def as_driver_query(db: DbContext, query: CypherQuery) -> str | Query:
    """Attach the context's transaction config to a single-shot query."""
    if db.tx_config.is_empty:
        return query.text
    return Query(query.text, metadata=db.tx_config.metadata, timeout=db.tx_config.timeout)


async def _run_in_transaction(db: DbContext, query: CypherQuery) -> EagerResult:
    """Run a literal query against the context's active transaction."""
    if db.tx is None:
        msg = "No active transaction on this context"
        raise RuntimeError(msg)
    try:
        result = await db.tx.run(query.text, query.parameters)
        return await result.to_eager_result()
    except BACKEND_ERRORS as exc:
        if is_retryable(exc):
            raise
        raise translate_backend_error(exc) from exc


async def _run_single_shot(db: DbContext, query: CypherQuery) -> EagerResult:
    session = db.open_session()
    try:
        result = await session.run(as_driver_query(db, query), query.parameters)
        eager = await result.to_eager_result()
    except BACKEND_ERRORS as exc:
        raise translate_backend_error(exc) from exc
    finally:
        await handle_last_bookmarks(db)
    return eager


async def _invoke(db: DbContext, spec: QuerySpec, parameters: dict[str, Any] | None) -> Any:
    if isinstance(spec, QueryFunction):
        outcome = spec.fn(db, parameters)
        if inspect.isawaitable(outcome):
            return await outcome
        return outcome
    return await _run_in_transaction(db, spec)


async def _run_managed(
    db: DbContext,
    spec: QuerySpec,
    parameters: dict[str, Any] | None,
) -> Any:
    """Begin a managed transaction on the context's session and run *spec* in it."""
    session = db.open_session()

    async def work(tx: AsyncManagedTransaction) -> Any:
        db.bind_transaction(tx)
        try:
            return await _invoke(db, spec, parameters)
        finally:
            db.release_transaction()

    if not db.tx_config.is_empty:
        work = unit_of_work(timeout=db.tx_config.timeout, metadata=db.tx_config.metadata)(work)

    try:
        if db.session_config.default_access_mode is AccessMode.READ:
            return await session.execute_read(work)
        return await session.execute_write(work)
    except BACKEND_ERRORS as exc:
        raise translate_backend_error(exc) from exc
    finally:
        await handle_last_bookmarks(db)
        db.release_transaction()


async def execute_cypher_raw_results(
    db: DbContext,
    query: QueryInput,
    parameters: Mapping[str, Any] | None = None,
) -> Any:
    """Execute a query or composable function without converting the results.

    Literal queries answer a driver ``EagerResult``; composable functions
    answer whatever the function returns.
    """
    spec = as_query_spec(query, parameters)
    params = dict(parameters) if parameters is not None else None
    db.log.debug("execute_cypher", query=_describe(spec), parameters=params, state=db.state)

    if db.state is ContextState.IDLE:
        db.open_session()

    if db.state is ContextState.IN_TRANSACTION:
        return await _invoke(db, spec, params)
    if isinstance(spec, CypherQuery):
        return await _run_single_shot(db, spec)
    return await _run_managed(db, spec, params)


async def execute_cypher(
    db: DbContext,
    query: QueryInput,
    parameters: Mapping[str, Any] | None = None,
    only_fields: Sequence[str] | None = None,
) -> Any:
    """Execute a query or composable function and answer plain dict records.

    Output of nested composable calls is already plain and passes through
    unchanged. The summary of a raw result is stored on ``db.summary``.
    """
    raw = await execute_cypher_raw_results(db, query, parameters)
    if is_raw_result(raw):
        db.summary = normalize_summary(raw.summary)
    results = normalize_records(raw, only_fields)
    if db.parms.log_results:
        db.log.info(
            "db_result",
            query=_describe(as_query_spec(query, parameters)),
            results=results,
            summary=db.summary,
        )
    return results
