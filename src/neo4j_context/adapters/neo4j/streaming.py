"""Streaming query execution.

Records are handed to an observer as they arrive instead of being collected
in memory, so this path can consume arbitrarily large results. A session with
an active transaction cannot also stream, so when the caller's context is in
a transaction the stream runs on a derived sibling context that shares the
driver and bookmarks; the sibling's session is closed once the stream ends.
"""

from __future__ import annotations

import contextlib
import inspect
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from neo4j_context.adapters.neo4j.bookmarks import handle_last_bookmarks
from neo4j_context.adapters.neo4j.context import db_close_session, new_db_context
from neo4j_context.adapters.neo4j.errors import BACKEND_ERRORS, translate_backend_error
from neo4j_context.adapters.neo4j.executor import as_driver_query
from neo4j_context.domain.errors import StreamError
from neo4j_context.domain.models import ContextState, CypherQuery, as_query_spec
from neo4j_context.domain.normalize import normalize_summary, record_to_dict

if TYPE_CHECKING:
    from neo4j_context.adapters.neo4j.context import DbContext
    from neo4j_context.ports.db_function import StreamObserver


async def _notify(callback: Any, *args: Any) -> None:
    if callback is None:
        return
    outcome = callback(*args)
    if inspect.isawaitable(outcome):
        await outcome


def _as_stream_error(exc: Exception) -> StreamError:
    if isinstance(exc, BACKEND_ERRORS):
        translated = translate_backend_error(exc)
        return StreamError(translated.message, code=translated.code)
    return StreamError(str(exc) or type(exc).__name__)


async def execute_and_stream_cypher_results(
    db: DbContext,
    query: str | Mapping[str, Any] | CypherQuery,
    observer: StreamObserver,
    parameters: Mapping[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Run a literal query and push its records to *observer* one at a time.

    Callback order: ``on_keys`` (at most once), ``on_next`` per record, then
    exactly one of ``on_completed(summary)`` or ``on_error(StreamError)``.
    Answers the normalized summary, or ``None`` when the error went to
    ``on_error``. Without an ``on_error`` callback the ``StreamError`` is
    raised.
    """
    spec = as_query_spec(query, parameters)
    if not isinstance(spec, CypherQuery):
        msg = "Only literal queries can be streamed"
        raise TypeError(msg)

    stream_db = new_db_context(db) if db.state is ContextState.IN_TRANSACTION else db
    db.log.debug(
        "execute_and_stream_cypher",
        query=spec.text,
        sibling=stream_db is not db,
    )
    session = stream_db.open_session()

    summary: dict[str, Any] | None = None
    error: StreamError | None = None
    result: Any = None
    try:
        result = await session.run(as_driver_query(stream_db, spec), spec.parameters)
        keys = result.keys()
        await _notify(getattr(observer, "on_keys", None), list(keys))
        async for record in result:
            await _notify(observer.on_next, record_to_dict(record))
        summary = normalize_summary(await result.consume())
        stream_db.summary = summary
    except Exception as exc:  # noqa: BLE001
        error = _as_stream_error(exc)
        error.__cause__ = exc
        if result is not None:
            # Discard the unread tail so the session does not buffer it later
            with contextlib.suppress(*BACKEND_ERRORS):
                await result.consume()
    finally:
        try:
            await handle_last_bookmarks(stream_db)
        finally:
            if stream_db is not db:
                db.marks = stream_db.marks
                if error is None:
                    db.summary = stream_db.summary
                await db_close_session(stream_db)

    if error is not None:
        db.log.warning("stream_failed", error=error.message, code=error.code)
        on_error = getattr(observer, "on_error", None)
        if on_error is None:
            raise error
        await _notify(on_error, error)
        return None

    await _notify(getattr(observer, "on_completed", None), summary)
    return summary
