"""Query function and stream observer port interfaces.

Uses typing.Protocol for structural subtyping (not ABCs).
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from neo4j_context.adapters.neo4j.context import DbContext


class DbFunction(Protocol):
    """A composable query.

    Receives the context it runs under and may call the executor again on that
    same context; nested calls then share the active transaction. A plain
    function returning its result directly is accepted too.
    """

    async def __call__(self, db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
        ...


class StreamObserver(Protocol):
    """Receiver of streamed results.

    ``on_keys`` fires at most once, before any record. ``on_next`` fires once
    per record in arrival order. Exactly one of ``on_completed`` and
    ``on_error`` fires last. Only ``on_next`` is required; callbacks may return
    an awaitable.
    """

    def on_next(self, record: dict[str, Any]) -> Awaitable[None] | None:
        ...
