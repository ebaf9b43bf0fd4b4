"""Causal-consistency bookmark tracking.

Bookmarks flow one way: session -> context -> the session config used for the
next session opened on (or derived from) that context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from neo4j_context.adapters.neo4j.context import DbContext


async def handle_last_bookmarks(db: DbContext) -> DbContext:
    """Capture the session's last bookmarks at the end of a unit of work.

    Unless ``ignore_marks`` is set, they are also staged into the session
    config so the next session opened on this context observes the work just
    done. A context without a session is left unchanged.
    """
    if db.session is None:
        return db
    marks = await db.session.last_bookmarks()
    db.marks = marks
    db.session_config.bookmarks = None if db.parms.ignore_marks else marks
    db.log.debug(
        "db_bookmarks_captured",
        count=len(marks.raw_values) if marks is not None else 0,
        staged=db.session_config.bookmarks is not None,
    )
    return db


def forget_bookmarks(db: DbContext) -> DbContext:
    """Drop saved bookmarks, starting a causally independent chain."""
    db.marks = None
    db.session_config.bookmarks = None
    return db
