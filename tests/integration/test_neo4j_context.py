"""Integration tests for contexts and the executor against a real Neo4j instance.

Requires Neo4j reachable through NEO4J_URI / NEO4J_USERNAME / NEO4J_PASSWORD
(defaults to neo4j://localhost:7687). Deselected by default; run with:

    pytest -m integration tests/integration
"""

from __future__ import annotations

from typing import Any

import pytest

from neo4j_context.adapters.neo4j import queries
from neo4j_context.adapters.neo4j.context import (
    DbContext,
    db_close,
    new_db_context,
    new_readonly_db_context,
    new_writable_db_context,
)
from neo4j_context.adapters.neo4j.executor import execute_cypher
from neo4j_context.adapters.neo4j.streaming import execute_and_stream_cypher_results
from neo4j_context.domain.errors import TransactionConflictError
from neo4j_context.settings import Neo4jSettings

pytestmark = pytest.mark.integration

BATCHED = """
UNWIND range(1, $n) AS i
CALL { WITH i MERGE (:Value {name: 'batch-' + toString(i)}) } IN TRANSACTIONS OF 2 ROWS
RETURN count(*) AS n
"""


@pytest.fixture
async def root():
    """A writable root context; removes every Value node afterwards."""
    settings = Neo4jSettings()
    db = new_writable_db_context(
        settings.to_db_parms(), driver_config=settings.driver_config()
    )
    await execute_cypher(db, queries.init_value_constraint)

    yield db

    cleanup = new_writable_db_context(db)
    await execute_cypher(cleanup, "MATCH (n:Value) DETACH DELETE n")
    await db_close(cleanup)
    await db_close(db)


class _Collector:
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self.summary: dict[str, Any] | None = None

    def on_next(self, record: dict[str, Any]) -> None:
        self.records.append(record)

    def on_completed(self, summary: dict[str, Any] | None) -> None:
        self.summary = summary


async def test_ok(root: DbContext) -> None:
    assert await execute_cypher(root, queries.ok) == [{"ok": "ok"}]


async def test_write_then_read_on_readonly_context(root: DbContext) -> None:
    await execute_cypher(root, queries.set_value, {"key": "k", "value": "v1"})

    reader = new_readonly_db_context(root)
    try:
        result = await execute_cypher(reader, queries.get_value, {"key": "k"})
    finally:
        await db_close(reader)

    assert result == [{"value": "v1"}]


async def test_bookmarks_propagate_to_derived_context(root: DbContext) -> None:
    await execute_cypher(root, queries.set_value, {"key": "k", "value": "v1"})
    assert root.marks is not None

    child = new_db_context(root)
    try:
        assert child.session_config.bookmarks == root.marks
        assert await execute_cypher(child, queries.get_all_values) == [
            {"name": "k", "value": "v1"}
        ]
    finally:
        await db_close(child)


async def test_reads_are_idempotent(root: DbContext) -> None:
    await execute_cypher(root, queries.set_value, {"key": "a", "value": 1})
    first = await execute_cypher(root, queries.get_all_values)
    second = await execute_cypher(root, queries.get_all_values)
    assert first == second


async def test_nested_functions_share_a_transaction(root: DbContext) -> None:
    async def set_and_count(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
        tx = db.tx
        await execute_cypher(db, queries.set_value, {"key": "x", "value": 1})
        assert db.tx is tx
        return await execute_cypher(db, queries.node_count)

    result = await execute_cypher(root, set_and_count)
    assert result[0]["nodeCount"] >= 1
    assert root.tx is None


async def test_batched_statement_outside_transaction(root: DbContext) -> None:
    assert await execute_cypher(root, BATCHED, {"n": 5}) == [{"n": 5}]


async def test_batched_statement_inside_function_conflicts(root: DbContext) -> None:
    async def batched(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
        return await execute_cypher(db, BATCHED, {"n": 3})

    with pytest.raises(TransactionConflictError):
        await execute_cypher(root, batched)
    assert root.tx is None


async def test_stream_values(root: DbContext) -> None:
    for key in ("a", "b", "c"):
        await execute_cypher(root, queries.set_value, {"key": key, "value": key})

    collector = _Collector()
    summary = await execute_and_stream_cypher_results(root, queries.GET_ALL_VALUES, collector)

    assert [record["name"] for record in collector.records] == ["a", "b", "c"]
    assert collector.summary == summary
