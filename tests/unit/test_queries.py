"""Unit tests for the basic query functions."""

from __future__ import annotations

from neo4j_context.adapters.neo4j import queries
from neo4j_context.adapters.neo4j.context import DbContext
from neo4j_context.adapters.neo4j.executor import execute_cypher
from tests.fixtures.fake_neo4j import FakeDriver


class TestBasicFunctions:
    async def test_ok(self, db: DbContext) -> None:
        assert await execute_cypher(db, queries.ok) == [{"ok": "ok"}]

    async def test_echo_wraps_parameters(self, db: DbContext) -> None:
        assert await queries.echo(db, {"a": 1}) == [{"parms": {"a": 1}}]

    async def test_node_count(self, write_db: DbContext) -> None:
        await execute_cypher(write_db, queries.set_value, {"key": "k", "value": 1})
        assert await execute_cypher(write_db, queries.node_count) == [{"nodeCount": 1}]

    async def test_init_value_constraint(self, write_db: DbContext) -> None:
        assert await execute_cypher(write_db, queries.init_value_constraint) == []

    async def test_set_value_merges(self, write_db: DbContext, fake_driver: FakeDriver) -> None:
        await execute_cypher(write_db, queries.set_value, {"key": "k", "value": "v1"})
        await execute_cypher(write_db, queries.set_value, {"key": "k", "value": "v2"})
        assert fake_driver.values == {"k": "v2"}
        assert await execute_cypher(write_db, queries.get_value, {"key": "k"}) == [
            {"value": "v2"}
        ]

    async def test_get_all_values_ordered(self, write_db: DbContext) -> None:
        for key in ("b", "a"):
            await execute_cypher(write_db, queries.set_value, {"key": key, "value": key.upper()})
        assert await execute_cypher(write_db, queries.get_all_values) == [
            {"name": "a", "value": "A"},
            {"name": "b", "value": "B"},
        ]

    async def test_registry(self) -> None:
        assert set(queries.BASIC_DB_FUNCTIONS) == {
            "ok",
            "echo",
            "node_count",
            "init_value_constraint",
            "set_value",
            "get_value",
            "get_all_values",
        }
        assert queries.BASIC_DB_FUNCTIONS["set_value"] is queries.set_value
