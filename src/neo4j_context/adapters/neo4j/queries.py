"""Cypher templates and basic composable query functions.

Each function follows the ``DbFunction`` shape ``(db, parameters)`` so it can
be passed to ``execute_cypher`` directly or called from inside another
function that shares the same transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from neo4j_context.adapters.neo4j.executor import execute_cypher

if TYPE_CHECKING:
    from neo4j_context.adapters.neo4j.context import DbContext
    from neo4j_context.ports.db_function import DbFunction

# ---------------------------------------------------------------------------
# Cypher
# ---------------------------------------------------------------------------

OK = "RETURN 'ok' AS ok"

ECHO = "RETURN $parms AS parms"

NODE_COUNT = "MATCH (n) RETURN count(n) AS nodeCount"

INIT_VALUE_CONSTRAINT = """
CREATE CONSTRAINT Value_name IF NOT EXISTS
FOR (n:Value) REQUIRE n.name IS UNIQUE
"""

SET_VALUE = """
MERGE (n:Value {name: $key})
SET n.value = $value
RETURN n.value AS value
"""

GET_VALUE = """
MATCH (n:Value)
WHERE n.name = $key
RETURN n.value AS value
"""

GET_ALL_VALUES = """
MATCH (n:Value)
RETURN n.name AS name, n.value AS value
ORDER BY name
"""

# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


async def ok(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    return await execute_cypher(db, OK)


async def echo(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    return await execute_cypher(db, ECHO, {"parms": parameters})


async def node_count(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    return await execute_cypher(db, NODE_COUNT)


async def init_value_constraint(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    return await execute_cypher(db, INIT_VALUE_CONSTRAINT)


async def set_value(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    """MERGE a Value node by ``key`` and set its ``value``."""
    return await execute_cypher(db, SET_VALUE, parameters)


async def get_value(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    return await execute_cypher(db, GET_VALUE, parameters)


async def get_all_values(db: DbContext, parameters: dict[str, Any] | None = None) -> Any:
    """Return every Value node as ``{name, value}`` ordered by name."""
    return await execute_cypher(db, GET_ALL_VALUES)


BASIC_DB_FUNCTIONS: dict[str, DbFunction] = {
    "ok": ok,
    "echo": echo,
    "node_count": node_count,
    "init_value_constraint": init_value_constraint,
    "set_value": set_value,
    "get_value": get_value,
    "get_all_values": get_all_values,
}
