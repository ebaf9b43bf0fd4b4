"""Shared pytest fixtures for the neo4j-context test suite.

Unit tests run against the in-memory driver in ``tests.fixtures.fake_neo4j``;
no Neo4j instance is required.
"""

from __future__ import annotations

import pytest

from neo4j_context.adapters.neo4j.context import DbContext, new_db_context
from neo4j_context.domain.models import DbParms
from tests.fixtures.fake_neo4j import FakeDriver


@pytest.fixture()
def fake_driver() -> FakeDriver:
    """A fresh in-memory driver."""
    return FakeDriver()


@pytest.fixture()
def parms() -> DbParms:
    return DbParms(url="neo4j://fake:7687", database="neo4j", user="neo4j", password="secret")


@pytest.fixture()
def db(parms: DbParms, fake_driver: FakeDriver) -> DbContext:
    """A context on the fake driver with no access-mode flags set."""
    return new_db_context(parms, driver=fake_driver)


@pytest.fixture()
def write_db(parms: DbParms, fake_driver: FakeDriver) -> DbContext:
    return new_db_context(parms, {"allow_write": True}, driver=fake_driver)


@pytest.fixture()
def read_db(parms: DbParms, fake_driver: FakeDriver) -> DbContext:
    return new_db_context(parms, {"readonly": True}, driver=fake_driver)
