"""Database contexts and the factory that derives them.

A context bundles connection parameters, the driver, session and transaction
configuration, and at most one live session and one live transaction. The
driver does not contact the database until the first query, so creating a
context is cheap and never blocks.

Derived contexts share the parent's driver but own only their own session;
only the context that created the driver closes it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import structlog
from neo4j import AsyncGraphDatabase, basic_auth
from neo4j.exceptions import DriverError

from neo4j_context.domain.access_mode import resolve_access_mode
from neo4j_context.domain.errors import ConfigurationError, TransactionConflictError
from neo4j_context.domain.models import ContextState, DbParms, SessionConfig, TxConfig

if TYPE_CHECKING:
    from neo4j import AsyncDriver, AsyncManagedTransaction, AsyncSession, Bookmarks

logger = structlog.get_logger(__name__)

ParmsLike = DbParms | Mapping[str, Any]


@dataclass(eq=False)
class DbContext:
    """Everything a query runs under. Compared by identity."""

    parms: DbParms
    driver: AsyncDriver
    owns_driver: bool = False
    driver_config: dict[str, Any] = field(default_factory=dict)
    session_config: SessionConfig = field(default_factory=SessionConfig)
    tx_config: TxConfig = field(default_factory=TxConfig)
    session: AsyncSession | None = None
    tx: AsyncManagedTransaction | None = None
    marks: Bookmarks | None = None  # last bookmarks captured from our session
    summary: dict[str, Any] | None = None  # normalized summary of the last result
    state: ContextState = ContextState.IDLE
    log: Any = field(default=logger, repr=False)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def open_session(self) -> AsyncSession:
        """IDLE -> SESSION_OPEN. Answer the existing session in any other state."""
        if self.session is not None:
            return self.session
        self.session = self.driver.session(**self.session_config.as_kwargs())
        self.state = ContextState.SESSION_OPEN
        self.log.debug(
            "db_session_opened",
            database=self.session_config.database,
            access_mode=self.session_config.default_access_mode,
        )
        return self.session

    def bind_transaction(self, tx: AsyncManagedTransaction) -> None:
        """SESSION_OPEN -> IN_TRANSACTION."""
        if self.state is ContextState.IN_TRANSACTION:
            msg = "A transaction is already active on this context"
            raise TransactionConflictError(msg)
        if self.state is ContextState.IDLE:
            msg = "Cannot bind a transaction to a context without an open session"
            raise TransactionConflictError(msg)
        self.tx = tx
        self.state = ContextState.IN_TRANSACTION

    def release_transaction(self) -> None:
        """IN_TRANSACTION -> SESSION_OPEN. Safe to call in any state."""
        self.tx = None
        if self.state is ContextState.IN_TRANSACTION:
            self.state = ContextState.SESSION_OPEN


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def _override_dict(overrides: ParmsLike | None) -> dict[str, Any]:
    if overrides is None:
        return {}
    if isinstance(overrides, DbParms):
        return overrides.model_dump(exclude_unset=True)
    return dict(overrides)


def _base_parms(base: DbContext | ParmsLike) -> DbParms:
    if isinstance(base, DbContext):
        return base.parms
    if isinstance(base, DbParms):
        return base
    return DbParms.model_validate(dict(base))


def new_db_driver(parms: DbParms, driver_config: Mapping[str, Any] | None = None) -> AsyncDriver:
    """Create a driver for ``parms.url``. The connection is not verified here."""
    if not parms.url:
        msg = "DbParms.url must be specified"
        raise ConfigurationError(msg)
    auth = None
    if parms.user is not None:
        password = parms.password.get_secret_value() if parms.password is not None else ""
        auth = basic_auth(parms.user, password)
    try:
        driver = AsyncGraphDatabase.driver(parms.url, auth=auth, **dict(driver_config or {}))
    except (DriverError, ValueError) as exc:
        msg = f"Invalid connection settings for {parms.url!r}: {exc}"
        raise ConfigurationError(msg) from exc
    logger.info("neo4j_driver_created", url=parms.url, user=parms.user)
    return driver


def new_db_context(
    base: DbContext | ParmsLike,
    overrides: ParmsLike | None = None,
    *,
    driver_config: Mapping[str, Any] | None = None,
    session_config: Mapping[str, Any] | None = None,
    tx_config: TxConfig | None = None,
    driver: AsyncDriver | None = None,
    marks: Bookmarks | None = None,
    log: Any = None,
) -> DbContext:
    """Build a new context from a parent context or parameters plus overrides.

    - parameters merge field by field, overrides winning
    - the parent's driver is reused when there is one, otherwise a new one
      is created and owned by the new context
    - the session config inherits the database name and, unless the merged
      parameters set ``ignore_marks``, the parent's staged bookmarks
    - the default access mode is always re-derived from the merged flags
    """
    parent = base if isinstance(base, DbContext) else None
    parms = _base_parms(base).merged(_override_dict(overrides))

    inherited = parent.session_config if parent is not None else SessionConfig()
    sess = replace(inherited, **dict(session_config or {}))
    if parms.database is not None and "database" not in (session_config or {}):
        sess.database = parms.database
    if parms.ignore_marks:
        sess.bookmarks = None
    access_mode = resolve_access_mode(allow_write=parms.allow_write, readonly=parms.readonly)
    if access_mode is not None:
        sess.default_access_mode = access_mode

    base_tx = parent.tx_config if parent is not None else TxConfig()
    merged_driver_config = {
        **(parent.driver_config if parent is not None else {}),
        **dict(driver_config or {}),
    }

    owns_driver = False
    if driver is None and parent is not None:
        driver = parent.driver
    if driver is None:
        driver = new_db_driver(parms, merged_driver_config)
        owns_driver = True

    if log is None:
        log = parent.log if parent is not None else logger

    db = DbContext(
        parms=parms,
        driver=driver,
        owns_driver=owns_driver,
        driver_config=merged_driver_config,
        session_config=sess,
        tx_config=base_tx.merged(tx_config),
        marks=marks if marks is not None else (parent.marks if parent is not None else None),
        log=log,
    )
    log.debug(
        "new_db_context",
        parms=repr(parms),
        access_mode=sess.default_access_mode,
        owns_driver=owns_driver,
        derived=parent is not None,
    )
    return db


def new_readonly_db_context(
    base: DbContext | ParmsLike,
    overrides: ParmsLike | None = None,
    **kwargs: Any,
) -> DbContext:
    """Answer a context whose sessions default to READ access."""
    forced = {**_override_dict(overrides), "readonly": True, "allow_write": False}
    return new_db_context(base, forced, **kwargs)


def new_writable_db_context(
    base: DbContext | ParmsLike,
    overrides: ParmsLike | None = None,
    **kwargs: Any,
) -> DbContext:
    """Answer a context whose sessions default to WRITE access."""
    forced = {**_override_dict(overrides), "allow_write": True, "readonly": False}
    return new_db_context(base, forced, **kwargs)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def db_close_session(db: DbContext) -> None:
    """Close just this context's session; the next query opens a fresh one."""
    if db.state is ContextState.IN_TRANSACTION:
        msg = "Cannot close a session while a transaction is active"
        raise TransactionConflictError(msg)
    session = db.session
    db.session = None
    db.state = ContextState.IDLE
    if session is not None:
        await session.close()
        db.log.debug("db_session_closed", database=db.session_config.database)


async def db_close(db: DbContext) -> None:
    """Close the session and, when this context created it, the driver."""
    await db_close_session(db)
    if not db.owns_driver:
        db.log.debug("db_close_shared_driver_kept")
        return
    await db.driver.close()
    db.owns_driver = False
    db.log.info("neo4j_driver_closed")
