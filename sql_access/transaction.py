"""
Transaction scopes.

A ``TransactionScope`` wraps one ``Connection`` for the length of a unit
of work.  Every statement run on that connection while the scope is
active belongs to the same transaction.  When the scope exits it either
commits or rolls back, never both and never neither:

* normal exit with the rollback-only flag clear commits;
* normal exit with the flag set rolls back;
* exit through an exception rolls back and re-raises that exception.

A finished scope cannot be reused.  A scope must not be shared between
threads, and a connection carries at most one active scope at a time.

Example::

    with transaction(conn) as tx:
        execute_all(tx.connection, insert('fruit', rows))
        if dry_run:
            tx.set_rollback_only()
"""

from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator, TypeVar

from .errors import SqlAccessError, TransactionError
from .infra.db.connection import Connection

T = TypeVar("T")


class ScopeState(enum.Enum):
    ACTIVE = "active"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ROLLING_BACK = "rolling_back"
    ROLLED_BACK = "rolled_back"


class TransactionScope:
    """One transaction on one connection."""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.state = ScopeState.ACTIVE
        self._rollback_only = False

    def _require_active(self, action: str) -> None:
        if self.state is not ScopeState.ACTIVE:
            raise TransactionError(f"Cannot {action}: transaction is {self.state.value}")

    def set_rollback_only(self) -> None:
        self._require_active("set rollback-only")
        self._rollback_only = True

    def unset_rollback_only(self) -> None:
        self._require_active("unset rollback-only")
        self._rollback_only = False

    def is_rollback_only(self) -> bool:
        return self._rollback_only

    def commit(self) -> None:
        """Commit the transaction.

        If the engine refuses the commit, a rollback is attempted and
        ``TransactionError`` is raised from the driver error.
        """
        self._require_active("commit")
        self.state = ScopeState.COMMITTING
        try:
            self.connection.commit()
        except self.connection.driver_errors as exc:
            logging.error('[transaction] commit failed', exc_info=exc)
            self.state = ScopeState.ACTIVE
            self.rollback()
            raise TransactionError(f"Commit failed: {exc}") from exc
        self.state = ScopeState.COMMITTED
        logging.debug('[transaction] committed')

    def rollback(self) -> None:
        self._require_active("roll back")
        self.state = ScopeState.ROLLING_BACK
        try:
            self.connection.rollback()
        except self.connection.driver_errors as exc:
            raise TransactionError(f"Rollback failed: {exc}") from exc
        finally:
            self.state = ScopeState.ROLLED_BACK
        logging.debug('[transaction] rolled back')

    def __enter__(self) -> "TransactionScope":
        self._require_active("enter")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            if self._rollback_only:
                self.rollback()
            else:
                self.commit()
            return None
        try:
            self.rollback()
        except SqlAccessError as rollback_exc:
            # The exception that ended the block propagates; this one is only logged.
            logging.error('[transaction] rollback after failure failed', exc_info=rollback_exc)
        return None


def begin(connection: Connection) -> TransactionScope:
    """Start a transaction on ``connection`` and return its scope.

    Raises:
        TransactionError: If the connection already has an active scope
            or the engine refuses to start a transaction.
    """
    if connection.in_transaction:
        raise TransactionError("Connection already has an active transaction")
    try:
        connection.begin()
    except connection.driver_errors as exc:
        raise TransactionError(f"Cannot begin transaction: {exc}") from exc
    logging.debug('[transaction] begin', extra={'driver': connection.driver})
    return TransactionScope(connection)


@contextmanager
def transaction(connection: Connection) -> Generator[TransactionScope, None, None]:
    """Run the ``with`` block inside a transaction scope.

    Commits on normal exit unless the scope was marked rollback-only;
    rolls back and re-raises on any exception.
    """
    with begin(connection) as scope:
        yield scope


def with_transaction(connection: Connection, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call ``fn(scope, *args, **kwargs)`` inside a transaction scope.

    Returns:
        Whatever ``fn`` returns, after the scope has committed or rolled
        back.
    """
    with transaction(connection) as scope:
        return fn(scope, *args, **kwargs)
