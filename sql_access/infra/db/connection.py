"""
Database connection utilities.

``open_connection`` turns a ``ConnectionDescriptor`` into a live
``Connection``.  Three DB-API drivers are supported:

* ``sqlite`` uses the standard library ``sqlite3`` module.
* ``pymssql`` and ``pyodbc`` connect to SQL Server.  The ``mssql``
  driver name tries ``pymssql`` first and falls back to ``pyodbc`` when
  it is not installed.

Connections are opened in autocommit mode, so every statement issued
outside a transaction scope is committed on its own.  ``begin`` switches
the connection to manual commit until ``commit`` or ``rollback`` is
called; ``sql_access.transaction`` is the intended caller of those.

Statements always use ``?`` placeholders.  ``sqlite3`` and ``pyodbc``
accept them as is; for ``pymssql`` they are rewritten to ``%s`` by
``to_pyformat``.

Example usage::

    from sql_access.infra.db import ConnectionDescriptor, open_connection
    conn = open_connection(ConnectionDescriptor.from_string('sqlite:///fruit.db'))
    cursor = conn.run('SELECT * FROM fruit WHERE name = ?', ('Plum',))
    conn.close()
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Sequence, Tuple, Type

from ...errors import DatabaseConnectionError
from .descriptor import ConnectionDescriptor

# Quoted literals are copied through untouched; ``?`` and ``%`` outside them
# are rewritten.
_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\?|%")


def to_pyformat(sql: str) -> str:
    """Rewrite ``?`` placeholders to ``%s`` and escape literal ``%``."""

    def replacer(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "?":
            return "%s"
        if token == "%":
            return "%%"
        return token.replace("%", "%%")

    return _PLACEHOLDER_RE.sub(replacer, sql)


class Connection:
    """Lightweight wrapper around a DB-API connection.

    Instances are returned by ``open_connection``.  They are not safe
    for concurrent use from several threads; callers that share one must
    coordinate access themselves.
    """

    def __init__(self, conn: Any, driver: str, errors: Tuple[Type[BaseException], ...]) -> None:
        self._conn = conn
        self._driver = driver
        self.driver_errors = errors
        self._in_transaction = False

    @property
    def driver(self) -> str:
        return self._driver

    @property
    def closed(self) -> bool:
        return self._conn is None

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def _raw(self) -> Any:
        if self._conn is None:
            raise DatabaseConnectionError("Connection is closed")
        return self._conn

    def run(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute ``sql`` with positional ``params`` and return the cursor.

        Driver errors propagate unchanged; ``sql_access.executor`` wraps
        them.
        """
        cursor = self._raw().cursor()
        if self._driver == "pymssql":
            cursor.execute(to_pyformat(sql), tuple(params))
        else:
            cursor.execute(sql, tuple(params))
        return cursor

    def begin(self) -> None:
        raw = self._raw()
        if self._driver == "sqlite":
            raw.execute("BEGIN")
        elif self._driver == "pymssql":
            raw.autocommit(False)
        else:
            raw.autocommit = False
        self._in_transaction = True

    def commit(self) -> None:
        raw = self._raw()
        try:
            raw.commit()
        finally:
            self._end_transaction(raw)

    def rollback(self) -> None:
        raw = self._raw()
        try:
            raw.rollback()
        finally:
            self._end_transaction(raw)

    def _end_transaction(self, raw: Any) -> None:
        self._in_transaction = False
        if self._driver == "pymssql":
            raw.autocommit(True)
        elif self._driver == "pyodbc":
            raw.autocommit = True

    def close(self) -> None:
        """Close the underlying connection.  Calling it twice is harmless."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.close()
        except self.driver_errors as exc:
            raise DatabaseConnectionError(f"Failed to close {self._driver} connection: {exc}") from exc
        logging.debug("[db] connection closed", extra={"driver": self._driver})

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _open_sqlite(descriptor: ConnectionDescriptor) -> Connection:
    import sqlite3

    timeout = float(descriptor.extra.get("timeout", 5.0))
    try:
        # isolation_level=None keeps sqlite3 in autocommit mode; transactions
        # are started explicitly by Connection.begin.
        conn = sqlite3.connect(descriptor.database, timeout=timeout, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as exc:
        raise DatabaseConnectionError(f"Cannot open sqlite database {descriptor.database!r}: {exc}") from exc
    return Connection(conn, "sqlite", (sqlite3.Error,))


def _open_pymssql(descriptor: ConnectionDescriptor) -> Connection:
    import pymssql  # type: ignore[import]

    try:
        conn = pymssql.connect(
            server=descriptor.host,
            user=descriptor.user,
            password=descriptor.password,
            database=descriptor.database,
            port=descriptor.port or 1433,
            autocommit=True,
        )
    except pymssql.Error as exc:
        raise DatabaseConnectionError(f"Cannot connect to {descriptor.host}: {exc}") from exc
    return Connection(conn, "pymssql", (pymssql.Error,))


def _open_pyodbc(descriptor: ConnectionDescriptor) -> Connection:
    import pyodbc  # type: ignore[import]

    extra = descriptor.extra
    driver = extra.get("odbc_driver", "ODBC Driver 17 for SQL Server")
    encrypt = str(extra.get("encrypt", "yes")).lower() in ("true", "yes", "1")
    trust = str(extra.get("trustservercertificate", "yes")).lower() in ("true", "yes", "1")
    server_expr = f"{descriptor.host},{descriptor.port}" if descriptor.port else descriptor.host
    conn_str = (
        f"DRIVER={{{driver}}};"
        f"SERVER={server_expr};"
        f"DATABASE={descriptor.database};"
        f"UID={descriptor.user or ''};PWD={descriptor.password or ''};"
        f"Encrypt={'yes' if encrypt else 'no'};"
        f"TrustServerCertificate={'yes' if trust else 'no'};"
    )
    try:
        conn = pyodbc.connect(conn_str, autocommit=True)
    except pyodbc.Error as exc:
        raise DatabaseConnectionError(f"Cannot connect to {descriptor.host}: {exc}") from exc
    return Connection(conn, "pyodbc", (pyodbc.Error,))


def open_connection(descriptor: ConnectionDescriptor) -> Connection:
    """Open a connection described by ``descriptor``.

    Args:
        descriptor: Where and how to connect.

    Returns:
        A ``Connection`` in autocommit mode.

    Raises:
        DatabaseConnectionError: If the descriptor is incomplete, the
            driver library is not installed or the server refuses the
            connection.
    """
    descriptor.validate()
    driver = descriptor.driver
    logging.info(
        "[db] opening connection",
        extra={"driver": driver, "host": descriptor.host, "database": descriptor.database},
    )
    if driver == "sqlite":
        return _open_sqlite(descriptor)
    if driver in ("mssql", "pymssql"):
        try:
            return _open_pymssql(descriptor)
        except ImportError:
            if driver == "pymssql":
                raise DatabaseConnectionError("pymssql is not installed") from None
    # Fallback to pyodbc
    try:
        return _open_pyodbc(descriptor)
    except ImportError:
        raise DatabaseConnectionError(
            "Neither pymssql nor pyodbc is installed. Install one of them to connect to SQL Server."
        ) from None


def close_connection(connection: Optional[Connection]) -> None:
    """Close ``connection`` if it is open; ``None`` is ignored."""
    if connection is not None:
        connection.close()
