"""
Exception hierarchy for the SQL access layer.

Every error raised on purpose by this package derives from
``SqlAccessError``.  Driver errors are never swallowed: they are wrapped
in one of the classes below and chained with ``raise ... from exc`` so
the original cause stays visible on ``__cause__``.
"""

from __future__ import annotations

from typing import Any, Optional


class SqlAccessError(Exception):
    """Base class for all errors raised by ``sql_access``."""


class DatabaseConnectionError(SqlAccessError):
    """Opening or closing a connection failed.

    Raised for unreachable hosts, rejected credentials, missing driver
    libraries and malformed connection descriptors.
    """


class StatementBuildError(SqlAccessError):
    """Structured input could not be turned into a statement."""


class ExecutionError(SqlAccessError):
    """The database engine rejected a statement.

    Attributes:
        statement: The ``Statement`` that failed, when known.
    """

    def __init__(self, message: str, statement: Optional[Any] = None) -> None:
        super().__init__(message)
        self.statement = statement


class TransactionError(SqlAccessError):
    """A transaction scope was misused or could not be completed."""
