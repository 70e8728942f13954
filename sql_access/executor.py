"""
Statement execution and result shaping.

``execute`` runs DDL/DML and returns the affected-row count; ``query``
runs a SELECT and turns the cursor into records.  Engine errors are
wrapped in ``ExecutionError`` (chained from the driver exception) and
never retried.

Whether a statement is committed immediately depends only on the
connection: outside a transaction scope every statement is committed on
its own, inside one it joins the scope's transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import ExecutionError
from .infra.db.connection import Connection
from .statements import Statement


def _lower(name: str) -> str:
    return name.lower()


@dataclass(frozen=True)
class QueryOptions:
    """How ``query`` shapes its result.

    Attributes:
        row_transform: Applied to each row before it is included.
            ``None`` keeps rows as they are.
        result_transform: Applied once to an iterator over all shaped
            rows; its return value is the result of ``query``.  ``None``
            materialises the rows into a list.
        as_tabular: Return a header row of column names followed by one
            list of values per row, instead of one dict per row.
            ``row_transform`` applies to the value rows only.
        identifier_transform: Applied to each column name before it is
            used as a key or header.
    """

    row_transform: Optional[Callable[[Any], Any]] = None
    result_transform: Optional[Callable[[Iterator[Any]], Any]] = None
    as_tabular: bool = False
    identifier_transform: Callable[[str], str] = _lower


DEFAULT_OPTIONS = QueryOptions()


def _run(connection: Connection, statement: Statement) -> Any:
    logging.debug('[executor] execute', extra={'sql': statement.sql, 'params': statement.params})
    try:
        return connection.run(statement.sql, statement.params)
    except connection.driver_errors as exc:
        logging.debug('[executor] failed', extra={'sql': statement.sql, 'error': str(exc)})
        raise ExecutionError(f"{exc} [{statement.sql}]", statement) from exc


def execute(connection: Connection, statement: Statement) -> int:
    """Run a DDL or DML statement.

    Returns:
        The number of affected rows, ``0`` when the driver does not report
        one (as for DDL).

    Raises:
        ExecutionError: If the engine rejects the statement.
    """
    cursor = _run(connection, statement)
    try:
        count = cursor.rowcount
    finally:
        cursor.close()
    return count if count and count > 0 else 0


def execute_all(connection: Connection, statements: Iterable[Statement]) -> int:
    """Run each statement in order and return the summed affected rows.

    Execution stops at the first failure; statements already run stay
    committed unless the connection is inside a transaction scope.
    """
    return sum(execute(connection, statement) for statement in statements)


def _unique(names: Sequence[str]) -> List[str]:
    """Make column keys unique by suffixing repeats with ``_2``, ``_3``..."""
    seen: Dict[str, int] = {}
    result: List[str] = []
    for name in names:
        if name in seen:
            seen[name] += 1
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            seen[candidate] = 1
            result.append(candidate)
        else:
            seen[name] = 1
            result.append(name)
    return result


def query(connection: Connection, statement: Statement, options: QueryOptions = DEFAULT_OPTIONS) -> Any:
    """Run a SELECT statement and shape its rows.

    Args:
        connection: An open ``Connection``.
        statement: The SELECT to run.
        options: Result shaping, see ``QueryOptions``.

    Returns:
        A list of records (or of header and value rows when
        ``as_tabular`` is set), or whatever ``result_transform`` returns.

    Raises:
        ExecutionError: If the engine rejects the statement.
    """
    cursor = _run(connection, statement)
    try:
        description = cursor.description or ()
        raw_rows = cursor.fetchall() if description else []
    except connection.driver_errors as exc:
        raise ExecutionError(f"{exc} [{statement.sql}]", statement) from exc
    finally:
        cursor.close()
    keys = _unique([options.identifier_transform(col[0]) for col in description])
    logging.debug('[executor] query returned rows', extra={'count': len(raw_rows)})

    def shaped() -> Iterator[Any]:
        if options.as_tabular:
            yield list(keys)
        for raw in raw_rows:
            row: Any = list(raw) if options.as_tabular else dict(zip(keys, raw))
            yield options.row_transform(row) if options.row_transform else row

    if options.result_transform is not None:
        return options.result_transform(shaped())
    return list(shaped())
