"""
SQL statement builder.

Every function in this module is pure: it validates structured input and
returns ``Statement`` values (SQL text plus a tuple of positional
parameters) without touching a database.  Values supplied through
predicates, assignments and rows are always bound with ``?``
placeholders; only identifiers and column types are written into the
SQL text, and identifiers are checked before they are.

Identifiers pass through an ``entities`` function on their way into the
SQL.  The default leaves them unchanged; ``quoted('"')`` wraps each
dotted part in double quotes.

Known limitations:

* ``create_table`` accepts column-level constraints only.  Table-level
  constraints such as composite primary keys are not supported.
* ``insert`` without ``columns`` binds positional rows in whatever order
  the table declared its columns.  Nothing checks that the values line
  up with the columns.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from .errors import StatementBuildError

Entities = Callable[[str], str]
Predicate = Optional[Mapping[str, Any]]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
_JOIN_KINDS = ("INNER", "LEFT")
_DIRECTIONS = ("ASC", "DESC")


class Statement(NamedTuple):
    """SQL text with its ordered parameters."""

    sql: str
    params: Tuple[Any, ...] = ()


class Column(NamedTuple):
    """A column spec for ``create_table``."""

    name: str
    type: str
    constraints: str = ""


class Join(NamedTuple):
    """A join clause for ``select``.

    ``on`` maps a column reference to another column reference; pairs are
    joined with AND.  Both sides are identifiers, never bound values.
    """

    table: str
    alias: Optional[str]
    on: Mapping[str, str]
    kind: str = "INNER"


def identity(name: str) -> str:
    return name


def quoted(quote: str) -> Entities:
    """Return an ``entities`` function quoting each dotted identifier part.

    ``quote`` is a single character such as ``'"'`` or ``'`'``, or the
    pair ``'[]'`` for SQL Server style brackets.
    """
    if len(quote) == 2:
        left, right = quote[0], quote[1]
    elif len(quote) == 1:
        left = right = quote
    else:
        raise StatementBuildError(f"Unsupported quote characters: {quote!r}")

    def entities(name: str) -> str:
        return ".".join(f"{left}{part}{right}" for part in name.split("."))

    return entities


def _ident(name: Any, entities: Entities) -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise StatementBuildError(f"Invalid identifier: {name!r}")
    return entities(name)


def _where(where: Predicate, entities: Entities) -> Tuple[str, Tuple[Any, ...]]:
    """Translate an equality predicate into a WHERE clause.

    An absent or empty predicate means no filter.
    """
    if not where:
        return "", ()
    clauses: List[str] = []
    params: List[Any] = []
    for column, value in where.items():
        if value is None:
            clauses.append(f"{_ident(column, entities)} IS NULL")
        else:
            clauses.append(f"{_ident(column, entities)} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(clauses), tuple(params)


def _column_spec(spec: Union[Column, Sequence[str]]) -> Column:
    if isinstance(spec, str) or not 2 <= len(spec) <= 3:
        raise StatementBuildError(f"Column spec must be (name, type[, constraints]): {spec!r}")
    column = Column(*spec)
    if not isinstance(column.type, str) or not column.type.strip():
        raise StatementBuildError(f"Column {column.name!r} has no type")
    return column


def create_table(name: str, columns: Sequence[Union[Column, Sequence[str]]], entities: Entities = identity) -> Statement:
    """Build a CREATE TABLE statement with the columns in the given order."""
    if not columns:
        raise StatementBuildError(f"Table {name!r} needs at least one column")
    seen = set()
    parts: List[str] = []
    for spec in columns:
        column = _column_spec(spec)
        key = column.name.lower() if isinstance(column.name, str) else column.name
        if key in seen:
            raise StatementBuildError(f"Duplicate column {column.name!r} in table {name!r}")
        seen.add(key)
        definition = f"{_ident(column.name, entities)} {column.type.strip()}"
        if column.constraints and column.constraints.strip():
            definition += f" {column.constraints.strip()}"
        parts.append(definition)
    return Statement(f"CREATE TABLE {_ident(name, entities)} ({', '.join(parts)})")


def drop_table(name: str, entities: Entities = identity) -> Statement:
    return Statement(f"DROP TABLE {_ident(name, entities)}")


def _table_ref(table: Union[str, Tuple[str, str]], entities: Entities) -> str:
    if isinstance(table, str):
        return _ident(table, entities)
    name, alias = table
    return f"{_ident(name, entities)} {_ident(alias, entities)}"


def _order_item(item: Union[str, Tuple[str, str]], entities: Entities) -> str:
    if isinstance(item, str):
        return _ident(item, entities)
    column, direction = item
    direction = str(direction).upper()
    if direction not in _DIRECTIONS:
        raise StatementBuildError(f"Invalid sort direction: {direction!r}")
    return f"{_ident(column, entities)} {direction}"


def select(
    columns: Union[str, Sequence[str]],
    table: Union[str, Tuple[str, str]],
    where: Predicate = None,
    joins: Iterable[Join] = (),
    order_by: Iterable[Union[str, Tuple[str, str]]] = (),
    entities: Entities = identity,
) -> Statement:
    """Build a SELECT statement.

    Args:
        columns: ``"*"`` or an ordered list of (optionally alias-qualified)
            column names.
        table: A table name or a ``(name, alias)`` pair.
        where: Equality predicate combined with AND; ``None`` selects all.
        joins: ``Join`` clauses, emitted in order.
        order_by: Columns or ``(column, "asc"|"desc")`` pairs.
        entities: Identifier transform applied to every identifier.
    """
    if columns == "*":
        projection = "*"
    else:
        if isinstance(columns, str) or not columns:
            raise StatementBuildError("columns must be '*' or a non-empty list of names")
        projection = ", ".join(_ident(c, entities) for c in columns)
    sql = f"SELECT {projection} FROM {_table_ref(table, entities)}"
    for join in joins:
        kind = join.kind.upper()
        if kind not in _JOIN_KINDS:
            raise StatementBuildError(f"Unsupported join kind: {join.kind!r}")
        if not join.on:
            raise StatementBuildError(f"Join on {join.table!r} has no ON condition")
        target = _table_ref((join.table, join.alias) if join.alias else join.table, entities)
        on = " AND ".join(f"{_ident(left, entities)} = {_ident(right, entities)}" for left, right in join.on.items())
        sql += f" {kind} JOIN {target} ON {on}"
    where_sql, params = _where(where, entities)
    sql += where_sql
    order = [_order_item(item, entities) for item in order_by]
    if order:
        sql += " ORDER BY " + ", ".join(order)
    return Statement(sql, params)


def insert(
    table: str,
    rows: Iterable[Union[Sequence[Any], Mapping[str, Any]]],
    columns: Optional[Sequence[str]] = None,
    entities: Entities = identity,
) -> List[Statement]:
    """Build one INSERT statement per row.

    Rows are either positional sequences or mappings.  For mappings the
    column list comes from ``columns`` when given, otherwise from the
    row's own keys.  Positional rows without ``columns`` are bound in
    table-declaration order.
    """
    target = _ident(table, entities)
    statements: List[Statement] = []
    for row in rows:
        if isinstance(row, Mapping):
            names = list(columns) if columns is not None else list(row)
            missing = [c for c in names if c not in row]
            if missing:
                raise StatementBuildError(f"Row for {table!r} is missing columns {missing}")
            values = tuple(row[c] for c in names)
        else:
            names = list(columns) if columns is not None else []
            values = tuple(row)
            if names and len(names) != len(values):
                raise StatementBuildError(
                    f"Row for {table!r} has {len(values)} values for {len(names)} columns"
                )
        if not values:
            raise StatementBuildError(f"Empty row for table {table!r}")
        placeholders = ", ".join("?" for _ in values)
        if names:
            column_sql = ", ".join(_ident(c, entities) for c in names)
            sql = f"INSERT INTO {target} ({column_sql}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {target} VALUES ({placeholders})"
        statements.append(Statement(sql, values))
    return statements


def update(table: str, assignments: Mapping[str, Any], where: Predicate = None, entities: Entities = identity) -> Statement:
    """Build an UPDATE statement.  Without ``where`` every row is updated."""
    if not assignments:
        raise StatementBuildError(f"Update of {table!r} has no assignments")
    set_sql = ", ".join(f"{_ident(c, entities)} = ?" for c in assignments)
    where_sql, where_params = _where(where, entities)
    return Statement(
        f"UPDATE {_ident(table, entities)} SET {set_sql}{where_sql}",
        tuple(assignments.values()) + where_params,
    )


def delete(table: str, where: Predicate = None, entities: Entities = identity) -> Statement:
    """Build a DELETE statement.  Without ``where`` every row is deleted."""
    where_sql, params = _where(where, entities)
    return Statement(f"DELETE FROM {_ident(table, entities)}{where_sql}", params)
