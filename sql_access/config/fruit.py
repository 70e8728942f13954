"""
Schema, sample rows and query templates for the fruit walkthrough.

The queries are defined as functions returning ``Statement`` values so
that callers never paste values into SQL text.  They are collected in
the ``queries`` dictionary, keyed by a short name, for use by
``sql_access.services.recipe``.
"""

from __future__ import annotations

from typing import Callable, Dict

from ..statements import Column, Statement, select

TABLE = "fruit"

FRUIT_COLUMNS = [
    Column("name", "varchar(32)", "PRIMARY KEY"),
    Column("appearance", "varchar(32)"),
    Column("cost", "int"),
    Column("unit", "varchar(16)"),
    Column("grade", "real"),
]

# Positional rows, in the column order declared above.
FRUIT_ROWS = [
    ("Red Delicious", "dark red", 20, "bushel", 8.2),
    ("Plum", "ripe", 12, "carton", 8.4),
    ("Apple", "red", 59, "kg", 8.7),
    ("Banana", "yellow", 28, "crate", 9.2),
]

MANGO = {"name": "Mango", "appearance": "golden", "cost": 45, "unit": "box", "grade": 9.1}


def ripe() -> Statement:
    return select("*", TABLE, where={"appearance": "ripe"})


def by_name(name: str) -> Statement:
    return select("*", TABLE, where={"name": name})


def by_cost_desc() -> Statement:
    return select(["name", "cost"], TABLE, order_by=[("cost", "desc"), "name"])


def grades() -> Statement:
    return select(["name", "grade"], TABLE, order_by=["name"])


def count() -> Statement:
    return Statement(f"SELECT COUNT(*) AS n FROM {TABLE}")


queries: Dict[str, Callable[..., Statement]] = {
    "ripe": ripe,
    "byName": by_name,
    "byCostDesc": by_cost_desc,
    "grades": grades,
    "count": count,
}
