"""
The fruit walkthrough as a runnable workflow.

``run_recipe`` creates the ``fruit`` table, fills it, queries it in a few
shapes, demonstrates both ways a transaction scope ends in a rollback
and finally drops the table again.  Every step is logged and its outcome
recorded in the returned report, which is plain JSON-serialisable data.

The connection passed in must not already contain a ``fruit`` table.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from ..config.fruit import FRUIT_COLUMNS, FRUIT_ROWS, MANGO, TABLE, queries
from ..errors import ExecutionError
from ..executor import QueryOptions, execute, execute_all, query
from ..infra.db.connection import Connection
from ..statements import create_table, drop_table, insert, update
from ..transaction import transaction

Report = Dict[str, Any]


def first_and_last(rows: Iterable[Any]) -> List[Any]:
    """Keep only the first and the last row.

    A single row is returned once; no rows give an empty list.
    """
    first = last = None
    seen = 0
    for row in rows:
        if seen == 0:
            first = row
        last = row
        seen += 1
    if seen == 0:
        return []
    if seen == 1:
        return [first]
    return [first, last]


def count_rows(connection: Connection) -> int:
    return query(connection, queries['count'](), QueryOptions(result_transform=lambda rows: next(rows)['n']))


def _rollback_only_demo(connection: Connection) -> Report:
    before = count_rows(connection)
    with transaction(connection) as tx:
        tx.set_rollback_only()
        execute_all(connection, insert(TABLE, [("Kiwi", "fuzzy", 8, "tray", 7.5)]))
        inside = count_rows(connection)
    after = count_rows(connection)
    logging.info('[recipe] rollback-only demo', extra={'before': before, 'inside': inside, 'after': after})
    return {'before': before, 'inside': inside, 'after': after}


def _failure_demo(connection: Connection) -> Report:
    before = count_rows(connection)
    error = None
    try:
        with transaction(connection):
            execute_all(connection, insert(TABLE, [("Durian", "spiky", 90, "each", 6.0)]))
            # Second insert of the same key violates the primary key.
            execute_all(connection, insert(TABLE, [("Durian", "spiky", 90, "each", 6.0)]))
    except ExecutionError as exc:
        error = str(exc.__cause__ or exc)
    after = count_rows(connection)
    logging.info('[recipe] failure demo', extra={'before': before, 'after': after, 'error': error})
    return {'before': before, 'after': after, 'error': error}


def run_recipe(connection: Connection) -> Report:
    """Run every step of the walkthrough on ``connection``.

    Returns:
        A report dictionary with one entry per step.

    Raises:
        ExecutionError: If a step other than the deliberate failure demo
            is rejected by the engine.
    """
    report: Report = {'driver': connection.driver}
    execute(connection, create_table(TABLE, FRUIT_COLUMNS))
    logging.info('[recipe] table created', extra={'table': TABLE})
    try:
        report['inserted'] = execute_all(connection, insert(TABLE, FRUIT_ROWS))
        report['ripe'] = query(connection, queries['ripe']())
        report['inserted'] += execute_all(connection, insert(TABLE, [MANGO]))
        report['mangoUpdated'] = execute(connection, update(TABLE, {'cost': 50}, {'name': 'Mango'}))
        report['missingUpdated'] = execute(connection, update(TABLE, {'cost': 1}, {'name': 'Durian'}))
        report['mango'] = query(connection, queries['byName']('Mango'))
        report['priciestAndCheapest'] = query(
            connection, queries['byCostDesc'](), QueryOptions(result_transform=first_and_last)
        )
        report['grades'] = query(connection, queries['grades'](), QueryOptions(as_tabular=True))
        report['rollbackOnly'] = _rollback_only_demo(connection)
        report['failure'] = _failure_demo(connection)
        report['count'] = count_rows(connection)
    finally:
        execute(connection, drop_table(TABLE))
        logging.info('[recipe] table dropped', extra={'table': TABLE})
    return report
