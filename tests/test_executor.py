import sqlite3

import pytest

from sql_access.errors import ExecutionError
from sql_access.executor import QueryOptions, execute, execute_all, query
from sql_access.statements import Statement, create_table, drop_table, insert, select


def test_ddl_reports_zero_rows(conn):
    assert execute(conn, create_table('t', [('id', 'int')])) == 0
    assert execute(conn, drop_table('t')) == 0


def test_create_then_drop_restores_schema(conn):
    tables = Statement("SELECT name FROM sqlite_master WHERE type = 'table'")
    before = query(conn, tables)
    execute(conn, create_table('t', [('id', 'int', 'PRIMARY KEY')]))
    execute(conn, drop_table('t'))
    assert query(conn, tables) == before


def test_drop_missing_table_is_an_execution_error(conn):
    stmt = drop_table('ghost')
    with pytest.raises(ExecutionError) as exc:
        execute(conn, stmt)
    assert exc.value.statement == stmt
    assert isinstance(exc.value.__cause__, sqlite3.OperationalError)


def test_execute_all_counts_inserted_rows(fruit):
    rows = [('Fig', 'soft', 3, 'each', 7.0), ('Lime', 'green', 2, 'each', 6.5)]
    assert execute_all(fruit, insert('fruit', rows)) == 2


def test_constraint_violation_outside_scope_keeps_earlier_rows(fruit, other_conn):
    rows = [('Fig', 'soft', 3, 'each', 7.0), ('Plum', 'ripe', 12, 'carton', 8.4)]
    with pytest.raises(ExecutionError) as exc:
        execute_all(fruit, insert('fruit', rows))
    assert isinstance(exc.value.__cause__, sqlite3.IntegrityError)
    assert query(other_conn, select(['name'], 'fruit', where={'name': 'Fig'})) == [{'name': 'Fig'}]


def test_query_returns_lower_cased_records(fruit):
    rows = query(fruit, Statement('SELECT Name AS NAME, Cost FROM fruit WHERE name = ?', ('Plum',)))
    assert rows == [{'name': 'Plum', 'cost': 12}]


def test_identifier_transform(fruit):
    rows = query(fruit, select(['name'], 'fruit', where={'name': 'Plum'}), QueryOptions(identifier_transform=str.upper))
    assert rows == [{'NAME': 'Plum'}]


def test_row_transform_adds_derived_column(fruit):
    def with_total(row):
        return dict(row, total=row['cost'] * 2)

    rows = query(fruit, select(['name', 'cost'], 'fruit', where={'name': 'Plum'}), QueryOptions(row_transform=with_total))
    assert rows == [{'name': 'Plum', 'cost': 12, 'total': 24}]


def test_result_transform_gets_an_iterator(fruit):
    seen = {}

    def shape(rows):
        seen['type'] = type(rows)
        return [r['name'] for r in rows]

    names = query(fruit, select(['name'], 'fruit', order_by=['name']), QueryOptions(result_transform=shape))
    assert names == ['Apple', 'Banana', 'Plum', 'Red Delicious']
    assert seen['type'] is not list


def test_as_tabular(fruit):
    stmt = select(['name', 'cost'], 'fruit', where={'unit': 'kg'})
    assert query(fruit, stmt, QueryOptions(as_tabular=True)) == [['name', 'cost'], ['Apple', 59]]


def test_as_tabular_row_transform_skips_header(fruit):
    stmt = select(['name', 'cost'], 'fruit', where={'unit': 'kg'})
    opts = QueryOptions(as_tabular=True, row_transform=lambda row: row + ['!'])
    assert query(fruit, stmt, opts) == [['name', 'cost'], ['Apple', 59, '!']]


def test_colliding_column_names_are_suffixed(fruit):
    stmt = Statement('SELECT a.name, b.name, a.cost AS name_2 FROM fruit a JOIN fruit b ON a.name = b.name WHERE a.name = ?', ('Plum',))
    assert query(fruit, stmt) == [{'name': 'Plum', 'name_2': 'Plum', 'name_2_2': 12}]


def test_empty_result(fruit):
    assert query(fruit, select('*', 'fruit', where={'name': 'Durian'})) == []


def test_query_syntax_error(conn):
    with pytest.raises(ExecutionError, match='syntax'):
        query(conn, Statement('SELEKT 1'))


def test_driver_error_from_fake_connection_is_wrapped(make_fake):
    conn, raw = make_fake(fail_execute=True)
    with pytest.raises(ExecutionError) as exc:
        execute(conn, Statement('DELETE FROM fruit'))
    assert isinstance(exc.value.__cause__, conn.driver_errors)
