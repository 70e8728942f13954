import sqlite3

import pytest

from sql_access.config import config
from sql_access.errors import DatabaseConnectionError
from sql_access.infra.db import (
    ConnectionDescriptor,
    close_connection,
    get_connection,
    open_connection,
    register_connection,
    to_pyformat,
    unregister_connection,
)


def test_open_sqlite_and_close_twice(db_path):
    conn = open_connection(ConnectionDescriptor(driver='sqlite', database=str(db_path)))
    assert conn.driver == 'sqlite'
    assert conn.run('SELECT 1').fetchone() == (1,)
    conn.close()
    conn.close()
    assert conn.closed
    with pytest.raises(DatabaseConnectionError, match='closed'):
        conn.run('SELECT 1')


def test_context_manager_closes(db_path):
    with open_connection(ConnectionDescriptor(driver='sqlite', database=str(db_path))) as conn:
        conn.run('CREATE TABLE t (x int)')
    assert conn.closed
    close_connection(None)


def test_foreign_keys_enabled(conn):
    assert conn.run('PRAGMA foreign_keys').fetchone()[0] == 1


def test_unreachable_database_wraps_driver_error(tmp_path):
    missing = tmp_path / 'no' / 'such' / 'dir' / 'x.db'
    with pytest.raises(DatabaseConnectionError) as exc:
        open_connection(ConnectionDescriptor(driver='sqlite', database=str(missing)))
    assert isinstance(exc.value.__cause__, sqlite3.Error)


def test_malformed_descriptor_fails_at_open():
    with pytest.raises(DatabaseConnectionError):
        open_connection(ConnectionDescriptor(driver='sqlite'))


def test_to_pyformat_leaves_literals_alone():
    sql = "SELECT * FROM t WHERE a = ? AND b LIKE '50%?' AND c = ?"
    assert to_pyformat(sql) == "SELECT * FROM t WHERE a = %s AND b LIKE '50%%?' AND c = %s"
    assert to_pyformat("SELECT 'it''s ?' WHERE x = ?") == "SELECT 'it''s ?' WHERE x = %s"


def test_pymssql_connection_rewrites_placeholders(fake_mssql):
    conn, raw = fake_mssql
    conn.run('SELECT * FROM fruit WHERE name = ?', ['Plum'])
    assert raw.calls == [('SELECT * FROM fruit WHERE name = %s', ('Plum',))]


def test_pyodbc_connection_keeps_qmark(fake_odbc):
    conn, raw = fake_odbc
    conn.run('SELECT * FROM fruit WHERE name = ?', ('Plum',))
    assert raw.calls == [('SELECT * FROM fruit WHERE name = ?', ('Plum',))]


def test_begin_and_commit_toggle_autocommit(fake_odbc, fake_mssql):
    conn, raw = fake_odbc
    conn.begin()
    assert conn.in_transaction and raw.autocommit is False
    conn.commit()
    assert not conn.in_transaction and raw.autocommit is True

    mconn, mraw = fake_mssql
    mconn.begin()
    mconn.rollback()
    assert mraw.autocommit_calls == [False, True]
    assert mraw.events == ['rollback']


def test_registered_alias(db_path):
    register_connection('fruitstand', f'sqlite:///{db_path}')
    try:
        conn = get_connection('fruitstand')
        try:
            assert conn.run('SELECT 2').fetchone() == (2,)
        finally:
            conn.close()
    finally:
        unregister_connection('fruitstand')
    with pytest.raises(KeyError, match='fruitstand'):
        get_connection('fruitstand')


def test_default_alias_reads_config(monkeypatch, db_path):
    monkeypatch.setattr(config, 'DATABASE_URL', f'sqlite:///{db_path}')
    conn = get_connection()
    conn.close()
    assert db_path.exists()


def test_register_rejects_incomplete_descriptor():
    with pytest.raises(DatabaseConnectionError):
        register_connection('bad', ConnectionDescriptor(driver='mssql', database='shop'))
