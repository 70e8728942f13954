import pytest

from sql_access.config.fruit import FRUIT_COLUMNS, FRUIT_ROWS
from sql_access.executor import execute, execute_all
from sql_access.infra.db import Connection, ConnectionDescriptor, open_connection
from sql_access.statements import create_table, insert


class FakeError(Exception):
    pass


class FakeCursor:
    def __init__(self, raw):
        self.raw = raw
        self.description = None
        self.rowcount = -1

    def execute(self, sql, params):
        self.raw.calls.append((sql, params))
        if self.raw.fail_execute:
            raise FakeError('boom')

    def fetchall(self):
        return []

    def close(self):
        pass


class _FakeRawBase:
    def __init__(self, fail_commit=False, fail_execute=False):
        self.calls = []
        self.events = []
        self.fail_commit = fail_commit
        self.fail_execute = fail_execute

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.events.append('commit')
        if self.fail_commit:
            raise FakeError('commit refused')

    def rollback(self):
        self.events.append('rollback')

    def close(self):
        self.events.append('close')


class FakeRaw(_FakeRawBase):
    """Stands in for a pyodbc connection (autocommit is an attribute)."""

    def __init__(self, **kw):
        super().__init__(**kw)
        self.autocommit = True


class FakeMssqlRaw(_FakeRawBase):
    """Stands in for a pymssql connection (autocommit is a method)."""

    def __init__(self, **kw):
        super().__init__(**kw)
        self.autocommit_calls = []

    def autocommit(self, flag):
        self.autocommit_calls.append(flag)


@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / 'fruit.db'


@pytest.fixture()
def conn(db_path):
    c = open_connection(ConnectionDescriptor(driver='sqlite', database=str(db_path)))
    yield c
    c.close()


@pytest.fixture()
def other_conn(db_path):
    """A second connection to the same file, to see only committed data."""
    c = open_connection(ConnectionDescriptor(driver='sqlite', database=str(db_path)))
    yield c
    c.close()


@pytest.fixture()
def fruit(conn):
    execute(conn, create_table('fruit', FRUIT_COLUMNS))
    execute_all(conn, insert('fruit', FRUIT_ROWS))
    return conn


@pytest.fixture()
def fake_odbc():
    raw = FakeRaw()
    return Connection(raw, 'pyodbc', (FakeError,)), raw


@pytest.fixture()
def fake_mssql():
    raw = FakeMssqlRaw()
    return Connection(raw, 'pymssql', (FakeError,)), raw


@pytest.fixture()
def make_fake():
    """Build a fake pyodbc-style connection with chosen failures."""
    def _make(**kw):
        raw = FakeRaw(**kw)
        return Connection(raw, 'pyodbc', (FakeError,)), raw
    return _make
