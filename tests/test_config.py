import pytest

from sql_access.config import env


def test_defaults(monkeypatch):
    monkeypatch.delenv('DATABASE_URL', raising=False)
    monkeypatch.delenv('LOG_LEVEL', raising=False)
    cfg = env._load_env()
    assert cfg.DATABASE_URL == 'sqlite:///:memory:'
    assert cfg.LOG_LEVEL == 'INFO'


def test_reads_environment(monkeypatch):
    monkeypatch.setenv('DATABASE_URL', 'mssql://sa:pw@db/shop')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    cfg = env._load_env()
    assert cfg.DATABASE_URL == 'mssql://sa:pw@db/shop'
    assert cfg.LOG_LEVEL == 'DEBUG'


def test_unknown_log_level(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'chatty')
    with pytest.raises(ValueError, match='LOG_LEVEL'):
        env._load_env()
