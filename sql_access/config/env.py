"""
Environment configuration loader.

Variables are read from the process environment, after ``load_dotenv``
has merged in a ``.env`` file if one is present.  They are exposed via a
simple ``Config`` dataclass.

Supported variables:

* ``DATABASE_URL`` – connection string for the ``default`` alias
  (default ``'sqlite:///:memory:'``).  Either a URL such as
  ``mssql://user:pw@host:1433/db`` or a ``Key=Value;`` string.
* ``LOG_LEVEL`` – level name passed to ``logging.basicConfig`` by the
  command line tools (default ``'INFO'``).

The resulting ``config`` instance can be imported from
``sql_access.config``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from dotenv import load_dotenv
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///:memory:"


@dataclass
class Config:
    """Holds environment configuration for the application."""

    DATABASE_URL: str = DEFAULT_DATABASE_URL
    LOG_LEVEL: str = "INFO"


def _load_env() -> Config:
    """Load configuration from environment variables.

    Raises:
        ValueError: If ``LOG_LEVEL`` is not a known logging level name.

    Returns:
        Config: A populated configuration dataclass.
    """
    database_url = os.environ.get("DATABASE_URL") or DEFAULT_DATABASE_URL
    log_level = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Environment variable LOG_LEVEL has an unknown level: {log_level}")

    return Config(
        DATABASE_URL=database_url,
        LOG_LEVEL=log_level,
    )


# Create a single configuration instance when this module is imported.
config: Config = _load_env()
