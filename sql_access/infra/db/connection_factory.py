"""
Database connection factory.

Connections are looked up by alias.  The ``default`` alias is built from
``config.DATABASE_URL`` (see ``sql_access.config.env.Config``); further
aliases can be added at runtime with ``register_connection``.  Every call
to ``get_connection`` opens a new connection; pooling is out of scope.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Union

from ...config import config
from .connection import Connection, open_connection
from .descriptor import ConnectionDescriptor


# Registry mapping aliases to callables that return a ``Connection``.
_registry: Dict[str, Callable[[], Connection]] = {
    'default': lambda: open_connection(ConnectionDescriptor.from_string(config.DATABASE_URL)),
}


def register_connection(alias: str, target: Union[str, ConnectionDescriptor]) -> None:
    """Register (or replace) an alias.

    Args:
        alias: Name used with ``get_connection``.
        target: A connection string or a ready ``ConnectionDescriptor``.
    """
    descriptor = target if isinstance(target, ConnectionDescriptor) else ConnectionDescriptor.from_string(target)
    descriptor.validate()
    logging.info('[connectionFactory] register', extra={'alias': alias, 'driver': descriptor.driver})
    _registry[alias] = lambda: open_connection(descriptor)


def unregister_connection(alias: str) -> None:
    _registry.pop(alias, None)


def aliases() -> list:
    return sorted(_registry)


def get_connection(alias: str = 'default') -> Connection:
    """Obtain a new database connection by alias.

    Args:
        alias: A registered alias, ``'default'`` unless told otherwise.

    Returns:
        A new ``Connection`` instance.

    Raises:
        KeyError: If the alias is not registered.
        DatabaseConnectionError: If the connection cannot be opened.
    """
    try:
        factory = _registry[alias]
    except KeyError:
        raise KeyError(f"No connection defined for alias: {alias}") from None
    return factory()
