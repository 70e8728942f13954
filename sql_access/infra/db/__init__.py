"""
Connection provider.

This subpackage wraps the ``sqlite3``, ``pymssql`` and ``pyodbc`` DB-API
drivers behind one ``Connection`` type.  ``open_connection`` opens a
connection from a ``ConnectionDescriptor``; ``get_connection`` does the
same for a configured alias.
"""

from .descriptor import ConnectionDescriptor  # noqa: F401
from .connection import Connection, open_connection, close_connection, to_pyformat  # noqa: F401
from .connection_factory import get_connection, register_connection, unregister_connection  # noqa: F401
