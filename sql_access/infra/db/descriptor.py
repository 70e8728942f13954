"""
Connection descriptors.

A ``ConnectionDescriptor`` is the immutable configuration needed to open
a connection.  Descriptors are usually built from a connection string
with ``ConnectionDescriptor.from_string``, which accepts two shapes:

* URLs: ``sqlite:///relative.db``, ``sqlite:////abs/path.db``,
  ``sqlite:///:memory:`` or ``mssql://user:pw@host:1433/db?encrypt=no``.
  ``sqlserver://`` is normalised to ``mssql://``.
* Semicolon separated key/value pairs as used by SQL Server tooling, e.g.
  ``Server=host,1433;Database=db;UID=user;PWD=secret;Encrypt=yes``.

Keys that are not part of the descriptor proper end up in ``extra`` with
lower-cased names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, unquote, urlsplit

from ...errors import DatabaseConnectionError

DRIVERS = ("sqlite", "mssql", "pymssql", "pyodbc")

_SERVER_KEYS = ("server", "data source", "address", "addr", "network address")
_USER_KEYS = ("uid", "user id", "user")
_PASSWORD_KEYS = ("pwd", "password")
_DATABASE_KEYS = ("database", "initial catalog")


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Configuration needed to open a connection.

    ``driver`` is one of ``DRIVERS``.  For ``sqlite`` only ``database``
    (a file path or ``:memory:``) is used.
    """

    driver: str
    database: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = field(default=None)
    password: Optional[str] = field(default=None, repr=False)
    extra: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Check that the descriptor names enough to open a connection.

        Raises:
            DatabaseConnectionError: If the driver is unknown or a
                required field is missing.
        """
        if self.driver not in DRIVERS:
            raise DatabaseConnectionError(f"Unsupported driver: {self.driver!r}")
        if not self.database:
            raise DatabaseConnectionError(f"No database given for driver {self.driver!r}")
        if self.driver != "sqlite" and not self.host:
            raise DatabaseConnectionError(f"No host given for driver {self.driver!r}")

    @classmethod
    def from_string(cls, raw: str) -> "ConnectionDescriptor":
        """Parse a connection string into a descriptor.

        Args:
            raw: A URL or a ``Key=Value;`` connection string.

        Returns:
            A new ``ConnectionDescriptor``.

        Raises:
            DatabaseConnectionError: If the string is empty or cannot be
                understood.
        """
        s = (raw or "").strip()
        if not s:
            raise DatabaseConnectionError("Empty connection string")
        norm = re.sub(r"^sqlserver://", "mssql://", s, flags=re.IGNORECASE)
        if "://" in norm:
            return _from_url(norm)
        return _from_pairs(norm)


def _from_url(url: str) -> ConnectionDescriptor:
    parts = urlsplit(url)
    driver = parts.scheme.lower()
    # One leading slash separates authority from path; the rest belongs to
    # the database name, so sqlite:////tmp/x.db keeps its absolute path.
    database = unquote(parts.path[1:]) if parts.path.startswith("/") else unquote(parts.path)
    try:
        port = parts.port
    except ValueError as exc:
        raise DatabaseConnectionError(f"Invalid port in connection string: {url!r}") from exc
    extra = {k.lower(): v for k, v in parse_qsl(parts.query)}
    return ConnectionDescriptor(
        driver=driver,
        database=database or None,
        host=parts.hostname,
        port=port,
        user=unquote(parts.username) if parts.username else None,
        password=unquote(parts.password) if parts.password else None,
        extra=extra,
    )


def _from_pairs(raw: str) -> ConnectionDescriptor:
    kv: Dict[str, str] = {}
    for p in (p.strip() for p in raw.split(";")):
        if not p or "=" not in p:
            continue
        k, v = p.split("=", 1)
        kv[k.strip().lower()] = v.strip()
    if not kv:
        raise DatabaseConnectionError(f"Malformed connection string: {raw!r}")

    def _pick(keys) -> Optional[str]:
        for key in keys:
            if kv.get(key):
                return kv[key]
        return None

    server_raw = _pick(_SERVER_KEYS)
    if not server_raw:
        raise DatabaseConnectionError("No Server= found in connection string")
    server = server_raw
    port: Optional[int] = None
    m = re.match(r"^(.*?),(\d+)$", server_raw)
    if m:
        server = m.group(1)
        port = int(m.group(2))
    known = set(_SERVER_KEYS + _USER_KEYS + _PASSWORD_KEYS + _DATABASE_KEYS + ("driver",))
    extra = {k: v for k, v in kv.items() if k not in known}
    # Driver= either names one of ours or, as in ODBC strings, the ODBC driver.
    driver = (kv.get("driver") or "mssql").lower()
    if driver not in DRIVERS:
        extra["odbc_driver"] = kv["driver"].strip("{}")
        driver = "pyodbc"
    return ConnectionDescriptor(
        driver=driver,
        database=_pick(_DATABASE_KEYS),
        host=server,
        port=port,
        user=_pick(_USER_KEYS),
        password=_pick(_PASSWORD_KEYS),
        extra=extra,
    )
