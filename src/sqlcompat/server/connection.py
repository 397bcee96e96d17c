"""SQL Server connections and metadata introspection over pyodbc.

Connects to an instance and exposes:
- Server snapshot (name, version, edition, product level, collation)
- User database enumeration with state flags
- Query execution in a given database context
"""
from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Iterator
import logging
import pyodbc

from sqlcompat.config import Settings, settings as default_settings
from sqlcompat.errors import InstanceConnectionError, QueryError
from sqlcompat.models import DatabaseRef, DatabaseStatus, ServerInfo
from sqlcompat.server.base import Credential, ServerHandle

logger = logging.getLogger(__name__)

SERVER_INFO_QUERY = """
    SELECT
        CAST(SERVERPROPERTY('ServerName') AS nvarchar(256)) AS server_name,
        CAST(SERVERPROPERTY('ProductVersion') AS nvarchar(128)) AS product_version,
        CAST(SERVERPROPERTY('ProductLevel') AS nvarchar(128)) AS product_level,
        CAST(SERVERPROPERTY('Edition') AS nvarchar(128)) AS edition,
        CAST(SERVERPROPERTY('Collation') AS nvarchar(128)) AS collation
"""

# database_id 1-4 are master, tempdb, model and msdb
USER_DATABASES_QUERY = """
    SELECT name, state_desc, is_read_only
    FROM sys.databases
    WHERE database_id > 4
      AND is_distributor = 0
    ORDER BY name
"""


def quote_ident(name: str) -> str:
    """Bracket-quote an identifier for T-SQL."""
    return "[" + name.replace("]", "]]") + "]"


def build_connection_string(
    instance: str,
    credential: Credential | None = None,
    config: Settings | None = None
) -> str:
    """Build an ODBC connection string for an instance.

    Args:
        instance: Server address, e.g. "sql01" or "sql01\\INST,1433"
        credential: SQL login, or None for Trusted_Connection
        config: Settings providing driver and TLS options

    Returns:
        ODBC connection string
    """
    config = config or default_settings
    parts = [
        f"DRIVER={{{config.odbc_driver}}}",
        f"SERVER={instance}",
        "DATABASE=master",
        f"Encrypt={'yes' if config.encrypt else 'no'}",
        f"TrustServerCertificate={'yes' if config.trust_server_certificate else 'no'}",
    ]
    if credential and credential.user:
        parts.append(f"UID={credential.user}")
        parts.append(f"PWD={{{credential.password.replace('}', '}}')}}}")
    else:
        parts.append("Trusted_Connection=yes")
    return ";".join(parts) + ";"


def parse_version_major(version_string: str) -> int:
    """Return the major component of a dotted version string."""
    head = (version_string or "").split(".")[0]
    if not head.isdigit():
        raise ValueError(f"Unrecognized version string: {version_string!r}")
    return int(head)


class SqlServerConnection:
    """A live connection to one instance with its metadata snapshot."""

    def __init__(self, instance: str, conn: pyodbc.Connection) -> None:
        self.instance = instance
        self._conn = conn
        self.info = self._read_server_info()

    def _fetch(self, sql: str) -> list[dict[str, Any]]:
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql)
            if cursor.description is None:
                return []
            columns = [col[0] for col in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def _read_server_info(self) -> ServerInfo:
        rows = self._fetch(SERVER_INFO_QUERY)
        if not rows:
            raise InstanceConnectionError(self.instance, "server properties unavailable")
        row = rows[0]

        version_string = str(row.get("product_version") or "")
        info = ServerInfo(
            name=str(row.get("server_name") or self.instance),
            version_major=parse_version_major(version_string),
            version_string=version_string,
            edition=str(row.get("edition") or ""),
            product_level=str(row.get("product_level") or ""),
            collation=str(row.get("collation") or ""),
        )
        logger.debug(f"Connected to {info.name}: {info.version_label}")
        return info

    def list_databases(self) -> list[DatabaseRef]:
        """Enumerate user databases in name order."""
        return [
            DatabaseRef(
                name=row["name"],
                status=DatabaseStatus.from_state(row.get("state_desc"), bool(row.get("is_read_only")))
            )
            for row in self._fetch(USER_DATABASES_QUERY)
        ]

    def run_query(self, sql: str, database: str | None = None) -> list[dict[str, Any]]:
        """Run a query, optionally switching database context first.

        Raises:
            QueryError: If the context switch or the query fails
        """
        try:
            if database:
                cursor = self._conn.cursor()
                try:
                    cursor.execute(f"USE {quote_ident(database)}")
                finally:
                    cursor.close()
            return self._fetch(sql)
        except pyodbc.Error as e:
            raise QueryError(self.info.name, str(e)) from e

    def close(self) -> None:
        try:
            self._conn.close()
        except pyodbc.Error as e:
            logger.warning(f"Error while disconnecting from {self.instance}: {e}")


def connect_instance(
    instance: str,
    credential: Credential | None = None,
    config: Settings | None = None
) -> SqlServerConnection:
    """Connect to an instance and capture its metadata.

    Raises:
        InstanceConnectionError: If the instance is unreachable or rejects the login
    """
    config = config or default_settings
    conn_str = build_connection_string(instance, credential, config)
    try:
        conn = pyodbc.connect(conn_str, timeout=config.connect_timeout, autocommit=True)
    except pyodbc.Error as e:
        raise InstanceConnectionError(instance, str(e)) from e

    try:
        return SqlServerConnection(instance, conn)
    except (pyodbc.Error, ValueError) as e:
        conn.close()
        raise InstanceConnectionError(instance, str(e)) from e
    except InstanceConnectionError:
        conn.close()
        raise


def disconnect_instance(handle: ServerHandle) -> None:
    handle.close()


@contextmanager
def open_instance(
    instance: str,
    credential: Credential | None = None,
    config: Settings | None = None
) -> Iterator[SqlServerConnection]:
    """Connect for the duration of a with-block; always disconnects."""
    handle = connect_instance(instance, credential, config)
    try:
        yield handle
    finally:
        disconnect_instance(handle)
