"""Tests for the pyodbc connection layer using a scripted driver."""
import pytest

pyodbc = pytest.importorskip("pyodbc")

from sqlcompat.compat import assembler
from sqlcompat.compat.collector import PERSISTED_SKU_FEATURES_QUERY
from sqlcompat.config import Settings
from sqlcompat.errors import InstanceConnectionError, PreconditionViolation, QueryError
from sqlcompat.server import connection
from sqlcompat.server.base import Credential
from sqlcompat.server.connection import (
    SERVER_INFO_QUERY,
    USER_DATABASES_QUERY,
    build_connection_string,
    connect_instance,
    open_instance,
    parse_version_major,
    quote_ident,
)


def _server_row(name, version, edition, collation="SQL_Latin1_General_CP1_CI_AS"):
    return (
        ["server_name", "product_version", "product_level", "edition", "collation"],
        [(name, version, "SP2", edition, collation)],
    )


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self._rows = []

    def execute(self, sql):
        self.conn.executed.append(sql)
        if sql.startswith("USE "):
            if sql in self.conn.fail_use:
                raise pyodbc.Error("42000", "cannot open database")
            self.description = None
            return
        columns, rows = self.conn.results[sql]
        self.description = [(c,) for c in columns]
        self._rows = rows

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, results, fail_use=()):
        self.results = results
        self.fail_use = set(fail_use)
        self.executed = []
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    return Settings()


@pytest.fixture
def instances(monkeypatch):
    """Script two instances keyed by SERVER= value."""
    conns = {
        "SQL01": FakeConnection({
            SERVER_INFO_QUERY: _server_row("SQL01", "12.0.5000.0", "Enterprise Edition (64-bit)"),
            USER_DATABASES_QUERY: (
                ["name", "state_desc", "is_read_only"],
                [("Archive", "OFFLINE", False), ("Sales", "ONLINE", False)],
            ),
            PERSISTED_SKU_FEATURES_QUERY: (["feature_name"], [("Compression",)]),
        }),
        "SQL02": FakeConnection({
            SERVER_INFO_QUERY: _server_row("SQL02", "12.0.5000.0", "Standard Edition (64-bit)"),
        }),
    }

    def _connect(conn_str, timeout=None, autocommit=False):
        server = [p for p in conn_str.split(";") if p.startswith("SERVER=")][0][7:]
        if server not in conns:
            raise pyodbc.Error("08001", "TCP Provider: host not found")
        return conns[server]

    monkeypatch.setattr(connection.pyodbc, "connect", _connect)
    return conns


class TestHelpers:
    def test_quote_ident(self):
        assert quote_ident("Sales") == "[Sales]"
        assert quote_ident("we]ird") == "[we]]ird]"

    def test_parse_version_major(self):
        assert parse_version_major("10.50.6000.34") == 10
        with pytest.raises(ValueError):
            parse_version_major("")

    def test_integrated_security(self, config):
        conn_str = build_connection_string("SQL01", None, config)
        assert "SERVER=SQL01" in conn_str
        assert "Trusted_Connection=yes" in conn_str
        assert "UID=" not in conn_str

    def test_sql_login(self, config):
        conn_str = build_connection_string("SQL01", Credential("sa", "p}w"), config)
        assert "UID=sa" in conn_str
        assert "PWD={p}}w}" in conn_str
        assert "Trusted_Connection" not in conn_str

    def test_credential_repr_hides_password(self):
        assert "secret" not in repr(Credential("sa", "secret"))


class TestConnection:
    def test_connect_reads_server_info(self, instances, config):
        server = connect_instance("SQL01", None, config)

        assert server.info.name == "SQL01"
        assert server.info.version_major == 12
        assert server.info.edition == "Enterprise Edition (64-bit)"

    def test_list_databases(self, instances, config):
        server = connect_instance("SQL01", None, config)
        dbs = server.list_databases()

        assert [db.name for db in dbs] == ["Archive", "Sales"]
        assert dbs[0].is_offline
        assert not dbs[1].is_offline

    def test_run_query_switches_database(self, instances, config):
        server = connect_instance("SQL01", None, config)
        rows = server.run_query(PERSISTED_SKU_FEATURES_QUERY, "Sales")

        assert rows == [{"feature_name": "Compression"}]
        assert "USE [Sales]" in instances["SQL01"].executed

    def test_run_query_failure(self, instances, config):
        instances["SQL01"].fail_use.add("USE [Gone]")
        server = connect_instance("SQL01", None, config)

        with pytest.raises(QueryError):
            server.run_query(PERSISTED_SKU_FEATURES_QUERY, "Gone")

    def test_unreachable_instance(self, instances, config):
        with pytest.raises(InstanceConnectionError) as exc:
            connect_instance("NOPE", None, config)
        assert exc.value.instance == "NOPE"

    def test_open_instance_disconnects(self, instances, config):
        with open_instance("SQL01", None, config):
            pass
        assert instances["SQL01"].closed


class TestValidateMigration:
    """End-to-end run over scripted connections."""

    def test_report(self, instances, config):
        report = assembler.validate_migration("SQL01", "SQL02", config=config)

        assert [r.database for r in report.records] == ["Sales"]
        assert not report.records[0].verdict.can_migrate
        assert [r.database for r in report.skipped] == ["Archive"]
        assert instances["SQL01"].closed
        assert instances["SQL02"].closed

    def test_disconnects_on_precondition_failure(self, instances, config):
        with pytest.raises(PreconditionViolation):
            assembler.validate_migration("SQL01", "SQL02", databases=["tempdb"], config=config)

        assert instances["SQL01"].closed
        assert instances["SQL02"].closed

    def test_source_closed_when_destination_unreachable(self, instances, config):
        with pytest.raises(InstanceConnectionError):
            assembler.validate_migration("SQL01", "NOPE", config=config)
        assert instances["SQL01"].closed

    def test_exclude(self, instances, config):
        report = assembler.validate_migration(
            "SQL01", "SQL02", exclude_databases=["Sales"], config=config
        )
        assert report.records == []
        assert [r.database for r in report.skipped] == ["Archive"]
