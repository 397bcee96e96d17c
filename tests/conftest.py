"""Shared pytest fixtures for all tests."""
import pytest

from sqlcompat.compat.ruleset import load_edition_rules
from sqlcompat.errors import QueryError
from sqlcompat.models import DatabaseRef, DatabaseStatus, ServerInfo


class FakeServer:
    """In-memory stand-in for a connected instance."""

    def __init__(self, info, databases=None, features=None, failing=None):
        self.info = info
        self.databases = list(databases or [])
        self.features = dict(features or {})
        self.failing = set(failing or [])
        self.queries = []
        self.closed = False

    def list_databases(self):
        return list(self.databases)

    def run_query(self, sql, database=None):
        self.queries.append((sql, database))
        if database in self.failing:
            raise QueryError(self.info.name, f"permission denied in database '{database}'")
        return [{"feature_name": name} for name in self.features.get(database, [])]

    def close(self):
        self.closed = True


def make_info(
    name="SQL01",
    version_string="12.0.5000.0",
    edition="Enterprise Edition (64-bit)",
    product_level="SP2",
    collation="SQL_Latin1_General_CP1_CI_AS",
):
    return ServerInfo(
        name=name,
        version_major=int(version_string.split(".")[0]),
        version_string=version_string,
        edition=edition,
        product_level=product_level,
        collation=collation,
    )


@pytest.fixture(scope="session")
def ruleset():
    """Packaged edition ruleset."""
    return load_edition_rules()


@pytest.fixture
def source_info():
    return make_info()


@pytest.fixture
def dest_info():
    return make_info(name="SQL02", edition="Standard Edition (64-bit)")


@pytest.fixture
def fake_source(source_info):
    return FakeServer(
        source_info,
        databases=[
            DatabaseRef("Sales"),
            DatabaseRef("Archive", DatabaseStatus.OFFLINE),
            DatabaseRef("Inventory"),
        ],
        features={"Sales": ["Compression", "Partitioning"]},
    )


@pytest.fixture
def info_factory():
    """Build ServerInfo snapshots with overridable fields."""
    return make_info


@pytest.fixture
def server_factory():
    """Build fake connected instances."""
    return FakeServer
