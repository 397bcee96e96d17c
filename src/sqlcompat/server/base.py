"""Interface between the compatibility engine and a connected instance."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Protocol

from sqlcompat.models import DatabaseRef, ServerInfo


class ServerHandle(Protocol):
    """What the compatibility engine needs from a connected instance."""
    info: ServerInfo

    def list_databases(self) -> list[DatabaseRef]: ...

    def run_query(self, sql: str, database: str | None = None) -> list[dict[str, Any]]:
        """Run a query; failures raise QueryError."""
        ...

    def close(self) -> None: ...


@dataclass
class Credential:
    """SQL authentication credentials; absent means integrated security."""
    user: str
    password: str

    def __repr__(self) -> str:
        return f"Credential(user={self.user!r}, password='***')"
