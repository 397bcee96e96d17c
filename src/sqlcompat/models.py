"""Data model for migration compatibility checks."""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum, Flag, auto
from typing import Any, Literal


# Product names by major version
SQL_SERVER_VERSIONS = {
    8: "SQL Server 2000",
    9: "SQL Server 2005",
    10: "SQL Server 2008",
    11: "SQL Server 2012",
    12: "SQL Server 2014",
    13: "SQL Server 2016",
    14: "SQL Server 2017",
    15: "SQL Server 2019",
    16: "SQL Server 2022",
}


class Edition(str, Enum):
    """Edition tiers recognized by the weight table."""
    ENTERPRISE = "Enterprise"
    DEVELOPER = "Developer"
    EVALUATION = "Evaluation"
    STANDARD = "Standard"
    EXPRESS = "Express"
    OTHER = "Other"

    @classmethod
    def parse(cls, edition: str) -> Edition:
        """Parse a server edition string into an Edition.

        Only the first whitespace-delimited token is considered, so
        "Enterprise Edition: Core-based Licensing (64-bit)" parses as
        ENTERPRISE. Unrecognized tokens return OTHER.
        """
        tokens = (edition or "").split()
        if not tokens:
            return cls.OTHER

        token = tokens[0].lower()
        for member in cls:
            if member is not cls.OTHER and member.value.lower() == token:
                return member
        return cls.OTHER


class DatabaseStatus(Flag):
    """Database state flags as reported by sys.databases."""
    NORMAL = auto()
    OFFLINE = auto()
    RESTORING = auto()
    RECOVERING = auto()
    SUSPECT = auto()
    EMERGENCY = auto()
    READ_ONLY = auto()

    @classmethod
    def from_state(cls, state_desc: str | None, read_only: bool = False) -> DatabaseStatus:
        """Build status flags from a sys.databases state_desc value."""
        state = (state_desc or "ONLINE").upper()
        mapping = {
            "ONLINE": cls.NORMAL,
            "OFFLINE": cls.OFFLINE,
            "OFFLINE_SECONDARY": cls.OFFLINE,
            "RESTORING": cls.RESTORING,
            "RECOVERING": cls.RECOVERING,
            "RECOVERY_PENDING": cls.RECOVERING,
            "SUSPECT": cls.SUSPECT,
            "EMERGENCY": cls.EMERGENCY,
        }
        status = mapping.get(state, cls.NORMAL)
        if read_only:
            status |= cls.READ_ONLY
        return status


@dataclass(frozen=True)
class ServerInfo:
    """Snapshot of instance metadata taken once at the start of a run."""
    name: str
    version_major: int
    version_string: str
    edition: str
    product_level: str = ""
    collation: str = ""

    @property
    def edition_kind(self) -> Edition:
        return Edition.parse(self.edition)

    @property
    def version_number(self) -> int:
        """Version string with the separators removed, read as one integer.

        This is a digit concatenation, not a semantic version compare:
        "13.0.4001.0" becomes 13040010.
        """
        return int(self.version_string.replace(".", ""))

    @property
    def version_label(self) -> str:
        product = SQL_SERVER_VERSIONS.get(
            self.version_major, f"SQL Server (v{self.version_major})"
        )
        parts = [product, self.edition]
        if self.product_level:
            parts.append(self.product_level)
        parts.append(f"({self.version_string})")
        return " ".join(p for p in parts if p)


@dataclass(frozen=True)
class DatabaseRef:
    """A user database enumerated from the source instance."""
    name: str
    status: DatabaseStatus = DatabaseStatus.NORMAL

    @property
    def is_offline(self) -> bool:
        return bool(self.status & DatabaseStatus.OFFLINE)


@dataclass(frozen=True)
class Verdict:
    """Classification outcome for one database."""
    can_migrate: bool
    note: str


@dataclass(frozen=True)
class MigrationRecord:
    """One row of the migration report."""
    source_instance: str
    destination_instance: str
    source_version: str
    destination_version: str
    database: str
    features_in_use: tuple[str, ...]
    verdict: Verdict

    @property
    def features_display(self) -> str:
        return ",".join(self.features_in_use)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_instance": self.source_instance,
            "destination_instance": self.destination_instance,
            "source_version": self.source_version,
            "destination_version": self.destination_version,
            "database": self.database,
            "features_in_use": self.features_display,
            "is_migratable": self.verdict.can_migrate,
            "notes": self.verdict.note,
        }


@dataclass(frozen=True)
class DatabaseResult:
    """Outcome of processing one database: a record, a skip, or an error."""
    database: str
    status: Literal["ok", "skipped", "error"]
    record: MigrationRecord | None = None
    message: str | None = None


@dataclass
class MigrationReport:
    """Ordered per-database results for one source/destination pair."""
    source: ServerInfo
    destination: ServerInfo
    results: list[DatabaseResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    notice: str | None = None

    def append(self, result: DatabaseResult) -> None:
        self.results.append(result)

    @property
    def records(self) -> list[MigrationRecord]:
        return [r.record for r in self.results if r.status == "ok" and r.record is not None]

    @property
    def skipped(self) -> list[DatabaseResult]:
        return [r for r in self.results if r.status == "skipped"]

    @property
    def errors(self) -> list[DatabaseResult]:
        return [r for r in self.results if r.status == "error"]

    @property
    def all_migratable(self) -> bool:
        return all(r.verdict.can_migrate for r in self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": asdict(self.source),
            "destination": asdict(self.destination),
            "records": [r.to_dict() for r in self.records],
            "errors": [{"database": r.database, "message": r.message} for r in self.errors],
            "warnings": list(self.warnings),
            "notice": self.notice,
        }
