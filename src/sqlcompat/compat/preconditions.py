"""Run-level gates evaluated before any per-database work."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable
import logging

from sqlcompat.compat.ruleset import EditionRuleset
from sqlcompat.errors import PreconditionViolation
from sqlcompat.models import ServerInfo

logger = logging.getLogger(__name__)


@dataclass
class PreconditionOutcome:
    """Non-fatal findings from a passing precondition check."""
    warnings: list[str] = field(default_factory=list)


def check_preconditions(
    source: ServerInfo,
    destination: ServerInfo,
    requested_databases: Iterable[str] | None,
    ruleset: EditionRuleset
) -> PreconditionOutcome:
    """Validate that migrating between the two instances is attemptable.

    Rules run in order and the first failure aborts the run.

    Args:
        source: Source instance snapshot
        destination: Destination instance snapshot
        requested_databases: Database names explicitly requested by the caller
        ruleset: Edition ruleset (system database names, version floor)

    Returns:
        PreconditionOutcome carrying any warnings

    Raises:
        PreconditionViolation: If a rule rejects the pair
    """
    outcome = PreconditionOutcome()

    requested = [name for name in (requested_databases or [])]
    system_requested = [name for name in requested if ruleset.is_system_database(name)]
    if system_requested:
        raise PreconditionViolation(
            "system_database",
            "Migrating system databases is not supported "
            f"(requested: {', '.join(system_requested)})."
        )

    if source.version_major < 9 and destination.version_major > 10:
        raise PreconditionViolation(
            "cross_era",
            "Migration from SQL Server 2000 or earlier to SQL Server 2012 or later "
            f"is not supported (source major {source.version_major}, "
            f"destination major {destination.version_major})."
        )

    if source.collation != destination.collation:
        message = (
            f"Collation on {source.name}, {source.collation}, differs from "
            f"{destination.name}, {destination.collation}."
        )
        logger.warning(message)
        outcome.warnings.append(message)

    if source.version_major > destination.version_major:
        raise PreconditionViolation(
            "version_direction",
            "Cannot migrate from a higher version to a lower one "
            f"({source.version_string} to {destination.version_string})."
        )

    if source.version_major < ruleset.min_source_major:
        raise PreconditionViolation(
            "version_floor",
            "This validation only supports source version 2008 "
            f"(major {ruleset.min_source_major}) or higher."
        )

    return outcome
