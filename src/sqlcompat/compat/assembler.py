"""Main migration compatibility orchestrator."""

from __future__ import annotations
from contextlib import ExitStack
from typing import Iterable, Sequence
import logging

from sqlcompat.compat.classifier import classify
from sqlcompat.compat.collector import collect_features
from sqlcompat.compat.preconditions import check_preconditions
from sqlcompat.compat.ruleset import EditionRuleset, load_edition_rules
from sqlcompat.config import Settings, settings as default_settings
from sqlcompat.errors import CollectionError
from sqlcompat.models import DatabaseRef, DatabaseResult, MigrationRecord, MigrationReport, ServerInfo
from sqlcompat.server.base import Credential, ServerHandle

logger = logging.getLogger(__name__)

NOTICE_NOTHING_SELECTED = "No databases selected to validate."


def select_databases(
    available: Sequence[DatabaseRef],
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None
) -> list[DatabaseRef]:
    """Filter enumerated databases by include and exclude name lists.

    Matching is case-insensitive and enumeration order is kept.
    """
    included = {name.lower() for name in include} if include else None
    excluded = {name.lower() for name in exclude} if exclude else set()

    selected = []
    for db in available:
        key = db.name.lower()
        if included is not None and key not in included:
            continue
        if key in excluded:
            continue
        selected.append(db)

    return selected


def build_report(
    source: ServerHandle,
    destination: ServerInfo,
    databases: Sequence[DatabaseRef],
    ruleset: EditionRuleset,
    requested_databases: Iterable[str] | None = None
) -> MigrationReport:
    """Check every database and assemble the report.

    Preconditions run once up front and abort the whole run on failure.
    Each database then yields exactly one result: a record, a skip for
    offline databases, or an error when feature collection fails.

    Args:
        source: Connected source instance
        destination: Destination instance snapshot
        databases: Databases to check, in report order
        ruleset: Edition ruleset
        requested_databases: Names the caller asked for explicitly

    Returns:
        MigrationReport in input order

    Raises:
        PreconditionViolation: If the source/destination pair is rejected
    """
    outcome = check_preconditions(source.info, destination, requested_databases, ruleset)
    report = MigrationReport(source=source.info, destination=destination, warnings=outcome.warnings)

    if not databases:
        logger.info(NOTICE_NOTHING_SELECTED)
        report.notice = NOTICE_NOTHING_SELECTED
        return report

    for db in databases:
        result = _check_database(source, destination, db, ruleset)
        report.append(result)

    logger.info(
        f"Checked {len(databases)} databases: {len(report.records)} classified, "
        f"{len(report.skipped)} skipped, {len(report.errors)} failed"
    )
    return report


def _check_database(
    source: ServerHandle,
    destination: ServerInfo,
    db: DatabaseRef,
    ruleset: EditionRuleset
) -> DatabaseResult:
    """Produce the result for one database without touching any other."""
    if db.is_offline:
        message = f"Database '{db.name}' is offline; skipping"
        logger.warning(message)
        return DatabaseResult(database=db.name, status="skipped", message=message)

    try:
        features = collect_features(source, db.name)
    except CollectionError as e:
        logger.warning(str(e))
        return DatabaseResult(database=db.name, status="error", message=str(e))

    verdict = classify(source.info, destination, features, ruleset)
    record = MigrationRecord(
        source_instance=source.info.name,
        destination_instance=destination.name,
        source_version=source.info.version_label,
        destination_version=destination.version_label,
        database=db.name,
        features_in_use=tuple(features),
        verdict=verdict,
    )
    return DatabaseResult(database=db.name, status="ok", record=record)


def validate_migration(
    source_instance: str,
    destination_instance: str,
    source_credential: Credential | None = None,
    destination_credential: Credential | None = None,
    databases: Sequence[str] | None = None,
    exclude_databases: Sequence[str] | None = None,
    ruleset: EditionRuleset | None = None,
    config: Settings | None = None
) -> MigrationReport:
    """Connect to both instances and validate the selected databases.

    Both connections are released on every exit path.

    Raises:
        InstanceConnectionError: If either instance cannot be reached
        PreconditionViolation: If the source/destination pair is rejected
    """
    from sqlcompat.server.connection import open_instance

    config = config or default_settings
    ruleset = ruleset or load_edition_rules(config.ruleset_path)

    with ExitStack() as stack:
        source = stack.enter_context(open_instance(source_instance, source_credential, config))
        destination = stack.enter_context(
            open_instance(destination_instance, destination_credential, config)
        )
        logger.info(f"Source: {source.info.name} {source.info.version_label}")
        logger.info(f"Destination: {destination.info.name} {destination.info.version_label}")

        available = source.list_databases()
        selected = select_databases(available, databases, exclude_databases)
        report = build_report(source, destination.info, selected, ruleset, databases)

        found = {db.name.lower() for db in available}
        for name in databases or []:
            if name.lower() not in found:
                logger.warning(f"Database '{name}' was requested but not found on {source.info.name}")

        return report
