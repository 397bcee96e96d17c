"""Error taxonomy for migration compatibility checks."""
from __future__ import annotations


class CompatError(Exception):
    """Base class for all sqlcompat errors."""


class InstanceConnectionError(CompatError):
    """Could not connect or authenticate to a server instance."""

    def __init__(self, instance: str, reason: str) -> None:
        self.instance = instance
        self.reason = reason
        super().__init__(f"Failed to connect to {instance}: {reason}")


class PreconditionViolation(CompatError):
    """A run-level rule rejected the source/destination pair."""

    def __init__(self, rule: str, message: str) -> None:
        self.rule = rule
        self.message = message
        super().__init__(message)


class CollectionError(CompatError):
    """Feature query failed for a single database."""

    def __init__(self, instance: str, database: str, reason: str) -> None:
        self.instance = instance
        self.database = database
        self.reason = reason
        super().__init__(
            f"Failed to collect features for database '{database}' on {instance}: {reason}"
        )


class UnknownEditionError(CompatError):
    """Edition has no entry in the weight table."""

    def __init__(self, edition: str) -> None:
        self.edition = edition
        super().__init__(f"Edition '{edition}' has no known weight; cannot compare editions")


class RulesetError(CompatError):
    """Edition ruleset file is missing or invalid."""


class QueryError(CompatError):
    """A query against an instance failed."""

    def __init__(self, instance: str, reason: str) -> None:
        self.instance = instance
        self.reason = reason
        super().__init__(f"Query failed on {instance}: {reason}")
