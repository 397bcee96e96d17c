"""Per-database compatibility classification.

Turns the SKU features a database has in use, together with the source and
destination editions and versions, into a Verdict. Two regimes apply:

- Destination builds at or above SQL Server 2016 SP1 share almost every SKU
  feature across editions. Only change data capture stays gated, because
  Express ships without SQL Server Agent.
- Older destinations are compared by edition weight. A lower-weight
  destination can only take a database that uses no restricted features.
"""

from __future__ import annotations
from typing import Sequence

from sqlcompat.compat.ruleset import EditionRuleset
from sqlcompat.models import ServerInfo, Verdict

NOTE_CAN_MIGRATE = "Database can be migrated."
NOTE_CANNOT_MIGRATE = "Database cannot be migrated:"
REASON_EXPRESS_CDC = (
    "destination edition is EXPRESS which does not support "
    "'ChangeCapture' feature that is in use."
)
REASON_MISSING_FEATURES = (
    "there are features in use not available on the destination instance."
)


def classify(
    source: ServerInfo,
    destination: ServerInfo,
    features: Sequence[str],
    ruleset: EditionRuleset
) -> Verdict:
    """Classify one database as migratable or blocked.

    Args:
        source: Source instance snapshot
        destination: Destination instance snapshot
        features: SKU feature names persisted in the database
        ruleset: Edition weights and thresholds

    Returns:
        Verdict with a human-readable note

    Raises:
        UnknownEditionError: If the verdict depends on an edition that has
            no weight
    """
    if destination.version_number >= ruleset.feature_parity_version:
        blocked = [f for f in ruleset.express_blocked_features if f in features]
        if blocked and ruleset.weight(destination.edition) == ruleset.express_weight:
            return _blocked(REASON_EXPRESS_CDC)
        return Verdict(can_migrate=True, note=NOTE_CAN_MIGRATE)

    if not features:
        return Verdict(can_migrate=True, note=NOTE_CAN_MIGRATE)

    if ruleset.weight(destination.edition) < ruleset.weight(source.edition):
        return _blocked(REASON_MISSING_FEATURES)

    return Verdict(can_migrate=True, note=NOTE_CAN_MIGRATE)


def _blocked(reason: str) -> Verdict:
    return Verdict(can_migrate=False, note=f"{NOTE_CANNOT_MIGRATE} {reason}")
