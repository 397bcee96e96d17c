"""SKU feature collection for a single database."""

from __future__ import annotations
import logging

from sqlcompat.errors import CollectionError, QueryError
from sqlcompat.server.base import ServerHandle

logger = logging.getLogger(__name__)

PERSISTED_SKU_FEATURES_QUERY = "SELECT feature_name FROM sys.dm_db_persisted_sku_features"


def collect_features(server: ServerHandle, database: str) -> list[str]:
    """List the edition-restricted features persisted in a database.

    Args:
        server: Connected source instance
        database: Database to inspect

    Returns:
        Feature names in query order; empty when none are in use

    Raises:
        CollectionError: If the query fails
    """
    try:
        rows = server.run_query(PERSISTED_SKU_FEATURES_QUERY, database)
    except QueryError as e:
        raise CollectionError(server.info.name, database, e.reason) from e

    features = [row["feature_name"] for row in rows]
    logger.debug(f"{database}: {len(features)} SKU features in use")
    return features
