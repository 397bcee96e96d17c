"""Ruleset loader for edition compatibility checks."""

from __future__ import annotations
from functools import lru_cache
from pathlib import Path
import hashlib
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sqlcompat.errors import RulesetError, UnknownEditionError
from sqlcompat.models import Edition

DEFAULT_RULESET_PATH = Path(__file__).with_name("edition_rules.yaml")


class EditionRuleset(BaseModel):
    """Read-only edition weight table and version thresholds."""
    model_config = ConfigDict(frozen=True)

    version: str = "1.0"
    edition_weights: dict[Edition, int]
    feature_parity_version: int = Field(13040010, gt=0)
    express_weight: int = 1
    express_blocked_features: tuple[str, ...] = ("ChangeCapture",)
    system_databases: frozenset[str] = frozenset({"master", "msdb", "tempdb"})
    min_source_major: int = 10
    content_hash: str = ""

    @field_validator("edition_weights")
    @classmethod
    def validate_weights(cls, v: dict[Edition, int]) -> dict[Edition, int]:
        """Reject a weight for the catch-all edition."""
        if Edition.OTHER in v:
            raise ValueError("edition_weights cannot assign a weight to 'Other'")
        if not v:
            raise ValueError("edition_weights must not be empty")
        return v

    @field_validator("system_databases")
    @classmethod
    def normalize_system_databases(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(name.lower() for name in v)

    def weight(self, edition: Edition | str) -> int:
        """Look up the weight of an edition or raw server edition string.

        Raises:
            UnknownEditionError: If the edition has no entry in the table
        """
        if isinstance(edition, Edition):
            kind, label = edition, edition.value
        else:
            kind, label = Edition.parse(edition), edition

        try:
            return self.edition_weights[kind]
        except KeyError:
            raise UnknownEditionError(label) from None

    def is_system_database(self, name: str) -> bool:
        return name.lower() in self.system_databases


def load_edition_rules(ruleset_path: str | Path | None = None) -> EditionRuleset:
    """Load the edition ruleset from YAML.

    Args:
        ruleset_path: Path to YAML ruleset file, or None to use the packaged default

    Returns:
        Parsed EditionRuleset

    Raises:
        RulesetError: If the file is missing or fails validation
    """
    path = Path(ruleset_path) if ruleset_path else DEFAULT_RULESET_PATH
    return _load_cached(str(path.resolve()))


@lru_cache(maxsize=8)
def _load_cached(path: str) -> EditionRuleset:
    try:
        with open(path, 'r') as f:
            raw_data = f.read()
    except OSError as e:
        raise RulesetError(f"Cannot read ruleset {path}: {e}") from e

    data = yaml.safe_load(raw_data)
    if not data:
        raise RulesetError(f"Empty ruleset file: {path}")

    # Fingerprint of the rules, shown in verbose output
    data["content_hash"] = hashlib.sha256(raw_data.encode()).hexdigest()[:16]

    try:
        return EditionRuleset.model_validate(data)
    except ValidationError as e:
        raise RulesetError(f"Invalid ruleset in {path}: {e}") from e
