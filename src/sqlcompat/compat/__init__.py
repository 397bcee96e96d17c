"""
Migration Compatibility Module

Provides the compatibility-decision engine:
- Edition ruleset loading
- Run-level precondition checks
- SKU feature collection per database
- Per-database classification
- Report assembly
"""

from sqlcompat.compat.ruleset import load_edition_rules, EditionRuleset
from sqlcompat.compat.preconditions import check_preconditions, PreconditionOutcome
from sqlcompat.compat.collector import collect_features
from sqlcompat.compat.classifier import classify
from sqlcompat.compat.assembler import build_report, select_databases, validate_migration

__all__ = [
    "load_edition_rules",
    "EditionRuleset",
    "check_preconditions",
    "PreconditionOutcome",
    "collect_features",
    "classify",
    "build_report",
    "select_databases",
    "validate_migration",
]
