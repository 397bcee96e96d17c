"""
SQL Server migration compatibility checks.

Decides whether user databases on a source instance can be moved to a
destination instance by comparing editions, versions and the SKU features
each database has persisted as in use.
"""

__version__ = "0.1.0"
