"""
SQL Server connection collaborator.

`base` holds the interface the compatibility engine depends on;
`connection` implements it over pyodbc.
"""

from sqlcompat.server.base import Credential, ServerHandle

__all__ = ["Credential", "ServerHandle"]
