"""Configuration management for sqlcompat.

Loads settings from environment variables using python-dotenv.
"""
from __future__ import annotations
import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize settings from environment variables."""
        # ODBC connection
        self.odbc_driver = os.getenv("SQLCOMPAT_ODBC_DRIVER", "ODBC Driver 18 for SQL Server")
        self.connect_timeout = int(os.getenv("SQLCOMPAT_CONNECT_TIMEOUT", "15"))
        self.trust_server_certificate = _env_bool("SQLCOMPAT_TRUST_SERVER_CERTIFICATE", "true")
        self.encrypt = _env_bool("SQLCOMPAT_ENCRYPT", "true")

        # Credentials (empty means integrated authentication)
        self.source_user = os.getenv("SQLCOMPAT_SOURCE_USER", "")
        self.source_password = os.getenv("SQLCOMPAT_SOURCE_PASSWORD", "")
        self.destination_user = os.getenv("SQLCOMPAT_DESTINATION_USER", "")
        self.destination_password = os.getenv("SQLCOMPAT_DESTINATION_PASSWORD", "")

        # Rules
        self.ruleset_path = os.getenv("SQLCOMPAT_RULESET", "") or None

        # Output
        self.log_level = os.getenv("SQLCOMPAT_LOG_LEVEL", "WARNING").upper()


# Global settings instance
settings = Settings()
