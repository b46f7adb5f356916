"""
Connection configuration.

Settings come from explicit values (CLI flags) first and the POSTGRES_*
environment variables second.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ConnectionSettings:
    """Connection and pool settings for the PostgreSQL metadata provider."""
    host: str = "localhost"
    port: int = 5432
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    ssl: bool = False

    # Pool limits
    pool_min: int = 1
    pool_max: int = 5
    connect_timeout: int = 2  # seconds
    statement_timeout: int = 30000  # milliseconds, 0 disables

    application_name: str = "pg-lens-readonly"

    @classmethod
    def from_env(cls, **overrides: Any) -> ConnectionSettings:
        """
        Build settings from POSTGRES_* environment variables.

        Keyword overrides that are not None take precedence.
        """
        port = os.environ.get("POSTGRES_PORT")
        values: Dict[str, Any] = {
            "host": os.environ.get("POSTGRES_HOST", "localhost"),
            "port": int(port) if port else 5432,
            "database": os.environ.get("POSTGRES_DATABASE"),
            "user": os.environ.get("POSTGRES_USER"),
            "password": os.environ.get("POSTGRES_PASSWORD"),
            "ssl": os.environ.get("POSTGRES_SSL", "").lower() == "true",
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        """Raise ValueError naming every missing required setting."""
        missing = []
        if self.database is None:
            missing.append("database (--database or POSTGRES_DATABASE)")
        if self.user is None:
            missing.append("user (--user or POSTGRES_USER)")
        if self.password is None:
            missing.append("password (--password or POSTGRES_PASSWORD)")
        if missing:
            raise ValueError("Missing required database configuration: " + ", ".join(missing))
        if self.pool_max < 1 or self.pool_min > self.pool_max:
            raise ValueError(f"Invalid pool size: min={self.pool_min}, max={self.pool_max}")

    def dsn_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for psycopg2.connect."""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
            "sslmode": "require" if self.ssl else "prefer",
            "connect_timeout": self.connect_timeout,
            "application_name": self.application_name,
            # every session is read-only and bounds its catalog queries
            "options": (
                f"-c default_transaction_read_only=on -c statement_timeout={self.statement_timeout}"
            ),
        }
