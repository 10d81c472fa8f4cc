"""
PostgreSQL Database Configuration.

Holds the envelope store connection settings. Supports password auth
(local development) and Azure managed identity (production), or a complete
POSTGRESQL_CONNECTION_STRING override.

Exports:
    DatabaseConfig: Envelope store database configuration
"""

import os
from typing import Optional
from pydantic import BaseModel, Field

from .defaults import DatabaseDefaults, AzureDefaults


# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================

class DatabaseConfig(BaseModel):
    """
    PostgreSQL configuration with managed identity support.
    """

    host: str = Field(default="localhost", description="PostgreSQL server hostname")
    port: int = Field(default=DatabaseDefaults.PORT)
    user: Optional[str] = Field(default=None, description="Username for password authentication")
    password: Optional[str] = Field(default=None, repr=False)
    database: str = Field(default="blob_router")
    db_schema: str = Field(
        default=DatabaseDefaults.SCHEMA,
        description="Schema holding envelopes, envelope_events and job_locks"
    )

    connection_string_override: Optional[str] = Field(
        default=None,
        repr=False,
        description="Complete libpq connection string; wins over individual fields"
    )

    use_managed_identity: bool = Field(
        default=False,
        description="Acquire an Azure AD token for the server instead of a password"
    )
    managed_identity_name: str = Field(default=AzureDefaults.MANAGED_IDENTITY_NAME)
    managed_identity_client_id: Optional[str] = Field(default=None)

    connection_timeout_seconds: int = Field(default=DatabaseDefaults.CONNECTION_TIMEOUT_SECONDS)

    @property
    def connection_string(self) -> str:
        """
        Build the password-auth connection string.

        Managed identity connections are built by PostgreSQLRepository with a
        freshly acquired token.
        """
        if self.connection_string_override:
            return self.connection_string_override
        if not self.user:
            raise ValueError("POSTGRES_USER is required for password authentication")
        password_part = f" password={self.password}" if self.password else ""
        return (
            f"host={self.host} port={self.port} dbname={self.database} "
            f"user={self.user}{password_part} connect_timeout={self.connection_timeout_seconds}"
        )

    def debug_dict(self) -> dict:
        """Debug output with masked password."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "database": self.database,
            "db_schema": self.db_schema,
            "password": "***MASKED***" if self.password else None,
            "connection_string_override": "***MASKED***" if self.connection_string_override else None,
            "managed_identity": self.use_managed_identity,
            "managed_identity_name": self.managed_identity_name,
        }

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            host=os.environ.get("POSTGRES_HOST", "localhost"),
            port=int(os.environ.get("POSTGRES_PORT", str(DatabaseDefaults.PORT))),
            user=os.environ.get("POSTGRES_USER"),
            password=os.environ.get("POSTGRES_PASSWORD"),
            database=os.environ.get("POSTGRES_DATABASE", "blob_router"),
            db_schema=os.environ.get("POSTGRES_SCHEMA", DatabaseDefaults.SCHEMA),
            connection_string_override=os.environ.get("POSTGRESQL_CONNECTION_STRING"),
            use_managed_identity=os.environ.get("USE_MANAGED_IDENTITY", "false").lower() == "true",
            managed_identity_name=os.environ.get("DB_MANAGED_IDENTITY_NAME", AzureDefaults.MANAGED_IDENTITY_NAME),
            managed_identity_client_id=os.environ.get("DB_MANAGED_IDENTITY_CLIENT_ID"),
            connection_timeout_seconds=int(os.environ.get(
                "DB_CONNECTION_TIMEOUT", str(DatabaseDefaults.CONNECTION_TIMEOUT_SECONDS)
            )),
        )
