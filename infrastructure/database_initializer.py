# ============================================================================
# DATABASE INITIALIZER
# ============================================================================
# STATUS: Infrastructure - Envelope store schema creation
# PURPOSE: Idempotent DDL for envelopes, envelope_events and job_locks
# ============================================================================
"""
DatabaseInitializer - envelope store schema as code.

Every statement is CREATE ... IF NOT EXISTS, so initialization can run on
every deployment.

Usage:
    from infrastructure.database_initializer import DatabaseInitializer

    result = DatabaseInitializer().initialize_all()
    print(result.to_dict())

Exports:
    DatabaseInitializer: Runs the DDL steps
    InitializationResult: Step results
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from psycopg import sql

from config import DatabaseConfig
from exceptions import DatabaseError
from util_logger import LoggerFactory, ComponentType
from .postgresql import PostgreSQLRepository

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "DatabaseInitializer")


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class StepResult:
    """Result of a single initialization step."""
    name: str
    status: str  # 'success', 'failed'
    error: Optional[str] = None


@dataclass
class InitializationResult:
    """Complete result of database initialization."""
    schema: str
    timestamp: str
    success: bool = True
    steps: List[StepResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "timestamp": self.timestamp,
            "success": self.success,
            "steps": [
                {"name": s.name, "status": s.status, "error": s.error}
                for s in self.steps
            ],
        }


# ============================================================================
# DDL
# ============================================================================

def _ddl_steps(schema: str) -> List[tuple]:
    """(step name, composed statement) in dependency order."""
    schema_id = sql.Identifier(schema)
    return [
        ("schema", sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(schema_id)),
        ("envelopes", sql.SQL("""
            CREATE TABLE IF NOT EXISTS {}.envelopes (
                id                   UUID PRIMARY KEY,
                container            VARCHAR(100) NOT NULL,
                file_name            VARCHAR(255) NOT NULL,
                created_at           TIMESTAMPTZ NOT NULL DEFAULT now(),
                file_created_at      TIMESTAMPTZ NOT NULL,
                dispatched_at        TIMESTAMPTZ NULL,
                file_last_modified   TIMESTAMPTZ NULL,
                status               VARCHAR(20) NOT NULL
                    CHECK (status IN ('CREATED', 'DISPATCHED', 'REJECTED')),
                is_deleted           BOOLEAN NOT NULL DEFAULT FALSE,
                pending_notification BOOLEAN NOT NULL DEFAULT FALSE,
                file_size            BIGINT NOT NULL DEFAULT 0,
                CHECK (NOT is_deleted OR status <> 'CREATED')
            )
        """).format(schema_id)),
        # "find last" lookups; no uniqueness on (container, file_name)
        ("envelopes_container_file_name_idx", sql.SQL("""
            CREATE INDEX IF NOT EXISTS envelopes_container_file_name_idx
                ON {}.envelopes (container, file_name, created_at DESC)
        """).format(schema_id)),
        ("envelopes_status_idx", sql.SQL("""
            CREATE INDEX IF NOT EXISTS envelopes_status_idx
                ON {}.envelopes (status, is_deleted, container)
        """).format(schema_id)),
        ("envelope_events", sql.SQL("""
            CREATE TABLE IF NOT EXISTS {schema}.envelope_events (
                id          BIGSERIAL PRIMARY KEY,
                envelope_id UUID NOT NULL REFERENCES {schema}.envelopes (id),
                type        VARCHAR(50) NOT NULL,
                error_code  VARCHAR(50) NULL,
                notes       TEXT NULL,
                created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """).format(schema=schema_id)),
        ("envelope_events_envelope_id_idx", sql.SQL("""
            CREATE INDEX IF NOT EXISTS envelope_events_envelope_id_idx
                ON {}.envelope_events (envelope_id, created_at)
        """).format(schema_id)),
        ("job_locks", sql.SQL("""
            CREATE TABLE IF NOT EXISTS {}.job_locks (
                name         VARCHAR(64) PRIMARY KEY,
                locked_until TIMESTAMPTZ NOT NULL,
                locked_at    TIMESTAMPTZ NOT NULL,
                locked_by    VARCHAR(255) NOT NULL
            )
        """).format(schema_id)),
    ]


# ============================================================================
# DATABASE INITIALIZER
# ============================================================================

class DatabaseInitializer(PostgreSQLRepository):
    """
    Creates the envelope store schema objects.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None,
                 connection_string: Optional[str] = None):
        super().__init__(config=config, connection_string=connection_string)

    def initialize_all(self) -> InitializationResult:
        """
        Run every DDL step; stop at the first failure.
        """
        result = InitializationResult(
            schema=self.schema_name,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        for name, statement in _ddl_steps(self.schema_name):
            try:
                self._execute_query(statement)
                result.steps.append(StepResult(name=name, status="success"))
                logger.info(f"✅ DDL step complete: {name}")
            except DatabaseError as e:
                logger.error(f"❌ DDL step failed: {name}: {e}")
                result.steps.append(StepResult(name=name, status="failed", error=str(e)))
                result.success = False
                break
        return result
