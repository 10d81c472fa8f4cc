# ============================================================================
# POSTGRESQL BASE REPOSITORY
# ============================================================================
# STATUS: Infrastructure - PostgreSQL connection management and query execution
# PURPOSE: Shared psycopg3 plumbing for the envelope store and the cluster lock
# EXPORTS: PostgreSQLRepository
# DEPENDENCIES: psycopg, psycopg.sql, azure-identity, config
# PATTERNS: Repository pattern, short per-operation transactions
# ============================================================================

"""
PostgreSQL Repository Base - Direct Database Access

Key Features:
- psycopg3 with dict_row rows
- SQL composition (psycopg.sql) for injection safety
- One short transaction per repository call; storage I/O never happens
  while a transaction is open
- Password or Azure managed identity authentication

Architecture:
    BaseRepository (abstract)
        ↓
    PostgreSQLRepository (this file)
        ↓
    PostgreSQLEnvelopeRepository, PostgreSQLClusterLockRepository
"""

import time
from contextlib import contextmanager
from typing import Any, Optional, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from config import DatabaseConfig, get_config
from config.defaults import AzureDefaults
from exceptions import DatabaseError
from util_logger import LoggerFactory, ComponentType
from .base import BaseRepository

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "PostgreSQLRepository")


# ============================================================================
# POSTGRESQL BASE REPOSITORY - Connection and common operations
# ============================================================================

class PostgreSQLRepository(BaseRepository):
    """
    PostgreSQL-specific repository base class with connection management.

    Parameters:
    ----------
    config : Optional[DatabaseConfig]
        Database settings. Defaults to get_config().database.
    connection_string : Optional[str]
        Explicit connection string (tests, scripts); bypasses config auth.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None,
                 connection_string: Optional[str] = None):
        super().__init__()
        self.config = config or get_config().database
        self.schema_name = self.config.db_schema
        self._explicit_conn_string = connection_string

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _get_connection_string(self) -> str:
        """
        Build PostgreSQL connection string.

        Priority:
        1. Explicit connection string passed to the constructor
        2. Managed identity (token as password) if enabled
        3. DatabaseConfig.connection_string (override or password auth)
        """
        if self._explicit_conn_string:
            return self._explicit_conn_string
        if self.config.use_managed_identity and not self.config.connection_string_override:
            return self._build_managed_identity_connection_string()
        return self.config.connection_string

    def _build_managed_identity_connection_string(self) -> str:
        """
        Acquire an Azure AD token and use it as the PostgreSQL password.

        Tokens are valid for roughly an hour; a new one is requested per
        connection and the credential caches it internally.
        """
        from azure.identity import DefaultAzureCredential
        from azure.core.exceptions import ClientAuthenticationError

        try:
            credential = DefaultAzureCredential(
                managed_identity_client_id=self.config.managed_identity_client_id
            )
            token_response = credential.get_token(AzureDefaults.POSTGRES_AAD_SCOPE)
        except ClientAuthenticationError as e:
            logger.error(f"❌ Failed to acquire managed identity token: {e}")
            raise DatabaseError(
                "Managed identity token acquisition failed. Ensure the Function App "
                "identity is assigned and registered as a PostgreSQL principal."
            ) from e

        logger.debug(
            f"✅ Token acquired (expires in ~{token_response.expires_on - time.time():.0f}s)"
        )
        return (
            f"host={self.config.host} "
            f"port={self.config.port} "
            f"dbname={self.config.database} "
            f"user={self.config.managed_identity_name} "
            f"password={token_response.token} "
            f"sslmode=require "
            f"connect_timeout={self.config.connection_timeout_seconds}"
        )

    @contextmanager
    def _get_connection(self):
        """
        Context manager for PostgreSQL database connections.

        Yields:
        ------
        psycopg.Connection
            Connection with autocommit disabled and dict_row rows. The caller
            commits; on error the transaction is rolled back.

        Raises:
        ------
        DatabaseError
            On connection failures.
        """
        conn = None
        try:
            conn = psycopg.connect(self._get_connection_string(), row_factory=dict_row)
            yield conn
        except psycopg.OperationalError as e:
            logger.error(f"❌ PostgreSQL connection error: {e}")
            if conn:
                conn.rollback()
            raise DatabaseError(f"PostgreSQL connection error: {e}") from e
        except Exception:
            if conn and not conn.closed:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    # ------------------------------------------------------------------
    # Query execution
    # ------------------------------------------------------------------

    def _execute_query(self, query: sql.Composable, params: Optional[Sequence[Any]] = None,
                       fetch: Optional[str] = None) -> Optional[Any]:
        """
        Execute one statement in its own transaction and ALWAYS commit.

        Parameters:
        ----------
        query : sql.Composable
            SQL built with psycopg.sql composition.
        params : Optional[Sequence]
            Values for %s placeholders.
        fetch : Optional[str]
            None | 'one' | 'all'

        Returns:
        -------
        Row dict for 'one', list of row dicts for 'all', affected row count
        for DML without fetch, None otherwise.

        Raises:
        ------
        TypeError
            If query is not composed with psycopg.sql
        DatabaseError
            For any database operation failure (wraps psycopg errors)
        """
        if not isinstance(query, sql.Composable):
            raise TypeError(f"❌ SECURITY: Query must be psycopg.sql composed, got {type(query)}")
        if fetch and fetch not in ('one', 'all'):
            raise ValueError(f"❌ INVALID FETCH MODE: {fetch}")

        with self._get_connection() as conn:
            with conn.cursor() as cursor:
                try:
                    cursor.execute(query, params)
                    result = None
                    if fetch == 'one':
                        result = cursor.fetchone()
                    elif fetch == 'all':
                        result = cursor.fetchall()
                    conn.commit()
                except psycopg.Error as e:
                    logger.error(f"❌ QUERY EXECUTION FAILED: {e}")
                    logger.error(f"   SQL State: {getattr(e, 'sqlstate', 'unknown')}")
                    conn.rollback()
                    raise DatabaseError(f"Query execution failed: {e}") from e

                if fetch:
                    return result
                if cursor.description is None:
                    return cursor.rowcount
                return None

    @contextmanager
    def _transaction(self):
        """
        Multi-statement transaction on one connection.

        Used where a status change and its audit event must land together.
        Keep the block free of any storage or network I/O.

        Yields:
        ------
        psycopg.Cursor
        """
        with self._get_connection() as conn:
            try:
                with conn.cursor() as cursor:
                    yield cursor
                conn.commit()
            except psycopg.Error as e:
                logger.error(f"❌ TRANSACTION FAILED: {e}")
                conn.rollback()
                raise DatabaseError(f"Transaction failed: {e}") from e

    def _table(self, name: str) -> sql.Composed:
        """Schema-qualified table identifier."""
        return sql.SQL("{}.{}").format(sql.Identifier(self.schema_name), sql.Identifier(name))
