"""
Cluster Lock - one replica runs a given scheduled job at a time.

Backed by the job_locks table: the row's primary key is the job name and
locked_until is the lease expiry. Acquisition is a single upsert that only
takes over a row whose lock has expired, so concurrent replicas cannot both
win. A replica that crashes mid-job frees the job once locked_until passes.

Exports:
    PostgreSQLClusterLockRepository: job_locks table access
    ClusterLock: with_cluster_lock(job_name, fn) wrapper
"""

import os
import socket
import uuid
from typing import Callable, Optional, TypeVar

from psycopg import sql

from util_logger import LoggerFactory, ComponentType
from .interface_repository import IClusterLockRepository
from .postgresql import PostgreSQLRepository

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "ClusterLock")

LOCKS_TABLE = "job_locks"

T = TypeVar("T")


class PostgreSQLClusterLockRepository(PostgreSQLRepository, IClusterLockRepository):
    """job_locks rows: name (PK), locked_until, locked_at, locked_by."""

    def try_acquire(self, name: str, lock_seconds: int, owner: str) -> bool:
        query = sql.SQL("""
            INSERT INTO {table} (name, locked_until, locked_at, locked_by)
            VALUES (%s, now() + make_interval(secs => %s), now(), %s)
            ON CONFLICT (name) DO UPDATE SET
                locked_until = EXCLUDED.locked_until,
                locked_at = EXCLUDED.locked_at,
                locked_by = EXCLUDED.locked_by
            WHERE {table}.locked_until <= now()
            RETURNING name
        """).format(table=self._table(LOCKS_TABLE))
        with self._error_context("cluster lock acquire", name):
            row = self._execute_query(query, (name, lock_seconds, owner), fetch='one')
        return row is not None

    def release(self, name: str, owner: str) -> None:
        query = sql.SQL("""
            UPDATE {} SET locked_until = now()
            WHERE name = %s AND locked_by = %s
        """).format(self._table(LOCKS_TABLE))
        with self._error_context("cluster lock release", name):
            self._execute_query(query, (name, owner))


class ClusterLock:
    """
    Run a function under cluster-wide mutual exclusion keyed by job name.

    Usage:
        lock = ClusterLock(repository, lock_at_most_for_seconds=600)
        ran, result = lock.with_cluster_lock("send-notifications", service.send_notifications)
    """

    def __init__(self, repository: IClusterLockRepository, lock_at_most_for_seconds: int,
                 owner: Optional[str] = None):
        self.repository = repository
        self.lock_at_most_for_seconds = lock_at_most_for_seconds
        self.owner = owner or _default_owner()

    def with_cluster_lock(self, job_name: str, fn: Callable[[], T]):
        """
        Returns:
            (True, fn result) when this replica ran the job,
            (False, None) when another replica holds the lock.
        """
        if not self.repository.try_acquire(job_name, self.lock_at_most_for_seconds, self.owner):
            logger.info(f"⏭️ Job {job_name} is locked by another instance, skipping this tick")
            return False, None

        logger.debug(f"🔐 Cluster lock acquired: {job_name} ({self.owner})")
        try:
            return True, fn()
        finally:
            try:
                self.repository.release(job_name, self.owner)
            except Exception as e:
                # Expiry frees the row anyway
                logger.warning(f"⚠️ Failed to release cluster lock {job_name}: {e}")


def _default_owner() -> str:
    instance = os.environ.get("WEBSITE_INSTANCE_ID") or socket.gethostname()
    return f"{instance}:{os.getpid()}:{uuid.uuid4().hex[:8]}"
