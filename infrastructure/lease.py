"""
Lease Coordinator - per-blob distributed mutual exclusion.

Uses the storage service's native blob lease. Acquisition is non-blocking:
a blob already leased by another worker, job type or replica is reported
as Busy immediately and the caller skips it for this cycle.

Usage:
    with coordinator.hold(container, blob_name) as lease:
        if isinstance(lease, Busy):
            return
        ...work using lease.lease_id...
    # lease released here on success, rejection or exception

Exports:
    Lease: Held lease
    Busy: Acquisition refused
    BusyReason: Why a lease was not acquired
    LeaseCoordinator: acquire / release / hold
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

from azure.core.exceptions import HttpResponseError, ResourceExistsError, ResourceNotFoundError

from config.defaults import LeaseDefaults
from util_logger import LoggerFactory, ComponentType
from .blob import IBlobRepository

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "LeaseCoordinator")


class BusyReason(str, Enum):
    LEASE_ALREADY_PRESENT = "LEASE_ALREADY_PRESENT"
    BLOB_NOT_FOUND = "BLOB_NOT_FOUND"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Lease:
    container: str
    blob_name: str
    lease_id: str


@dataclass(frozen=True)
class Busy:
    container: str
    blob_name: str
    reason: BusyReason
    message: str = ""


LeaseResult = Union[Lease, Busy]


class LeaseCoordinator:
    """
    Acquire and release time-bounded blob leases.

    The lease duration is finite (60s by default) so a crashed worker never
    blocks a blob for longer than that.
    """

    def __init__(self, blob_repository: IBlobRepository,
                 duration_seconds: int = LeaseDefaults.DURATION_SECONDS):
        self.blob_repository = blob_repository
        self.duration_seconds = duration_seconds

    def acquire(self, container: str, blob_name: str) -> LeaseResult:
        """
        Try to lease a blob.

        Returns:
            Lease on success, Busy when the blob is leased, missing, or the
            service refused the request.
        """
        try:
            lease_id = self.blob_repository.acquire_lease(container, blob_name, self.duration_seconds)
        except ResourceNotFoundError as e:
            logger.info(f"Blob not found when acquiring lease: {container}/{blob_name}")
            return Busy(container, blob_name, BusyReason.BLOB_NOT_FOUND, str(e))
        except ResourceExistsError as e:
            logger.info(f"🔒 Lease already present, skipping: {container}/{blob_name}")
            return Busy(container, blob_name, BusyReason.LEASE_ALREADY_PRESENT, str(e))
        except HttpResponseError as e:
            if e.status_code == 409:
                logger.info(f"🔒 Lease conflict, skipping: {container}/{blob_name}")
                return Busy(container, blob_name, BusyReason.LEASE_ALREADY_PRESENT, str(e))
            if e.status_code == 404:
                return Busy(container, blob_name, BusyReason.BLOB_NOT_FOUND, str(e))
            logger.error(f"❌ Failed to acquire lease on {container}/{blob_name}: {e}")
            return Busy(container, blob_name, BusyReason.ERROR, str(e))

        logger.debug(f"Lease acquired: {container}/{blob_name} ({lease_id})")
        return Lease(container, blob_name, lease_id)

    def release(self, lease: Lease) -> None:
        """
        Release a lease. Never raises.

        The blob may already be gone (deleted under the lease) or the lease
        may have expired; both leave nothing to release.
        """
        try:
            self.blob_repository.release_lease(lease.container, lease.blob_name, lease.lease_id)
            logger.debug(f"Lease released: {lease.container}/{lease.blob_name}")
        except ResourceNotFoundError:
            logger.debug(f"Blob gone before lease release: {lease.container}/{lease.blob_name}")
        except HttpResponseError as e:
            logger.warning(f"⚠️ Could not release lease on {lease.container}/{lease.blob_name}: {e}")

    @contextmanager
    def hold(self, container: str, blob_name: str) -> Iterator[LeaseResult]:
        """Scoped acquisition: a held lease is released on every exit path."""
        result = self.acquire(container, blob_name)
        try:
            yield result
        finally:
            if isinstance(result, Lease):
                self.release(result)
