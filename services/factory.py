# ============================================================================
# SERVICE FACTORY
# ============================================================================
# STATUS: Service - Composition root for the scheduled jobs
# PURPOSE: Wire services to repositories from AppConfig
# EXPORTS: ServiceFactory
# DEPENDENCIES: config, infrastructure.factory
# PATTERNS: Factory pattern, Dependency Injection
# ENTRY_POINTS: ServiceFactory(config).create_container_processor(), etc.
# ============================================================================

"""
Service Factory.

Builds every job's service graph from one AppConfig. Shared collaborators
(envelope service, source blob repository, lease coordinator, blob mover)
are created once per factory instance. Repositories come from
RepositoryFactory unless overridden, which is how tests inject in-memory
doubles.

Usage:
    factory = ServiceFactory(get_config())
    factory.create_container_processor().process_enabled_containers()
"""

from datetime import timedelta
from functools import cached_property
from typing import Callable, Optional

from config import AppConfig, get_config
from infrastructure.blob import IBlobRepository
from infrastructure.cluster_lock import ClusterLock
from infrastructure.factory import RepositoryFactory
from infrastructure.interface_repository import (
    IClusterLockRepository,
    IEnvelopeRepository,
    INotificationPublisher,
)
from infrastructure.lease import LeaseCoordinator
from util_logger import LoggerFactory, ComponentType
from .blob_dispatcher import BlobDispatcher
from .blob_mover import BlobMover
from .blob_processor import BlobProcessor
from .blob_readiness import BlobReadinessChecker
from .container_cleaner import ContainerCleaner
from .container_processor import ContainerProcessor
from .duplicate_handler import DuplicateFileHandler, DuplicateFinder
from .envelope_action_service import EnvelopeActionService
from .envelope_service import EnvelopeService
from .notification_service import NotificationService
from .rejected_cleaner import RejectedBlobChecker, RejectedContainerCleaner
from .rejected_files_handler import RejectedFilesHandler

logger = LoggerFactory.create_logger(ComponentType.FACTORY, "ServiceFactory")


class ServiceFactory:
    """
    Creates services for the timer and HTTP handlers.
    """

    def __init__(self, config: Optional[AppConfig] = None,
                 source_repository: Optional[IBlobRepository] = None,
                 target_repository_resolver: Optional[Callable[[str], IBlobRepository]] = None,
                 envelope_repository: Optional[IEnvelopeRepository] = None,
                 lock_repository: Optional[IClusterLockRepository] = None,
                 notifications_publisher: Optional[INotificationPublisher] = None):
        self.config = config or get_config()
        self._source_repository = source_repository
        self._target_repository_resolver = target_repository_resolver
        self._envelope_repository = envelope_repository
        self._lock_repository = lock_repository
        self._notifications_publisher = notifications_publisher

    # ========================================================================
    # SHARED COLLABORATORS
    # ========================================================================

    @cached_property
    def source_repository(self) -> IBlobRepository:
        return self._source_repository or RepositoryFactory.create_source_blob_repository(self.config)

    def resolve_target_repository(self, target_account: str) -> IBlobRepository:
        if self._target_repository_resolver is not None:
            return self._target_repository_resolver(target_account)
        return RepositoryFactory.create_target_blob_repository(target_account, self.config)

    @cached_property
    def envelope_service(self) -> EnvelopeService:
        repository = self._envelope_repository or RepositoryFactory.create_envelope_repository(self.config)
        return EnvelopeService(repository)

    @cached_property
    def lease_coordinator(self) -> LeaseCoordinator:
        return LeaseCoordinator(self.source_repository)

    @cached_property
    def blob_mover(self) -> BlobMover:
        return BlobMover(
            self.source_repository,
            chunk_size_bytes=self.config.storage.upload_chunk_size_bytes,
        )

    @cached_property
    def cluster_lock(self) -> ClusterLock:
        repository = self._lock_repository or RepositoryFactory.create_cluster_lock_repository(self.config)
        return ClusterLock(repository, self.config.scheduler.lock_at_most_for_seconds)

    # ========================================================================
    # JOB SERVICES
    # ========================================================================

    def create_blob_processor(self) -> BlobProcessor:
        dispatcher = BlobDispatcher(self.config.storage, self.resolve_target_repository, self.blob_mover)
        return BlobProcessor(
            envelope_service=self.envelope_service,
            blob_repository=self.source_repository,
            lease_coordinator=self.lease_coordinator,
            dispatcher=dispatcher,
            storage_config=self.config.storage,
            readiness_checker=BlobReadinessChecker(self.config.scheduler.blob_processing_delay_minutes),
        )

    def create_container_processor(self) -> ContainerProcessor:
        logger.debug("🏭 Creating ContainerProcessor")
        return ContainerProcessor(
            self.source_repository,
            self.create_blob_processor(),
            self.config.storage,
            worker_pool_size=self.config.scheduler.worker_pool_size,
        )

    def create_container_cleaner(self) -> ContainerCleaner:
        return ContainerCleaner(
            self.source_repository, self.envelope_service, self.lease_coordinator, self.config.storage
        )

    def create_rejected_container_cleaner(self) -> RejectedContainerCleaner:
        checker = RejectedBlobChecker(timedelta(hours=self.config.scheduler.rejected_file_ttl_hours))
        return RejectedContainerCleaner(
            self.source_repository, checker, self.envelope_service, self.lease_coordinator
        )

    def create_rejected_files_handler(self) -> RejectedFilesHandler:
        return RejectedFilesHandler(self.envelope_service, self.lease_coordinator, self.blob_mover)

    def create_duplicate_file_handler(self) -> DuplicateFileHandler:
        return DuplicateFileHandler(
            self.config.storage,
            DuplicateFinder(self.source_repository, self.envelope_service),
            self.envelope_service,
            self.lease_coordinator,
            self.blob_mover,
        )

    def create_notification_service(self) -> NotificationService:
        publisher = self._notifications_publisher or RepositoryFactory.create_notifications_publisher(self.config)
        return NotificationService(publisher, self.envelope_service, service_name=self.config.queues.service_name)

    def create_envelope_action_service(self) -> EnvelopeActionService:
        return EnvelopeActionService(
            self.envelope_service, stale_envelope_hours=self.config.scheduler.stale_envelope_hours
        )


__all__ = ['ServiceFactory']
