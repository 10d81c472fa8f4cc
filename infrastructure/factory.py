# ============================================================================
# REPOSITORY FACTORY
# ============================================================================
# STATUS: Infrastructure - Central factory for all repository instances
# PURPOSE: Build real Azure / PostgreSQL repositories from AppConfig
# EXPORTS: RepositoryFactory
# DEPENDENCIES: infrastructure.*, config
# PATTERNS: Factory pattern, Dependency Injection, per-account caching
# ENTRY_POINTS: RepositoryFactory.create_source_blob_repository(), create_envelope_repository()
# ============================================================================

"""
Repository Factory - Central Creation Point

Services receive interfaces (IBlobRepository, IEnvelopeRepository, ...);
this factory is the only place that knows which concrete class backs each
one. Blob repositories are cached per storage account so every job in the
process shares one BlobServiceClient per account.
"""

import threading
from typing import Dict, Optional

from config import AppConfig, get_config
from exceptions import ConfigurationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.FACTORY, "RepositoryFactory")

_blob_repositories: Dict[str, "BlobRepository"] = {}
_blob_lock = threading.Lock()


class RepositoryFactory:
    """
    Factory for creating repository instances.
    """

    @staticmethod
    def create_source_blob_repository(config: Optional[AppConfig] = None) -> 'BlobRepository':
        """
        Blob repository for the account suppliers upload into.
        """
        from .blob import BlobRepository

        config = config or get_config()
        storage = config.storage
        key = f"source:{storage.source_account_name}"
        with _blob_lock:
            if key not in _blob_repositories:
                logger.info("🏭 Creating source Blob Storage repository")
                _blob_repositories[key] = BlobRepository(
                    connection_string=storage.source_connection_string,
                    account_url=None if storage.source_connection_string else storage.source_account_url,
                    timeout_seconds=storage.request_timeout_seconds,
                )
            return _blob_repositories[key]

    @staticmethod
    def create_target_blob_repository(target_account: str,
                                      config: Optional[AppConfig] = None) -> 'BlobRepository':
        """
        Blob repository for a dispatch target account.

        Args:
            target_account: Key into StorageConfig.target_accounts

        Raises:
            ConfigurationError: Unknown target account
        """
        from .blob import BlobRepository

        config = config or get_config()
        storage = config.storage
        account = storage.target_accounts.get(target_account)
        if account is None:
            raise ConfigurationError(f"Unknown target account '{target_account}'")

        key = f"target:{target_account}"
        with _blob_lock:
            if key not in _blob_repositories:
                logger.info(f"🏭 Creating target Blob Storage repository: {target_account}")
                _blob_repositories[key] = BlobRepository(
                    connection_string=account.connection_string,
                    account_url=None if account.connection_string else account.account_url,
                    timeout_seconds=storage.request_timeout_seconds,
                )
            return _blob_repositories[key]

    @staticmethod
    def create_envelope_repository(config: Optional[AppConfig] = None) -> 'PostgreSQLEnvelopeRepository':
        from .envelopes import PostgreSQLEnvelopeRepository

        config = config or get_config()
        logger.debug("📦 Creating PostgreSQLEnvelopeRepository")
        return PostgreSQLEnvelopeRepository(config=config.database)

    @staticmethod
    def create_cluster_lock_repository(config: Optional[AppConfig] = None) -> 'PostgreSQLClusterLockRepository':
        from .cluster_lock import PostgreSQLClusterLockRepository

        config = config or get_config()
        return PostgreSQLClusterLockRepository(config=config.database)

    @staticmethod
    def create_notifications_publisher(config: Optional[AppConfig] = None) -> 'ServiceBusNotificationsPublisher':
        from .service_bus import ServiceBusNotificationsPublisher

        config = config or get_config()
        logger.info("🚌 Creating Service Bus notifications publisher")
        return ServiceBusNotificationsPublisher(config.queues)
