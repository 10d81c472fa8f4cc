# ============================================================================
# BLOB DISPATCHER
# ============================================================================
# STATUS: Service - Copy verified content to the routed target
# PURPOSE: Single-shot or chunked upload to target account/container
# EXPORTS: BlobDispatcher, DispatchTarget
# DEPENDENCIES: azure-core, config.storage_config, services.blob_mover
# ============================================================================
"""
Blob Dispatcher.

The routing table (StorageConfig.source_containers) maps every source
container to a target account and container. Content at or below the chunk
threshold is uploaded in one call; larger content goes through
BlobMover.upload_with_chunks.

Both upload paths only change the target blob on success: a single-shot put
is atomic and staged blocks stay invisible until the block list is
committed. A failed upload therefore leaves any earlier copy in place and
raises BlobStreamingError so the Blob Processor records an ERROR event and
retries on the next cycle.

Exports:
    BlobDispatcher: dispatch(container, blob_name, content)
    DispatchTarget: Resolved target of a dispatch
"""

from dataclasses import dataclass
from typing import Callable

from azure.core.exceptions import AzureError

from config import StorageConfig
from exceptions import BlobStreamingError
from infrastructure.blob import IBlobRepository
from util_logger import LoggerFactory, ComponentType
from .blob_mover import BlobMover

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "BlobDispatcher")

TargetRepositoryResolver = Callable[[str], IBlobRepository]


@dataclass(frozen=True)
class DispatchTarget:
    account: str
    container: str
    blob_name: str


class BlobDispatcher:
    """
    Uploads verified envelope content to its routed destination.
    """

    def __init__(self, storage_config: StorageConfig,
                 target_repository_resolver: TargetRepositoryResolver,
                 blob_mover: BlobMover):
        """
        Args:
            storage_config: Routing table and chunk threshold
            target_repository_resolver: target account name -> IBlobRepository
            blob_mover: Chunked upload implementation
        """
        self.storage_config = storage_config
        self.resolve_target_repository = target_repository_resolver
        self.blob_mover = blob_mover

    def dispatch(self, container: str, blob_name: str, content: bytes) -> DispatchTarget:
        """
        Upload content under the source blob name in the routed target.

        Raises:
            ConfigurationError: Container has no route
            BlobStreamingError: Upload failed
        """
        route = self.storage_config.get_source_container(container)
        target = DispatchTarget(
            account=route.target_account,
            container=route.target_container,
            blob_name=blob_name,
        )
        repository = self.resolve_target_repository(route.target_account)

        logger.info(
            f"🚚 Dispatching {container}/{blob_name} ({len(content)} bytes) "
            f"to {target.account}/{target.container}"
        )
        try:
            if len(content) <= self.storage_config.upload_chunk_threshold_bytes:
                repository.write_blob(target.container, blob_name, content, overwrite=True)
            else:
                self.blob_mover.upload_with_chunks(repository, target.container, blob_name, content)
        except AzureError as e:
            raise BlobStreamingError(
                f"Failed to upload {container}/{blob_name} to {target.account}/{target.container}: {e}"
            ) from e

        logger.info(f"✅ Dispatched {container}/{blob_name} to {target.account}/{target.container}")
        return target


__all__ = ['BlobDispatcher', 'DispatchTarget']
