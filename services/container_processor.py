# ============================================================================
# CONTAINER PROCESSOR
# ============================================================================
# STATUS: Service - Source container scan
# PURPOSE: Run the Blob Processor for every blob on a bounded thread pool
# EXPORTS: ContainerProcessor, ContainerScanResult
# DEPENDENCIES: concurrent.futures, services.blob_processor
# ============================================================================
"""
Container Processor.

Lists a source container and hands every blob to the Blob Processor on a
ThreadPoolExecutor bounded by the configured worker pool size. One blob
failing is logged and counted; it never aborts the scan of the others.

Exports:
    ContainerProcessor: process(container), process_enabled_containers()
    ContainerScanResult: Per-container summary
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import StorageConfig
from config.defaults import SchedulerDefaults
from infrastructure.blob import IBlobRepository
from util_logger import LoggerFactory, ComponentType
from .blob_processor import BlobProcessor, ProcessingOutcome

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "ContainerProcessor")


@dataclass
class ContainerScanResult:
    """Outcome counts for one container scan."""

    container: str
    enabled: bool = True
    blobs_found: int = 0
    outcomes: Dict[str, int] = field(default_factory=dict)
    failed: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def record(self, outcome: ProcessingOutcome) -> None:
        self.outcomes[outcome.value] = self.outcomes.get(outcome.value, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "container": self.container,
            "enabled": self.enabled,
            "blobs_found": self.blobs_found,
            "outcomes": dict(self.outcomes),
            "failed": self.failed,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
        }


class ContainerProcessor:
    """
    Scans source containers.

    Usage:
        processor = ContainerProcessor(blob_repository, blob_processor, storage_config)
        results = processor.process_enabled_containers()
    """

    def __init__(self, blob_repository: IBlobRepository,
                 blob_processor: BlobProcessor,
                 storage_config: StorageConfig,
                 worker_pool_size: int = SchedulerDefaults.WORKER_POOL_SIZE):
        if worker_pool_size < 1:
            raise ValueError(f"worker_pool_size must be at least 1, got {worker_pool_size}")
        self.blob_repository = blob_repository
        self.blob_processor = blob_processor
        self.storage_config = storage_config
        self.worker_pool_size = worker_pool_size

    def process(self, container: str) -> ContainerScanResult:
        """
        Scan one source container.

        Returns:
            ContainerScanResult; disabled containers are returned unscanned.
        """
        result = ContainerScanResult(container=container)
        route = self.storage_config.get_source_container(container)
        if not route.enabled:
            logger.info(f"⏸️ Container {container} is disabled, not scanning")
            result.enabled = False
            result.completed_at = datetime.now(timezone.utc)
            return result

        logger.info(f"🔍 Processing blobs in container {container}")
        blobs = self.blob_repository.list_blobs(container)
        result.blobs_found = len(blobs)

        with ThreadPoolExecutor(max_workers=self.worker_pool_size,
                                thread_name_prefix=f"blobs-{container}") as executor:
            futures = {executor.submit(self.blob_processor.process, blob): blob for blob in blobs}

            for future in futures:
                blob = futures[future]
                try:
                    result.record(future.result())
                except Exception as e:
                    logger.error(f"❌ Failed to process blob {container}/{blob.name}: {e}")
                    result.failed += 1

        result.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"✅ Finished processing {container}: {result.blobs_found} blobs, "
            f"outcomes={result.outcomes}, failed={result.failed}"
        )
        return result

    def process_enabled_containers(self) -> List[ContainerScanResult]:
        """
        Scan every enabled container. A container whose listing fails is
        reported and the next container is still scanned.
        """
        results = []
        for route in self.storage_config.enabled_source_containers():
            try:
                results.append(self.process(route.source_container))
            except Exception as e:
                logger.error(f"❌ Error processing container {route.source_container}: {e}")
                results.append(ContainerScanResult(
                    container=route.source_container,
                    completed_at=datetime.now(timezone.utc),
                    error=str(e),
                ))
        return results


__all__ = ['ContainerProcessor', 'ContainerScanResult']
