# ============================================================================
# BLOB REPOSITORY
# ============================================================================
# STATUS: Infrastructure - Azure Blob Storage repository
# PURPOSE: Blob operations the envelope pipeline needs on one storage account
# EXPORTS: IBlobRepository, BlobRepository, BlobItemInfo
# DEPENDENCIES: azure-storage-blob, azure-identity, azure-core
# SCOPE: Source account (scan, read, lease, move, delete) and target accounts (dispatch)
# PATTERNS: Repository, DefaultAzureCredential, cached container clients
# ENTRY_POINTS: RepositoryFactory.create_source_blob_repository(), create_target_blob_repository()
# ============================================================================

"""
Blob Storage Repository.

One BlobRepository wraps one storage account. The source account holds the
supplier containers and their "-rejected" siblings; each target account
receives dispatched content. Instances are cached per account by
RepositoryFactory rather than being a process-wide singleton.

Authentication:
    - connection_string (local development, Azurite)
    - DefaultAzureCredential (managed identity in Azure)

Lease and delete calls let azure.core exceptions propagate:
    ResourceNotFoundError   blob missing
    ResourceExistsError     lease already present (409)
    HttpResponseError       anything else the service rejected
LeaseCoordinator maps these onto Lease | Busy.
"""

# ============================================================================
# IMPORTS - Top of file for fail-fast behavior
# ============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from azure.storage.blob import BlobServiceClient, BlobBlock, BlobLeaseClient, ContainerClient
from azure.identity import DefaultAzureCredential
from azure.core.exceptions import ResourceNotFoundError

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, __name__)


# ============================================================================
# BLOB LISTING ITEM
# ============================================================================

@dataclass(frozen=True)
class BlobItemInfo:
    """
    Listing entry for one blob (or one snapshot of it).

    created_at is the storage creation time, which becomes the envelope's
    file_created_at.
    """
    container: str
    name: str
    size: int
    created_at: datetime
    last_modified: datetime
    snapshot: Optional[str] = None

    @property
    def is_snapshot(self) -> bool:
        return self.snapshot is not None


# ============================================================================
# BLOB REPOSITORY INTERFACE
# ============================================================================

class IBlobRepository(ABC):
    """
    Blob operations on a single storage account.
    """

    @property
    @abstractmethod
    def account_name(self) -> str:
        pass

    @abstractmethod
    def list_containers(self, name_suffix: Optional[str] = None) -> List[str]:
        pass

    @abstractmethod
    def list_blobs(self, container: str, include_snapshots: bool = False) -> List[BlobItemInfo]:
        pass

    @abstractmethod
    def get_blob_info(self, container: str, blob_name: str) -> BlobItemInfo:
        pass

    @abstractmethod
    def read_blob(self, container: str, blob_name: str) -> bytes:
        pass

    @abstractmethod
    def blob_exists(self, container: str, blob_name: str) -> bool:
        pass

    @abstractmethod
    def write_blob(self, container: str, blob_name: str, data: bytes, overwrite: bool = True) -> None:
        pass

    @abstractmethod
    def stage_block(self, container: str, blob_name: str, block_id: str, data: bytes) -> None:
        pass

    @abstractmethod
    def commit_block_list(self, container: str, blob_name: str, block_ids: List[str]) -> None:
        pass

    @abstractmethod
    def delete_blob(self, container: str, blob_name: str,
                    lease_id: Optional[str] = None, snapshot: Optional[str] = None) -> bool:
        pass

    @abstractmethod
    def create_snapshot(self, container: str, blob_name: str) -> str:
        pass

    @abstractmethod
    def acquire_lease(self, container: str, blob_name: str, duration_seconds: int) -> str:
        pass

    @abstractmethod
    def release_lease(self, container: str, blob_name: str, lease_id: str) -> None:
        pass


# ============================================================================
# AZURE IMPLEMENTATION
# ============================================================================

class BlobRepository(IBlobRepository):
    """
    Azure Blob Storage repository for one account.

    Usage:
        repo = BlobRepository(connection_string=conn_str)
        repo = BlobRepository(account_url="https://acct.blob.core.windows.net")
    """

    def __init__(self, connection_string: Optional[str] = None,
                 account_url: Optional[str] = None,
                 timeout_seconds: int = 60):
        """
        Args:
            connection_string: Storage connection string (takes precedence)
            account_url: Account URL used with DefaultAzureCredential
            timeout_seconds: Per-request connection/read timeout
        """
        if connection_string:
            logger.info("Initializing BlobRepository with connection string")
            self.blob_service = BlobServiceClient.from_connection_string(
                connection_string,
                connection_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
            )
        elif account_url:
            logger.info(f"Initializing BlobRepository with DefaultAzureCredential for {account_url}")
            self.blob_service = BlobServiceClient(
                account_url=account_url,
                credential=DefaultAzureCredential(),
                connection_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
            )
        else:
            raise ValueError("BlobRepository needs a connection string or an account URL")

        self._container_clients: Dict[str, ContainerClient] = {}
        logger.info(f"✅ BlobRepository initialized for account: {self.blob_service.account_name}")

    @property
    def account_name(self) -> str:
        return self.blob_service.account_name

    def _get_container_client(self, container: str) -> ContainerClient:
        if container not in self._container_clients:
            self._container_clients[container] = self.blob_service.get_container_client(container)
            logger.debug(f"Created new container client for: {container}")
        return self._container_clients[container]

    def _get_blob_client(self, container: str, blob_name: str, snapshot: Optional[str] = None):
        return self._get_container_client(container).get_blob_client(blob_name, snapshot=snapshot)

    # ========================================================================
    # LISTING
    # ========================================================================

    def list_containers(self, name_suffix: Optional[str] = None) -> List[str]:
        """
        List container names, optionally filtered by suffix (e.g. "-rejected").
        """
        names = [c.name for c in self.blob_service.list_containers()]
        if name_suffix:
            names = [name for name in names if name.endswith(name_suffix)]
        logger.debug(f"Found {len(names)} containers (suffix={name_suffix})")
        return names

    def list_blobs(self, container: str, include_snapshots: bool = False) -> List[BlobItemInfo]:
        """
        List blobs in a container.

        Args:
            container: Container name
            include_snapshots: Also return snapshot entries

        Returns:
            BlobItemInfo per blob (and per snapshot when requested)
        """
        include = ["snapshots"] if include_snapshots else None
        items = []
        for blob in self._get_container_client(container).list_blobs(include=include):
            items.append(BlobItemInfo(
                container=container,
                name=blob.name,
                size=blob.size or 0,
                created_at=blob.creation_time,
                last_modified=blob.last_modified,
                snapshot=blob.snapshot,
            ))
        logger.debug(f"Listed {len(items)} blobs in {container} (snapshots={include_snapshots})")
        return items

    # ========================================================================
    # READ / WRITE
    # ========================================================================

    def get_blob_info(self, container: str, blob_name: str) -> BlobItemInfo:
        """
        Current properties of one blob.

        Raises:
            ResourceNotFoundError: If blob doesn't exist
        """
        props = self._get_blob_client(container, blob_name).get_blob_properties()
        return BlobItemInfo(
            container=container,
            name=blob_name,
            size=props.size or 0,
            created_at=props.creation_time,
            last_modified=props.last_modified,
        )

    def read_blob(self, container: str, blob_name: str) -> bytes:
        """
        Read entire blob to memory.

        Raises:
            ResourceNotFoundError: If blob doesn't exist
        """
        logger.debug(f"Reading blob: {container}/{blob_name}")
        data = self._get_blob_client(container, blob_name).download_blob().readall()
        logger.debug(f"Read {len(data)} bytes from {container}/{blob_name}")
        return data

    def blob_exists(self, container: str, blob_name: str) -> bool:
        return self._get_blob_client(container, blob_name).exists()

    def write_blob(self, container: str, blob_name: str, data: bytes, overwrite: bool = True) -> None:
        """Single-call upload."""
        logger.debug(f"Writing blob: {container}/{blob_name} ({len(data)} bytes, overwrite={overwrite})")
        self._get_blob_client(container, blob_name).upload_blob(data, overwrite=overwrite)
        logger.info(f"✅ Wrote blob: {container}/{blob_name} ({len(data)} bytes)")

    def stage_block(self, container: str, blob_name: str, block_id: str, data: bytes) -> None:
        """Upload an uncommitted block. Invisible to readers until commit."""
        self._get_blob_client(container, blob_name).stage_block(block_id, data, length=len(data))

    def commit_block_list(self, container: str, blob_name: str, block_ids: List[str]) -> None:
        """Atomically publish the staged blocks as the blob content."""
        blocks = [BlobBlock(block_id=block_id) for block_id in block_ids]
        self._get_blob_client(container, blob_name).commit_block_list(blocks)
        logger.info(f"✅ Committed {len(blocks)} blocks to {container}/{blob_name}")

    # ========================================================================
    # DELETE / SNAPSHOT
    # ========================================================================

    def delete_blob(self, container: str, blob_name: str,
                    lease_id: Optional[str] = None, snapshot: Optional[str] = None) -> bool:
        """
        Delete a blob with its snapshots, or a single snapshot.

        Args:
            container: Container name
            blob_name: Blob name
            lease_id: Active lease id (required when the blob is leased)
            snapshot: Delete only this snapshot

        Returns:
            True if deleted, False if not found
        """
        blob_client = self._get_blob_client(container, blob_name, snapshot=snapshot)
        try:
            if snapshot:
                blob_client.delete_blob()
            else:
                blob_client.delete_blob(delete_snapshots="include", lease=lease_id)
        except ResourceNotFoundError:
            logger.warning(f"Blob not found for deletion: {container}/{blob_name} (snapshot={snapshot})")
            return False
        logger.info(f"Deleted blob: {container}/{blob_name} (snapshot={snapshot})")
        return True

    def create_snapshot(self, container: str, blob_name: str) -> str:
        result = self._get_blob_client(container, blob_name).create_snapshot()
        snapshot = result.get("snapshot")
        logger.info(f"📸 Snapshot created: {container}/{blob_name} @ {snapshot}")
        return snapshot

    # ========================================================================
    # LEASES
    # ========================================================================

    def acquire_lease(self, container: str, blob_name: str, duration_seconds: int) -> str:
        """
        Acquire a time-bounded lease. Fails immediately if already leased.

        Returns:
            Lease id
        """
        lease = self._get_blob_client(container, blob_name).acquire_lease(lease_duration=duration_seconds)
        return lease.id

    def release_lease(self, container: str, blob_name: str, lease_id: str) -> None:
        # BlobLeaseClient with an explicit id releases a lease acquired elsewhere
        BlobLeaseClient(self._get_blob_client(container, blob_name), lease_id=lease_id).release()


__all__ = ['BlobRepository', 'IBlobRepository', 'BlobItemInfo']
