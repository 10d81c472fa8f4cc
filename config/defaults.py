"""
Configuration Defaults - Single source of truth for all default values.

Organization:
    - AzureDefaults: tenant placeholders, MUST be overridden (fail-fast)
    - DatabaseDefaults, QueueDefaults, StorageDefaults: safe universal defaults
    - LeaseDefaults, SchedulerDefaults: pipeline timing and sizing

Usage:
    from config.defaults import DatabaseDefaults, LeaseDefaults

    port: int = Field(default=DatabaseDefaults.PORT, ...)
"""


# =============================================================================
# AZURE RESOURCE DEFAULTS (MUST override for new tenant)
# =============================================================================

class AzureDefaults:
    """
    Azure resource placeholders.

    Intentionally invalid so that a deployment without the environment
    variables fails on first use instead of talking to the wrong account.
    """

    STORAGE_ACCOUNT_NAME = "your-source-storage-account"
    MANAGED_IDENTITY_NAME = "your-managed-identity-name"
    POSTGRES_AAD_SCOPE = "https://ossrdbms-aad.database.windows.net/.default"


# =============================================================================
# DATABASE DEFAULTS
# =============================================================================

class DatabaseDefaults:
    """PostgreSQL connection defaults."""

    PORT = 5432
    SCHEMA = "blob_router"
    CONNECTION_TIMEOUT_SECONDS = 30


# =============================================================================
# STORAGE DEFAULTS
# =============================================================================

class StorageDefaults:
    """Blob storage naming and transfer sizing."""

    REJECTED_CONTAINER_SUFFIX = "-rejected"

    # Content above the threshold is staged as blocks and committed at once
    UPLOAD_CHUNK_THRESHOLD_BYTES = 4 * 1024 * 1024
    UPLOAD_CHUNK_SIZE_BYTES = 4 * 1024 * 1024

    REQUEST_TIMEOUT_SECONDS = 60


class LeaseDefaults:
    """Blob lease settings. Azure accepts 15-60 seconds or infinite."""

    DURATION_SECONDS = 60


# =============================================================================
# SERVICE BUS DEFAULTS
# =============================================================================

class QueueDefaults:
    """Service Bus queue names."""

    NOTIFICATIONS_QUEUE = "notifications"
    SERVICE_NAME = "blob_router"


# =============================================================================
# SCHEDULER DEFAULTS
# =============================================================================

class SchedulerDefaults:
    """
    Timer schedules (NCRONTAB, six fields) and job tuning.

    Job names double as cluster lock keys.
    """

    BLOB_DISPATCHER_JOB = "blob-dispatcher"
    DELETE_DISPATCHED_FILES_JOB = "delete-dispatched-files"
    DELETE_REJECTED_FILES_JOB = "delete-rejected-files"
    HANDLE_REJECTED_FILES_JOB = "handle-rejected-files"
    REJECT_DUPLICATES_JOB = "reject-duplicates"
    SEND_NOTIFICATIONS_JOB = "send-notifications"

    BLOB_DISPATCHER_SCHEDULE = "0 */5 * * * *"
    DELETE_DISPATCHED_FILES_SCHEDULE = "0 */10 * * * *"
    DELETE_REJECTED_FILES_SCHEDULE = "0 0 * * * *"
    HANDLE_REJECTED_FILES_SCHEDULE = "0 */10 * * * *"
    REJECT_DUPLICATES_SCHEDULE = "0 */10 * * * *"
    SEND_NOTIFICATIONS_SCHEDULE = "0 */10 * * * *"

    LOCK_AT_MOST_FOR_SECONDS = 600
    WORKER_POOL_SIZE = 10
    BLOB_PROCESSING_DELAY_MINUTES = 0
    REJECTED_FILE_TTL_HOURS = 72
    STALE_ENVELOPE_HOURS = 48
