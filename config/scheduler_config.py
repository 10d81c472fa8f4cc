"""
Scheduler Configuration.

Cron schedules for the timer triggers, cluster lock duration, and the
tuning knobs the scheduled jobs share.

Exports:
    SchedulerConfig: Scheduled job configuration
"""

import os

from pydantic import BaseModel, Field

from .defaults import SchedulerDefaults


class SchedulerConfig(BaseModel):
    """Scheduled job configuration."""

    blob_dispatcher_schedule: str = Field(default=SchedulerDefaults.BLOB_DISPATCHER_SCHEDULE)
    delete_dispatched_files_schedule: str = Field(default=SchedulerDefaults.DELETE_DISPATCHED_FILES_SCHEDULE)
    delete_rejected_files_schedule: str = Field(default=SchedulerDefaults.DELETE_REJECTED_FILES_SCHEDULE)
    handle_rejected_files_schedule: str = Field(default=SchedulerDefaults.HANDLE_REJECTED_FILES_SCHEDULE)
    reject_duplicates_schedule: str = Field(default=SchedulerDefaults.REJECT_DUPLICATES_SCHEDULE)
    send_notifications_schedule: str = Field(default=SchedulerDefaults.SEND_NOTIFICATIONS_SCHEDULE)

    lock_at_most_for_seconds: int = Field(
        default=SchedulerDefaults.LOCK_AT_MOST_FOR_SECONDS,
        gt=0,
        description="Cluster lock expiry; a crashed replica frees the job after this"
    )
    worker_pool_size: int = Field(default=SchedulerDefaults.WORKER_POOL_SIZE, ge=1)
    blob_processing_delay_minutes: int = Field(
        default=SchedulerDefaults.BLOB_PROCESSING_DELAY_MINUTES,
        ge=0,
        description="Blobs younger than this are left for a later pass"
    )
    rejected_file_ttl_hours: int = Field(default=SchedulerDefaults.REJECTED_FILE_TTL_HOURS, ge=0)
    stale_envelope_hours: int = Field(default=SchedulerDefaults.STALE_ENVELOPE_HOURS, gt=0)

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            blob_dispatcher_schedule=os.environ.get(
                "BLOB_DISPATCHER_SCHEDULE", SchedulerDefaults.BLOB_DISPATCHER_SCHEDULE),
            delete_dispatched_files_schedule=os.environ.get(
                "DELETE_DISPATCHED_FILES_SCHEDULE", SchedulerDefaults.DELETE_DISPATCHED_FILES_SCHEDULE),
            delete_rejected_files_schedule=os.environ.get(
                "DELETE_REJECTED_FILES_SCHEDULE", SchedulerDefaults.DELETE_REJECTED_FILES_SCHEDULE),
            handle_rejected_files_schedule=os.environ.get(
                "HANDLE_REJECTED_FILES_SCHEDULE", SchedulerDefaults.HANDLE_REJECTED_FILES_SCHEDULE),
            reject_duplicates_schedule=os.environ.get(
                "REJECT_DUPLICATES_SCHEDULE", SchedulerDefaults.REJECT_DUPLICATES_SCHEDULE),
            send_notifications_schedule=os.environ.get(
                "SEND_NOTIFICATIONS_SCHEDULE", SchedulerDefaults.SEND_NOTIFICATIONS_SCHEDULE),
            lock_at_most_for_seconds=int(os.environ.get(
                "JOB_LOCK_AT_MOST_FOR_SECONDS", str(SchedulerDefaults.LOCK_AT_MOST_FOR_SECONDS))),
            worker_pool_size=int(os.environ.get(
                "WORKER_POOL_SIZE", str(SchedulerDefaults.WORKER_POOL_SIZE))),
            blob_processing_delay_minutes=int(os.environ.get(
                "BLOB_PROCESSING_DELAY_MINUTES", str(SchedulerDefaults.BLOB_PROCESSING_DELAY_MINUTES))),
            rejected_file_ttl_hours=int(os.environ.get(
                "REJECTED_FILE_TTL_HOURS", str(SchedulerDefaults.REJECTED_FILE_TTL_HOURS))),
            stale_envelope_hours=int(os.environ.get(
                "STALE_ENVELOPE_HOURS", str(SchedulerDefaults.STALE_ENVELOPE_HOURS))),
        )
