# ============================================================================
# SCHEDULED JOB HANDLERS
# ============================================================================
# STATUS: Trigger layer - The six scheduled jobs
# PURPOSE: Adapt job services to TimerHandlerBase
# EXPORTS: *_handler instances
# DEPENDENCIES: triggers.timer_base, services.factory
# ============================================================================
"""
Scheduled Job Handlers.

One handler per job; the job name is also the cluster lock key.

    blob_dispatcher_handler          blob-dispatcher
    delete_dispatched_files_handler  delete-dispatched-files
    delete_rejected_files_handler    delete-rejected-files
    handle_rejected_files_handler    handle-rejected-files
    reject_duplicates_handler        reject-duplicates
    send_notifications_handler       send-notifications
"""

from typing import Any, Dict

from config.defaults import SchedulerDefaults
from .timer_base import TimerHandlerBase


class BlobDispatcherHandler(TimerHandlerBase):
    name = "BlobDispatcher"
    job_name = SchedulerDefaults.BLOB_DISPATCHER_JOB

    def execute(self) -> Dict[str, Any]:
        results = self.factory.create_container_processor().process_enabled_containers()
        failed = sum(r.failed for r in results) + sum(1 for r in results if r.error)
        return {
            "success": True,
            "summary": {
                "containers": len(results),
                "blobs_found": sum(r.blobs_found for r in results),
                "failed": failed,
            },
            "containers": [r.to_dict() for r in results],
        }


class DeleteDispatchedFilesHandler(TimerHandlerBase):
    name = "DeleteDispatchedFiles"
    job_name = SchedulerDefaults.DELETE_DISPATCHED_FILES_JOB

    def execute(self) -> Dict[str, Any]:
        result = self.factory.create_container_cleaner().process_enabled_containers()
        return {"success": True, "summary": result.to_dict()}


class DeleteRejectedFilesHandler(TimerHandlerBase):
    name = "DeleteRejectedFiles"
    job_name = SchedulerDefaults.DELETE_REJECTED_FILES_JOB

    def execute(self) -> Dict[str, Any]:
        result = self.factory.create_rejected_container_cleaner().clean_up()
        return {"success": True, "summary": result.to_dict()}


class HandleRejectedFilesHandler(TimerHandlerBase):
    name = "HandleRejectedFiles"
    job_name = SchedulerDefaults.HANDLE_REJECTED_FILES_JOB

    def execute(self) -> Dict[str, Any]:
        result = self.factory.create_rejected_files_handler().handle()
        return {"success": True, "summary": result.to_dict()}


class RejectDuplicatesHandler(TimerHandlerBase):
    name = "RejectDuplicates"
    job_name = SchedulerDefaults.REJECT_DUPLICATES_JOB

    def execute(self) -> Dict[str, Any]:
        result = self.factory.create_duplicate_file_handler().handle()
        return {"success": True, "summary": result.to_dict()}


class SendNotificationsHandler(TimerHandlerBase):
    name = "SendNotifications"
    job_name = SchedulerDefaults.SEND_NOTIFICATIONS_JOB

    def execute(self) -> Dict[str, Any]:
        result = self.factory.create_notification_service().send_notifications()
        return {"success": True, "summary": result.to_dict()}


blob_dispatcher_handler = BlobDispatcherHandler()
delete_dispatched_files_handler = DeleteDispatchedFilesHandler()
delete_rejected_files_handler = DeleteRejectedFilesHandler()
handle_rejected_files_handler = HandleRejectedFilesHandler()
reject_duplicates_handler = RejectDuplicatesHandler()
send_notifications_handler = SendNotificationsHandler()


__all__ = [
    'BlobDispatcherHandler',
    'DeleteDispatchedFilesHandler',
    'DeleteRejectedFilesHandler',
    'HandleRejectedFilesHandler',
    'RejectDuplicatesHandler',
    'SendNotificationsHandler',
    'blob_dispatcher_handler',
    'delete_dispatched_files_handler',
    'delete_rejected_files_handler',
    'handle_rejected_files_handler',
    'reject_duplicates_handler',
    'send_notifications_handler',
]
