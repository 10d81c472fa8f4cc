"""
Scheduled job handlers: cluster lock, result shape, error capture.
"""

from unittest.mock import MagicMock

import pytest

from config.defaults import SchedulerDefaults
from triggers.jobs import (
    blob_dispatcher_handler,
    delete_dispatched_files_handler,
    delete_rejected_files_handler,
    handle_rejected_files_handler,
    reject_duplicates_handler,
    send_notifications_handler,
)

ALL_HANDLERS = [
    (blob_dispatcher_handler, SchedulerDefaults.BLOB_DISPATCHER_JOB),
    (delete_dispatched_files_handler, SchedulerDefaults.DELETE_DISPATCHED_FILES_JOB),
    (delete_rejected_files_handler, SchedulerDefaults.DELETE_REJECTED_FILES_JOB),
    (handle_rejected_files_handler, SchedulerDefaults.HANDLE_REJECTED_FILES_JOB),
    (reject_duplicates_handler, SchedulerDefaults.REJECT_DUPLICATES_JOB),
    (send_notifications_handler, SchedulerDefaults.SEND_NOTIFICATIONS_JOB),
]


class TestTimerHandlers:

    @pytest.mark.parametrize("handler,job_name", ALL_HANDLERS)
    def test_every_job_runs_under_its_lock(self, installed_pipeline, handler, job_name):
        result = handler.handle(MagicMock(past_due=False))

        assert result["success"] is True
        assert result["job_name"] == job_name
        assert "duration_seconds" in result
        assert job_name in installed_pipeline.lock_repository.rows

    @pytest.mark.parametrize("handler,job_name", ALL_HANDLERS)
    def test_held_lock_skips_tick(self, installed_pipeline, handler, job_name):
        installed_pipeline.lock_repository.try_acquire(job_name, 600, "other-replica")

        result = handler.handle()

        assert result == {"success": True, "skipped": True, "job_name": job_name}

    def test_dispatcher_summary(self, installed_pipeline):
        installed_pipeline.upload_signed("a.zip")

        result = blob_dispatcher_handler.handle(MagicMock(past_due=True))

        assert result["summary"] == {"containers": 2, "blobs_found": 1, "failed": 0}
        assert result["containers"][0]["outcomes"] == {"dispatched": 1}

    def test_service_failure_becomes_error_result(self, installed_pipeline, monkeypatch):
        def broken():
            raise RuntimeError("database unreachable")

        monkeypatch.setattr(installed_pipeline.factory, "create_notification_service", broken)

        result = send_notifications_handler.handle()

        assert result["success"] is False
        assert result["error"] == "database unreachable"
        assert "traceback" in result

    def test_full_cycle_through_handlers(self, installed_pipeline, other_signing_key):
        from tests.factories.archive_factories import make_signed_archive

        installed_pipeline.upload_signed("good.zip")
        installed_pipeline.source.upload("bulkscan", "bad.zip", make_signed_archive(other_signing_key))

        blob_dispatcher_handler.handle()
        delete_dispatched_files_handler.handle()
        handle_rejected_files_handler.handle()
        notified = send_notifications_handler.handle()

        assert installed_pipeline.source.list_blobs("bulkscan") == []
        assert installed_pipeline.source.blob_exists("bulkscan-rejected", "bad.zip")
        assert notified["summary"]["sent"] == 1
        assert installed_pipeline.publisher.published[0][0].zip_file_name == "bad.zip"
