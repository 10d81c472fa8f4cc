"""
Dispatched source blob cleanup.
"""

from azure.core.exceptions import HttpResponseError

from core.models import EventType


def _dispatch(pipeline, *names):
    for name in names:
        pipeline.upload_signed(name)
    pipeline.factory.create_container_processor().process_enabled_containers()


class TestContainerCleaner:

    def test_dispatched_blobs_are_deleted(self, pipeline):
        _dispatch(pipeline, "a.zip", "b.zip")

        result = pipeline.factory.create_container_cleaner().process_enabled_containers()

        assert result.deleted == 2
        assert result.marked_deleted == 2
        assert pipeline.source.list_blobs("bulkscan") == []
        envelope = pipeline.last_envelope("a.zip")
        assert envelope.is_deleted
        assert pipeline.envelope_repository.event_types(envelope.id)[-1] == EventType.DELETED

    def test_second_run_changes_nothing(self, pipeline):
        _dispatch(pipeline, "a.zip")
        cleaner = pipeline.factory.create_container_cleaner()
        cleaner.process("bulkscan")
        events_after_first = pipeline.envelope_service.get_envelope_events(pipeline.last_envelope("a.zip").id)

        result = cleaner.process("bulkscan")

        assert result.scanned == 0
        assert pipeline.envelope_service.get_envelope_events(pipeline.last_envelope("a.zip").id) == events_after_first

    def test_missing_blob_is_marked_deleted(self, pipeline):
        _dispatch(pipeline, "a.zip")
        pipeline.source.delete_blob("bulkscan", "a.zip")

        result = pipeline.factory.create_container_cleaner().process("bulkscan")

        assert result.deleted == 0
        assert result.marked_deleted == 1
        assert pipeline.last_envelope("a.zip").is_deleted

    def test_rewritten_blob_is_kept(self, pipeline, clock):
        _dispatch(pipeline, "a.zip")
        clock.advance(minutes=1)
        pipeline.upload_signed("a.zip")

        result = pipeline.factory.create_container_cleaner().process("bulkscan")

        assert result.skipped == 1
        assert pipeline.source.blob_exists("bulkscan", "a.zip")
        assert not pipeline.last_envelope("a.zip").is_deleted

    def test_leased_blob_is_retried_later(self, pipeline):
        _dispatch(pipeline, "a.zip")
        lease_id = pipeline.source.acquire_lease("bulkscan", "a.zip", 60)
        cleaner = pipeline.factory.create_container_cleaner()

        assert cleaner.process("bulkscan").skipped == 1
        assert pipeline.source.blob_exists("bulkscan", "a.zip")

        pipeline.source.release_lease("bulkscan", "a.zip", lease_id)
        assert cleaner.process("bulkscan").deleted == 1

    def test_rejected_envelopes_are_not_touched(self, pipeline, other_signing_key):
        from tests.factories.archive_factories import make_signed_archive

        pipeline.source.upload("bulkscan", "bad.zip", make_signed_archive(other_signing_key))
        pipeline.factory.create_container_processor().process("bulkscan")

        result = pipeline.factory.create_container_cleaner().process("bulkscan")

        assert result.scanned == 0
        assert pipeline.source.blob_exists("bulkscan", "bad.zip")

    def test_listing_failure_is_reported(self, pipeline):
        _dispatch(pipeline, "a.zip")
        pipeline.source.fail_on["list_blobs"] = HttpResponseError(message="throttled")

        result = pipeline.factory.create_container_cleaner().process("bulkscan")

        assert result.failed == 1
        assert "throttled" in result.errors[0]
        assert not pipeline.last_envelope("a.zip").is_deleted
