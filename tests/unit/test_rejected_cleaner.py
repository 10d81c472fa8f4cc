"""
TTL sweep of "-rejected" containers.
"""

from datetime import timedelta

import pytest

from core.models import EventType
from services.rejected_cleaner import RejectedBlobChecker, RejectedContainerCleaner
from tests.factories.envelope_factories import make_blob

TTL = timedelta(hours=72)


@pytest.fixture
def cleaner(pipeline, clock):
    return RejectedContainerCleaner(
        pipeline.source,
        RejectedBlobChecker(TTL, clock=clock),
        pipeline.envelope_service,
        pipeline.factory.lease_coordinator,
    )


class TestRejectedBlobChecker:

    def test_expiry_is_strict(self, clock):
        checker = RejectedBlobChecker(TTL, clock=clock)
        assert not checker.should_be_deleted(make_blob(last_modified=clock() - TTL))
        assert checker.should_be_deleted(make_blob(last_modified=clock() - TTL - timedelta(seconds=1)))

    def test_zero_ttl(self, clock):
        checker = RejectedBlobChecker(timedelta(0), clock=clock)
        assert checker.should_be_deleted(make_blob(last_modified=clock() - timedelta(microseconds=1)))

    @pytest.mark.parametrize("ttl", [None, timedelta(hours=-1)])
    def test_invalid_ttl(self, ttl):
        with pytest.raises(ValueError):
            RejectedBlobChecker(ttl)


class TestRejectedContainerCleaner:

    def test_expired_blob_is_deleted_and_recorded(self, pipeline, cleaner, clock, make_rejected_moved):
        envelope = make_rejected_moved("a.zip")
        clock.advance(hours=73)

        result = cleaner.clean_up()

        assert result.deleted == 1
        assert not pipeline.source.blob_exists("bulkscan-rejected", "a.zip")
        assert pipeline.envelope_repository.event_types(envelope.id)[-1] == EventType.DELETED_FROM_REJECTED

    def test_fresh_blob_is_kept(self, pipeline, cleaner, clock, make_rejected_moved):
        make_rejected_moved("a.zip")
        clock.advance(hours=71)

        assert cleaner.clean_up().deleted == 0
        assert pipeline.source.blob_exists("bulkscan-rejected", "a.zip")

    def test_only_rejected_containers_are_swept(self, pipeline, cleaner, clock):
        pipeline.source.upload("bulkscan", "old.zip", b"x")
        clock.advance(days=30)

        assert cleaner.clean_up().scanned == 0
        assert pipeline.source.blob_exists("bulkscan", "old.zip")

    def test_expired_snapshot_of_fresh_blob(self, pipeline, cleaner, clock):
        pipeline.source.upload("bulkscan-rejected", "a.zip", b"old")
        clock.advance(hours=100)
        pipeline.source.create_snapshot("bulkscan-rejected", "a.zip")
        pipeline.source.upload("bulkscan-rejected", "a.zip", b"new")

        result = cleaner.clean_up()

        assert result.deleted == 1
        assert pipeline.source.content("bulkscan-rejected", "a.zip") == b"new"
        assert pipeline.source.snapshots("bulkscan-rejected", "a.zip") == []

    def test_base_and_snapshots_go_together(self, pipeline, cleaner, clock):
        pipeline.source.upload("bulkscan-rejected", "a.zip", b"old")
        pipeline.source.create_snapshot("bulkscan-rejected", "a.zip")
        clock.advance(hours=100)

        result = cleaner.clean_up()

        assert result.deleted == 1
        assert pipeline.source.list_blobs("bulkscan-rejected", include_snapshots=True) == []

    def test_leased_blob_is_skipped(self, pipeline, cleaner, clock):
        pipeline.source.upload("bulkscan-rejected", "a.zip", b"x")
        pipeline.source.acquire_lease("bulkscan-rejected", "a.zip", 60)
        clock.advance(hours=100)

        result = cleaner.clean_up()

        assert result.skipped == 1
        assert pipeline.source.blob_exists("bulkscan-rejected", "a.zip")

    def test_blob_without_envelope_is_still_deleted(self, pipeline, cleaner, clock):
        pipeline.source.upload("bulkscan-rejected", "orphan.zip", b"x")
        clock.advance(hours=100)

        assert cleaner.clean_up().deleted == 1


@pytest.fixture
def make_rejected_moved(pipeline, other_signing_key):
    """Reject a file and move it to bulkscan-rejected."""
    from tests.factories.archive_factories import make_signed_archive

    def _make(name):
        pipeline.source.upload("bulkscan", name, make_signed_archive(other_signing_key))
        pipeline.factory.create_container_processor().process("bulkscan")
        pipeline.factory.create_rejected_files_handler().handle()
        return pipeline.last_envelope(name)
    return _make
