"""
Unit test fixtures: services over in-memory repositories.
"""

import pytest


@pytest.fixture
def envelope_repository(clock):
    from tests.fakes import InMemoryEnvelopeRepository
    return InMemoryEnvelopeRepository(clock=clock)


@pytest.fixture
def envelope_service(envelope_repository):
    from services.envelope_service import EnvelopeService
    return EnvelopeService(envelope_repository)


@pytest.fixture
def source(clock):
    from tests.fakes import FakeBlobRepository
    repository = FakeBlobRepository("testsource", clock=clock)
    repository.create_container("bulkscan")
    return repository


@pytest.fixture
def lease_coordinator(source):
    from infrastructure.lease import LeaseCoordinator
    return LeaseCoordinator(source)


@pytest.fixture
def blob_mover(source):
    from services.blob_mover import BlobMover
    return BlobMover(source, chunk_size_bytes=512)


@pytest.fixture
def make_dispatched(envelope_service, clock):
    """Factory fixture: create a DISPATCHED envelope for a file."""
    def _make(file_name: str, container: str = "bulkscan"):
        envelope = envelope_service.create_new_envelope(container, file_name, clock(), 100)
        envelope_service.mark_as_dispatched(envelope.id)
        return envelope_service.get_envelope(envelope.id)
    return _make


@pytest.fixture
def make_rejected(envelope_service, clock):
    """Factory fixture: create a REJECTED envelope for a file."""
    from core.models import ErrorCode

    def _make(file_name: str, container: str = "bulkscan",
              error_code: ErrorCode = ErrorCode.SIGNATURE_VERIFICATION_FAILURE,
              description: str = "Invalid signature"):
        envelope = envelope_service.create_new_envelope(container, file_name, clock(), 100)
        envelope_service.mark_as_rejected(envelope.id, error_code, description)
        return envelope_service.get_envelope(envelope.id)
    return _make


@pytest.fixture
def make_rejected_upload(pipeline, other_signing_key):
    """Upload an archive signed with an untrusted key and run the dispatcher over it."""
    from tests.factories.archive_factories import make_signed_archive

    def _make(name: str, container: str = "bulkscan") -> bytes:
        archive = make_signed_archive(other_signing_key)
        pipeline.source.upload(container, name, archive)
        pipeline.factory.create_blob_processor().process(
            next(b for b in pipeline.source.list_blobs(container) if b.name == name)
        )
        return archive
    return _make
