"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without database connections or Azure credentials. Services run against
the in-memory doubles in tests/fakes.py.
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict

import pytest

# Add project root to sys.path so 'core', 'services', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables to prevent import crashes.

    Config is read from the environment on first use; safe defaults keep
    that from reaching real Azure resources.
    """
    defaults = {
        "SOURCE_STORAGE_ACCOUNT": "testsource",
        "POSTGRES_HOST": "localhost",
        "POSTGRES_DATABASE": "testdb",
        "POSTGRES_USER": "tester",
        "ENVIRONMENT": "dev",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture(scope="session")
def signing_key():
    """Supplier private key (RSA 2048). Generated once per session."""
    from tests.factories.archive_factories import make_private_key
    return make_private_key()


@pytest.fixture(scope="session")
def other_signing_key():
    """A key no container trusts."""
    from tests.factories.archive_factories import make_private_key
    return make_private_key()


@pytest.fixture
def clock():
    from tests.fakes import FrozenClock
    return FrozenClock()


@pytest.fixture
def storage_config(signing_key):
    """
    Routing table:
        bulkscan         -> crime/bulkscan-target      (enabled)
        sample-container -> crime/sample-container-dest (enabled)
        sscs             -> crime/sscs-target          (disabled)
    """
    from config import SourceContainerConfig, StorageConfig, TargetAccountConfig
    from tests.factories.archive_factories import public_key_der_b64

    return StorageConfig(
        source_account_name="testsource",
        target_accounts={"crime": TargetAccountConfig(account_name="crimetarget")},
        source_containers=[
            SourceContainerConfig(
                source_container="bulkscan", target_account="crime", target_container="bulkscan-target"
            ),
            SourceContainerConfig(
                source_container="sample-container", target_account="crime",
                target_container="sample-container-dest",
            ),
            SourceContainerConfig(
                source_container="sscs", target_account="crime", target_container="sscs-target", enabled=False
            ),
        ],
        public_keys={"supplier": public_key_der_b64(signing_key)},
        upload_chunk_threshold_bytes=1024,
        upload_chunk_size_bytes=512,
    )


@dataclass
class Pipeline:
    """Everything a job needs, wired with in-memory repositories."""

    clock: object
    source: object
    targets: Dict[str, object]
    envelope_repository: object
    lock_repository: object
    publisher: object
    factory: object
    signing_key: object

    @property
    def target(self):
        return self.targets["crime"]

    @property
    def envelope_service(self):
        return self.factory.envelope_service

    def upload_signed(self, name: str, container: str = "bulkscan", envelope_content: bytes = None) -> bytes:
        from tests.factories.archive_factories import make_envelope_content, make_signed_archive

        envelope_content = envelope_content if envelope_content is not None else make_envelope_content()
        self.source.upload(container, name, make_signed_archive(self.signing_key, envelope_content))
        return envelope_content

    def last_envelope(self, name: str, container: str = "bulkscan"):
        return self.envelope_repository.find_last(name, container)


@pytest.fixture
def pipeline(clock, storage_config, signing_key):
    from config import AppConfig, SchedulerConfig
    from services.factory import ServiceFactory
    from tests.fakes import (
        FakeBlobRepository,
        FakeNotificationPublisher,
        InMemoryClusterLockRepository,
        InMemoryEnvelopeRepository,
    )

    source = FakeBlobRepository("testsource", clock=clock)
    for container in ("bulkscan", "sample-container", "sscs"):
        source.create_container(container)
    targets = {"crime": FakeBlobRepository("crimetarget", clock=clock)}
    envelope_repository = InMemoryEnvelopeRepository(clock=clock)
    lock_repository = InMemoryClusterLockRepository(clock=clock)
    publisher = FakeNotificationPublisher()

    config = AppConfig(storage=storage_config, scheduler=SchedulerConfig(worker_pool_size=4))
    factory = ServiceFactory(
        config,
        source_repository=source,
        target_repository_resolver=lambda name: targets[name],
        envelope_repository=envelope_repository,
        lock_repository=lock_repository,
        notifications_publisher=publisher,
    )
    return Pipeline(
        clock=clock,
        source=source,
        targets=targets,
        envelope_repository=envelope_repository,
        lock_repository=lock_repository,
        publisher=publisher,
        factory=factory,
        signing_key=signing_key,
    )


@pytest.fixture
def installed_pipeline(pipeline):
    """Pipeline installed as the process-wide ServiceFactory for trigger tests."""
    from triggers.timer_base import reset_service_factory

    reset_service_factory(pipeline.factory)
    yield pipeline
    reset_service_factory()
