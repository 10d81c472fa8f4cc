"""
Config test fixtures: clean environment via monkeypatch.
"""

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "SOURCE_STORAGE_ACCOUNT", "SOURCE_STORAGE_CONNECTION_STRING",
        "TARGET_ACCOUNTS_JSON", "SOURCE_CONTAINERS_JSON", "PUBLIC_KEYS_JSON",
        "UPLOAD_CHUNK_THRESHOLD_BYTES", "UPLOAD_CHUNK_SIZE_BYTES", "STORAGE_REQUEST_TIMEOUT",
        "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_USER", "POSTGRES_PASSWORD",
        "POSTGRES_DATABASE", "POSTGRES_SCHEMA", "POSTGRESQL_CONNECTION_STRING",
        "USE_MANAGED_IDENTITY", "ServiceBusConnection", "SERVICE_BUS_NAMESPACE",
        "BLOB_DISPATCHER_SCHEDULE", "WORKER_POOL_SIZE", "REJECTED_FILE_TTL_HOURS",
        "STALE_ENVELOPE_HOURS", "ENVIRONMENT", "DEBUG_MODE",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield monkeypatch

    from config import reset_config
    reset_config()
