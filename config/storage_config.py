"""
Blob Storage Configuration.

Provides configuration for:
    - Source storage account (where suppliers upload envelopes)
    - Target storage accounts (where verified content is dispatched)
    - Routing table: source container -> target account/container
    - Named supplier public keys used for signature verification

Environment Variables:
    SOURCE_STORAGE_CONNECTION_STRING   Connection string (local / Azurite)
    SOURCE_STORAGE_ACCOUNT             Account name (DefaultAzureCredential)
    TARGET_ACCOUNTS_JSON               {"crime": {"account_name": "..."}, ...}
    SOURCE_CONTAINERS_JSON             [{"source_container": "bulkscan", ...}, ...]
    PUBLIC_KEYS_JSON                   {"supplier-a": "<base64 DER>", ...}
    UPLOAD_CHUNK_THRESHOLD_BYTES / UPLOAD_CHUNK_SIZE_BYTES

Exports:
    TargetAccountConfig: One target storage account
    SourceContainerConfig: One routing table entry
    StorageConfig: Storage configuration
"""

import json
import os
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from exceptions import ConfigurationError
from .defaults import AzureDefaults, StorageDefaults


# ============================================================================
# ACCOUNT / ROUTING MODELS
# ============================================================================

class TargetAccountConfig(BaseModel):
    """
    A storage account that receives dispatched content.

    Either connection_string (local development, Azurite) or account_name
    (managed identity via DefaultAzureCredential) must be set.
    """

    account_name: Optional[str] = Field(default=None, description="Storage account name")
    connection_string: Optional[str] = Field(default=None, repr=False)

    @model_validator(mode="after")
    def _require_endpoint(self) -> "TargetAccountConfig":
        if not self.account_name and not self.connection_string:
            raise ValueError("Target account needs account_name or connection_string")
        return self

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"


class SourceContainerConfig(BaseModel):
    """
    Routing table entry for one supplier source container.

    public_keys lists names from StorageConfig.public_keys; an empty list
    means every configured key is accepted for this container.
    """

    source_container: str = Field(..., description="Container suppliers upload into")
    target_account: str = Field(..., description="Key into StorageConfig.target_accounts")
    target_container: str = Field(..., description="Container receiving verified content")
    enabled: bool = Field(default=True, description="Disabled containers are not scanned")
    public_keys: List[str] = Field(default_factory=list)

    @property
    def rejected_container(self) -> str:
        return self.source_container + StorageDefaults.REJECTED_CONTAINER_SUFFIX


# ============================================================================
# STORAGE CONFIGURATION
# ============================================================================

class StorageConfig(BaseModel):
    """
    Storage configuration: source account, targets, routing table, keys.
    """

    source_account_name: str = Field(default=AzureDefaults.STORAGE_ACCOUNT_NAME)
    source_connection_string: Optional[str] = Field(default=None, repr=False)

    target_accounts: Dict[str, TargetAccountConfig] = Field(default_factory=dict)
    source_containers: List[SourceContainerConfig] = Field(default_factory=list)
    public_keys: Dict[str, str] = Field(
        default_factory=dict,
        repr=False,
        description="Key name -> base64 DER (X.509 SubjectPublicKeyInfo) or PEM text"
    )

    upload_chunk_threshold_bytes: int = Field(default=StorageDefaults.UPLOAD_CHUNK_THRESHOLD_BYTES, gt=0)
    upload_chunk_size_bytes: int = Field(default=StorageDefaults.UPLOAD_CHUNK_SIZE_BYTES, gt=0)
    request_timeout_seconds: int = Field(default=StorageDefaults.REQUEST_TIMEOUT_SECONDS, gt=0)

    @model_validator(mode="after")
    def _validate_routing(self) -> "StorageConfig":
        seen = set()
        for entry in self.source_containers:
            if entry.source_container in seen:
                raise ValueError(f"Duplicate routing entry for container '{entry.source_container}'")
            seen.add(entry.source_container)
            if entry.target_account not in self.target_accounts:
                raise ValueError(
                    f"Container '{entry.source_container}' routes to unknown target account "
                    f"'{entry.target_account}'"
                )
            missing = [name for name in entry.public_keys if name not in self.public_keys]
            if missing:
                raise ValueError(
                    f"Container '{entry.source_container}' references undefined public keys {missing}"
                )
        return self

    @property
    def source_account_url(self) -> str:
        return f"https://{self.source_account_name}.blob.core.windows.net"

    def get_source_container(self, container: str) -> SourceContainerConfig:
        """
        Look up the routing entry for a source container.

        Raises:
            ConfigurationError: Container not in the routing table
        """
        for entry in self.source_containers:
            if entry.source_container == container:
                return entry
        raise ConfigurationError(f"No routing entry for container '{container}'")

    def enabled_source_containers(self) -> List[SourceContainerConfig]:
        return [entry for entry in self.source_containers if entry.enabled]

    def public_keys_for(self, container: str) -> List[str]:
        """Configured key material accepted for a source container."""
        entry = self.get_source_container(container)
        names = entry.public_keys or sorted(self.public_keys)
        return [self.public_keys[name] for name in names]

    def debug_dict(self) -> dict:
        """Debug output with secrets masked."""
        return {
            "source_account_name": self.source_account_name,
            "source_connection_string": "***MASKED***" if self.source_connection_string else None,
            "target_accounts": sorted(self.target_accounts),
            "source_containers": [
                {
                    "source_container": entry.source_container,
                    "target": f"{entry.target_account}/{entry.target_container}",
                    "enabled": entry.enabled,
                }
                for entry in self.source_containers
            ],
            "public_keys": sorted(self.public_keys),
            "upload_chunk_threshold_bytes": self.upload_chunk_threshold_bytes,
            "upload_chunk_size_bytes": self.upload_chunk_size_bytes,
        }

    @classmethod
    def from_environment(cls) -> "StorageConfig":
        """Load from environment variables (JSON for structured values)."""
        return cls(
            source_account_name=os.environ.get("SOURCE_STORAGE_ACCOUNT", AzureDefaults.STORAGE_ACCOUNT_NAME),
            source_connection_string=os.environ.get("SOURCE_STORAGE_CONNECTION_STRING"),
            target_accounts=_load_json_env("TARGET_ACCOUNTS_JSON", {}),
            source_containers=_load_json_env("SOURCE_CONTAINERS_JSON", []),
            public_keys=_load_json_env("PUBLIC_KEYS_JSON", {}),
            upload_chunk_threshold_bytes=int(os.environ.get(
                "UPLOAD_CHUNK_THRESHOLD_BYTES", str(StorageDefaults.UPLOAD_CHUNK_THRESHOLD_BYTES)
            )),
            upload_chunk_size_bytes=int(os.environ.get(
                "UPLOAD_CHUNK_SIZE_BYTES", str(StorageDefaults.UPLOAD_CHUNK_SIZE_BYTES)
            )),
            request_timeout_seconds=int(os.environ.get(
                "STORAGE_REQUEST_TIMEOUT", str(StorageDefaults.REQUEST_TIMEOUT_SECONDS)
            )),
        )


def _load_json_env(name: str, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{name} is not valid JSON: {e}") from e
