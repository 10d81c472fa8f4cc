"""
Main Application Configuration.

Composes domain-specific configuration modules:
    - StorageConfig (source account, targets, routing table, keys)
    - DatabaseConfig (envelope store)
    - QueueConfig (notifications queue)
    - SchedulerConfig (timers, lock, pool, thresholds)

Exports:
    AppConfig: Main configuration class

Pattern:
    Composition over inheritance - domain configs are composed, not inherited.
"""

import os

from pydantic import BaseModel, Field

from .storage_config import StorageConfig
from .database_config import DatabaseConfig
from .queue_config import QueueConfig
from .scheduler_config import SchedulerConfig


# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================

class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.
    """

    storage: StorageConfig = Field(default_factory=StorageConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    queues: QueueConfig = Field(default_factory=QueueConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    environment: str = Field(default="dev")
    debug_mode: bool = Field(default=False)

    @classmethod
    def from_environment(cls) -> "AppConfig":
        """Load all domain configs from environment variables."""
        return cls(
            storage=StorageConfig.from_environment(),
            database=DatabaseConfig.from_environment(),
            queues=QueueConfig.from_environment(),
            scheduler=SchedulerConfig.from_environment(),
            environment=os.environ.get("ENVIRONMENT", "dev"),
            debug_mode=os.environ.get("DEBUG_MODE", "false").lower() == "true",
        )
