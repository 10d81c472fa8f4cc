"""
Configuration Package - Domain-Specific Configuration Modules

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── storage_config.py        # Source/target accounts, routing table, keys
    ├── database_config.py       # PostgreSQL envelope store
    ├── queue_config.py          # Service Bus notifications queue
    ├── scheduler_config.py      # Timer schedules and job tuning
    └── defaults.py              # Default values

Usage:
    from config import get_config
    config = get_config()
    route = config.storage.get_source_container("bulkscan")
"""

from typing import Optional

from .storage_config import StorageConfig, SourceContainerConfig, TargetAccountConfig
from .database_config import DatabaseConfig
from .queue_config import QueueConfig
from .scheduler_config import SchedulerConfig
from .app_config import AppConfig


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration (tests, settings reload)."""
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get sanitized configuration for debugging (masks sensitive values).
    """
    try:
        config = get_config()
        return {
            'storage': config.storage.debug_dict(),
            'database': config.database.debug_dict(),
            'queues': {
                'notifications_queue': config.queues.notifications_queue,
                'namespace': config.queues.namespace,
                'connection': '***MASKED***' if config.queues.connection_string else None,
            },
            'scheduler': config.scheduler.model_dump(),
            'environment': config.environment,
            'debug_mode': config.debug_mode,
        }
    except Exception as e:
        return {'error': f'Configuration validation failed: {e}'}


__all__ = [
    'AppConfig',
    'get_config',
    'reset_config',
    'debug_config',
    'StorageConfig',
    'SourceContainerConfig',
    'TargetAccountConfig',
    'DatabaseConfig',
    'QueueConfig',
    'SchedulerConfig',
]
