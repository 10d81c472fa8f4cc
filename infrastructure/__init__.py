"""
Infrastructure Package - Lazy Loading Implementation.

Repository classes are imported on first attribute access. Azure Functions
imports function_app.py before application settings and managed identity
are guaranteed to be ready; deferring these imports keeps Azure SDK and
psycopg client construction out of module load.

Exports (lazy):
    RepositoryFactory
    BlobRepository, IBlobRepository, BlobItemInfo
    LeaseCoordinator, Lease, Busy, BusyReason
    PostgreSQLRepository, PostgreSQLEnvelopeRepository
    PostgreSQLClusterLockRepository, ClusterLock
    ServiceBusNotificationsPublisher
    DatabaseInitializer
    IEnvelopeRepository, IClusterLockRepository, INotificationPublisher
"""

from importlib import import_module

_LAZY_IMPORTS = {
    'RepositoryFactory': '.factory',
    'BlobRepository': '.blob',
    'IBlobRepository': '.blob',
    'BlobItemInfo': '.blob',
    'LeaseCoordinator': '.lease',
    'Lease': '.lease',
    'Busy': '.lease',
    'BusyReason': '.lease',
    'PostgreSQLRepository': '.postgresql',
    'PostgreSQLEnvelopeRepository': '.envelopes',
    'PostgreSQLClusterLockRepository': '.cluster_lock',
    'ClusterLock': '.cluster_lock',
    'ServiceBusNotificationsPublisher': '.service_bus',
    'DatabaseInitializer': '.database_initializer',
    'IEnvelopeRepository': '.interface_repository',
    'IClusterLockRepository': '.interface_repository',
    'INotificationPublisher': '.interface_repository',
}


def __getattr__(name):
    """Lazy import repository classes."""
    if name in _LAZY_IMPORTS:
        module = import_module(_LAZY_IMPORTS[name], package='infrastructure')
        return getattr(module, name)
    raise AttributeError(f"module 'infrastructure' has no attribute '{name}'")


__all__ = list(_LAZY_IMPORTS)
