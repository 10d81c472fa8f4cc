"""
Service Bus Configuration.

Rejection notifications are published to a single queue. Connection is
either a connection string (local) or a fully qualified namespace with
DefaultAzureCredential (production).

Exports:
    QueueConfig: Service Bus configuration
"""

import os
from typing import Optional

from pydantic import BaseModel, Field

from .defaults import QueueDefaults


class QueueConfig(BaseModel):
    """Service Bus settings for the notifications publisher."""

    connection_string: Optional[str] = Field(default=None, repr=False)
    namespace: Optional[str] = Field(
        default=None,
        description="Fully qualified namespace, e.g. myns.servicebus.windows.net"
    )
    notifications_queue: str = Field(default=QueueDefaults.NOTIFICATIONS_QUEUE)
    service_name: str = Field(
        default=QueueDefaults.SERVICE_NAME,
        description="Value of the 'service' field in every notification"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.connection_string or self.namespace)

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            connection_string=os.environ.get("ServiceBusConnection"),
            namespace=os.environ.get("SERVICE_BUS_NAMESPACE") or os.environ.get("ServiceBusConnection__fullyQualifiedNamespace"),
            notifications_queue=os.environ.get("SERVICE_BUS_NOTIFICATIONS_QUEUE", QueueDefaults.NOTIFICATIONS_QUEUE),
            service_name=os.environ.get("NOTIFICATION_SERVICE_NAME", QueueDefaults.SERVICE_NAME),
        )
