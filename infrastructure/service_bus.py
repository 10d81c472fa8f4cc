# ============================================================================
# SERVICE BUS NOTIFICATIONS PUBLISHER
# ============================================================================
# STATUS: Infrastructure - Azure Service Bus sender
# PURPOSE: Publish rejection notices with a caller-chosen message id
# EXPORTS: ServiceBusNotificationsPublisher
# INTERFACES: INotificationPublisher
# DEPENDENCIES: azure-servicebus, azure-identity
# ============================================================================

"""
Service Bus Notifications Publisher.

Message id is the envelope id, so Service Bus duplicate detection (when
enabled on the queue) collapses a re-send after a crash between publish and
flag-clear.

Authentication:
    - ServiceBusConnection connection string (local development)
    - Fully qualified namespace + DefaultAzureCredential (Azure)
"""

import time
from typing import Optional

from azure.servicebus import ServiceBusClient, ServiceBusMessage, ServiceBusSender
from azure.servicebus.exceptions import ServiceBusError
from azure.identity import DefaultAzureCredential

from config import QueueConfig
from core.models import NotificationMessage
from exceptions import ConfigurationError, NotificationPublishingError
from util_logger import LoggerFactory, ComponentType
from .interface_repository import INotificationPublisher

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "ServiceBusNotificationsPublisher")


class ServiceBusNotificationsPublisher(INotificationPublisher):
    """
    Sends NotificationMessage JSON to the notifications queue.
    """

    def __init__(self, config: QueueConfig, max_retries: int = 3, retry_delay_seconds: float = 1.0):
        if config.connection_string:
            logger.info("🔑 Using connection string authentication")
            self.client = ServiceBusClient.from_connection_string(config.connection_string)
        elif config.namespace:
            logger.info(f"🚌 Using Service Bus namespace: {config.namespace}")
            self.client = ServiceBusClient(
                fully_qualified_namespace=config.namespace,
                credential=DefaultAzureCredential()
            )
        else:
            raise ConfigurationError(
                "Service Bus not configured: set ServiceBusConnection or SERVICE_BUS_NAMESPACE"
            )

        self.queue_name = config.notifications_queue
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self._sender: Optional[ServiceBusSender] = None

    def _get_sender(self) -> ServiceBusSender:
        if self._sender is None:
            logger.debug(f"🚌 Creating sender for queue: {self.queue_name}")
            self._sender = self.client.get_queue_sender(self.queue_name)
        return self._sender

    def publish(self, message: NotificationMessage, message_id: str) -> None:
        """
        Publish one notification.

        Raises:
            NotificationPublishingError: After max_retries failed attempts
        """
        sb_message = ServiceBusMessage(
            body=message.to_json(),
            content_type="application/json",
            message_id=message_id,
        )

        for attempt in range(self.max_retries):
            try:
                self._get_sender().send_messages(sb_message)
                logger.info(f"📨 Notification sent for {message.container}/{message.zip_file_name} (id={message_id})")
                return
            except ServiceBusError as e:
                logger.warning(f"⚠️ Publish attempt {attempt + 1}/{self.max_retries} failed: {e}")
                # A broken sender is not reused
                self._close_sender()
                if attempt == self.max_retries - 1:
                    raise NotificationPublishingError(
                        f"Failed to publish notification {message_id} to {self.queue_name}: {e}"
                    ) from e
                time.sleep(self.retry_delay_seconds * (2 ** attempt))

    def _close_sender(self) -> None:
        if self._sender is not None:
            try:
                self._sender.close()
            except ServiceBusError as e:
                logger.debug(f"Sender close failed: {e}")
            self._sender = None

    def close(self) -> None:
        self._close_sender()
        self.client.close()
