"""
Services Package - envelope ingestion and cleanup jobs.

Each scheduled job has one entry service:

    blob-dispatcher          ContainerProcessor.process_enabled_containers()
    delete-dispatched-files  ContainerCleaner.process_enabled_containers()
    delete-rejected-files    RejectedContainerCleaner.clean_up()
    handle-rejected-files    RejectedFilesHandler.handle()
    reject-duplicates        DuplicateFileHandler.handle()
    send-notifications       NotificationService.send_notifications()

ServiceFactory wires them to repositories from AppConfig.
"""

from .blob_verifier import VerificationResult, load_public_key, verify
from .envelope_service import EnvelopeService
from .factory import ServiceFactory

__all__ = [
    'ServiceFactory',
    'EnvelopeService',
    'VerificationResult',
    'load_public_key',
    'verify',
]
