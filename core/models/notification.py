"""
Rejection notification message published to Service Bus.

Exports:
    NotificationMessage: JSON body of a rejection notice
"""

from typing import Optional

from pydantic import BaseModel, Field

from .enums import ErrorCode


class NotificationMessage(BaseModel):
    """
    Rejection notice for the supplier-facing notification service.

    Field names are the wire format.
    """

    zip_file_name: str
    container: str
    error_code: Optional[ErrorCode] = None
    error_description: Optional[str] = None
    service: str = Field(default="blob_router")

    def to_json(self) -> str:
        return self.model_dump_json()
