"""
Envelope Database Models - Persistence Boundary

An Envelope is one ingestion attempt of a named file in a named source
container. Envelope rows are never physically deleted; history for the same
(container, file_name) is kept as multiple rows ordered by created_at.

EnvelopeEvent rows form the append-only audit trail of an envelope.

Exports:
    Envelope: Envelope row
    NewEnvelope: Insert payload for an envelope
    EnvelopeEvent: Event row
    NewEnvelopeEvent: Insert payload for an event
    RejectedEnvelope: Envelope awaiting rejection notification
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .enums import EnvelopeStatus, EventType, ErrorCode


class Envelope(BaseModel):
    """
    Database representation of an envelope.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    container: str
    file_name: str
    created_at: datetime
    file_created_at: datetime
    dispatched_at: Optional[datetime] = None
    # Storage last-modified of the content that was verified; set on the terminal transition
    file_last_modified: Optional[datetime] = None
    status: EnvelopeStatus = EnvelopeStatus.CREATED
    is_deleted: bool = False
    pending_notification: bool = False
    file_size: int = Field(default=0, ge=0)


class NewEnvelope(BaseModel):
    """Fields supplied by the caller when an envelope is first observed."""

    container: str
    file_name: str
    file_created_at: datetime
    file_size: int = Field(default=0, ge=0)
    status: EnvelopeStatus = EnvelopeStatus.CREATED


class EnvelopeEvent(BaseModel):
    """Immutable audit entry."""

    model_config = ConfigDict(frozen=True)

    id: int
    envelope_id: UUID
    type: EventType
    error_code: Optional[ErrorCode] = None
    notes: Optional[str] = None
    created_at: datetime


class NewEnvelopeEvent(BaseModel):
    """
    Audit entry to append. The owning envelope id is supplied by the
    repository call, so the same payload can accompany an insert.
    """

    type: EventType
    error_code: Optional[ErrorCode] = None
    notes: Optional[str] = None


class RejectedEnvelope(BaseModel):
    """
    Rejected envelope with pending_notification set, joined with the
    error code and notes of its REJECTED event.
    """

    envelope_id: UUID
    container: str
    file_name: str
    error_code: Optional[ErrorCode] = None
    error_description: Optional[str] = None
