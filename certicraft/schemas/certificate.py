"""
Certificate Request/Response Models
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CertificateStatusItem(CamelModel):
    """
    One participant's row in the event status view.

    generation_status is NOT_GENERATED when no certificate record exists.
    email_status SENT means the batch containing the certificate was
    accepted by the relay, not that this recipient's mailbox received it.
    """
    id: Optional[str] = None
    participant_id: str
    participant_name: str
    email: Optional[str] = None
    generation_status: str
    email_status: str
    update_email_status: str = "NOT_SENT"
    verification_id: Optional[str] = None
    generated_at: Optional[datetime] = None
    error_message: Optional[str] = None


class GenerationResponse(CamelModel):
    attempted: int
    created_count: int
    message: str


class DispatchSummaryResponse(CamelModel):
    total: int
    sent: int
    failed: int
    message: str


class SendUpdatesRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str


class VerificationResponse(CamelModel):
    """Public verification payload"""
    participant_name: str
    event_name: str
    organizer_name: Optional[str] = None
    generated_at: Optional[datetime] = None
