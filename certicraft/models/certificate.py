"""
Certificate Model
Per-participant generation and delivery state
"""

from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, UniqueConstraint, func
import uuid
from certicraft.database import Base


class GenerationStatus(str, Enum):
    PENDING = "PENDING"
    GENERATED = "GENERATED"
    FAILED = "FAILED"


class DeliveryStatus(str, Enum):
    # SENDING is a client-side display state and is never stored
    NOT_SENT = "NOT_SENT"
    SENT = "SENT"
    FAILED = "FAILED"


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        UniqueConstraint("participant_id", "event_id", name="uq_certificates_participant_event"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    verification_id = Column(String(36), nullable=False, unique=True, index=True)
    participant_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Generation
    generation_status = Column(String(20), nullable=False, default=GenerationStatus.PENDING.value)
    error_message = Column(Text, nullable=True)
    content_ref = Column(Text, nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=True)
    
    # Delivery
    email_status = Column(String(20), nullable=False, default=DeliveryStatus.NOT_SENT.value)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())
