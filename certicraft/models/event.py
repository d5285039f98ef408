"""
Event and Participant Models
Events and the people who receive their certificates
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, func
import uuid
from certicraft.database import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


class Event(Base):
    __tablename__ = "events"
    
    id = Column(String(36), primary_key=True, default=_uuid_str)
    name = Column(String(200), nullable=False)
    organizer_name = Column(String(200), nullable=True)
    organizer_id = Column(String(36), nullable=True, index=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Participant(Base):
    __tablename__ = "participants"
    
    id = Column(String(36), primary_key=True, default=_uuid_str)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    
    # Organizer broadcast delivery: NOT_SENT, SENT, FAILED
    update_email_status = Column(String(20), nullable=False, default="NOT_SENT", server_default="NOT_SENT")
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())
