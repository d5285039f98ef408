"""
Certificate Template Model
One template configuration per event
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, func
import uuid
from certicraft.database import Base


class CertificateTemplate(Base):
    __tablename__ = "certificate_templates"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True)
    
    # Local path or remote URL of the base image
    image_ref = Column(Text, nullable=False)
    
    # Geometry, in the original image's pixel space
    name_x = Column(Integer, nullable=True)
    name_y = Column(Integer, nullable=True)
    font_size = Column(Integer, nullable=False, default=40)
    font_color = Column(String(7), nullable=False, default="#000000")
    qr_x = Column(Integer, nullable=True)
    qr_y = Column(Integer, nullable=True)
    qr_size = Column(Integer, nullable=False, default=100)
    
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
