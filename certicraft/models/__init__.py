"""
Database Models
Import all models here for Alembic migrations
"""

from certicraft.models.event import Event, Participant
from certicraft.models.template import CertificateTemplate
from certicraft.models.certificate import Certificate, GenerationStatus, DeliveryStatus
from certicraft.models.activity_log import ActivityLog

__all__ = [
    "Event",
    "Participant",
    "CertificateTemplate",
    "Certificate",
    "GenerationStatus",
    "DeliveryStatus",
    "ActivityLog",
]
