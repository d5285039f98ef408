"""
Public Endpoints
Certificate verification
"""

from fastapi import APIRouter

from certicraft.exceptions import CertificateNotFound
from certicraft.models.certificate import GenerationStatus
from certicraft.schemas.certificate import VerificationResponse
from certicraft.services.status_tracker import StatusTracker

router = APIRouter()


@router.get("/verify/{verification_id}", response_model=VerificationResponse)
async def verify_certificate(verification_id: str):
    """
    Verify a certificate by its public verification ID (no authentication)

    Returns only the participant, event, organizer and generation date.
    """
    certificate = await StatusTracker.get_by_verification_id(verification_id)
    if not certificate or certificate["generation_status"] != GenerationStatus.GENERATED.value:
        raise CertificateNotFound()

    return VerificationResponse(
        participant_name=certificate["participant_name"],
        event_name=certificate["event_name"],
        organizer_name=certificate["organizer_name"],
        generated_at=certificate["generated_at"]
    )
