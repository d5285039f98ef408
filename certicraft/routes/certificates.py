"""
Certificate Endpoints
Generation, status, download and email delivery for an event's certificates
"""

from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import FileResponse, RedirectResponse, Response

from certicraft.dependencies import (
    get_archive_service,
    get_current_user_id,
    get_dispatch_service,
    get_generation_service,
    get_renderer,
)
from certicraft.exceptions import CertificateNotFound, CertificateNotGenerated, ContentNotFound, TemplateNotFound
from certicraft.models.certificate import GenerationStatus
from certicraft.schemas.certificate import (
    CertificateStatusItem,
    DispatchSummaryResponse,
    GenerationResponse,
    MessageResponse,
    SendUpdatesRequest,
)
from certicraft.schemas.template import PreviewRequest
from certicraft.services.archive_service import ArchiveService, archive_filename
from certicraft.services.certificate_renderer import CertificateRenderer
from certicraft.services.dispatch_service import DispatchService
from certicraft.services.event_service import EventService, ParticipantService
from certicraft.services.generation_service import GenerationService
from certicraft.services.pdf_encoder import PDF_MEDIA_TYPE
from certicraft.services.status_tracker import StatusTracker
from certicraft.services.storage_service import LocalRef, classify_ref
from certicraft.services.template_service import TemplateService

router = APIRouter()


@router.post("/events/{event_id}/generate", response_model=GenerationResponse)
async def generate_certificates(
    event_id: str,
    generation: GenerationService = Depends(get_generation_service),
    user_id: Optional[str] = Depends(get_current_user_id)
):
    """
    Generate certificates for every participant of an event

    Already generated certificates are skipped; failed ones are retried.

    Returns: attempted count and the number of newly generated certificates
    """
    summary = await generation.generate_all(event_id, user_id=user_id)
    return GenerationResponse(
        attempted=summary.attempted,
        created_count=summary.created,
        message=f"Generated {summary.created} certificates"
    )


@router.get("/events/{event_id}/status", response_model=List[CertificateStatusItem])
async def get_certificate_status(event_id: str):
    """Per-participant generation and delivery status"""
    await EventService.get_event(event_id)
    rows = await StatusTracker.status_view(event_id)
    return [
        CertificateStatusItem(
            id=row["certificate_id"],
            participant_id=row["participant_id"],
            participant_name=row["participant_name"],
            email=row["email"],
            generation_status=row["generation_status"],
            email_status=row["email_status"],
            update_email_status=row["update_email_status"] or "NOT_SENT",
            verification_id=row["verification_id"],
            generated_at=row["generated_at"],
            error_message=row["error_message"]
        )
        for row in rows
    ]


@router.get("/{certificate_id}/download")
async def download_certificate(certificate_id: str):
    """
    Download one certificate PDF

    Remote documents are served by redirect to their public URL.
    """
    certificate = await StatusTracker.get(certificate_id)
    if not certificate:
        raise CertificateNotFound()
    if certificate["generation_status"] != GenerationStatus.GENERATED.value or not certificate["content_ref"]:
        raise CertificateNotGenerated()

    target = classify_ref(certificate["content_ref"])
    if not isinstance(target, LocalRef):
        return RedirectResponse(url=target.url, status_code=307)

    if not Path(target.path).is_file():
        raise ContentNotFound(target.path)

    return FileResponse(
        target.path,
        media_type=PDF_MEDIA_TYPE,
        filename=f"certificate_{certificate_id}.pdf"
    )


@router.get("/events/{event_id}/download-all")
async def download_all_certificates(
    event_id: str,
    archives: ArchiveService = Depends(get_archive_service)
):
    """Zip of every generated certificate of the event"""
    bundle = await archives.build_event_archive(event_id)
    return Response(
        content=bundle,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive_filename(event_id)}"'}
    )


@router.post("/{certificate_id}/send-email", response_model=MessageResponse)
async def send_certificate_email(
    certificate_id: str,
    dispatch: DispatchService = Depends(get_dispatch_service),
    user_id: Optional[str] = Depends(get_current_user_id)
):
    """Email one certificate to its participant"""
    await dispatch.send_one(certificate_id, user_id=user_id)
    return {"message": "Email sent successfully"}


@router.post("/events/{event_id}/send-all", response_model=DispatchSummaryResponse)
async def send_all_certificate_emails(
    event_id: str,
    dispatch: DispatchService = Depends(get_dispatch_service),
    user_id: Optional[str] = Depends(get_current_user_id)
):
    """
    Email every generated certificate of the event

    A chunk the relay accepts counts all its certificates as sent.
    """
    summary = await dispatch.send_batch(event_id, user_id=user_id)
    if summary.total == 0:
        message = "No generated certificates to send"
    else:
        message = f"Sent {summary.sent} of {summary.total} emails"
    return DispatchSummaryResponse(
        total=summary.total,
        sent=summary.sent,
        failed=summary.failed,
        message=message
    )


@router.post("/events/{event_id}/send-updates", response_model=DispatchSummaryResponse)
async def send_event_updates(
    event_id: str,
    request: SendUpdatesRequest,
    dispatch: DispatchService = Depends(get_dispatch_service),
    user_id: Optional[str] = Depends(get_current_user_id)
):
    """Broadcast an organizer message to all participants"""
    summary = await dispatch.send_updates(event_id, request.subject, request.content, user_id=user_id)
    if summary.total == 0:
        message = "No participants to update."
    else:
        message = f"Updates sent to {summary.sent} participants"
    return DispatchSummaryResponse(
        total=summary.total,
        sent=summary.sent,
        failed=summary.failed,
        message=message
    )


@router.post("/participants/{participant_id}/resend-update", response_model=MessageResponse)
async def resend_update(participant_id: str):
    """Reset a participant's displayed update status to NOT_SENT"""
    await ParticipantService.reset_update_status(participant_id)
    return {"message": "Status reset"}


@router.post("/events/{event_id}/preview")
async def preview_certificate(
    event_id: str,
    overrides: Optional[PreviewRequest] = Body(default=None),
    renderer: CertificateRenderer = Depends(get_renderer)
):
    """
    Render a sample certificate with the current template

    Geometry in the body overrides the stored template for this render
    only. Nothing is persisted.
    """
    await EventService.get_event(event_id)
    template = await TemplateService.get_template(event_id)
    if not template or not template.get("image_ref"):
        raise TemplateNotFound()

    if overrides is not None:
        template = {**template, **overrides.model_dump(exclude_none=True)}

    document = await renderer.render_preview(template)
    return Response(
        content=document,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": 'inline; filename="preview.pdf"'}
    )
