"""
Template Endpoints
Per-event template image and geometry configuration
"""

from fastapi import APIRouter

from certicraft.exceptions import TemplateNotFound
from certicraft.schemas.template import TemplateConfigRequest, TemplateResponse
from certicraft.services.event_service import EventService
from certicraft.services.template_service import TemplateService

router = APIRouter()


@router.get("/events/{event_id}", response_model=TemplateResponse)
async def get_event_template(event_id: str):
    """Get the event's template configuration"""
    await EventService.get_event(event_id)
    template = await TemplateService.get_template(event_id)
    if not template:
        raise TemplateNotFound()
    return template


@router.put("/events/{event_id}", response_model=TemplateResponse)
async def save_event_template(event_id: str, request: TemplateConfigRequest):
    """
    Create or replace the event's template configuration

    - **imageRef**: local path or URL of the template image
    - **nameX**, **nameY**: name center in original image pixels
    - **fontSize**, **fontColor**: name styling
    - **qrX**, **qrY**, **qrSize**: QR code center and side in pixels

    Returns: Stored template configuration
    """
    return await TemplateService.save_template(event_id, request)
