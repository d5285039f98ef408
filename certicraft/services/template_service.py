"""
Template Service
Read and store the per-event certificate template configuration
"""

import uuid
from typing import Optional

from certicraft.database import database
from certicraft.schemas.template import TemplateConfigRequest
from certicraft.services.event_service import EventService

_COLUMNS = "id, event_id, image_ref, name_x, name_y, font_size, font_color, qr_x, qr_y, qr_size"


class TemplateService:
    """Service for template configuration"""

    @staticmethod
    async def get_template(event_id: str) -> Optional[dict]:
        """Template configuration for an event, or None when not configured"""
        template = await database.fetch_one(
            f"SELECT {_COLUMNS} FROM certificate_templates WHERE event_id = :event_id",
            {"event_id": event_id}
        )
        return dict(template) if template else None

    @staticmethod
    async def save_template(event_id: str, data: TemplateConfigRequest) -> dict:
        """Create or replace the event's template configuration"""
        await EventService.get_event(event_id)

        values = data.model_dump()
        existing = await TemplateService.get_template(event_id)

        if existing:
            await database.execute(
                """
                UPDATE certificate_templates
                SET image_ref = :image_ref, name_x = :name_x, name_y = :name_y,
                    font_size = :font_size, font_color = :font_color,
                    qr_x = :qr_x, qr_y = :qr_y, qr_size = :qr_size,
                    updated_at = CURRENT_TIMESTAMP
                WHERE event_id = :event_id
                """,
                {**values, "event_id": event_id}
            )
        else:
            await database.execute(
                """
                INSERT INTO certificate_templates
                (id, event_id, image_ref, name_x, name_y, font_size, font_color, qr_x, qr_y, qr_size)
                VALUES (:id, :event_id, :image_ref, :name_x, :name_y, :font_size, :font_color, :qr_x, :qr_y, :qr_size)
                """,
                {**values, "id": str(uuid.uuid4()), "event_id": event_id}
            )

        return await TemplateService.get_template(event_id)
