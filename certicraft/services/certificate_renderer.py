"""
Certificate Renderer
Render, upload and record one participant's certificate
"""

import logging
from pathlib import Path
from typing import Optional

from certicraft.config import settings
from certicraft.exceptions import (
    ContentNotFound,
    StorageFetchError,
    TemplateUnavailable,
    error_message,
)
from certicraft.services.image_compositor import image_compositor
from certicraft.services.pdf_encoder import PDF_MEDIA_TYPE, pdf_encoder
from certicraft.services.qr_service import build_verification_url, qr_service
from certicraft.services.status_tracker import StatusTracker
from certicraft.services.storage_service import ContentStore

logger = logging.getLogger(__name__)

PREVIEW_NAME = "John Doe"
PREVIEW_VERIFICATION_ID = "PREVIEW-123"


def _point(x: Optional[int], y: Optional[int]):
    if x is None or y is None:
        return None
    return (x, y)


class CertificateRenderer:
    """QR code, compositing and PDF conversion for a single certificate"""

    def __init__(self, store: ContentStore):
        self.store = store

    async def _load_template_image(self, image_ref: str) -> bytes:
        suffix = Path(image_ref.split("?", 1)[0]).suffix or ".png"
        try:
            async with self.store.materialize(image_ref, suffix=suffix) as template_path:
                return Path(template_path).read_bytes()
        except StorageFetchError as e:
            logger.warning("Template download failed: %s", e.detail)
            raise TemplateUnavailable("Failed to download template")
        except ContentNotFound:
            raise TemplateUnavailable("Template file not found")

    async def render_document(self, template: dict, name: str, verification_id: str) -> bytes:
        """Render the PDF for one name; nothing is stored"""
        template_bytes = await self._load_template_image(template["image_ref"])

        symbol_anchor = _point(template.get("qr_x"), template.get("qr_y"))
        symbol_size = template.get("qr_size") or settings.DEFAULT_QR_SIZE
        symbol = None
        if symbol_anchor is not None:
            symbol = qr_service.encode(build_verification_url(verification_id), symbol_size)

        raster, width, height = image_compositor.compose(
            template_bytes,
            name,
            text_anchor=(template.get("name_x"), template.get("name_y")),
            font_size=template.get("font_size") or settings.DEFAULT_FONT_SIZE,
            font_color=template.get("font_color") or settings.DEFAULT_FONT_COLOR,
            symbol_image=symbol,
            symbol_anchor=symbol_anchor,
            symbol_size=symbol_size
        )
        return pdf_encoder.encode(raster, width, height)

    async def render_preview(self, template: dict) -> bytes:
        return await self.render_document(template, PREVIEW_NAME, PREVIEW_VERIFICATION_ID)

    async def render(self, participant: dict, template: Optional[dict], certificate: dict) -> bool:
        """
        Produce a terminal status for a PENDING certificate.

        Returns True when the certificate reached GENERATED. Failures are
        recorded on the certificate and never raised.
        """
        certificate_id = certificate["id"]

        if not template or not template.get("image_ref"):
            await StatusTracker.mark_failed(certificate_id, "Template not found")
            return False

        try:
            document = await self.render_document(
                template, participant["name"], certificate["verification_id"]
            )
            key = (
                f"{settings.CERTIFICATE_FOLDER}/{certificate['event_id']}/"
                f"{participant['id']}/certificate_{certificate_id}.pdf"
            )
            content_ref = await self.store.put(
                settings.CERTIFICATE_BUCKET, key, document, PDF_MEDIA_TYPE
            )
        except Exception as e:
            message = error_message(e)
            logger.warning("Certificate %s failed: %s", certificate_id, message)
            await StatusTracker.mark_failed(certificate_id, message)
            return False

        await StatusTracker.mark_generated(certificate_id, content_ref)
        logger.info("Certificate %s generated at %s", certificate_id, content_ref)
        return True
