"""
QR Code Service
Encode verification links as square QR code images
"""

import logging
from io import BytesIO
from typing import Optional

import qrcode
from PIL import Image

from certicraft.config import settings

logger = logging.getLogger(__name__)


def build_verification_url(verification_id: str, base_url: Optional[str] = None) -> str:
    """Public verification link embedded in the QR code and in emails"""
    base = (base_url or settings.FRONTEND_URL).rstrip("/")
    return f"{base}/verify/{verification_id}"


class QRCodeService:
    """Stateless QR code encoder"""

    @staticmethod
    def encode(
        data: str,
        size: int,
        fill_color: str = "#000000",
        back_color: str = "#FFFFFF"
    ) -> Optional[Image.Image]:
        """
        Encode data as a QR code image of exactly size x size pixels.

        Returns None when encoding fails so that callers can render
        without a code instead of aborting.
        """
        try:
            qr = qrcode.QRCode(
                version=None,
                error_correction=qrcode.constants.ERROR_CORRECT_M,
                box_size=10,
                border=1,
            )
            qr.add_data(data)
            qr.make(fit=True)
            img = qr.make_image(fill_color=fill_color, back_color=back_color)

            buf = BytesIO()
            img.save(buf, format="PNG")
            buf.seek(0)
            symbol = Image.open(buf).convert("RGB")
            # Nearest-neighbour keeps module edges sharp
            return symbol.resize((size, size), Image.Resampling.NEAREST)
        except Exception as e:
            logger.warning("QR code generation failed: %s", e)
            return None


# Singleton
qr_service = QRCodeService()
