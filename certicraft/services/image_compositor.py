"""
Image Compositor
Draw the participant name and QR code onto the template image
"""

import logging
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from certicraft.config import settings
from certicraft.exceptions import InvalidTemplateImage

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class ImageCompositor:
    """Fixed-order compositing: background, then text, then QR code"""

    @staticmethod
    def _hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
        if not hex_color:
            return (0, 0, 0)
        color = hex_color.strip().lstrip("#")
        if len(color) != 6:
            return (0, 0, 0)
        try:
            return tuple(int(color[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            return (0, 0, 0)

    @staticmethod
    def _load_font(font_size: int) -> ImageFont.ImageFont:
        try:
            return ImageFont.truetype(settings.CERTIFICATE_FONT, font_size)
        except OSError:
            logger.debug("Font %s unavailable, using Pillow default", settings.CERTIFICATE_FONT)
            return ImageFont.load_default(size=font_size)

    @staticmethod
    def _is_number(value) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    @staticmethod
    def _valid_point(point: Optional[Point]) -> bool:
        return point is not None and len(point) == 2 and all(ImageCompositor._is_number(v) for v in point)

    @staticmethod
    def _open_template(template_bytes: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(template_bytes))
            image.load()
        except Exception as e:
            raise InvalidTemplateImage(str(e) or e.__class__.__name__)
        if image.mode != "RGB":
            image = image.convert("RGB")
        return image

    @staticmethod
    def _draw_centered_text(
        draw: ImageDraw.ImageDraw,
        text: str,
        font: ImageFont.ImageFont,
        center: Point,
        fill: Tuple[int, int, int]
    ) -> None:
        if not text:
            return
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = center[0] - (right - left) / 2 - left
        y = center[1] - (bottom - top) / 2 - top
        draw.text((int(round(x)), int(round(y))), text, fill=fill, font=font)

    @staticmethod
    def compose(
        template_bytes: bytes,
        text: str,
        text_anchor: Optional[Tuple[Optional[float], Optional[float]]] = None,
        font_size: int = 40,
        font_color: str = "#000000",
        symbol_image: Optional[Image.Image] = None,
        symbol_anchor: Optional[Point] = None,
        symbol_size: Optional[int] = None
    ) -> Tuple[bytes, int, int]:
        """
        Render the certificate raster.

        The output keeps the template's native resolution. Text is centered
        on text_anchor; a missing coordinate falls back to the canvas
        center on that axis only. The symbol is drawn as a
        symbol_size square centered on symbol_anchor.

        Returns:
            Tuple of (png_bytes, width, height)
        """
        image = ImageCompositor._open_template(template_bytes)
        width, height = image.size

        text_x, text_y = text_anchor if text_anchor is not None else (None, None)
        text_anchor = (
            text_x if ImageCompositor._is_number(text_x) else width / 2,
            text_y if ImageCompositor._is_number(text_y) else height / 2
        )

        draw = ImageDraw.Draw(image)
        font = ImageCompositor._load_font(font_size or settings.DEFAULT_FONT_SIZE)
        ImageCompositor._draw_centered_text(
            draw, text, font, text_anchor, ImageCompositor._hex_to_rgb(font_color)
        )

        if symbol_image is not None and ImageCompositor._valid_point(symbol_anchor):
            try:
                side = int(symbol_size or settings.DEFAULT_QR_SIZE)
                symbol = symbol_image.convert("RGB")
                if symbol.size != (side, side):
                    symbol = symbol.resize((side, side), Image.Resampling.NEAREST)
                top_left = (
                    int(round(symbol_anchor[0] - side / 2)),
                    int(round(symbol_anchor[1] - side / 2))
                )
                image.paste(symbol, top_left)
            except Exception as e:
                logger.warning("Skipping QR code overlay: %s", e)

        output = BytesIO()
        image.save(output, format="PNG")
        return output.getvalue(), width, height


# Singleton
image_compositor = ImageCompositor()
