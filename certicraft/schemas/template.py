"""
Certificate Template Request/Response Models
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class TemplateConfigRequest(BaseModel):
    """
    Template geometry and styling.

    Coordinates are integers in the original image's pixel space; editors
    working on a scaled preview must map back before saving.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_ref: str = Field(..., min_length=1, description="Local path or URL of the template image")
    name_x: Optional[int] = Field(default=None, ge=0, description="Name center X in pixels")
    name_y: Optional[int] = Field(default=None, ge=0, description="Name center Y in pixels")
    font_size: int = Field(default=40, ge=8, le=200, description="Font size in pixels")
    font_color: str = Field(
        default="#000000",
        pattern=r"^#[0-9a-fA-F]{6}$",
        description="Hex color code (e.g., #000000)"
    )
    qr_x: Optional[int] = Field(default=None, ge=0, description="QR code center X in pixels")
    qr_y: Optional[int] = Field(default=None, ge=0, description="QR code center Y in pixels")
    qr_size: int = Field(default=100, ge=16, le=1000, description="QR code side in pixels")


class PreviewRequest(BaseModel):
    """Optional geometry overrides for a preview render"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name_x: Optional[int] = Field(default=None, ge=0)
    name_y: Optional[int] = Field(default=None, ge=0)
    font_size: Optional[int] = Field(default=None, ge=8, le=200)
    font_color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    qr_x: Optional[int] = Field(default=None, ge=0)
    qr_y: Optional[int] = Field(default=None, ge=0)
    qr_size: Optional[int] = Field(default=None, ge=16, le=1000)


class TemplateResponse(TemplateConfigRequest):
    """Stored template configuration"""
    id: str
    event_id: str
