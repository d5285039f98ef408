"""
Pydantic schemas for request/response validation
"""

from certicraft.schemas.certificate import (
    CertificateStatusItem,
    DispatchSummaryResponse,
    GenerationResponse,
    MessageResponse,
    SendUpdatesRequest,
    VerificationResponse
)
from certicraft.schemas.template import (
    PreviewRequest,
    TemplateConfigRequest,
    TemplateResponse
)

__all__ = [
    "CertificateStatusItem",
    "DispatchSummaryResponse",
    "GenerationResponse",
    "MessageResponse",
    "SendUpdatesRequest",
    "VerificationResponse",
    "PreviewRequest",
    "TemplateConfigRequest",
    "TemplateResponse",
]
