"""
Domain-specific HTTP exceptions.

Each exception carries a preset status code and detail message so that
services can raise them directly and routes need no translation layer.
"""

from fastapi import HTTPException, status


# ── Lookups ───────────────────────────────────────────────────────────────────

class EventNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")


class ParticipantNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found")


class CertificateNotFound(HTTPException):
    def __init__(self, detail: str = "Certificate not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class TemplateNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")


class NoGeneratedCertificates(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No generated certificates found for this event",
        )


class CertificateNotGenerated(HTTPException):
    """Delivery was requested for a certificate that has no document yet."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Certificate has not been generated",
        )


# ── Rendering ─────────────────────────────────────────────────────────────────

class TemplateUnavailable(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class InvalidTemplateImage(HTTPException):
    def __init__(self, reason: str) -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid template image: {reason}",
        )


# ── Storage ───────────────────────────────────────────────────────────────────

class StorageNotConfigured(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase Storage is not configured",
        )


class StorageUploadError(HTTPException):
    def __init__(self, reason: str) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Storage upload failed: {reason}",
        )


class StorageFetchError(HTTPException):
    """Remote fetch answered with a non-success status."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.upstream_status = status_code
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch file ({status_code}): {url}",
        )


class ContentNotFound(HTTPException):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stored file not found: {path}",
        )


# ── Email relay ───────────────────────────────────────────────────────────────

class RelayNotConfigured(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: Missing email credentials",
        )


class RelayRejected(HTTPException):
    def __init__(self, reason: str) -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=reason)


def error_message(exc: BaseException) -> str:
    """Message recorded on a certificate when a per-item step fails."""
    if isinstance(exc, HTTPException) and isinstance(exc.detail, str):
        return exc.detail
    return str(exc) or exc.__class__.__name__
