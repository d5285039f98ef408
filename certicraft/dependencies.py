"""
Route Dependencies
Access the process-wide content store and relay built at startup
"""

from typing import Optional

from fastapi import Depends, Header, Request

from certicraft.services.archive_service import ArchiveService
from certicraft.services.certificate_renderer import CertificateRenderer
from certicraft.services.dispatch_service import DispatchService
from certicraft.services.email_service import EmailRelay
from certicraft.services.generation_service import GenerationService
from certicraft.services.storage_service import ContentStore


def get_content_store(request: Request) -> ContentStore:
    return request.app.state.content_store


def get_relay(request: Request) -> EmailRelay:
    return request.app.state.relay


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Acting user recorded in the audit log; authentication happens upstream"""
    return x_user_id


def get_renderer(store: ContentStore = Depends(get_content_store)) -> CertificateRenderer:
    return CertificateRenderer(store)


def get_generation_service(store: ContentStore = Depends(get_content_store)) -> GenerationService:
    return GenerationService(store)


def get_dispatch_service(
    relay: EmailRelay = Depends(get_relay),
    store: ContentStore = Depends(get_content_store)
) -> DispatchService:
    return DispatchService(relay, store)


def get_archive_service(store: ContentStore = Depends(get_content_store)) -> ArchiveService:
    return ArchiveService(store)
