"""
Archive Service
Bundle an event's generated certificates into one zip file
"""

import io
import logging
import re
import zipfile

from certicraft.exceptions import NoGeneratedCertificates, error_message
from certicraft.services.event_service import EventService
from certicraft.services.status_tracker import StatusTracker
from certicraft.services.storage_service import ContentStore

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def archive_entry_name(certificate_id: str, participant_name: str) -> str:
    safe_name = _WHITESPACE.sub("_", participant_name or "")
    return f"certificate_{certificate_id}_{safe_name}.pdf"


def archive_filename(event_id: str) -> str:
    return f"event_{event_id}_certificates.zip"


class ArchiveService:
    """Builds zip bundles in memory; nothing is staged on disk"""

    def __init__(self, store: ContentStore):
        self.store = store

    async def build_event_archive(self, event_id: str) -> bytes:
        """
        Zip every GENERATED certificate of the event.

        Certificates whose content cannot be read are logged and left out.
        Raises NoGeneratedCertificates when nothing could be added.
        """
        await EventService.get_event(event_id)
        certificates = await StatusTracker.list_generated(event_id)
        if not certificates:
            raise NoGeneratedCertificates()

        buffer = io.BytesIO()
        added = 0
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
            for certificate in certificates:
                try:
                    content = await self.store.get(certificate["content_ref"])
                except Exception as e:
                    logger.warning(
                        "Skipping certificate %s in archive: %s", certificate["id"], error_message(e)
                    )
                    continue
                bundle.writestr(
                    archive_entry_name(certificate["id"], certificate["participant_name"]),
                    content
                )
                added += 1

        if added == 0:
            logger.warning("No certificate content readable for event %s", event_id)
            raise NoGeneratedCertificates()

        logger.info("Archived %d of %d certificates for event %s", added, len(certificates), event_id)
        return buffer.getvalue()
