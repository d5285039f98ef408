"""
Dispatch Service
Email generated certificates and organizer updates to participants.

Batch sends are submitted in relay-sized chunks. A chunk the relay accepts
marks every certificate in it SENT; a rejected chunk marks every
certificate in it FAILED. Individual bounces inside an accepted chunk are
not reflected in the stored delivery status.
"""

import html
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from certicraft.config import settings
from certicraft.exceptions import (
    CertificateNotFound,
    CertificateNotGenerated,
    RelayNotConfigured,
    RelayRejected,
    error_message,
)
from certicraft.models.certificate import DeliveryStatus, GenerationStatus
from certicraft.services.activity_log_service import ActivityLogService
from certicraft.services.email_service import Attachment, BatchResult, EmailRelay, OutgoingEmail
from certicraft.services.event_service import EventService, ParticipantService
from certicraft.services.qr_service import build_verification_url
from certicraft.services.status_tracker import StatusTracker
from certicraft.services.storage_service import ContentStore, LocalRef, classify_ref, temporary_file

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
    total: int
    sent: int
    failed: int


def _chunks(items: list, size: int) -> List[list]:
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


def certificate_email_html(participant_name: str, event_name: str, verification_id: str) -> str:
    link = build_verification_url(verification_id)
    return f"""
        <div style="font-family: sans-serif; padding: 20px;">
          <h2>Congratulations {html.escape(participant_name)}!</h2>
          <p>You have successfully completed <strong>{html.escape(event_name)}</strong>.</p>
          <p>You can verify your certificate at:
            <a href="{link}">Verification Link</a>
          </p>
          <p>Best regards,<br/>The {settings.APP_NAME} Team</p>
        </div>
    """


def update_email_html(content: str, organizer_name: Optional[str], event_name: str) -> str:
    body = html.escape(content).replace("\n", "<br/>")
    return f"""
        <div style="font-family: sans-serif; padding: 20px;">
          <p>{body}</p>
          <hr/>
          <p>Best regards,<br/>{html.escape(organizer_name or "")}<br/><em>{html.escape(event_name)} Organizer</em></p>
        </div>
    """


class DispatchService:
    """Certificate delivery through an injected relay"""

    def __init__(self, relay: EmailRelay, store: ContentStore):
        self.relay = relay
        self.store = store

    def _ensure_relay(self) -> None:
        if not self.relay.is_configured():
            raise RelayNotConfigured()

    async def _attachments_for(self, certificate: dict, stack: AsyncExitStack) -> List[Attachment]:
        """
        Local path of the certificate PDF for attaching.

        Remote documents are downloaded into temporary files owned by stack.
        A document that cannot be fetched is sent without attachment.
        """
        content_ref = certificate.get("content_ref")
        if not content_ref:
            return []

        filename = f"certificate_{certificate['id']}.pdf"
        target = classify_ref(content_ref)
        if isinstance(target, LocalRef):
            if Path(target.path).is_file():
                return [Attachment(filename=filename, path=target.path)]
            logger.warning("Certificate file %s missing, sending without attachment", target.path)
            return []

        try:
            content = await self.store.get(content_ref)
        except Exception as e:
            logger.warning("Failed to download certificate %s for email: %s", certificate["id"], error_message(e))
            return []
        path = await stack.enter_async_context(temporary_file(suffix=".pdf", content=content))
        return [Attachment(filename=filename, path=path)]

    def _certificate_email(self, certificate: dict, attachments: List[Attachment]) -> OutgoingEmail:
        return OutgoingEmail(
            to=certificate["participant_email"],
            subject=f"Certificate for {certificate['event_name']}",
            html=certificate_email_html(
                certificate["participant_name"], certificate["event_name"], certificate["verification_id"]
            ),
            attachments=attachments
        )

    async def _submit_chunk(self, messages: List[OutgoingEmail]) -> BatchResult:
        try:
            return await self.relay.send_batch(messages)
        except Exception as e:
            logger.error("Relay rejected chunk of %d messages: %s", len(messages), e)
            return BatchResult(accepted=False, error=str(e))

    async def send_one(self, certificate_id: str, user_id: Optional[str] = None) -> None:
        """Email one certificate; raises RelayRejected when the relay refuses it"""
        certificate = await StatusTracker.get_with_details(certificate_id)
        if not certificate:
            raise CertificateNotFound()
        if certificate["generation_status"] != GenerationStatus.GENERATED.value:
            raise CertificateNotGenerated()
        self._ensure_relay()

        async with AsyncExitStack() as stack:
            attachments = await self._attachments_for(certificate, stack)
            result = await self.relay.send(self._certificate_email(certificate, attachments))

        if not result.success:
            await StatusTracker.mark_delivery_failed([certificate_id])
            raise RelayRejected(result.error or "Failed to send email")

        await StatusTracker.mark_sent([certificate_id])
        await ActivityLogService.log_activity(
            event_id=certificate["event_id"],
            user_id=user_id,
            action="SEND_EMAIL",
            details=f"Sent certificate email to {certificate['participant_name']}"
        )

    async def send_batch(self, event_id: str, user_id: Optional[str] = None) -> DispatchSummary:
        """Email every GENERATED certificate of an event in relay-sized chunks"""
        await EventService.get_event(event_id)
        certificates = await StatusTracker.list_generated(event_id)
        if not certificates:
            return DispatchSummary(total=0, sent=0, failed=0)
        self._ensure_relay()

        sent = failed = 0
        for chunk in _chunks(certificates, self.relay.max_batch_size):
            ids = [c["id"] for c in chunk]
            # Temporary attachments live until this chunk's outcome is known
            async with AsyncExitStack() as stack:
                messages = []
                for certificate in chunk:
                    attachments = await self._attachments_for(certificate, stack)
                    messages.append(self._certificate_email(certificate, attachments))
                result = await self._submit_chunk(messages)

            if result.accepted:
                await StatusTracker.mark_sent(ids, datetime.now(timezone.utc))
                sent += len(ids)
            else:
                await StatusTracker.mark_delivery_failed(ids)
                failed += len(ids)
                logger.warning("Chunk of %d certificates failed: %s", len(ids), result.error)

        if sent > 0:
            await ActivityLogService.log_activity(
                event_id=event_id,
                user_id=user_id,
                action="SEND_ALL_EMAILS",
                details=f"Sent {sent} certificate emails via batch"
            )

        return DispatchSummary(total=len(certificates), sent=sent, failed=failed)

    async def send_updates(
        self,
        event_id: str,
        subject: str,
        content: str,
        user_id: Optional[str] = None
    ) -> DispatchSummary:
        """Broadcast an organizer message to every participant of an event"""
        event = await EventService.get_event(event_id)
        participants = [p for p in await ParticipantService.list_participants(event_id) if p.get("email")]
        if not participants:
            return DispatchSummary(total=0, sent=0, failed=0)
        self._ensure_relay()

        body = update_email_html(content, event.get("organizer_name"), event["name"])
        sent = failed = 0
        for chunk in _chunks(participants, self.relay.max_batch_size):
            ids = [p["id"] for p in chunk]
            messages = [OutgoingEmail(to=p["email"], subject=subject, html=body) for p in chunk]
            result = await self._submit_chunk(messages)

            if result.accepted:
                await ParticipantService.set_update_status(ids, DeliveryStatus.SENT)
                sent += len(ids)
            else:
                await ParticipantService.set_update_status(ids, DeliveryStatus.FAILED)
                failed += len(ids)

        if sent > 0:
            await ActivityLogService.log_activity(
                event_id=event_id,
                user_id=user_id,
                action="SEND_UPDATES",
                details=f"Sent update '{subject}' to {sent} participants"
            )

        return DispatchSummary(total=len(participants), sent=sent, failed=failed)
