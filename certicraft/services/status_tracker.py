"""
Status Tracker
Persisted generation and delivery state of each certificate.

Generation:  PENDING -> GENERATED | FAILED, FAILED -> PENDING on retry.
Delivery:    NOT_SENT -> SENT | FAILED, only once generation is GENERATED.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import and_, delete, select, update

from certicraft.database import database
from certicraft.models import Certificate, Event, Participant
from certicraft.models.certificate import DeliveryStatus, GenerationStatus

certificates = Certificate.__table__
participants = Participant.__table__
events = Event.__table__


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StatusTracker:
    """Reads and transitions for the certificates table"""

    @staticmethod
    async def get_or_create(event_id: str, participant_id: str) -> dict:
        """
        Return the participant's certificate record, creating it as PENDING.

        The insert relies on the (participant_id, event_id) unique constraint,
        so concurrent callers converge on a single row.
        """
        await database.execute(
            """
            INSERT INTO certificates
            (id, verification_id, participant_id, event_id, generation_status, email_status)
            VALUES (:id, :verification_id, :participant_id, :event_id, :generation_status, :email_status)
            ON CONFLICT (participant_id, event_id) DO NOTHING
            """,
            {
                "id": str(uuid.uuid4()),
                "verification_id": str(uuid.uuid4()),
                "participant_id": participant_id,
                "event_id": event_id,
                "generation_status": GenerationStatus.PENDING.value,
                "email_status": DeliveryStatus.NOT_SENT.value
            }
        )
        row = await database.fetch_one(
            select(certificates).where(
                and_(
                    certificates.c.participant_id == participant_id,
                    certificates.c.event_id == event_id
                )
            )
        )
        return dict(row)

    @staticmethod
    async def get(certificate_id: str) -> Optional[dict]:
        row = await database.fetch_one(
            select(certificates).where(certificates.c.id == certificate_id)
        )
        return dict(row) if row else None

    @staticmethod
    async def get_with_details(certificate_id: str) -> Optional[dict]:
        """Certificate joined with its participant and event"""
        query = (
            select(
                certificates,
                participants.c.name.label("participant_name"),
                participants.c.email.label("participant_email"),
                events.c.name.label("event_name"),
                events.c.organizer_name.label("organizer_name")
            )
            .select_from(
                certificates
                .join(participants, participants.c.id == certificates.c.participant_id)
                .join(events, events.c.id == certificates.c.event_id)
            )
            .where(certificates.c.id == certificate_id)
        )
        row = await database.fetch_one(query)
        return dict(row) if row else None

    @staticmethod
    async def get_by_verification_id(verification_id: str) -> Optional[dict]:
        query = (
            select(
                certificates.c.generation_status,
                certificates.c.generated_at,
                participants.c.name.label("participant_name"),
                events.c.name.label("event_name"),
                events.c.organizer_name.label("organizer_name")
            )
            .select_from(
                certificates
                .join(participants, participants.c.id == certificates.c.participant_id)
                .join(events, events.c.id == certificates.c.event_id)
            )
            .where(certificates.c.verification_id == verification_id)
        )
        row = await database.fetch_one(query)
        return dict(row) if row else None

    @staticmethod
    async def list_generated(event_id: str) -> List[dict]:
        """GENERATED certificates of an event with participant and event names"""
        query = (
            select(
                certificates,
                participants.c.name.label("participant_name"),
                participants.c.email.label("participant_email"),
                events.c.name.label("event_name"),
                events.c.organizer_name.label("organizer_name")
            )
            .select_from(
                certificates
                .join(participants, participants.c.id == certificates.c.participant_id)
                .join(events, events.c.id == certificates.c.event_id)
            )
            .where(
                and_(
                    certificates.c.event_id == event_id,
                    certificates.c.generation_status == GenerationStatus.GENERATED.value
                )
            )
            .order_by(participants.c.created_at, participants.c.id)
        )
        rows = await database.fetch_all(query)
        return [dict(r) for r in rows]

    @staticmethod
    async def status_view(event_id: str) -> List[dict]:
        """One row per participant, with NOT_GENERATED when no record exists"""
        query = (
            select(
                participants.c.id.label("participant_id"),
                participants.c.name.label("participant_name"),
                participants.c.email,
                participants.c.update_email_status,
                certificates.c.id.label("certificate_id"),
                certificates.c.generation_status,
                certificates.c.email_status,
                certificates.c.verification_id,
                certificates.c.generated_at,
                certificates.c.error_message
            )
            .select_from(
                participants.outerjoin(
                    certificates,
                    and_(
                        certificates.c.participant_id == participants.c.id,
                        certificates.c.event_id == participants.c.event_id
                    )
                )
            )
            .where(participants.c.event_id == event_id)
            .order_by(participants.c.created_at, participants.c.id)
        )
        rows = await database.fetch_all(query)

        view = []
        for row in rows:
            item = dict(row)
            if item["certificate_id"] is None:
                item["generation_status"] = "NOT_GENERATED"
                item["email_status"] = DeliveryStatus.NOT_SENT.value
            view.append(item)
        return view

    # ── Generation transitions ───────────────────────────────────────────────

    @staticmethod
    async def mark_pending(certificate_id: str) -> None:
        """Reopen a FAILED record for a new attempt"""
        await database.execute(
            update(certificates)
            .where(
                and_(
                    certificates.c.id == certificate_id,
                    certificates.c.generation_status == GenerationStatus.FAILED.value
                )
            )
            .values(generation_status=GenerationStatus.PENDING.value, error_message=None)
        )

    @staticmethod
    async def mark_generated(certificate_id: str, content_ref: str) -> None:
        if not content_ref:
            raise ValueError("A generated certificate requires a content reference")
        await database.execute(
            update(certificates)
            .where(certificates.c.id == certificate_id)
            .values(
                generation_status=GenerationStatus.GENERATED.value,
                content_ref=content_ref,
                error_message=None,
                generated_at=_now()
            )
        )

    @staticmethod
    async def mark_failed(certificate_id: str, message: str) -> None:
        await database.execute(
            update(certificates)
            .where(certificates.c.id == certificate_id)
            .values(
                generation_status=GenerationStatus.FAILED.value,
                error_message=message,
                content_ref=None
            )
        )

    # ── Delivery transitions ─────────────────────────────────────────────────

    @staticmethod
    async def mark_sent(certificate_ids: Sequence[str], sent_at: Optional[datetime] = None) -> None:
        if not certificate_ids:
            return
        await database.execute(
            update(certificates)
            .where(
                and_(
                    certificates.c.id.in_(list(certificate_ids)),
                    certificates.c.generation_status == GenerationStatus.GENERATED.value
                )
            )
            .values(email_status=DeliveryStatus.SENT.value, email_sent_at=sent_at or _now())
        )

    @staticmethod
    async def mark_delivery_failed(certificate_ids: Sequence[str]) -> None:
        if not certificate_ids:
            return
        await database.execute(
            update(certificates)
            .where(
                and_(
                    certificates.c.id.in_(list(certificate_ids)),
                    certificates.c.generation_status == GenerationStatus.GENERATED.value
                )
            )
            .values(email_status=DeliveryStatus.FAILED.value)
        )

    @staticmethod
    async def delete_for_participant(participant_id: str) -> int:
        """Remove the participant's certificate record, if any"""
        count = await database.fetch_val(
            "SELECT COUNT(*) FROM certificates WHERE participant_id = :participant_id",
            {"participant_id": participant_id}
        )
        await database.execute(
            delete(certificates).where(certificates.c.participant_id == participant_id)
        )
        return int(count or 0)
