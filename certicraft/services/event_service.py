"""
Event and Participant Services
Minimal access to the events and participants the certificate pipeline reads
"""

import uuid
from typing import List, Optional

from certicraft.database import database
from certicraft.exceptions import EventNotFound, ParticipantNotFound
from certicraft.models.certificate import DeliveryStatus
from certicraft.services.status_tracker import StatusTracker


class EventService:
    """Service for event lookups"""

    @staticmethod
    async def create_event(name: str, organizer_name: Optional[str] = None, organizer_id: Optional[str] = None) -> dict:
        event_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO events (id, name, organizer_name, organizer_id)
            VALUES (:id, :name, :organizer_name, :organizer_id)
            """,
            {"id": event_id, "name": name, "organizer_name": organizer_name, "organizer_id": organizer_id}
        )
        return await EventService.get_event(event_id)

    @staticmethod
    async def get_event(event_id: str) -> dict:
        event = await database.fetch_one(
            "SELECT id, name, organizer_name, organizer_id FROM events WHERE id = :event_id",
            {"event_id": event_id}
        )
        if not event:
            raise EventNotFound()
        return dict(event)


class ParticipantService:
    """Service for participant lookups"""

    @staticmethod
    async def add_participant(event_id: str, name: str, email: Optional[str] = None) -> dict:
        await EventService.get_event(event_id)

        participant_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO participants (id, event_id, name, email, update_email_status)
            VALUES (:id, :event_id, :name, :email, :status)
            """,
            {
                "id": participant_id,
                "event_id": event_id,
                "name": name,
                "email": email,
                "status": DeliveryStatus.NOT_SENT.value
            }
        )
        return await ParticipantService.get_participant(participant_id)

    @staticmethod
    async def get_participant(participant_id: str) -> dict:
        participant = await database.fetch_one(
            "SELECT id, event_id, name, email, update_email_status FROM participants WHERE id = :id",
            {"id": participant_id}
        )
        if not participant:
            raise ParticipantNotFound()
        return dict(participant)

    @staticmethod
    async def list_participants(event_id: str) -> List[dict]:
        rows = await database.fetch_all(
            """
            SELECT id, event_id, name, email, update_email_status
            FROM participants
            WHERE event_id = :event_id
            ORDER BY created_at, id
            """,
            {"event_id": event_id}
        )
        return [dict(r) for r in rows]

    @staticmethod
    async def delete_participant(participant_id: str) -> int:
        """
        Delete a participant and its certificate record.

        Returns the number of certificate records removed (0 or 1).
        """
        await ParticipantService.get_participant(participant_id)

        async with database.transaction():
            removed = await StatusTracker.delete_for_participant(participant_id)
            await database.execute(
                "DELETE FROM participants WHERE id = :id",
                {"id": participant_id}
            )
        return removed

    @staticmethod
    async def set_update_status(participant_ids: List[str], status: DeliveryStatus) -> None:
        for participant_id in participant_ids:
            await database.execute(
                "UPDATE participants SET update_email_status = :status WHERE id = :id",
                {"status": status.value, "id": participant_id}
            )

    @staticmethod
    async def reset_update_status(participant_id: str) -> None:
        """Show the participant as NOT_SENT again; broadcasts go to every participant regardless"""
        await ParticipantService.get_participant(participant_id)
        await ParticipantService.set_update_status([participant_id], DeliveryStatus.NOT_SENT)
