"""
Seed a demo event with a few participants for testing
"""

import sys
import asyncio
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from certicraft.database import connect_db, disconnect_db
from certicraft.services.event_service import EventService, ParticipantService

DEFAULTS = {
    "event_name": "Demo Workshop",
    "organizer_name": "Demo Organizer",
    "participants": [
        ("Ada Lovelace", "ada@example.com"),
        ("Alan Turing", "alan@example.com"),
        ("Grace Hopper", "grace@example.com"),
    ]
}


async def seed_event():
    await connect_db()

    try:
        event = await EventService.create_event(DEFAULTS["event_name"], DEFAULTS["organizer_name"])
        for name, email in DEFAULTS["participants"]:
            await ParticipantService.add_participant(event["id"], name, email)

        print("✅ Demo event created:")
        print(f"   Event ID: {event['id']}")
        print(f"   Participants: {len(DEFAULTS['participants'])}")
    finally:
        await disconnect_db()


if __name__ == "__main__":
    asyncio.run(seed_event())
