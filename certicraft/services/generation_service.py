"""
Generation Service
Generate certificates for every participant of an event
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from certicraft.config import settings
from certicraft.exceptions import error_message
from certicraft.models.certificate import GenerationStatus
from certicraft.services.activity_log_service import ActivityLogService
from certicraft.services.certificate_renderer import CertificateRenderer
from certicraft.services.event_service import EventService, ParticipantService
from certicraft.services.status_tracker import StatusTracker
from certicraft.services.storage_service import ContentStore
from certicraft.services.template_service import TemplateService

logger = logging.getLogger(__name__)


class ItemOutcome(str, Enum):
    SKIPPED = "skipped"
    GENERATED = "generated"
    FAILED = "failed"


@dataclass
class GenerationSummary:
    attempted: int
    created: int


class RecordLocks:
    """One lock per (event, participant), dropped once nobody holds it"""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def get(self, event_id: str, participant_id: str) -> asyncio.Lock:
        key = f"{event_id}:{participant_id}"
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


# Shared across service instances so concurrent triggers serialize per record
_record_locks = RecordLocks()


class GenerationService:
    """Runs the renderer over an event's participants"""

    def __init__(
        self,
        store: ContentStore,
        renderer: Optional[CertificateRenderer] = None,
        concurrency: Optional[int] = None
    ):
        self.store = store
        self.renderer = renderer or CertificateRenderer(store)
        self.concurrency = max(1, concurrency or settings.GENERATION_CONCURRENCY)

    async def _generate_one(self, event_id: str, participant: dict, template: Optional[dict]) -> ItemOutcome:
        async with _record_locks.get(event_id, participant["id"]):
            certificate = await StatusTracker.get_or_create(event_id, participant["id"])

            if certificate["generation_status"] == GenerationStatus.GENERATED.value:
                return ItemOutcome.SKIPPED

            if certificate["generation_status"] == GenerationStatus.FAILED.value:
                await StatusTracker.mark_pending(certificate["id"])

            generated = await self.renderer.render(participant, template, certificate)
            return ItemOutcome.GENERATED if generated else ItemOutcome.FAILED

    async def _worker(
        self,
        semaphore: asyncio.Semaphore,
        event_id: str,
        participant: dict,
        template: Optional[dict]
    ) -> ItemOutcome:
        async with semaphore:
            try:
                # Shielded so cancellation lands between items, not mid-render
                return await asyncio.shield(self._generate_one(event_id, participant, template))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Generation for participant %s of event %s aborted: %s",
                    participant["id"], event_id, error_message(e)
                )
                return ItemOutcome.FAILED

    async def generate_all(self, event_id: str, user_id: Optional[str] = None) -> GenerationSummary:
        """
        Generate certificates for every participant not yet GENERATED.

        Safe to call repeatedly: GENERATED certificates are skipped, FAILED
        and PENDING ones are attempted again.
        """
        await EventService.get_event(event_id)
        participants = await ParticipantService.list_participants(event_id)
        template = await TemplateService.get_template(event_id)

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes: List[ItemOutcome] = await asyncio.gather(*[
            self._worker(semaphore, event_id, participant, template)
            for participant in participants
        ])

        attempted = sum(1 for o in outcomes if o is not ItemOutcome.SKIPPED)
        created = sum(1 for o in outcomes if o is ItemOutcome.GENERATED)
        logger.info(
            "Event %s: %d participants, %d attempted, %d generated",
            event_id, len(participants), attempted, created
        )

        if created > 0:
            await ActivityLogService.log_activity(
                event_id=event_id,
                user_id=user_id,
                action="GENERATE_CERTIFICATES",
                details=f"Generated {created} certificates"
            )

        return GenerationSummary(attempted=attempted, created=created)
