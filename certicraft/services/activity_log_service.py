"""
Activity Logging Service
Audit entries for batch generation and delivery
"""

import logging
import uuid
from typing import List, Optional, Tuple

from certicraft.database import database

logger = logging.getLogger(__name__)


class ActivityLogService:
    """Service for activity logging operations"""

    @staticmethod
    async def log_activity(
        event_id: str,
        user_id: Optional[str],
        action: str,
        details: Optional[str] = None
    ) -> Optional[dict]:
        """
        Log an activity

        Args:
            event_id: Event the action applies to
            user_id: Organizer who triggered the action, if known
            action: Action type (e.g., 'GENERATE_CERTIFICATES', 'SEND_EMAIL')
            details: Human-readable summary

        Returns:
            Created activity log entry, or None when the write failed.
            Audit failures never fail the operation being audited.
        """
        log_id = str(uuid.uuid4())

        try:
            await database.execute(
                """
                INSERT INTO activity_logs (id, event_id, user_id, action, details)
                VALUES (:id, :event_id, :user_id, :action, :details)
                """,
                {
                    "id": log_id,
                    "event_id": event_id,
                    "user_id": user_id,
                    "action": action,
                    "details": details
                }
            )
        except Exception as e:
            logger.warning("Failed to write activity log %s for event %s: %s", action, event_id, e)
            return None

        return {
            "id": log_id,
            "event_id": event_id,
            "user_id": user_id,
            "action": action,
            "details": details
        }

    @staticmethod
    async def get_event_activity_logs(
        event_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[dict], int]:
        """
        Get activity logs for an event, newest first

        Returns:
            Tuple of (activity logs list, total count)
        """
        total = await database.fetch_val(
            "SELECT COUNT(*) FROM activity_logs WHERE event_id = :event_id",
            {"event_id": event_id}
        )

        logs = await database.fetch_all(
            """
            SELECT id, event_id, user_id, action, details, created_at
            FROM activity_logs
            WHERE event_id = :event_id
            ORDER BY created_at DESC
            LIMIT :limit OFFSET :offset
            """,
            {"event_id": event_id, "limit": limit, "offset": offset}
        )

        return [dict(log) for log in logs], int(total or 0)
