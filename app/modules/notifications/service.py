# app/modules/notifications/service.py
import logging
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.shared.database.models import User
from app.shared.services.notification_service import dispatch_notifications, retry_failed_notifications
from .repository import NotificationRepository
from .schemas import NotificationListResponse, NotificationResponse

logger = logging.getLogger(__name__)

NOTIFICATION_STATUSES = {"pending", "sent", "failed"}
NOTIFICATION_CHANNELS = {"email", "sms"}


class NotificationAdminService:
    """Consulta y reintento del outbox de notificaciones"""

    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.background_tasks = background_tasks
        self.repository = NotificationRepository(db)

    async def list_notifications(
        self,
        status: Optional[str] = None,
        channel: Optional[str] = None,
        page: int = 1,
        size: int = 20
    ) -> Dict[str, Any]:
        if status and status not in NOTIFICATION_STATUSES:
            raise ValidationError(f"Invalid status filter: {status}", error="INVALID_STATUS")
        if channel and channel not in NOTIFICATION_CHANNELS:
            raise ValidationError(f"Invalid channel filter: {channel}", error="INVALID_CHANNEL")

        items, total, page, size, pages = self.repository.list(page, size, status=status, channel=channel)
        return NotificationListResponse(
            items=[NotificationResponse.model_validate(n) for n in items],
            total=total, page=page, size=size, pages=pages
        ).dict()

    async def retry_failed(self, actor: User, limit: int = 100) -> Dict[str, Any]:
        ids = retry_failed_notifications(self.db, limit=limit)
        if ids:
            if self.background_tasks is not None:
                self.background_tasks.add_task(dispatch_notifications, ids)
            else:
                dispatch_notifications(ids)

        logger.info(f"🔁 {len(ids)} notificaciones reagendadas por {actor.id}")
        return {
            "success": True,
            "message": f"{len(ids)} notifications scheduled for retry",
            "scheduled": ids,
        }
