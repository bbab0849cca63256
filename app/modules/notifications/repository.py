# app/modules/notifications/repository.py
from sqlalchemy.orm import Session
from typing import Optional

from app.shared.database.models import Notification
from app.shared.database.pagination import paginate

class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def list(self, page: int, size: int, status: Optional[str] = None, channel: Optional[str] = None):
        query = self.db.query(Notification)
        if status:
            query = query.filter(Notification.status == status)
        if channel:
            query = query.filter(Notification.channel == channel)
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        return paginate(query, page, size)
