# app/modules/notifications/schemas.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from app.shared.schemas.common import PaginatedResponse

class NotificationResponse(BaseModel):
    id: int
    channel: str
    recipient: str
    subject: Optional[str] = None
    status: str
    attempts: int
    last_error: Optional[str] = None
    sent_at: Optional[datetime] = None
    entity_kind: Optional[str] = None
    entity_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class NotificationListResponse(PaginatedResponse):
    items: List[NotificationResponse]

class NotificationRetryResponse(BaseModel):
    success: bool = True
    message: str
    scheduled: List[int]
