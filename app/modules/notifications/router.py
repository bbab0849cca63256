# app/modules/notifications/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from .service import NotificationAdminService
from .schemas import NotificationListResponse, NotificationRetryResponse

router = APIRouter()

@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    status: Optional[str] = Query(None, description="pending, sent o failed"),
    channel: Optional[str] = Query(None, description="email o sms"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("notification.manage")),
    db: Session = Depends(get_db)
):
    """
    Listar el outbox de notificaciones

    **Permisos:** sólo admin
    """
    service = NotificationAdminService(db)
    return await service.list_notifications(status=status, channel=channel, page=page, size=limit)

@router.post("/retry", response_model=NotificationRetryResponse)
async def retry_failed_notifications(
    background_tasks: BackgroundTasks,
    limit: int = Query(100, ge=1, le=500),
    current_user = Depends(require_operation("notification.manage")),
    db: Session = Depends(get_db)
):
    """
    Reintentar notificaciones fallidas

    **Proceso:**
    - Toma las filas `failed` con intentos restantes
    - Las despacha en segundo plano
    """
    service = NotificationAdminService(db, background_tasks)
    return await service.retry_failed(current_user, limit=limit)

@router.get("/health")
async def notifications_health():
    """Health check del módulo de notificaciones"""
    return {
        "service": "notifications",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Outbox de email y SMS",
            "Reintento de fallidas"
        ]
    }
