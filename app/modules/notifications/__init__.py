# app/modules/notifications/__init__.py
"""
Módulo de Notificaciones - Administración del outbox

Flujo:
1. Las transiciones encolan notificaciones en la misma transacción
2. Se despachan en segundo plano tras el commit
3. Las fallidas quedan en `failed` y el admin puede reintentarlas

Arquitectura:
- router.py: Endpoints de consulta y reintento
- service.py: Validación de filtros y reagendado
- repository.py: Acceso a datos
- schemas.py: Modelos de response
"""

from .router import router
from .service import NotificationAdminService
from .repository import NotificationRepository

__all__ = [
    "router",
    "NotificationAdminService",
    "NotificationRepository"
]
