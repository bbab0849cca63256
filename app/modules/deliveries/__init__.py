# app/modules/deliveries/__init__.py
"""
Módulo de Entregas - Transporte de mercancía al cliente

Flujo: requested → scheduled → in_transit → delivered
- Solicitud con número de seguimiento
- Programación y asignación de chofer
- Despacho y cierre con notificaciones

Arquitectura:
- router.py: Endpoints de entregas
- service.py: Transiciones, seguimiento y notificaciones
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import DeliveryService
from .repository import DeliveryRepository

__all__ = [
    "router",
    "DeliveryService",
    "DeliveryRepository"
]
