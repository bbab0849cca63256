# app/modules/bookings/__init__.py
"""
Módulo de Reservas - Espacio contratado en almacén

Flujo: pending → confirmed → active → completed (cancelled desde pending/confirmed)
- Creación desde cotización con reserva atómica de capacidad
- Confirmación por supervisor
- Aprobación / rechazo por el cliente
- Liberación de espacio al cancelar o completar
- Solicitudes de reserva (cotizaciones pendientes)

Arquitectura:
- router.py: Endpoints de reservas
- service.py: Transiciones, ledger y notificaciones
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import BookingService
from .repository import BookingRepository

__all__ = [
    "router",
    "BookingService",
    "BookingRepository"
]
