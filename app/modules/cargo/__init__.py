# app/modules/cargo/__init__.py
"""
Módulo de Despacho de Carga - Movimiento físico de mercancía

Flujo: submitted → approved → processing → completed (rechazo vuelve a submitted)
- Registro sobre una reserva
- Aprobación por supervisor con aviso a operaciones y cliente
- Procesamiento y cierre en almacén

Arquitectura:
- router.py: Endpoints de despacho
- service.py: Transiciones y notificaciones
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import CargoService
from .repository import CargoRepository

__all__ = [
    "router",
    "CargoService",
    "CargoRepository"
]
