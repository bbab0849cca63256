# app/modules/quotes/__init__.py
"""
Módulo de Cotizaciones - Solicitudes de almacenamiento

Flujo: pending → processing → quoted → {approved, rejected}
- Solicitud por el cliente
- Asignación por purchase_support
- Cotización o rechazo por sales_support / supervisor
- Aceptación por el cliente
- Precio estimado y override administrativo

Arquitectura:
- router.py: Endpoints de cotizaciones
- service.py: Transiciones y reglas de negocio
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import QuoteService
from .repository import QuoteRepository

__all__ = [
    "router",
    "QuoteService",
    "QuoteRepository"
]
