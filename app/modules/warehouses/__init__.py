# app/modules/warehouses/__init__.py
"""
Módulo de Almacenes - Catálogo y capacidad

- Catálogo de almacenes activos con filtros y cache read-through
- Alta y modificación por dueños (rol warehouse) y admin
- Baja lógica
- Disponibilidad y ajuste manual del ledger de capacidad

Arquitectura:
- router.py: Endpoints de almacenes
- service.py: Reglas de propiedad, cache y capacidad
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import WarehouseService
from .repository import WarehouseRepository

__all__ = [
    "router",
    "WarehouseService",
    "WarehouseRepository"
]
