# app/modules/dashboard/__init__.py
"""
Módulo de Dashboard - Estadísticas por rol

Arquitectura:
- router.py: Endpoint de estadísticas
- service.py: Armado de estadísticas por rol
- repository.py: Conteos y sumas agregadas
"""

from .router import router
from .service import DashboardService

__all__ = [
    "router",
    "DashboardService"
]
