# app/modules/users/__init__.py
"""
Módulo de Usuarios - Cuentas, roles y verificación de invitados

- Perfil propio y cambio de contraseña
- Administración de usuarios (admin)
- Verificación de clientes invitados (purchase_support, admin)
- Rechazo auditado de cualquier intento de asignar el rol admin

Arquitectura:
- router.py: Endpoints de usuarios
- service.py: Reglas de cuentas, registro y autenticación
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import UserService
from .repository import UserRepository

__all__ = [
    "router",
    "UserService",
    "UserRepository"
]
