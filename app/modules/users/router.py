# app/modules/users/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import forbid_admin_role, require_operation
from app.core.auth.schemas import ChangePasswordRequest, UserResponse
from app.shared.schemas.common import MessageResponse
from .service import UserService
from .schemas import (
    ProfileUpdateRequest, UserCreateRequest, UserUpdateRequest,
    UserListResponse, RoleInfo
)

router = APIRouter()

# ==================== PERFIL PROPIO ====================

@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user = Depends(require_operation("user.profile"))
):
    """Perfil del usuario autenticado"""
    return current_user

@router.put("/profile", response_model=UserResponse, dependencies=[Depends(forbid_admin_role)])
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user = Depends(require_operation("user.profile")),
    db: Session = Depends(get_db)
):
    """
    Actualizar perfil propio

    `password`, `role` e `is_active` se descartan; `role: admin` se rechaza
    con 403 y queda auditado.
    """
    service = UserService(db)
    return await service.update_profile(current_user, payload)

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user = Depends(require_operation("user.profile")),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    await service.change_password(current_user, payload)
    return MessageResponse(message="Password changed successfully")

@router.get("/roles", response_model=List[RoleInfo])
async def get_roles(
    current_user = Depends(require_operation("user.profile"))
):
    """Catálogo de roles con su descripción"""
    return UserService.get_roles()

@router.get("/health")
async def users_health():
    """Health check del módulo de usuarios"""
    return {
        "service": "users",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Perfil y cambio de contraseña",
            "Administración de usuarios",
            "Verificación de invitados",
            "Bloqueo de creación de admins"
        ]
    }

# ==================== INVITADOS ====================

@router.get("/pending-guests", response_model=List[UserResponse])
async def get_pending_guests(
    current_user = Depends(require_operation("user.verify_guest")),
    db: Session = Depends(get_db)
):
    """Clientes invitados pendientes de verificación"""
    service = UserService(db)
    return await service.get_pending_guests()

@router.post("/{user_id}/verify", response_model=UserResponse)
async def verify_guest(
    background_tasks: BackgroundTasks,
    user_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("user.verify_guest")),
    db: Session = Depends(get_db)
):
    """Verificar invitado → cuenta activa y email de bienvenida"""
    service = UserService(db, background_tasks)
    return await service.verify_guest(user_id, current_user)

@router.get("/by-role/{role}", response_model=List[UserResponse])
async def get_users_by_role(
    role: str = Path(...),
    current_user = Depends(require_operation("user.list_by_role")),
    db: Session = Depends(get_db)
):
    """Usuarios activos de un rol (p. ej. para asignar cotizaciones)"""
    service = UserService(db)
    return await service.get_users_by_role(role)

# ==================== ADMINISTRACIÓN ====================

@router.get("/", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.list_users(page=page, size=limit, role=role, search=search)

@router.post("/", response_model=UserResponse, status_code=201, dependencies=[Depends(forbid_admin_role)])
async def create_user(
    payload: UserCreateRequest,
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    """
    Crear usuario (admin)

    **Nota:** las cuentas admin no se crean por la API.
    """
    service = UserService(db)
    return await service.create_user(payload, current_user)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    return await service.get_user(user_id)

@router.put("/{user_id}", response_model=UserResponse, dependencies=[Depends(forbid_admin_role)])
async def update_user(
    payload: UserUpdateRequest,
    user_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    """Modificar usuario; los usuarios admin no se modifican"""
    service = UserService(db)
    return await service.update_user(user_id, payload, current_user)

@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    service = UserService(db)
    await service.delete_user(user_id, current_user)
    return MessageResponse(message="User deleted successfully")

@router.post("/{user_id}/activate", response_model=UserResponse)
async def activate_user(
    background_tasks: BackgroundTasks,
    user_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    service = UserService(db, background_tasks)
    return await service.activate_user(user_id, current_user)

@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("user.manage")),
    db: Session = Depends(get_db)
):
    """Desactivar usuario; no aplica a uno mismo ni a admins"""
    service = UserService(db)
    return await service.deactivate_user(user_id, current_user)
