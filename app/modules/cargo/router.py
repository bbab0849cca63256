# app/modules/cargo/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from app.shared.schemas.common import ReasonRequest
from .service import CargoService
from .schemas import CargoCreateRequest, CargoUpdateRequest, CargoResponse, CargoListResponse

router = APIRouter()

@router.post("/", response_model=CargoResponse, status_code=201)
async def create_cargo_dispatch(
    payload: CargoCreateRequest,
    current_user = Depends(require_operation("cargo.create")),
    db: Session = Depends(get_db)
):
    """
    Registrar detalle de despacho de carga

    **Reglas:**
    - Cualquier usuario autenticado; el cliente sólo sobre sus reservas
    - Estado inicial `submitted`
    """
    service = CargoService(db)
    return await service.create_cargo(payload, current_user)

@router.get("/", response_model=CargoListResponse)
async def list_cargo_dispatches(
    status: Optional[str] = Query(None, description="Estado o 'all'"),
    booking_id: Optional[int] = Query(None, gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("cargo.list")),
    db: Session = Depends(get_db)
):
    """
    Listar despachos según el rol

    **Alcance:**
    - customer: sólo los de sus reservas
    - purchase_support: `submitted` por defecto
    - warehouse: `approved` y `processing` por defecto
    - supervisor/admin: todos
    """
    service = CargoService(db)
    return await service.list_cargo(current_user, status=status, booking_id=booking_id, page=page, size=limit)

@router.get("/health")
async def cargo_health():
    """Health check del módulo de despacho de carga"""
    return {
        "service": "cargo",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Registro de despachos",
            "Aprobación y rechazo",
            "Procesamiento en almacén",
            "Notificación a operaciones y cliente"
        ]
    }

@router.get("/booking/{booking_id}", response_model=List[CargoResponse])
async def get_cargo_by_booking(
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.list")),
    db: Session = Depends(get_db)
):
    """Despachos de una reserva"""
    service = CargoService(db)
    return await service.get_cargo_by_booking(booking_id, current_user)

@router.get("/{cargo_id}", response_model=CargoResponse)
async def get_cargo_dispatch(
    cargo_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.read")),
    db: Session = Depends(get_db)
):
    service = CargoService(db)
    return await service.get_cargo(cargo_id, current_user)

@router.post("/{cargo_id}/approve", response_model=CargoResponse)
async def approve_cargo(
    background_tasks: BackgroundTasks,
    cargo_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.approve")),
    db: Session = Depends(get_db)
):
    """`submitted` → `approved` (supervisor, admin)"""
    service = CargoService(db, background_tasks)
    return await service.approve_cargo(cargo_id, current_user)

@router.post("/{cargo_id}/reject", response_model=CargoResponse)
async def reject_cargo(
    payload: Optional[ReasonRequest] = None,
    cargo_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.reject")),
    db: Session = Depends(get_db)
):
    """
    Rechazar despacho → vuelve a `submitted`

    **Nota:** `special_handling` se reemplaza por `Rejected: <motivo>`.
    """
    service = CargoService(db)
    return await service.reject_cargo(cargo_id, payload.reason if payload else None, current_user)

@router.post("/{cargo_id}/process", response_model=CargoResponse)
async def process_cargo(
    cargo_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.process")),
    db: Session = Depends(get_db)
):
    """`approved` → `processing`"""
    service = CargoService(db)
    return await service.process_cargo(cargo_id, current_user)

@router.post("/{cargo_id}/complete", response_model=CargoResponse)
async def complete_cargo(
    cargo_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.complete")),
    db: Session = Depends(get_db)
):
    """`processing` → `completed`"""
    service = CargoService(db)
    return await service.complete_cargo(cargo_id, current_user)

@router.put("/{cargo_id}", response_model=CargoResponse)
async def override_cargo(
    payload: CargoUpdateRequest,
    request: Request,
    cargo_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("cargo.override")),
    db: Session = Depends(get_db)
):
    """Override administrativo auditado (supervisor, admin)"""
    service = CargoService(db)
    return await service.override_cargo(cargo_id, payload, current_user, request)
