# app/modules/deliveries/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from .service import DeliveryService
from .schemas import (
    DeliveryCreateRequest, DeliveryScheduleRequest, DeliveryAssignDriverRequest,
    DeliveryCompleteRequest, DeliveryUpdateRequest, DeliveryResponse,
    DeliveryListResponse, DeliveryTrackingResponse
)

router = APIRouter()

@router.post("/", response_model=DeliveryResponse, status_code=201)
async def create_delivery(
    payload: DeliveryCreateRequest,
    background_tasks: BackgroundTasks,
    current_user = Depends(require_operation("delivery.create")),
    db: Session = Depends(get_db)
):
    """
    Solicitar entrega

    **Reglas:**
    - Sólo clientes, sobre reservas propias
    - Número de seguimiento `WW...` generado por el servidor e inmutable
    - Urgencia por defecto `standard`
    """
    service = DeliveryService(db, background_tasks)
    return await service.create_delivery(payload, current_user)

@router.get("/", response_model=DeliveryListResponse)
async def list_deliveries(
    status: Optional[str] = Query(None, description="Estado o 'all'"),
    urgency: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("delivery.list")),
    db: Session = Depends(get_db)
):
    """
    Listar entregas según el rol

    **Alcance:**
    - customer: sólo las propias
    - purchase_support: `requested` por defecto
    - warehouse: `scheduled` e `in_transit` por defecto
    - supervisor/admin: todas
    """
    service = DeliveryService(db)
    return await service.list_deliveries(current_user, status=status, urgency=urgency, page=page, size=limit)

@router.get("/status/{status}", response_model=DeliveryListResponse)
async def list_deliveries_by_status(
    status: str = Path(..., description="Estado de la entrega"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("delivery.list")),
    db: Session = Depends(get_db)
):
    """Vista por estado (respeta el alcance del rol)"""
    service = DeliveryService(db)
    return await service.list_deliveries(current_user, status=status, page=page, size=limit)

@router.get("/health")
async def deliveries_health():
    """Health check del módulo de entregas"""
    return {
        "service": "deliveries",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Solicitud con número de seguimiento",
            "Programación y asignación de chofer",
            "Despacho con aviso por email y SMS",
            "Seguimiento"
        ]
    }

@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.read")),
    db: Session = Depends(get_db)
):
    service = DeliveryService(db)
    return await service.get_delivery(delivery_id, current_user)

@router.get("/{delivery_id}/track", response_model=DeliveryTrackingResponse)
async def track_delivery(
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.track")),
    db: Session = Depends(get_db)
):
    """Información de seguimiento (cualquier usuario autenticado)"""
    service = DeliveryService(db)
    return await service.track_delivery(delivery_id)

@router.post("/{delivery_id}/schedule", response_model=DeliveryResponse)
async def schedule_delivery(
    payload: DeliveryScheduleRequest,
    background_tasks: BackgroundTasks,
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.schedule")),
    db: Session = Depends(get_db)
):
    """`requested` → `scheduled` (también reprograma una entrega `scheduled`)"""
    service = DeliveryService(db, background_tasks)
    return await service.schedule_delivery(delivery_id, payload, current_user)

@router.post("/{delivery_id}/assign-driver", response_model=DeliveryResponse)
async def assign_driver(
    payload: DeliveryAssignDriverRequest,
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.assign_driver")),
    db: Session = Depends(get_db)
):
    """Asignar chofer; el estado no cambia"""
    service = DeliveryService(db)
    return await service.assign_driver(delivery_id, payload, current_user)

@router.post("/{delivery_id}/dispatch", response_model=DeliveryResponse)
async def dispatch_delivery(
    background_tasks: BackgroundTasks,
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.dispatch")),
    db: Session = Depends(get_db)
):
    """`scheduled` → `in_transit`"""
    service = DeliveryService(db, background_tasks)
    return await service.dispatch_delivery(delivery_id, current_user)

@router.post("/{delivery_id}/complete", response_model=DeliveryResponse)
async def complete_delivery(
    background_tasks: BackgroundTasks,
    payload: Optional[DeliveryCompleteRequest] = None,
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.complete")),
    db: Session = Depends(get_db)
):
    """`in_transit` → `delivered`, con notas opcionales"""
    service = DeliveryService(db, background_tasks)
    return await service.complete_delivery(delivery_id, payload or DeliveryCompleteRequest(), current_user)

@router.put("/{delivery_id}", response_model=DeliveryResponse)
async def override_delivery(
    payload: DeliveryUpdateRequest,
    request: Request,
    delivery_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("delivery.override")),
    db: Session = Depends(get_db)
):
    """Override administrativo auditado (supervisor, admin)"""
    service = DeliveryService(db)
    return await service.override_delivery(delivery_id, payload, current_user, request)
