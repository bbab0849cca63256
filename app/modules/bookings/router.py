# app/modules/bookings/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from app.shared.schemas.common import ReasonRequest
from .service import BookingService
from .schemas import (
    BookingCreateRequest, BookingUpdateRequest, BookingResponse,
    BookingListResponse, BookingRequestItem
)

router = APIRouter()

@router.post("/", response_model=BookingResponse, status_code=201)
async def create_booking(
    payload: BookingCreateRequest,
    background_tasks: BackgroundTasks,
    current_user = Depends(require_operation("booking.create")),
    db: Session = Depends(get_db)
):
    """
    Crear reserva desde una cotización `quoted` o `approved`

    **Reglas:**
    - Sólo el cliente dueño de la cotización
    - Una cotización `quoted` pasa a `approved` al reservar
    - El espacio se descuenta del almacén en la misma transacción
    - Sin espacio suficiente: 400 `INSUFFICIENT_CAPACITY`
    - Estado inicial siempre `pending`
    """
    service = BookingService(db, background_tasks)
    return await service.create_booking(payload, current_user)

@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    status: Optional[str] = Query(None, description="Estado o 'all'"),
    warehouse_id: Optional[int] = Query(None, gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("booking.list")),
    db: Session = Depends(get_db)
):
    """
    Listar reservas según el rol

    **Alcance:**
    - customer: sólo las propias, sin `total_amount`
    - purchase_support: `pending` por defecto
    - sales_support: `pending` y `confirmed`
    - warehouse: `confirmed` y `active`
    - accounts: `confirmed`, `active` y `completed`
    - supervisor/admin: todas
    """
    service = BookingService(db)
    return await service.list_bookings(
        current_user, status=status, warehouse_id=warehouse_id, page=page, size=limit
    )

@router.get("/requests", response_model=List[BookingRequestItem])
async def list_booking_requests(
    current_user = Depends(require_operation("booking.requests")),
    db: Session = Depends(get_db)
):
    """Cotizaciones pendientes presentadas como solicitudes de reserva"""
    service = BookingService(db)
    return await service.get_booking_requests()

@router.get("/status/{status}", response_model=BookingListResponse)
async def list_bookings_by_status(
    status: str = Path(..., description="Estado de la reserva"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("booking.list")),
    db: Session = Depends(get_db)
):
    """Vista por estado (respeta el alcance del rol)"""
    service = BookingService(db)
    return await service.list_bookings(current_user, status=status, page=page, size=limit)

@router.get("/health")
async def bookings_health():
    """Health check del módulo de reservas"""
    return {
        "service": "bookings",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Reserva desde cotización",
            "Ledger de capacidad atómico",
            "Confirmación y cancelación",
            "Aprobación del cliente",
            "Solicitudes de reserva"
        ]
    }

@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.read")),
    db: Session = Depends(get_db)
):
    """Obtener reserva por ID (403 si pertenece a otro cliente)"""
    service = BookingService(db)
    return await service.get_booking(booking_id, current_user)

@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    background_tasks: BackgroundTasks,
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.confirm")),
    db: Session = Depends(get_db)
):
    """`pending` → `confirmed` (supervisor, admin)"""
    service = BookingService(db, background_tasks)
    return await service.confirm_booking(booking_id, current_user)

@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    background_tasks: BackgroundTasks,
    payload: Optional[ReasonRequest] = None,
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.cancel")),
    db: Session = Depends(get_db)
):
    """`pending`/`confirmed` → `cancelled`; libera el espacio reservado"""
    service = BookingService(db, background_tasks)
    return await service.cancel_booking(booking_id, payload.reason if payload else None, current_user)

@router.post("/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking(
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.approve")),
    db: Session = Depends(get_db)
):
    """Visto bueno del cliente; la reserva sigue en `pending`"""
    service = BookingService(db)
    return await service.approve_booking(booking_id, current_user)

@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    background_tasks: BackgroundTasks,
    payload: Optional[ReasonRequest] = None,
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.reject")),
    db: Session = Depends(get_db)
):
    """Rechazo del cliente → `cancelled`"""
    service = BookingService(db, background_tasks)
    return await service.reject_booking(booking_id, payload.reason if payload else None, current_user)

@router.post("/{booking_id}/activate", response_model=BookingResponse)
async def activate_booking(
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.activate")),
    db: Session = Depends(get_db)
):
    """`confirmed` → `active` al ingresar la mercancía"""
    service = BookingService(db)
    return await service.activate_booking(booking_id, current_user)

@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.complete")),
    db: Session = Depends(get_db)
):
    """`active` → `completed`; libera el espacio reservado"""
    service = BookingService(db)
    return await service.complete_booking(booking_id, current_user)

@router.put("/{booking_id}", response_model=BookingResponse)
async def override_booking(
    payload: BookingUpdateRequest,
    request: Request,
    booking_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("booking.override")),
    db: Session = Depends(get_db)
):
    """
    Override administrativo (supervisor, admin)

    Cambios auditados; pasar a `cancelled` o `completed` libera el espacio.
    """
    service = BookingService(db)
    return await service.override_booking(booking_id, payload, current_user, request)
