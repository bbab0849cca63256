# app/modules/quotes/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from app.shared.schemas.common import ReasonRequest
from .service import QuoteService
from .schemas import (
    QuoteCreateRequest, QuoteAssignRequest, QuoteApproveRequest, QuoteUpdateRequest,
    QuoteResponse, QuoteListResponse, PriceEstimateResponse
)

router = APIRouter()

@router.post("/", response_model=QuoteResponse, status_code=201)
async def create_quote(
    payload: QuoteCreateRequest,
    background_tasks: BackgroundTasks,
    current_user = Depends(require_operation("quote.create")),
    db: Session = Depends(get_db)
):
    """
    Solicitar cotización de almacenamiento
    
    **Reglas:**
    - Sólo clientes
    - El `customer_id` del body se ignora: siempre es el usuario autenticado
    - Estado inicial `pending`
    """
    service = QuoteService(db, background_tasks)
    return await service.create_quote(payload, current_user)

@router.get("/", response_model=QuoteListResponse)
async def list_quotes(
    status: Optional[str] = Query(None, description="Estado o 'all'"),
    storage_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc"),
    current_user = Depends(require_operation("quote.list")),
    db: Session = Depends(get_db)
):
    """
    Listar cotizaciones según el rol
    
    **Alcance:**
    - customer: sólo las propias
    - purchase_support: `pending` por defecto
    - sales_support: `processing` y `quoted` por defecto
    - warehouse: sólo las asignadas al usuario
    - supervisor/admin: todas
    """
    service = QuoteService(db)
    return await service.list_quotes(
        current_user, status=status, storage_type=storage_type,
        page=page, size=limit, sort_by=sort_by, sort_order=sort_order
    )

@router.get("/status/{status}", response_model=QuoteListResponse)
async def list_quotes_by_status(
    status: str = Path(..., description="Estado de la cotización"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("quote.list")),
    db: Session = Depends(get_db)
):
    """Vista por estado (respeta el alcance del rol)"""
    service = QuoteService(db)
    return await service.list_quotes(current_user, status=status, page=page, size=limit)

@router.get("/health")
async def quotes_health():
    """Health check del módulo de cotizaciones"""
    return {
        "service": "quotes",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Solicitud de cotizaciones",
            "Asignación a staff",
            "Cotización y rechazo",
            "Cálculo de precio estimado",
            "Override administrativo auditado"
        ]
    }

@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.read")),
    db: Session = Depends(get_db)
):
    """Obtener cotización por ID (403 si pertenece a otro cliente)"""
    service = QuoteService(db)
    return await service.get_quote(quote_id, current_user)

@router.get("/{quote_id}/calculate-price", response_model=PriceEstimateResponse)
async def calculate_quote_price(
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.calculate_price")),
    db: Session = Depends(get_db)
):
    """
    Precio estimado
    
    `espacio * precio_por_sqft * meses * multiplicador_tipo`. No modifica
    el precio final de la cotización.
    """
    service = QuoteService(db)
    return await service.calculate_price(quote_id, current_user)

@router.post("/{quote_id}/assign", response_model=QuoteResponse)
async def assign_quote(
    payload: QuoteAssignRequest,
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.assign")),
    db: Session = Depends(get_db)
):
    """Asignar cotización a staff → `processing` (sólo purchase_support)"""
    service = QuoteService(db)
    return await service.assign_quote(quote_id, payload, current_user)

@router.post("/{quote_id}/approve", response_model=QuoteResponse)
async def approve_quote(
    payload: QuoteApproveRequest,
    background_tasks: BackgroundTasks,
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.approve")),
    db: Session = Depends(get_db)
):
    """Cotizar → `quoted` con precio final y almacén (sales_support, supervisor)"""
    service = QuoteService(db, background_tasks)
    return await service.approve_quote(quote_id, payload, current_user)

@router.post("/{quote_id}/reject", response_model=QuoteResponse)
async def reject_quote(
    payload: Optional[ReasonRequest] = None,
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.reject")),
    db: Session = Depends(get_db)
):
    """
    Rechazar cotización → `rejected`
    
    **Nota:** `special_requirements` se reemplaza por `Rejected: <motivo>`
    (o `Rejected` sin motivo); el texto original no se conserva.
    """
    service = QuoteService(db)
    return await service.reject_quote(quote_id, payload.reason if payload else None, current_user)

@router.post("/{quote_id}/accept", response_model=QuoteResponse)
async def accept_quote(
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.accept")),
    db: Session = Depends(get_db)
):
    """El cliente acepta una cotización `quoted` → `approved`"""
    service = QuoteService(db)
    return await service.accept_quote(quote_id, current_user)

@router.put("/{quote_id}", response_model=QuoteResponse)
async def override_quote(
    payload: QuoteUpdateRequest,
    request: Request,
    quote_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("quote.override")),
    db: Session = Depends(get_db)
):
    """
    Override administrativo (sólo admin)
    
    Modifica cualquier campo sin validar la transición; cada cambio queda
    en la auditoría.
    """
    service = QuoteService(db)
    return await service.override_quote(quote_id, payload, current_user, request)
