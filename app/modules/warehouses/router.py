# app/modules/warehouses/router.py
from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from app.shared.schemas.common import MessageResponse
from .service import WarehouseService
from .schemas import (
    WarehouseCreateRequest, WarehouseUpdateRequest, WarehouseResponse, WarehouseListResponse,
    AvailabilityRequest, AvailabilityResponse, CapacityAdjustRequest
)

router = APIRouter()

@router.get("/", response_model=WarehouseListResponse)
async def list_warehouses(
    city: Optional[str] = Query(None, max_length=100),
    state: Optional[str] = Query(None, max_length=100),
    storage_type: Optional[str] = Query(None),
    min_space: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sort_by: str = Query("name", description="name, price, space o location"),
    sort_order: str = Query("asc"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("warehouse.list")),
    db: Session = Depends(get_db)
):
    """
    Catálogo de almacenes activos

    **Filtros:**
    - city / state: subcadena sin distinguir mayúsculas
    - storage_type: tipo exacto
    - min_space: espacio disponible mínimo
    - max_price: precio por sq ft máximo
    """
    service = WarehouseService(db)
    return await service.list_warehouses(
        page=page, size=limit, city=city, state=state, storage_type=storage_type,
        min_space=min_space, max_price=max_price, sort_by=sort_by, sort_order=sort_order
    )

@router.post("/", response_model=WarehouseResponse, status_code=201)
async def create_warehouse(
    payload: WarehouseCreateRequest,
    current_user = Depends(require_operation("warehouse.write")),
    db: Session = Depends(get_db)
):
    """Registrar almacén (warehouse, admin); el dueño es el creador salvo que admin indique otro"""
    service = WarehouseService(db)
    return await service.create_warehouse(payload, current_user)

@router.get("/health")
async def warehouses_health():
    """Health check del módulo de almacenes"""
    return {
        "service": "warehouses",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Catálogo con filtros y cache",
            "Alta, modificación y baja lógica",
            "Consulta de disponibilidad",
            "Ajuste de capacidad auditado"
        ]
    }

@router.get("/{warehouse_id}", response_model=WarehouseResponse)
async def get_warehouse(
    warehouse_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("warehouse.read")),
    db: Session = Depends(get_db)
):
    service = WarehouseService(db)
    return await service.get_warehouse(warehouse_id)

@router.put("/{warehouse_id}", response_model=WarehouseResponse)
async def update_warehouse(
    payload: WarehouseUpdateRequest,
    warehouse_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("warehouse.write")),
    db: Session = Depends(get_db)
):
    """Modificar almacén (el rol warehouse sólo los propios)"""
    service = WarehouseService(db)
    return await service.update_warehouse(warehouse_id, payload, current_user)

@router.delete("/{warehouse_id}", response_model=MessageResponse)
async def delete_warehouse(
    warehouse_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("warehouse.write")),
    db: Session = Depends(get_db)
):
    """Baja lógica del almacén"""
    service = WarehouseService(db)
    await service.delete_warehouse(warehouse_id, current_user)
    return MessageResponse(message="Warehouse deleted successfully")

@router.post("/{warehouse_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    payload: AvailabilityRequest,
    warehouse_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("warehouse.read")),
    db: Session = Depends(get_db)
):
    """¿Alcanza el espacio disponible para `required_space`?"""
    service = WarehouseService(db)
    return await service.check_availability(warehouse_id, payload.required_space)

@router.post("/{warehouse_id}/adjust-capacity", response_model=WarehouseResponse)
async def adjust_capacity(
    payload: CapacityAdjustRequest,
    request: Request,
    warehouse_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("warehouse.adjust_capacity")),
    db: Session = Depends(get_db)
):
    """
    Ajuste manual del espacio disponible (admin)

    El resultado debe quedar entre 0 y la capacidad total.
    """
    service = WarehouseService(db)
    return await service.adjust_capacity(warehouse_id, payload.delta, payload.reason, current_user, request)
