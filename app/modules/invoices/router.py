# app/modules/invoices/router.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from app.shared.schemas.common import MessageResponse
from .service import InvoiceService
from .schemas import (
    InvoiceCreateRequest, InvoiceMarkPaidRequest, InvoicePayRequest, InvoiceUpdateRequest,
    InvoiceResponse, InvoiceListResponse, InvoicePdfResponse
)

router = APIRouter()

@router.post("/", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    payload: InvoiceCreateRequest,
    current_user = Depends(require_operation("invoice.create")),
    db: Session = Depends(get_db)
):
    """
    Emitir factura (accounts, admin)

    **Reglas:**
    - Número `INV-YYYYMM-NNNN`, correlativo por mes y único
    - Estado inicial `draft`
    - Cliente e importe por defecto tomados de la reserva
    """
    service = InvoiceService(db)
    return await service.create_invoice(payload, current_user)

@router.get("/", response_model=InvoiceListResponse)
async def list_invoices(
    status: Optional[str] = Query(None, description="Estado o 'all'"),
    booking_id: Optional[int] = Query(None, gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("invoice.list")),
    db: Session = Depends(get_db)
):
    """
    Listar facturas según el rol

    **Alcance:**
    - customer: sólo las propias
    - accounts: `sent` por defecto
    - supervisor/admin: todas
    """
    service = InvoiceService(db)
    return await service.list_invoices(current_user, status=status, booking_id=booking_id, page=page, size=limit)

@router.get("/status/{status}", response_model=InvoiceListResponse)
async def list_invoices_by_status(
    status: str = Path(..., description="Estado de la factura"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_operation("invoice.list")),
    db: Session = Depends(get_db)
):
    """Vista por estado: draft, sent, paid, overdue, cancelled"""
    service = InvoiceService(db)
    return await service.list_invoices(current_user, status=status, page=page, size=limit)

@router.get("/health")
async def invoices_health():
    """Health check del módulo de facturas"""
    return {
        "service": "invoices",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Numeración correlativa mensual",
            "Envío, cobro y vencimiento",
            "Pago del cliente",
            "Cancelación y override auditado"
        ]
    }

@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.read")),
    db: Session = Depends(get_db)
):
    service = InvoiceService(db)
    return await service.get_invoice(invoice_id, current_user)

@router.get("/{invoice_id}/pdf", response_model=InvoicePdfResponse)
async def get_invoice_pdf(
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.pdf")),
    db: Session = Depends(get_db)
):
    """PDF de la factura (aún devuelve sólo los datos)"""
    service = InvoiceService(db)
    return await service.generate_pdf(invoice_id, current_user)

@router.post("/{invoice_id}/send", response_model=InvoiceResponse)
async def send_invoice(
    background_tasks: BackgroundTasks,
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.send")),
    db: Session = Depends(get_db)
):
    """`draft` → `sent`; email con importe y vencimiento"""
    service = InvoiceService(db, background_tasks)
    return await service.send_invoice(invoice_id, current_user)

@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
async def mark_invoice_paid(
    background_tasks: BackgroundTasks,
    payload: Optional[InvoiceMarkPaidRequest] = None,
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.mark_paid")),
    db: Session = Depends(get_db)
):
    """`sent`/`overdue` → `paid`"""
    service = InvoiceService(db, background_tasks)
    return await service.mark_as_paid(invoice_id, payload or InvoiceMarkPaidRequest(), current_user)

@router.post("/{invoice_id}/mark-overdue", response_model=InvoiceResponse)
async def mark_invoice_overdue(
    background_tasks: BackgroundTasks,
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.mark_overdue")),
    db: Session = Depends(get_db)
):
    """`sent` → `overdue`"""
    service = InvoiceService(db, background_tasks)
    return await service.mark_as_overdue(invoice_id, current_user)

@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.cancel")),
    db: Session = Depends(get_db)
):
    """`draft`/`sent`/`overdue` → `cancelled`"""
    service = InvoiceService(db)
    return await service.cancel_invoice(invoice_id, current_user)

@router.post("/{invoice_id}/pay", response_model=InvoiceResponse)
async def pay_invoice(
    payload: InvoicePayRequest,
    background_tasks: BackgroundTasks,
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.pay")),
    db: Session = Depends(get_db)
):
    """
    Pagar factura propia (cliente)

    **Errores:**
    - 400 `Invoice already paid` si ya estaba pagada
    - 403 si la factura es de otro cliente
    """
    service = InvoiceService(db, background_tasks)
    return await service.pay_invoice(invoice_id, payload, current_user)

@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def override_invoice(
    payload: InvoiceUpdateRequest,
    request: Request,
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.override")),
    db: Session = Depends(get_db)
):
    """Override administrativo auditado (accounts, admin)"""
    service = InvoiceService(db)
    return await service.override_invoice(invoice_id, payload, current_user, request)

@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    invoice_id: int = Path(..., gt=0),
    current_user = Depends(require_operation("invoice.delete")),
    db: Session = Depends(get_db)
):
    """Eliminar factura (borrado físico)"""
    service = InvoiceService(db)
    await service.delete_invoice(invoice_id, current_user)
    return MessageResponse(message="Invoice deleted successfully")
