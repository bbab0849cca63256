# app/modules/invoices/schemas.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from app.core.workflow import InvoiceStatus
from app.shared.schemas.common import PaginatedResponse

class InvoiceCreateRequest(BaseModel):
    """
    Schema para emitir factura sobre una reserva

    `amount` toma el total de la reserva si no se envía; `due_date` por
    defecto es hoy + `INVOICE_DUE_MONTHS`.
    """
    booking_id: int = Field(..., gt=0)
    amount: Optional[float] = Field(None, ge=0)
    due_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "booking_id": 1,
                "amount": 45000.00,
                "due_date": "2025-03-31"
            }
        }

class InvoiceMarkPaidRequest(BaseModel):
    payment_method: Optional[str] = Field(None, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=255)

class InvoicePayRequest(BaseModel):
    """Pago del cliente; `payment_details` se pasa tal cual al registro"""
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_details: Optional[Dict[str, Any]] = None

class InvoiceUpdateRequest(BaseModel):
    """Override administrativo; invoice_number no es modificable"""
    amount: Optional[float] = Field(None, ge=0)
    status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=255)

    class Config:
        use_enum_values = True

class InvoiceResponse(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    invoice_number: str
    amount: float
    status: str
    due_date: date
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InvoiceListResponse(PaginatedResponse):
    items: List[InvoiceResponse]

class InvoicePdfResponse(BaseModel):
    message: str
    invoice: InvoiceResponse
