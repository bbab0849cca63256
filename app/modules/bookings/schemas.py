# app/modules/bookings/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime

from app.core.workflow import BookingStatus
from app.shared.schemas.common import PaginatedResponse

class BookingCreateRequest(BaseModel):
    """
    Schema para crear reserva a partir de una cotización
    
    `warehouse_id`, `required_space` y `total_amount` se toman de la
    cotización cuando no se envían.
    """
    quote_id: int = Field(..., gt=0)
    warehouse_id: Optional[int] = Field(None, gt=0)
    start_date: date
    end_date: date
    total_amount: Optional[float] = Field(None, ge=0)
    required_space: Optional[float] = Field(None, gt=0)
    
    @validator('end_date')
    def validate_dates(cls, v, values):
        start = values.get('start_date')
        if start and v < start:
            raise ValueError('end_date must be on or after start_date')
        return v
    
    class Config:
        json_schema_extra = {
            "example": {
                "quote_id": 1,
                "start_date": "2025-02-01",
                "end_date": "2025-07-31"
            }
        }

class BookingUpdateRequest(BaseModel):
    """Override administrativo de la reserva"""
    status: Optional[BookingStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_amount: Optional[float] = Field(None, ge=0)
    approved_by_id: Optional[int] = None
    
    class Config:
        use_enum_values = True

class BookingResponse(BaseModel):
    id: int
    quote_id: int
    customer_id: int
    warehouse_id: int
    status: str
    start_date: date
    end_date: date
    # None en los listados del cliente
    total_amount: Optional[float] = None
    approved_by_id: Optional[int] = None
    reserved_space: float = 0
    customer_approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True

class BookingListResponse(PaginatedResponse):
    items: List[BookingResponse]

class BookingRequestItem(BaseModel):
    """Cotización pendiente presentada como solicitud de reserva"""
    id: int
    booking_id: str
    booking_date: str
    warehouse_name: str
    remark: str
    status: str
    customer_name: str
    customer_email: str
    storage_type: str
    required_space: float
    preferred_location: str
    duration: str
    special_requirements: Optional[str] = None
