# app/modules/deliveries/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from app.core.workflow import DeliveryStatus, Urgency
from app.shared.schemas.common import PaginatedResponse

class DeliveryCreateRequest(BaseModel):
    """Schema para solicitar entrega (cliente)"""
    booking_id: int = Field(..., gt=0)
    delivery_address: str = Field(..., min_length=1, max_length=1000)
    preferred_date: date
    urgency: Urgency = Urgency.STANDARD
    delivery_notes: Optional[str] = Field(None, max_length=2000)

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "booking_id": 1,
                "delivery_address": "Plot 42, MIDC, Pune",
                "preferred_date": "2025-03-15",
                "urgency": "express"
            }
        }

class DeliveryScheduleRequest(BaseModel):
    scheduled_date: date
    assigned_driver: Optional[str] = Field(None, max_length=255)

class DeliveryAssignDriverRequest(BaseModel):
    assigned_driver: str = Field(..., min_length=1, max_length=255)

class DeliveryCompleteRequest(BaseModel):
    delivery_notes: Optional[str] = Field(None, max_length=2000)

class DeliveryUpdateRequest(BaseModel):
    """Override administrativo; tracking_number no es modificable"""
    delivery_address: Optional[str] = Field(None, min_length=1, max_length=1000)
    preferred_date: Optional[date] = None
    scheduled_date: Optional[date] = None
    urgency: Optional[Urgency] = None
    status: Optional[DeliveryStatus] = None
    assigned_driver: Optional[str] = Field(None, max_length=255)
    delivery_notes: Optional[str] = None

    class Config:
        use_enum_values = True

class DeliveryResponse(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    delivery_address: str
    preferred_date: date
    scheduled_date: Optional[date] = None
    urgency: str
    status: str
    assigned_driver: Optional[str] = None
    tracking_number: str
    delivery_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DeliveryListResponse(PaginatedResponse):
    items: List[DeliveryResponse]

class DeliveryTrackingResponse(BaseModel):
    """Proyección pública de seguimiento"""
    tracking_number: str
    status: str
    delivery_address: str
    preferred_date: date
    scheduled_date: Optional[date] = None
    assigned_driver: Optional[str] = None
    urgency: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
