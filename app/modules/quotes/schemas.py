# app/modules/quotes/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.core.workflow import QuoteStatus, StorageType
from app.shared.schemas.common import PaginatedResponse

class QuoteCreateRequest(BaseModel):
    """Schema para solicitar cotización (cliente)"""
    storage_type: StorageType = Field(..., description="Tipo de almacenamiento")
    required_space: float = Field(..., gt=0, description="Espacio requerido (sq ft)")
    preferred_location: str = Field(..., min_length=1, max_length=255)
    duration: str = Field(..., min_length=1, max_length=100, description="Ej: '6 months', '1 year'")
    special_requirements: Optional[str] = Field(None, max_length=2000)
    # Se ignora: el cliente siempre es el usuario autenticado
    customer_id: Optional[int] = Field(None, description="Ignorado por el servidor")
    
    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "storage_type": "cold_storage",
                "required_space": 500,
                "preferred_location": "Mumbai",
                "duration": "6 months",
                "special_requirements": "Temperature below 4°C"
            }
        }

class QuoteAssignRequest(BaseModel):
    assigned_to: int = Field(..., gt=0, description="ID del usuario de staff asignado")

class QuoteApproveRequest(BaseModel):
    final_price: float = Field(..., ge=0)
    warehouse_id: int = Field(..., gt=0)

class QuoteUpdateRequest(BaseModel):
    """Override administrativo: cualquier campo, estado validado contra el enum"""
    storage_type: Optional[StorageType] = None
    required_space: Optional[float] = Field(None, gt=0)
    preferred_location: Optional[str] = Field(None, min_length=1, max_length=255)
    duration: Optional[str] = Field(None, min_length=1, max_length=100)
    special_requirements: Optional[str] = None
    status: Optional[QuoteStatus] = None
    assigned_to: Optional[int] = None
    final_price: Optional[float] = Field(None, ge=0)
    warehouse_id: Optional[int] = None
    
    class Config:
        use_enum_values = True

class QuoteResponse(BaseModel):
    id: int
    customer_id: int
    storage_type: str
    required_space: float
    preferred_location: str
    duration: str
    special_requirements: Optional[str] = None
    status: str
    assigned_to: Optional[int] = None
    final_price: Optional[float] = None
    warehouse_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True

class QuoteListResponse(PaginatedResponse):
    items: List[QuoteResponse]

class PriceEstimateResponse(BaseModel):
    quote_id: int
    estimated_price: float
    required_space: float
    price_per_sqft: float
    duration_months: int
    storage_type_multiplier: float
