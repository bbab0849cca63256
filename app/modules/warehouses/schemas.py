# app/modules/warehouses/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime

from app.core.workflow import StorageType
from app.shared.schemas.common import PaginatedResponse

class WarehouseCreateRequest(BaseModel):
    """
    Schema para registrar almacén

    `available_space` por defecto es igual a `total_space`.
    """
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    storage_type: StorageType
    total_space: float = Field(..., gt=0)
    available_space: Optional[float] = Field(None, ge=0)
    price_per_sqft: float = Field(..., ge=0)
    features: List[str] = Field(default_factory=list)
    owner_id: Optional[int] = Field(None, gt=0, description="Sólo admin; por defecto el creador")

    @validator('available_space')
    def validate_available_space(cls, v, values):
        total = values.get('total_space')
        if v is not None and total is not None and v > total:
            raise ValueError('available_space cannot exceed total_space')
        return v

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "name": "Bhiwandi Cold Hub",
                "location": "NH-3, Bhiwandi",
                "city": "Thane",
                "state": "Maharashtra",
                "storage_type": "cold_storage",
                "total_space": 20000,
                "price_per_sqft": 12.5,
                "features": ["24x7 security", "Dock levellers"]
            }
        }

class WarehouseUpdateRequest(BaseModel):
    """Modificación de datos; el espacio disponible sólo cambia por el ledger"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    storage_type: Optional[StorageType] = None
    total_space: Optional[float] = Field(None, gt=0)
    price_per_sqft: Optional[float] = Field(None, ge=0)
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None

    class Config:
        use_enum_values = True

class WarehouseResponse(BaseModel):
    id: int
    name: str
    location: str
    city: str
    state: str
    storage_type: str
    total_space: float
    available_space: float
    price_per_sqft: float
    features: Optional[List[str]] = None
    is_active: bool
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class WarehouseListResponse(PaginatedResponse):
    items: List[WarehouseResponse]

class AvailabilityRequest(BaseModel):
    required_space: float = Field(..., gt=0)

class AvailabilityResponse(BaseModel):
    warehouse_id: int
    required_space: float
    available: bool

class CapacityAdjustRequest(BaseModel):
    """Delta positivo libera espacio, negativo lo descuenta"""
    delta: float
    reason: Optional[str] = Field(None, max_length=1000)

    @validator('delta')
    def validate_delta(cls, v):
        if v == 0:
            raise ValueError('delta must be non-zero')
        return v
