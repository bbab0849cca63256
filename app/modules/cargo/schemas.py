# app/modules/cargo/schemas.py
import json
from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List, Optional, Union
from datetime import datetime

from app.core.workflow import CargoStatus
from app.shared.schemas.common import PaginatedResponse

class CargoCreateRequest(BaseModel):
    """
    Schema para registrar detalle de despacho de carga

    `form_data` acepta un objeto o un string JSON; el estado enviado se
    ignora (siempre inicia en `submitted`).
    """
    booking_id: int = Field(..., gt=0)
    item_description: str = Field(..., min_length=1, max_length=2000)
    quantity: int = Field(..., gt=0)
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[str] = Field(None, max_length=255)
    special_handling: Optional[str] = Field(None, max_length=2000)
    form_data: Optional[Union[Dict[str, Any], List[Any], str]] = None

    @validator('form_data')
    def parse_form_data(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except ValueError:
                raise ValueError('form_data must be a JSON object or a valid JSON string')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "booking_id": 1,
                "item_description": "Frozen seafood pallets",
                "quantity": 12,
                "weight": 1800.5,
                "dimensions": "120x100x150 cm",
                "special_handling": "Keep below -18°C",
                "form_data": {"vehicle": "MH-12-AB-1234"}
            }
        }

class CargoUpdateRequest(BaseModel):
    """Override administrativo del despacho"""
    item_description: Optional[str] = Field(None, min_length=1, max_length=2000)
    quantity: Optional[int] = Field(None, gt=0)
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[str] = Field(None, max_length=255)
    special_handling: Optional[str] = None
    form_data: Optional[Union[Dict[str, Any], List[Any]]] = None
    status: Optional[CargoStatus] = None
    approved_by_id: Optional[int] = None

    class Config:
        use_enum_values = True

class CargoResponse(BaseModel):
    id: int
    booking_id: int
    item_description: str
    quantity: int
    weight: Optional[float] = None
    dimensions: Optional[str] = None
    special_handling: Optional[str] = None
    form_data: Optional[Any] = None
    status: str
    approved_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CargoListResponse(PaginatedResponse):
    items: List[CargoResponse]
