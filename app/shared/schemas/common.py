# app/shared/schemas/common.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

class BaseResponse(BaseModel):
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)

class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None

class PaginatedResponse(BaseModel):
    items: List[Any]
    total: int
    page: int
    size: int
    pages: int

class MessageResponse(BaseResponse):
    success: bool = True

class ReasonRequest(BaseModel):
    """Body opcional para rechazos y cancelaciones"""
    reason: Optional[str] = Field(None, max_length=1000)
