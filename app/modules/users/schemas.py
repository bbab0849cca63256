# app/modules/users/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional

from app.core.auth.schemas import EMAIL_PATTERN, UserResponse
from app.core.policy import Role
from app.shared.schemas.common import PaginatedResponse

class ProfileUpdateRequest(BaseModel):
    """
    Actualización del perfil propio

    `password`, `role` e `is_active` no forman parte del schema: si llegan en
    el body se descartan.
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    mobile: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)

class UserCreateRequest(BaseModel):
    """Schema para crear usuario (admin)"""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    mobile: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    role: Role = Role.CUSTOMER
    is_active: bool = True

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "email": "sales@warehouse.test",
                "password": "sales123",
                "first_name": "Meera",
                "last_name": "Shah",
                "role": "sales_support"
            }
        }

class UserUpdateRequest(BaseModel):
    """Schema para modificar usuario (admin)"""
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(None, min_length=6)
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    mobile: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    role: Optional[Role] = None
    is_active: Optional[bool] = None

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower() if v else v

    class Config:
        use_enum_values = True

class UserListResponse(PaginatedResponse):
    items: List[UserResponse]

class RoleInfo(BaseModel):
    role: str
    description: str
