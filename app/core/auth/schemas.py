from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

class UserLogin(BaseModel):
    """Schema para login de usuario"""
    email: str = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=6, description="Contraseña del usuario")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "customer@warehouse.test",
                "password": "customer123"
            }
        }

class UserResponse(BaseModel):
    """Schema para respuesta de usuario (sin password_hash)"""
    id: int
    email: str
    first_name: str
    last_name: str
    mobile: Optional[str] = None
    company: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "email": "customer@warehouse.test",
                "first_name": "Asha",
                "last_name": "Patil",
                "mobile": "+919800000000",
                "company": "Patil Foods",
                "role": "customer",
                "is_active": True
            }
        }

class TokenResponse(BaseModel):
    """Schema para respuesta de token"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class TokenPayload(BaseModel):
    """Schema para payload del token"""
    user_id: int
    email: str
    role: str
    exp: Optional[datetime] = None

class ChangePasswordRequest(BaseModel):
    """Schema para cambio de contraseña"""
    current_password: str = Field(..., min_length=6)
    new_password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., min_length=6)

    def passwords_match(self) -> bool:
        return self.new_password == self.confirm_password

class RegisterRequest(BaseModel):
    """
    Registro público: siempre crea un cliente activo

    Un `role` en el body se ignora (y `admin` se rechaza antes de llegar aquí).
    """
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    mobile: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()

    class Config:
        json_schema_extra = {
            "example": {
                "email": "new.customer@warehouse.test",
                "password": "secret123",
                "first_name": "Ravi",
                "last_name": "Kumar",
                "company": "Kumar Logistics"
            }
        }

class GuestRegisterRequest(BaseModel):
    """Cliente invitado: inactivo hasta que purchase_support lo verifique"""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    mobile: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()
