# app/core/exceptions.py
"""
Taxonomía de errores de la API

Todas son HTTPException para que FastAPI las propague sin envolverlas;
`error` es el código máquina opcional que viaja en el sobre `{message, error}`.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class APIError(HTTPException):
    def __init__(
        self,
        status_code: int,
        detail: str,
        error: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error = error
        self.errors = errors


class ValidationError(APIError):
    def __init__(self, detail: str = "Invalid request data", errors: Optional[List[Dict[str, Any]]] = None, error: Optional[str] = "VALIDATION_ERROR"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, error=error, errors=errors)


class PreconditionError(APIError):
    def __init__(self, detail: str, error: Optional[str] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, error=error)


class AuthenticationError(APIError):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            error="UNAUTHENTICATED",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(APIError):
    def __init__(self, detail: str = "Not enough permissions", error: Optional[str] = "FORBIDDEN"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, error=error)


class NotFoundError(APIError):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail, error="NOT_FOUND")


class UnexpectedError(APIError):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, error="INTERNAL_ERROR")
