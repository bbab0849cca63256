from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)

def _error_body(message: str, error: str = None, errors: list = None) -> dict:
    body = {"message": message}
    if error:
        body["error"] = error
    if errors:
        body["errors"] = errors
    return body

def setup_exception_handlers(app: FastAPI):
    """Sobre de error uniforme `{message, error?}` para toda la API"""
    
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                str(exc.detail),
                getattr(exc, "error", None),
                getattr(exc, "errors", None)
            ),
            headers=getattr(exc, "headers", None)
        )
    
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", []) if part != "body"),
                "message": err.get("msg"),
                "type": err.get("type")
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request data", "VALIDATION_ERROR", errors)
        )
    
    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        logger.exception(f"💥 Error no controlado en {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", "INTERNAL_ERROR")
        )

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""
    
    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()
        
        response = await call_next(request)
        
        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )
        
        return response
    
    setup_exception_handlers(app)
