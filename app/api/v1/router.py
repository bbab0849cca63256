# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.modules.quotes.router import router as quotes_router
from app.modules.bookings.router import router as bookings_router
from app.modules.cargo.router import router as cargo_router
from app.modules.deliveries.router import router as deliveries_router
from app.modules.invoices.router import router as invoices_router
from app.modules.users.router import router as users_router
from app.modules.warehouses.router import router as warehouses_router
from app.modules.dashboard.router import router as dashboard_router
from app.modules.notifications.router import router as notifications_router


# Crear router principal de la API v1
api_router = APIRouter()

# auth ya trae prefix="/auth"
api_router.include_router(auth_router)

# ==================== FLUJO DE NEGOCIO ====================

api_router.include_router(
    quotes_router,
    prefix="/quotes",
    tags=["Quotes"]
)

api_router.include_router(
    bookings_router,
    prefix="/bookings",
    tags=["Bookings"]
)

api_router.include_router(
    cargo_router,
    prefix="/cargo",
    tags=["Cargo Dispatch"]
)

api_router.include_router(
    deliveries_router,
    prefix="/deliveries",
    tags=["Deliveries"]
)

api_router.include_router(
    invoices_router,
    prefix="/invoices",
    tags=["Invoices"]
)

# ==================== ADMINISTRACIÓN ====================

api_router.include_router(
    users_router,
    prefix="/users",
    tags=["Users"]
)

api_router.include_router(
    warehouses_router,
    prefix="/warehouses",
    tags=["Warehouses"]
)

api_router.include_router(
    dashboard_router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_router.include_router(
    notifications_router,
    prefix="/notifications",
    tags=["Notifications"]
)

# ==================== ENDPOINTS RAÍZ ====================

@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": "Warehouse Booking API v1",
        "version": "1.0.0",
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "quotes": "/api/v1/quotes",
            "bookings": "/api/v1/bookings",
            "cargo": "/api/v1/cargo",
            "deliveries": "/api/v1/deliveries",
            "invoices": "/api/v1/invoices",
            "users": "/api/v1/users",
            "warehouses": "/api/v1/warehouses",
            "dashboard": "/api/v1/dashboard",
            "notifications": "/api/v1/notifications"
        }
    }

@api_router.get("/health")
async def health_check():
    """Health check de la API"""
    return {
        "status": "healthy",
        "service": "Warehouse Booking API",
        "version": "1.0.0",
        "architecture": "modular_monolith",
        "modules": {
            "auth": {"status": "active", "features": ["JWT", "Roles", "Guest accounts"]},
            "quotes": {"status": "active", "features": ["Assignment", "Pricing", "Approval"]},
            "bookings": {"status": "active", "features": ["Capacity reservation", "Approval"]},
            "cargo": {"status": "active", "features": ["Dispatch forms", "Approval"]},
            "deliveries": {"status": "active", "features": ["Tracking", "Scheduling"]},
            "invoices": {"status": "active", "features": ["Sequential numbering", "Payments"]},
            "notifications": {"status": "active", "features": ["Outbox", "Retry"]}
        }
    }
