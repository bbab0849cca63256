# app/modules/dashboard/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import require_operation
from .service import DashboardService

router = APIRouter()

@router.get("/stats")
async def get_dashboard_stats(
    current_user = Depends(require_operation("dashboard.stats")),
    db: Session = Depends(get_db)
):
    """
    Estadísticas del dashboard según el rol

    **Contenido:**
    - customer: cotizaciones, reservas, entregas y facturas propias; total pagado
    - purchase_support: cotizaciones pending/processing e invitados por verificar
    - sales_support: cotizaciones processing/quoted/approved/rejected
    - warehouse: cotizaciones asignadas, reservas, colas de carga y entregas
    - supervisor: todo agrupado por estado
    - accounts: facturas por estado, ingresos y saldo pendiente
    - admin: lo del supervisor más usuarios por rol y capacidad
    """
    service = DashboardService(db)
    return await service.get_stats(current_user)

@router.get("/health")
async def dashboard_health():
    """Health check del módulo de dashboard"""
    return {
        "service": "dashboard",
        "status": "healthy",
        "version": "1.0.0"
    }
