# app/modules/invoices/__init__.py
"""
Módulo de Facturas - Cobro de reservas

Flujo: draft → sent → {paid, overdue, cancelled}; overdue → paid
- Emisión con numeración INV-YYYYMM-NNNN
- Envío, registro de pago y vencimiento por contabilidad
- Pago directo del cliente

Arquitectura:
- router.py: Endpoints de facturas
- service.py: Transiciones, numeración y notificaciones
- repository.py: Acceso a datos y contador mensual
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import InvoiceService
from .repository import InvoiceRepository

__all__ = [
    "router",
    "InvoiceService",
    "InvoiceRepository"
]
