# app/modules/dashboard/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Dict, Iterable

from app.shared.database.models import Invoice, User, Warehouse

class DashboardRepository:
    def __init__(self, db: Session):
        self.db = db

    def count_by_status(self, model, *criteria) -> Dict[str, int]:
        """{estado: cantidad} para `model` filtrado por `criteria`"""
        query = self.db.query(model.status, func.count(model.id))
        if criteria:
            query = query.filter(*criteria)
        return {status: count for status, count in query.group_by(model.status).all()}

    def count(self, model, *criteria) -> int:
        query = self.db.query(func.count(model.id))
        if criteria:
            query = query.filter(*criteria)
        return query.scalar() or 0

    def invoice_total(self, statuses: Iterable[str], *criteria) -> float:
        query = self.db.query(func.coalesce(func.sum(Invoice.amount), 0)).filter(Invoice.status.in_(list(statuses)))
        if criteria:
            query = query.filter(*criteria)
        return float(query.scalar() or 0)

    def users_by_role(self) -> Dict[str, int]:
        rows = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        return {role: count for role, count in rows}

    def warehouse_capacity(self) -> Dict[str, float]:
        total, available, active = self.db.query(
            func.coalesce(func.sum(Warehouse.total_space), 0),
            func.coalesce(func.sum(Warehouse.available_space), 0),
            func.count(Warehouse.id)
        ).filter(Warehouse.is_active.is_(True)).one()
        return {
            "active_warehouses": int(active),
            "total_space": float(total),
            "available_space": float(available),
        }
