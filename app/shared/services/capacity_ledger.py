# app/shared/services/capacity_ledger.py
import logging

from sqlalchemy import case, event, update
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PreconditionError
from app.shared.database.models import Warehouse
from app.shared.services.cache_service import cache_service

logger = logging.getLogger(__name__)

# Marca en `Session.info`: el cache de almacenes se limpia recién tras el commit
PENDING_WAREHOUSE_INVALIDATION = "pending_warehouse_invalidation"


@event.listens_for(Session, "after_commit")
def _invalidate_warehouses_after_commit(session: Session) -> None:
    if session.info.pop(PENDING_WAREHOUSE_INVALIDATION, False):
        cache_service.invalidate_warehouses()


@event.listens_for(Session, "after_rollback")
def _discard_warehouse_invalidation(session: Session) -> None:
    session.info.pop(PENDING_WAREHOUSE_INVALIDATION, None)


class CapacityLedger:
    """
    Espacio disponible por almacén

    Todas las escrituras son UPDATE condicionales en la misma transacción de
    quien llama, de modo que dos reservas concurrentes no pueden dejar
    `available_space` en negativo. El commit lo hace el servicio, y el cache
    de almacenes se invalida después de ese commit.
    """

    def __init__(self, db: Session):
        self.db = db

    def _invalidate_on_commit(self) -> None:
        self.db.info[PENDING_WAREHOUSE_INVALIDATION] = True

    def check_availability(self, warehouse_id: int, required_space: float) -> bool:
        warehouse = self.db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
        if not warehouse or not warehouse.is_active:
            return False
        return warehouse.available_space >= required_space

    def reserve(self, warehouse_id: int, space: float) -> bool:
        """Descontar `space` sólo si alcanza; False si no hubo fila que cumpla"""
        if space <= 0:
            return True
        result = self.db.execute(
            update(Warehouse)
            .where(
                Warehouse.id == warehouse_id,
                Warehouse.is_active.is_(True),
                Warehouse.available_space >= space
            )
            .values(available_space=Warehouse.available_space - space)
        )
        reserved = result.rowcount == 1
        if reserved:
            logger.info(f"📦 Reservado {space} en almacén {warehouse_id}")
            self._invalidate_on_commit()
        else:
            logger.warning(f"⚠️ Espacio insuficiente en almacén {warehouse_id} para {space}")
        return reserved

    def release(self, warehouse_id: int, space: float) -> None:
        """Devolver espacio reservado sin superar la capacidad total"""
        if space <= 0:
            return
        restored = Warehouse.available_space + space
        self.db.execute(
            update(Warehouse)
            .where(Warehouse.id == warehouse_id)
            .values(available_space=case(
                (restored > Warehouse.total_space, Warehouse.total_space),
                else_=restored
            ))
        )
        logger.info(f"📦 Liberado {space} en almacén {warehouse_id}")
        self._invalidate_on_commit()

    def adjust_available_space(self, warehouse_id: int, delta: float) -> Warehouse:
        """Ajuste manual del ledger, acotado a [0, total_space]"""
        warehouse = self.db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
        if not warehouse:
            raise NotFoundError("Warehouse not found")

        result = self.db.execute(
            update(Warehouse)
            .where(
                Warehouse.id == warehouse_id,
                Warehouse.available_space + delta >= 0,
                Warehouse.available_space + delta <= Warehouse.total_space
            )
            .values(available_space=Warehouse.available_space + delta)
        )
        if result.rowcount != 1:
            raise PreconditionError(
                "Capacity adjustment would leave available space outside [0, total space]",
                error="INVALID_CAPACITY_ADJUSTMENT"
            )
        self._invalidate_on_commit()
        self.db.refresh(warehouse)
        return warehouse
