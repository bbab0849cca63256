# app/modules/warehouses/service.py
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.audit import record_audit
from app.core.exceptions import AuthorizationError, NotFoundError, PreconditionError, ValidationError
from app.core.policy import Role
from app.shared.database.models import User, Warehouse
from app.shared.database.transaction import unit_of_work
from app.shared.services.cache_service import cache_service
from app.shared.services.capacity_ledger import CapacityLedger
from .repository import SORTABLE_FIELDS, WarehouseRepository
from .schemas import (
    WarehouseCreateRequest, WarehouseUpdateRequest, WarehouseListResponse, WarehouseResponse
)

logger = logging.getLogger(__name__)


class WarehouseService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = WarehouseRepository(db)
        self.ledger = CapacityLedger(db)

    def _get_warehouse(self, warehouse_id: int) -> Warehouse:
        warehouse = self.repository.get_by_id(warehouse_id)
        if not warehouse:
            raise NotFoundError("Warehouse not found")
        return warehouse

    def _ensure_owner(self, warehouse: Warehouse, actor: User) -> None:
        """El rol warehouse sólo modifica almacenes propios"""
        if actor.role == Role.WAREHOUSE.value and warehouse.owner_id != actor.id:
            logger.warning(
                f"🚨 Usuario {actor.id} intentó modificar el almacén {warehouse.id} (dueño {warehouse.owner_id})"
            )
            raise AuthorizationError(
                "Access denied: You can only update warehouses that you own",
                error="OWNERSHIP_VIOLATION"
            )

    async def list_warehouses(
        self,
        page: int = 1,
        size: int = 20,
        city: Optional[str] = None,
        state: Optional[str] = None,
        storage_type: Optional[str] = None,
        min_space: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: str = "name",
        sort_order: str = "asc"
    ) -> Dict[str, Any]:
        """Catálogo de almacenes activos, read-through cache"""
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f"sort_by must be one of {sorted(SORTABLE_FIELDS)}")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be 'asc' or 'desc'")

        cache_key = f"{city}:{state}:{storage_type}:{min_space}:{max_price}:{sort_by}:{sort_order}:{page}:{size}"
        cached = cache_service.get_warehouses(cache_key)
        if cached is not None:
            return cached

        items, total, page, size, pages = self.repository.search(
            page, size,
            city=city, state=state, storage_type=storage_type,
            min_space=min_space, max_price=max_price,
            sort_by=sort_by, sort_order=sort_order
        )
        result = WarehouseListResponse(
            items=[WarehouseResponse.model_validate(w) for w in items],
            total=total, page=page, size=size, pages=pages
        ).dict()
        cache_service.set_warehouses(cache_key, result)
        return result

    async def get_warehouse(self, warehouse_id: int) -> Warehouse:
        return self._get_warehouse(warehouse_id)

    async def create_warehouse(self, payload: WarehouseCreateRequest, actor: User) -> Warehouse:
        data = payload.dict(exclude={"owner_id", "available_space"})
        owner_id = actor.id
        if payload.owner_id is not None and payload.owner_id != actor.id:
            if actor.role != Role.ADMIN.value:
                raise AuthorizationError("Only administrators can assign another owner")
            owner = self.repository.get_user(payload.owner_id)
            if not owner or owner.role != Role.WAREHOUSE.value:
                raise ValidationError("Owner must be a warehouse user", error="INVALID_OWNER")
            owner_id = owner.id

        with unit_of_work(self.db, "create warehouse"):
            warehouse = self.repository.create({
                **data,
                "available_space": payload.available_space if payload.available_space is not None else payload.total_space,
                "owner_id": owner_id,
                "is_active": True,
            })

        self.db.refresh(warehouse)
        cache_service.invalidate_warehouses()
        logger.info(f"🏭 Almacén {warehouse.id} '{warehouse.name}' creado por {actor.id}")
        return warehouse

    async def update_warehouse(self, warehouse_id: int, payload: WarehouseUpdateRequest, actor: User) -> Warehouse:
        """
        Modificar almacén

        Cambiar `total_space` desplaza `available_space` en la misma
        diferencia; se rechaza si el espacio ya reservado no cabe.
        """
        changes = {k: v for k, v in payload.dict(exclude_unset=True).items() if v is not None}

        with unit_of_work(self.db, "update warehouse"):
            warehouse = self._get_warehouse(warehouse_id)
            self._ensure_owner(warehouse, actor)

            new_total = changes.pop("total_space", None)
            if new_total is not None and new_total != warehouse.total_space:
                new_available = warehouse.available_space + (new_total - warehouse.total_space)
                if new_available < 0:
                    raise PreconditionError(
                        "Total space cannot be lower than the space already reserved",
                        error="INVALID_CAPACITY_ADJUSTMENT"
                    )
                warehouse.total_space = new_total
                warehouse.available_space = new_available

            for field, value in changes.items():
                setattr(warehouse, field, value)

        self.db.refresh(warehouse)
        cache_service.invalidate_warehouses()
        logger.info(f"✏️ Almacén {warehouse.id} modificado por {actor.id}")
        return warehouse

    async def delete_warehouse(self, warehouse_id: int, actor: User) -> None:
        """Baja lógica (is_active = False)"""
        with unit_of_work(self.db, "delete warehouse"):
            warehouse = self._get_warehouse(warehouse_id)
            self._ensure_owner(warehouse, actor)
            warehouse.is_active = False

        cache_service.invalidate_warehouses()
        logger.info(f"🗑️ Almacén {warehouse_id} desactivado por {actor.id}")

    async def check_availability(self, warehouse_id: int, required_space: float) -> Dict[str, Any]:
        self._get_warehouse(warehouse_id)
        return {
            "warehouse_id": warehouse_id,
            "required_space": required_space,
            "available": self.ledger.check_availability(warehouse_id, required_space)
        }

    async def adjust_capacity(self, warehouse_id: int, delta: float, reason: Optional[str], actor: User,
                              request: Optional[Request] = None) -> Warehouse:
        """Ajuste manual del espacio disponible, auditado"""
        with unit_of_work(self.db, "adjust warehouse capacity"):
            warehouse = self.ledger.adjust_available_space(warehouse_id, delta)
            record_audit(
                self.db,
                "warehouse.adjust_capacity",
                actor_id=actor.id,
                entity_kind="warehouse",
                entity_id=warehouse.id,
                details={"delta": delta, "reason": reason, "available_space": warehouse.available_space},
                request=request
            )

        self.db.refresh(warehouse)
        return warehouse
