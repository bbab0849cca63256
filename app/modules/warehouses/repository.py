# app/modules/warehouses/repository.py
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional

from app.shared.database.models import User, Warehouse
from app.shared.database.pagination import paginate

SORTABLE_FIELDS = {
    "name": Warehouse.name,
    "price": Warehouse.price_per_sqft,
    "space": Warehouse.available_space,
    "location": Warehouse.city,
}

class WarehouseRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, warehouse_id: int) -> Optional[Warehouse]:
        return self.db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def create(self, data: Dict[str, Any]) -> Warehouse:
        warehouse = Warehouse(**data)
        self.db.add(warehouse)
        self.db.flush()
        return warehouse

    def search(
        self,
        page: int,
        size: int,
        city: Optional[str] = None,
        state: Optional[str] = None,
        storage_type: Optional[str] = None,
        min_space: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: str = "name",
        sort_order: str = "asc"
    ):
        """Almacenes activos con filtros; ciudad y estado por subcadena sin mayúsculas"""
        query = self.db.query(Warehouse).filter(Warehouse.is_active.is_(True))
        if city:
            query = query.filter(Warehouse.city.ilike(f"%{city}%"))
        if state:
            query = query.filter(Warehouse.state.ilike(f"%{state}%"))
        if storage_type:
            query = query.filter(Warehouse.storage_type == storage_type)
        if min_space is not None:
            query = query.filter(Warehouse.available_space >= min_space)
        if max_price is not None:
            query = query.filter(Warehouse.price_per_sqft <= max_price)

        column = SORTABLE_FIELDS.get(sort_by, Warehouse.name)
        if sort_order == "desc":
            query = query.order_by(column.desc(), Warehouse.id.desc())
        else:
            query = query.order_by(column.asc(), Warehouse.id.asc())
        return paginate(query, page, size)
