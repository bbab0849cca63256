# app/modules/quotes/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Any, Dict, List, Optional

from app.shared.database.models import Quote, User, Warehouse
from app.shared.database.pagination import paginate

SORTABLE_FIELDS = {
    "created_at": Quote.created_at,
    "updated_at": Quote.updated_at,
    "required_space": Quote.required_space,
    "status": Quote.status,
}

class QuoteRepository:
    def __init__(self, db: Session):
        self.db = db
    
    def get_by_id(self, quote_id: int) -> Optional[Quote]:
        return self.db.query(Quote).filter(Quote.id == quote_id).first()
    
    def create(self, data: Dict[str, Any]) -> Quote:
        quote = Quote(**data)
        self.db.add(quote)
        self.db.flush()
        return quote
    
    def list(
        self,
        criteria: list,
        page: int,
        size: int,
        storage_type: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ):
        """Listado filtrado y paginado"""
        query = self.db.query(Quote)
        conditions = list(criteria)
        if storage_type:
            conditions.append(Quote.storage_type == storage_type)
        if conditions:
            query = query.filter(and_(*conditions))
        
        column = SORTABLE_FIELDS.get(sort_by, Quote.created_at)
        if sort_order == "asc":
            query = query.order_by(column.asc(), Quote.id.asc())
        else:
            query = query.order_by(column.desc(), Quote.id.desc())
        return paginate(query, page, size)
    
    def get_pending(self) -> List[Quote]:
        return (
            self.db.query(Quote)
            .filter(Quote.status == "pending")
            .order_by(Quote.created_at.desc(), Quote.id.desc())
            .all()
        )
    
    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()
    
    def get_warehouse(self, warehouse_id: int) -> Optional[Warehouse]:
        return self.db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
