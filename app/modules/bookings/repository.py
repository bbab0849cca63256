# app/modules/bookings/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Any, Dict, Optional

from app.shared.database.models import Booking, Quote, Warehouse
from app.shared.database.pagination import paginate

class BookingRepository:
    def __init__(self, db: Session):
        self.db = db
    
    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()
    
    def get_quote(self, quote_id: int) -> Optional[Quote]:
        return self.db.query(Quote).filter(Quote.id == quote_id).first()
    
    def get_warehouse(self, warehouse_id: int) -> Optional[Warehouse]:
        return self.db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
    
    def create(self, data: Dict[str, Any]) -> Booking:
        booking = Booking(**data)
        self.db.add(booking)
        self.db.flush()
        return booking
    
    def list(self, criteria: list, page: int, size: int, warehouse_id: Optional[int] = None):
        query = self.db.query(Booking)
        conditions = list(criteria)
        if warehouse_id:
            conditions.append(Booking.warehouse_id == warehouse_id)
        if conditions:
            query = query.filter(and_(*conditions))
        query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
        return paginate(query, page, size)
