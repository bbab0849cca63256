# app/modules/cargo/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Any, Dict, List, Optional

from app.shared.database.models import Booking, CargoDispatchDetail
from app.shared.database.pagination import paginate

class CargoRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, cargo_id: int) -> Optional[CargoDispatchDetail]:
        return self.db.query(CargoDispatchDetail).filter(CargoDispatchDetail.id == cargo_id).first()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def create(self, data: Dict[str, Any]) -> CargoDispatchDetail:
        cargo = CargoDispatchDetail(**data)
        self.db.add(cargo)
        self.db.flush()
        return cargo

    def list(self, criteria: list, page: int, size: int, booking_id: Optional[int] = None):
        query = self.db.query(CargoDispatchDetail)
        conditions = list(criteria)
        if booking_id:
            conditions.append(CargoDispatchDetail.booking_id == booking_id)
        if conditions:
            query = query.filter(and_(*conditions))
        query = query.order_by(CargoDispatchDetail.created_at.desc(), CargoDispatchDetail.id.desc())
        return paginate(query, page, size)

    def get_by_booking(self, booking_id: int) -> List[CargoDispatchDetail]:
        return (
            self.db.query(CargoDispatchDetail)
            .filter(CargoDispatchDetail.booking_id == booking_id)
            .order_by(CargoDispatchDetail.created_at.desc(), CargoDispatchDetail.id.desc())
            .all()
        )
