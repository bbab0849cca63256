# app/modules/deliveries/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Any, Dict, Optional

from app.shared.database.models import Booking, DeliveryRequest
from app.shared.database.pagination import paginate

class DeliveryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, delivery_id: int) -> Optional[DeliveryRequest]:
        return self.db.query(DeliveryRequest).filter(DeliveryRequest.id == delivery_id).first()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def tracking_number_exists(self, tracking_number: str) -> bool:
        return self.db.query(DeliveryRequest.id).filter(
            DeliveryRequest.tracking_number == tracking_number
        ).first() is not None

    def create(self, data: Dict[str, Any]) -> DeliveryRequest:
        delivery = DeliveryRequest(**data)
        self.db.add(delivery)
        self.db.flush()
        return delivery

    def list(self, criteria: list, page: int, size: int, urgency: Optional[str] = None):
        query = self.db.query(DeliveryRequest)
        conditions = list(criteria)
        if urgency:
            conditions.append(DeliveryRequest.urgency == urgency)
        if conditions:
            query = query.filter(and_(*conditions))
        query = query.order_by(DeliveryRequest.created_at.desc(), DeliveryRequest.id.desc())
        return paginate(query, page, size)
