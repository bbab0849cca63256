# app/modules/users/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Any, Dict, List, Optional

from app.shared.database.models import Booking, Quote, User
from app.shared.database.pagination import paginate

class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def create(self, data: Dict[str, Any]) -> User:
        user = User(**data)
        self.db.add(user)
        self.db.flush()
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.flush()

    def has_related_records(self, user_id: int) -> bool:
        quotes = self.db.query(Quote.id).filter(Quote.customer_id == user_id).first()
        bookings = self.db.query(Booking.id).filter(Booking.customer_id == user_id).first()
        return quotes is not None or bookings is not None

    def list(self, page: int, size: int, role: Optional[str] = None, search: Optional[str] = None):
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.company.ilike(pattern)
            ))
        query = query.order_by(User.created_at.desc(), User.id.desc())
        return paginate(query, page, size)

    def get_by_role(self, role: str, active_only: bool = True) -> List[User]:
        query = self.db.query(User).filter(User.role == role)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.order_by(User.first_name, User.last_name).all()

    def get_pending_guests(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == "customer", User.is_active.is_(False))
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )
