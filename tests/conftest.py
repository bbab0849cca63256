import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_API_URL"] = ""
os.environ["SMS_API_URL"] = ""

import itertools
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.config.database import Base, SessionLocal, engine
from app.core.auth.service import AuthService
from app.main import app
from app.shared.database.models import Booking, Quote, User, Warehouse
from app.shared.services.cache_service import cache_service

PASSWORD = "secret123"
PASSWORD_HASH = AuthService.get_password_hash(PASSWORD)

_emails = itertools.count(1)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {AuthService.create_token_for_user(user)}"}


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    cache_service.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    def _make(role: str, is_active: bool = True, **extra) -> User:
        user = User(
            email=extra.pop("email", f"{role}{next(_emails)}@example.com"),
            password_hash=PASSWORD_HASH,
            first_name=extra.pop("first_name", role.title()),
            last_name="Tester",
            role=role,
            is_active=is_active,
            **extra
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def customer(make_user):
    return make_user("customer", mobile="+919800000001")


@pytest.fixture
def other_customer(make_user):
    return make_user("customer")


@pytest.fixture
def purchase_support(make_user):
    return make_user("purchase_support")


@pytest.fixture
def sales_support(make_user):
    return make_user("sales_support")


@pytest.fixture
def supervisor(make_user):
    return make_user("supervisor")


@pytest.fixture
def warehouse_user(make_user):
    return make_user("warehouse")


@pytest.fixture
def accounts(make_user):
    return make_user("accounts")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def warehouse(db, warehouse_user):
    record = Warehouse(
        name="Bhiwandi Cold Hub",
        location="NH-3, Bhiwandi",
        city="Thane",
        state="Maharashtra",
        storage_type="cold_storage",
        total_space=1000,
        available_space=1000,
        price_per_sqft=10,
        features=["24x7 security"],
        is_active=True,
        owner_id=warehouse_user.id
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def make_quote(db, customer, warehouse):
    def _make(status: str = "quoted", required_space: float = 100, owner: User = None, **extra) -> Quote:
        quote = Quote(
            customer_id=(owner or customer).id,
            storage_type="cold_storage",
            required_space=required_space,
            preferred_location="Thane",
            duration="6 months",
            status=status,
            final_price=extra.pop("final_price", 9000),
            warehouse_id=extra.pop("warehouse_id", warehouse.id),
            **extra
        )
        db.add(quote)
        db.commit()
        db.refresh(quote)
        return quote
    return _make


@pytest.fixture
def booking_payload():
    def _payload(quote: Quote, **extra) -> dict:
        start = date.today() + timedelta(days=7)
        return {
            "quote_id": quote.id,
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=180)).isoformat(),
            **extra
        }
    return _payload


@pytest.fixture
def make_booking(db, customer, warehouse, make_quote):
    def _make(status: str = "confirmed", reserved_space: float = 0, owner: User = None) -> Booking:
        owner = owner or customer
        quote = make_quote(status="approved", owner=owner)
        booking = Booking(
            quote_id=quote.id,
            customer_id=owner.id,
            warehouse_id=warehouse.id,
            status=status,
            start_date=date.today(),
            end_date=date.today() + timedelta(days=90),
            total_amount=9000,
            reserved_space=reserved_space
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking
    return _make
