from app.shared.database.models import AuditLog, Notification, User
from tests.conftest import PASSWORD, auth_headers

REGISTER = {
    "email": "Ravi.Kumar@Example.com",
    "password": "secret123",
    "first_name": "Ravi",
    "last_name": "Kumar",
    "company": "Kumar Traders"
}


def test_register_creates_active_customer(client, db):
    response = client.post("/api/v1/auth/register", json=REGISTER)
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["role"] == "customer"
    assert body["user"]["email"] == "ravi.kumar@example.com"

    welcome = db.query(Notification).filter(Notification.recipient == "ravi.kumar@example.com").one()
    assert welcome.status == "sent"


def test_register_ignores_requested_staff_role(client, db):
    response = client.post("/api/v1/auth/register", json={**REGISTER, "role": "supervisor"})
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "customer"


def test_register_admin_role_is_forbidden_and_audited(client, db):
    response = client.post("/api/v1/auth/register", json={**REGISTER, "role": "admin"})
    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN_ADMIN_ROLE"
    assert db.query(User).count() == 0

    entry = db.query(AuditLog).filter(AuditLog.action == "forbidden_admin_role").one()
    assert entry.details["path"] == "/api/v1/auth/register"
    assert "password" not in entry.details["body"]


def test_register_duplicate_email(client, customer):
    response = client.post("/api/v1/auth/register", json={**REGISTER, "email": customer.email})
    assert response.status_code == 400
    assert response.json()["error"] == "EMAIL_EXISTS"


def test_register_validation_envelope(client):
    response = client.post("/api/v1/auth/register", json={**REGISTER, "email": "not-an-email"})
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request data"
    assert body["error"] == "VALIDATION_ERROR"
    assert any(e["field"] == "email" for e in body["errors"])


def test_login_json(client, customer):
    response = client.post("/api/v1/auth/login-json", json={"email": customer.email, "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == customer.id


def test_login_form(client, customer):
    response = client.post("/api/v1/auth/login", data={"username": customer.email, "password": PASSWORD})
    assert response.status_code == 200


def test_login_wrong_password(client, customer):
    response = client.post("/api/v1/auth/login-json", json={"email": customer.email, "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_inactive_account(client, make_user):
    guest = make_user("customer", is_active=False)
    response = client.post("/api/v1/auth/login-json", json={"email": guest.email, "password": PASSWORD})
    assert response.status_code == 403
    assert response.json()["error"] == "ACCOUNT_INACTIVE"


def test_guest_account_is_inactive(client, db):
    response = client.post("/api/v1/auth/guest", json={
        "email": "guest@example.com",
        "first_name": "Guest",
        "last_name": "Customer"
    })
    assert response.status_code == 201
    assert response.json()["is_active"] is False
    assert db.query(Notification).filter(Notification.recipient == "guest@example.com").count() == 1


def test_missing_token(client):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json() == {"message": "Access token required", "error": "UNAUTHENTICATED"}


def test_invalid_token(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_token_of_deactivated_user_is_rejected(client, db, customer):
    headers = auth_headers(customer)
    customer.is_active = False
    db.commit()
    assert client.get("/api/v1/auth/me", headers=headers).status_code == 401


def test_role_not_allowed(client, warehouse_user):
    response = client.post("/api/v1/quotes/", headers=auth_headers(warehouse_user), json={
        "storage_type": "dry_storage",
        "required_space": 100,
        "preferred_location": "Pune",
        "duration": "3 months"
    })
    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"
