from app.shared.database.models import AuditLog, Notification, User
from tests.conftest import PASSWORD, auth_headers


def test_profile_update_ignores_privileged_fields(client, db, customer):
    response = client.put(
        "/api/v1/users/profile",
        headers=auth_headers(customer),
        json={"company": "Acme Cold Chain", "role": "supervisor", "is_active": False}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["company"] == "Acme Cold Chain"
    assert body["role"] == "customer"
    assert body["is_active"] is True


def test_profile_update_to_admin_is_forbidden(client, db, customer):
    response = client.put("/api/v1/users/profile", headers=auth_headers(customer), json={"role": "admin"})
    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN_ADMIN_ROLE"
    assert db.query(AuditLog).filter(AuditLog.actor_id == customer.id).count() == 1


def test_change_password(client, customer):
    headers = auth_headers(customer)
    response = client.post("/api/v1/users/change-password", headers=headers, json={
        "current_password": "wrong-one",
        "new_password": "newsecret1",
        "confirm_password": "newsecret1"
    })
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_PASSWORD"

    response = client.post("/api/v1/users/change-password", headers=headers, json={
        "current_password": PASSWORD,
        "new_password": "newsecret1",
        "confirm_password": "newsecret1"
    })
    assert response.status_code == 200
    login = client.post("/api/v1/auth/login-json", json={"email": customer.email, "password": "newsecret1"})
    assert login.status_code == 200


def test_roles_catalogue(client, customer):
    roles = client.get("/api/v1/users/roles", headers=auth_headers(customer)).json()
    assert {r["role"] for r in roles} == {
        "customer", "purchase_support", "sales_support", "supervisor", "warehouse", "accounts", "admin"
    }


def test_admin_creates_staff_user(client, admin):
    response = client.post("/api/v1/users/", headers=auth_headers(admin), json={
        "email": "new.sales@example.com",
        "password": "secret123",
        "first_name": "Neha",
        "last_name": "Sales",
        "role": "sales_support"
    })
    assert response.status_code == 201
    assert response.json()["role"] == "sales_support"


def test_admin_cannot_create_admin(client, db, admin):
    response = client.post("/api/v1/users/", headers=auth_headers(admin), json={
        "email": "second.admin@example.com",
        "password": "secret123",
        "first_name": "Second",
        "last_name": "Admin",
        "role": "admin"
    })
    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN_ADMIN_ROLE"
    assert db.query(User).filter(User.email == "second.admin@example.com").count() == 0


def test_admin_cannot_promote_to_admin(client, admin, supervisor):
    response = client.put(f"/api/v1/users/{supervisor.id}", headers=auth_headers(admin), json={"role": "admin"})
    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN_ADMIN_ROLE"


def test_list_users_with_search(client, admin, make_user):
    make_user("customer", first_name="Zubin")
    body = client.get("/api/v1/users/?search=zubin", headers=auth_headers(admin)).json()
    assert body["total"] == 1
    assert body["items"][0]["first_name"] == "Zubin"

    response = client.get("/api/v1/users/?role=boss", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_ROLE"


def test_non_admin_cannot_manage_users(client, supervisor):
    assert client.get("/api/v1/users/", headers=auth_headers(supervisor)).status_code == 403


def test_cannot_deactivate_self(client, admin):
    response = client.post(f"/api/v1/users/{admin.id}/deactivate", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "SELF_DEACTIVATE"


def test_cannot_deactivate_other_admin(client, admin, make_user):
    other_admin = make_user("admin")
    response = client.post(f"/api/v1/users/{other_admin.id}/deactivate", headers=auth_headers(admin))
    assert response.status_code == 403


def test_deactivate_and_activate(client, db, admin, customer):
    response = client.post(f"/api/v1/users/{customer.id}/deactivate", headers=auth_headers(admin))
    assert response.json()["is_active"] is False
    response = client.post(f"/api/v1/users/{customer.id}/activate", headers=auth_headers(admin))
    assert response.json()["is_active"] is True
    assert db.query(Notification).filter(Notification.recipient == customer.email).count() == 1


def test_delete_user(client, db, admin, make_user):
    user = make_user("accounts")
    response = client.delete(f"/api/v1/users/{user.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    db.expire_all()
    assert db.query(User).filter(User.id == user.id).first() is None


def test_delete_user_with_records_is_blocked(client, admin, customer, make_quote):
    make_quote(status="pending")
    response = client.delete(f"/api/v1/users/{customer.id}", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "USER_HAS_RECORDS"


def test_cannot_delete_self(client, admin):
    response = client.delete(f"/api/v1/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "SELF_DELETE"


def test_guest_verification(client, db, purchase_support, customer, make_user):
    guest = make_user("customer", is_active=False)
    headers = auth_headers(purchase_support)

    pending = client.get("/api/v1/users/pending-guests", headers=headers).json()
    assert [u["id"] for u in pending] == [guest.id]

    response = client.post(f"/api/v1/users/{guest.id}/verify", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is True

    # an already active customer is not a pending guest
    response = client.post(f"/api/v1/users/{customer.id}/verify", headers=headers)
    assert response.status_code == 404


def test_users_by_role(client, supervisor, warehouse_user, make_user):
    make_user("warehouse", is_active=False)
    body = client.get("/api/v1/users/by-role/warehouse", headers=auth_headers(supervisor)).json()
    assert [u["id"] for u in body] == [warehouse_user.id]
