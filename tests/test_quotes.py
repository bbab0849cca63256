from app.shared.database.models import AuditLog, Notification
from tests.conftest import auth_headers

QUOTE = {
    "storage_type": "cold_storage",
    "required_space": 500,
    "preferred_location": "Mumbai",
    "duration": "6 months",
    "special_requirements": "Temperature below 4°C"
}


def create_quote(client, customer, **extra):
    response = client.post("/api/v1/quotes/", headers=auth_headers(customer), json={**QUOTE, **extra})
    assert response.status_code == 201
    return response.json()


def test_create_quote_uses_authenticated_customer(client, db, customer, other_customer):
    body = create_quote(client, customer, customer_id=other_customer.id, status="approved")
    assert body["customer_id"] == customer.id
    assert body["status"] == "pending"
    assert db.query(Notification).filter(Notification.recipient == customer.email).count() == 1


def test_full_quote_flow(client, db, customer, purchase_support, warehouse_user, sales_support, warehouse):
    quote = create_quote(client, customer)

    pending = client.get("/api/v1/quotes/", headers=auth_headers(purchase_support)).json()
    assert [q["id"] for q in pending["items"]] == [quote["id"]]

    response = client.post(
        f"/api/v1/quotes/{quote['id']}/assign",
        headers=auth_headers(purchase_support),
        json={"assigned_to": warehouse_user.id}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "processing"
    assert response.json()["assigned_to"] == warehouse_user.id

    assigned = client.get("/api/v1/quotes/", headers=auth_headers(warehouse_user)).json()
    assert assigned["total"] == 1

    response = client.post(
        f"/api/v1/quotes/{quote['id']}/approve",
        headers=auth_headers(sales_support),
        json={"final_price": 45000, "warehouse_id": warehouse.id}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "quoted"
    assert response.json()["final_price"] == 45000

    response = client.post(f"/api/v1/quotes/{quote['id']}/accept", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["status"] == "approved"


def test_assign_requires_staff_assignee(client, customer, other_customer, purchase_support):
    quote = create_quote(client, customer)
    response = client.post(
        f"/api/v1/quotes/{quote['id']}/assign",
        headers=auth_headers(purchase_support),
        json={"assigned_to": other_customer.id}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_ASSIGNEE"


def test_invalid_transition(client, customer, sales_support, warehouse):
    quote = create_quote(client, customer)
    response = client.post(
        f"/api/v1/quotes/{quote['id']}/approve",
        headers=auth_headers(sales_support),
        json={"final_price": 100, "warehouse_id": warehouse.id}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_TRANSITION"


def test_reject_overwrites_requirements(client, db, customer, sales_support, make_quote):
    quote = make_quote(status="processing")
    response = client.post(
        f"/api/v1/quotes/{quote.id}/reject",
        headers=auth_headers(sales_support),
        json={"reason": "No capacity in region"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["special_requirements"] == "Rejected: No capacity in region"


def test_reject_without_body(client, sales_support, make_quote):
    quote = make_quote(status="quoted")
    response = client.post(f"/api/v1/quotes/{quote.id}/reject", headers=auth_headers(sales_support))
    assert response.status_code == 200
    assert response.json()["special_requirements"] == "Rejected"


def test_customer_cannot_read_foreign_quote(client, customer, other_customer):
    quote = create_quote(client, customer)
    response = client.get(f"/api/v1/quotes/{quote['id']}", headers=auth_headers(other_customer))
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied"


def test_missing_quote(client, supervisor):
    response = client.get("/api/v1/quotes/9999", headers=auth_headers(supervisor))
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_customer_list_is_not_stale_after_create(client, customer):
    create_quote(client, customer)
    assert client.get("/api/v1/quotes/", headers=auth_headers(customer)).json()["total"] == 1
    create_quote(client, customer)
    assert client.get("/api/v1/quotes/", headers=auth_headers(customer)).json()["total"] == 2


def test_invalid_status_filter(client, supervisor):
    response = client.get("/api/v1/quotes/?status=archived", headers=auth_headers(supervisor))
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_STATUS"


def test_status_all_removes_default_view(client, purchase_support, make_quote):
    make_quote(status="pending")
    make_quote(status="quoted")
    headers = auth_headers(purchase_support)
    assert client.get("/api/v1/quotes/", headers=headers).json()["total"] == 1
    assert client.get("/api/v1/quotes/?status=all", headers=headers).json()["total"] == 2
    assert client.get("/api/v1/quotes/status/quoted", headers=headers).json()["total"] == 1


def test_calculate_price_does_not_touch_final_price(client, db, customer, make_quote):
    quote = make_quote(status="quoted", required_space=100, final_price=1)
    response = client.get(f"/api/v1/quotes/{quote.id}/calculate-price", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["estimated_price"] == 9000.0
    db.refresh(quote)
    assert float(quote.final_price) == 1


def test_admin_override_is_audited(client, db, admin, make_quote):
    quote = make_quote(status="pending")
    response = client.put(
        f"/api/v1/quotes/{quote.id}",
        headers=auth_headers(admin),
        json={"status": "rejected", "special_requirements": None}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["special_requirements"] is None

    entry = db.query(AuditLog).filter(AuditLog.action == "quote.override").one()
    assert entry.actor_id == admin.id
    assert entry.details["changes"]["status"] == {"from": "pending", "to": "rejected"}


def test_override_rejects_unknown_status(client, admin, make_quote):
    quote = make_quote(status="pending")
    response = client.put(f"/api/v1/quotes/{quote.id}", headers=auth_headers(admin), json={"status": "archived"})
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_override_requires_admin(client, supervisor, make_quote):
    quote = make_quote(status="pending")
    response = client.put(f"/api/v1/quotes/{quote.id}", headers=auth_headers(supervisor), json={"status": "quoted"})
    assert response.status_code == 403
