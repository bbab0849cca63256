from tests.conftest import auth_headers


def test_customer_stats(client, db, customer, other_customer, accounts, make_quote, make_booking):
    make_quote(status="pending")
    make_booking(status="active")
    make_booking(status="cancelled")
    make_booking(status="active", owner=other_customer)

    body = client.get("/api/v1/dashboard/stats", headers=auth_headers(customer)).json()
    assert body["role"] == "customer"
    stats = body["stats"]
    # each booking fixture also creates its quote
    assert stats["total_quotes"] == 3
    assert stats["total_bookings"] == 2
    assert stats["active_bookings"] == 1
    assert stats["total_spent"] == 0


def test_purchase_support_stats(client, purchase_support, make_user, make_quote):
    make_user("customer", is_active=False)
    make_quote(status="pending")
    make_quote(status="processing")

    stats = client.get("/api/v1/dashboard/stats", headers=auth_headers(purchase_support)).json()["stats"]
    assert stats == {"pending_quotes": 1, "processing_quotes": 1, "guest_customers": 1}


def test_accounts_stats(client, accounts, make_booking):
    booking = make_booking()
    invoice = client.post("/api/v1/invoices/", headers=auth_headers(accounts), json={"booking_id": booking.id}).json()
    client.post(f"/api/v1/invoices/{invoice['id']}/send", headers=auth_headers(accounts))
    client.post(f"/api/v1/invoices/{invoice['id']}/mark-paid", headers=auth_headers(accounts))

    stats = client.get("/api/v1/dashboard/stats", headers=auth_headers(accounts)).json()["stats"]
    assert stats["paid_invoices"] == 1
    assert stats["total_revenue"] == 9000
    assert stats["outstanding_amount"] == 0


def test_admin_stats(client, admin, supervisor, warehouse):
    stats = client.get("/api/v1/dashboard/stats", headers=auth_headers(admin)).json()["stats"]
    assert stats["users_by_role"]["admin"] == 1
    assert stats["capacity"] == {"active_warehouses": 1, "total_space": 1000.0, "available_space": 1000.0}
    assert "quotes_by_status" in stats


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/api/v1/health").json()["status"] == "healthy"
    for module in ("quotes", "bookings", "cargo", "deliveries", "invoices", "users", "warehouses", "dashboard", "notifications"):
        assert client.get(f"/api/v1/{module}/health").status_code == 200
