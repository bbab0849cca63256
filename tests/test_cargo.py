from app.shared.database.models import Notification
from tests.conftest import auth_headers


def submit_cargo(client, user, booking, **extra):
    payload = {
        "booking_id": booking.id,
        "item_description": "Frozen seafood pallets",
        "quantity": 12,
        "weight": 1800.5,
        **extra
    }
    return client.post("/api/v1/cargo/", headers=auth_headers(user), json=payload)


def test_submit_parses_form_data_string(client, customer, make_booking):
    booking = make_booking()
    response = submit_cargo(client, customer, booking, form_data='{"pallets": 12}', status="completed")
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "submitted"
    assert body["form_data"] == {"pallets": 12}


def test_invalid_form_data_string(client, customer, make_booking):
    response = submit_cargo(client, customer, make_booking(), form_data="{not json")
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_customer_cannot_submit_on_foreign_booking(client, other_customer, make_booking):
    response = submit_cargo(client, other_customer, make_booking())
    assert response.status_code == 403


def test_cargo_lifecycle(client, db, customer, supervisor, warehouse_user, make_booking):
    cargo = submit_cargo(client, customer, make_booking()).json()
    url = f"/api/v1/cargo/{cargo['id']}"

    response = client.post(f"{url}/approve", headers=auth_headers(supervisor))
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_by_id"] == supervisor.id

    # warehouse owner and customer are both notified
    recipients = {n.recipient for n in db.query(Notification).all()}
    assert {warehouse_user.email, customer.email} <= recipients

    queue = client.get("/api/v1/cargo/", headers=auth_headers(warehouse_user)).json()
    assert [c["id"] for c in queue["items"]] == [cargo["id"]]

    assert client.post(f"{url}/process", headers=auth_headers(warehouse_user)).json()["status"] == "processing"
    assert client.post(f"{url}/complete", headers=auth_headers(warehouse_user)).json()["status"] == "completed"


def test_reject_returns_to_submitted(client, customer, supervisor, make_booking):
    cargo = submit_cargo(client, customer, make_booking()).json()
    client.post(f"/api/v1/cargo/{cargo['id']}/approve", headers=auth_headers(supervisor))

    response = client.post(
        f"/api/v1/cargo/{cargo['id']}/reject",
        headers=auth_headers(supervisor),
        json={"reason": "Missing weight certificate"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "submitted"
    assert response.json()["special_handling"] == "Rejected: Missing weight certificate"


def test_process_requires_approval(client, customer, warehouse_user, make_booking):
    cargo = submit_cargo(client, customer, make_booking()).json()
    response = client.post(f"/api/v1/cargo/{cargo['id']}/process", headers=auth_headers(warehouse_user))
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_TRANSITION"


def test_customer_sees_only_own_cargo(client, customer, other_customer, make_booking):
    submit_cargo(client, customer, make_booking())
    submit_cargo(client, other_customer, make_booking(owner=other_customer))

    body = client.get("/api/v1/cargo/", headers=auth_headers(customer)).json()
    assert body["total"] == 1


def test_cargo_by_booking(client, customer, other_customer, make_booking):
    booking = make_booking()
    submit_cargo(client, customer, booking)
    submit_cargo(client, customer, booking, item_description="Dry goods")

    response = client.get(f"/api/v1/cargo/booking/{booking.id}", headers=auth_headers(customer))
    assert response.status_code == 200
    assert len(response.json()) == 2

    response = client.get(f"/api/v1/cargo/booking/{booking.id}", headers=auth_headers(other_customer))
    assert response.status_code == 403
