from datetime import date, timedelta

from app.shared.database.models import Notification
from app.modules.deliveries.service import generate_tracking_number
from tests.conftest import auth_headers


def request_delivery(client, customer, booking, **extra):
    payload = {
        "booking_id": booking.id,
        "delivery_address": "Plot 42, MIDC, Pune",
        "preferred_date": (date.today() + timedelta(days=3)).isoformat(),
        **extra
    }
    return client.post("/api/v1/deliveries/", headers=auth_headers(customer), json=payload)


def test_tracking_number_format():
    number = generate_tracking_number()
    assert number.startswith("WW")
    assert len(number) == 14


def test_request_delivery(client, db, customer, make_booking):
    response = request_delivery(client, customer, make_booking(), urgency="express")
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "requested"
    assert body["urgency"] == "express"
    assert body["customer_id"] == customer.id
    assert body["tracking_number"].startswith("WW")
    assert db.query(Notification).filter(Notification.recipient == customer.email).count() == 1


def test_invalid_urgency(client, customer, make_booking):
    response = request_delivery(client, customer, make_booking(), urgency="yesterday")
    assert response.status_code == 400


def test_cannot_request_on_foreign_booking(client, other_customer, make_booking):
    response = request_delivery(client, other_customer, make_booking())
    assert response.status_code == 403


def test_delivery_lifecycle(client, db, customer, supervisor, warehouse_user, make_booking):
    delivery = request_delivery(client, customer, make_booking()).json()
    url = f"/api/v1/deliveries/{delivery['id']}"

    response = client.post(f"{url}/dispatch", headers=auth_headers(warehouse_user))
    assert response.status_code == 400

    scheduled_date = (date.today() + timedelta(days=5)).isoformat()
    response = client.post(
        f"{url}/schedule",
        headers=auth_headers(supervisor),
        json={"scheduled_date": scheduled_date, "assigned_driver": "Ramesh"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "scheduled"
    assert response.json()["scheduled_date"] == scheduled_date

    response = client.post(f"{url}/assign-driver", headers=auth_headers(supervisor), json={"assigned_driver": "Suresh"})
    assert response.json()["assigned_driver"] == "Suresh"

    response = client.post(f"{url}/dispatch", headers=auth_headers(warehouse_user))
    assert response.json()["status"] == "in_transit"
    # customer has a mobile number, so an SMS goes out too
    assert db.query(Notification).filter(Notification.channel == "sms").count() == 1

    response = client.post(f"{url}/complete", headers=auth_headers(warehouse_user), json={"delivery_notes": "Signed by guard"})
    assert response.json()["status"] == "delivered"
    assert response.json()["delivery_notes"] == "Signed by guard"


def test_track_delivery(client, customer, make_booking):
    delivery = request_delivery(client, customer, make_booking()).json()
    response = client.get(f"/api/v1/deliveries/{delivery['id']}/track", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["tracking_number"] == delivery["tracking_number"]
    assert response.json()["status"] == "requested"


def test_override_cannot_change_tracking_number(client, admin, customer, make_booking):
    delivery = request_delivery(client, customer, make_booking()).json()
    response = client.put(
        f"/api/v1/deliveries/{delivery['id']}",
        headers=auth_headers(admin),
        json={"tracking_number": "HACKED", "status": "delivered"}
    )
    assert response.status_code == 200
    assert response.json()["tracking_number"] == delivery["tracking_number"]
    assert response.json()["status"] == "delivered"


def test_list_by_status(client, supervisor, customer, make_booking):
    request_delivery(client, customer, make_booking())
    body = client.get("/api/v1/deliveries/status/requested", headers=auth_headers(supervisor)).json()
    assert body["total"] == 1
    assert client.get("/api/v1/deliveries/status/scheduled", headers=auth_headers(supervisor)).json()["total"] == 0
