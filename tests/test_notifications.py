from app.shared.database.models import Invoice, Notification
from app.shared.services.notification_client import NotificationGateway
from tests.conftest import auth_headers


def failing_send(self, to, subject, html):
    raise RuntimeError("SMTP relay unavailable")


def test_failed_email_does_not_revert_transition(client, db, monkeypatch, accounts, make_booking):
    booking = make_booking()
    invoice = client.post("/api/v1/invoices/", headers=auth_headers(accounts), json={"booking_id": booking.id}).json()

    monkeypatch.setattr(NotificationGateway, "send_email", failing_send)
    response = client.post(f"/api/v1/invoices/{invoice['id']}/send", headers=auth_headers(accounts))
    assert response.status_code == 200
    assert response.json()["status"] == "sent"

    db.expire_all()
    assert db.query(Invoice).filter(Invoice.id == invoice["id"]).one().status == "sent"
    notification = db.query(Notification).filter(Notification.entity_kind == "invoice").one()
    assert notification.status == "failed"
    assert notification.attempts == 1
    assert "SMTP relay unavailable" in notification.last_error


def test_gateway_rejection_marks_failed(client, db, monkeypatch, customer):
    monkeypatch.setattr(NotificationGateway, "send_email", lambda self, to, subject, html: False)
    response = client.post("/api/v1/quotes/", headers=auth_headers(customer), json={
        "storage_type": "dry_storage",
        "required_space": 50,
        "preferred_location": "Pune",
        "duration": "1 year"
    })
    assert response.status_code == 201
    notification = db.query(Notification).one()
    assert notification.status == "failed"
    assert notification.last_error == "Gateway rejected the message"


def test_admin_retries_failed_notifications(client, db, monkeypatch, admin, customer):
    monkeypatch.setattr(NotificationGateway, "send_email", failing_send)
    client.post("/api/v1/quotes/", headers=auth_headers(customer), json={
        "storage_type": "hazmat",
        "required_space": 20,
        "preferred_location": "Surat",
        "duration": "3 months"
    })

    failed = client.get("/api/v1/notifications/?status=failed", headers=auth_headers(admin)).json()
    assert failed["total"] == 1

    monkeypatch.undo()
    response = client.post("/api/v1/notifications/retry", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["scheduled"] == [failed["items"][0]["id"]]

    db.expire_all()
    notification = db.query(Notification).one()
    assert notification.status == "sent"
    assert notification.attempts == 2


def test_notifications_are_admin_only(client, supervisor):
    assert client.get("/api/v1/notifications/", headers=auth_headers(supervisor)).status_code == 403


def test_invalid_notification_filter(client, admin):
    response = client.get("/api/v1/notifications/?status=bounced", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_STATUS"


def test_cancellation_reason_is_escaped_in_email(client, db, customer, make_booking):
    booking = make_booking(status="pending")
    response = client.post(
        f"/api/v1/bookings/{booking.id}/cancel",
        headers=auth_headers(customer),
        json={"reason": "<script>alert(1)</script>"}
    )
    assert response.status_code == 200

    notification = db.query(Notification).filter(Notification.entity_kind == "booking").one()
    assert "<script>" not in notification.body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in notification.body
