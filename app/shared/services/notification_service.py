# app/shared/services/notification_service.py
"""
Notificaciones de flujo (outbox)

Las transiciones encolan filas `Notification` en la misma sesión, antes del
commit. Tras el commit, `flush()` agenda `dispatch_notifications` como
BackgroundTask con su propia sesión: un fallo de envío marca la fila como
`failed` (reintentable) y nunca revierte la transición.
"""
import logging
from datetime import datetime
from html import escape
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.config import database
from app.config.settings import settings
from app.shared.database.models import Notification
from app.shared.services.notification_client import NotificationGateway

logger = logging.getLogger(__name__)

BRAND = "Warehouse Wizard"


class NotificationService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.background_tasks = background_tasks
        self._queued: List[Notification] = []

    # ==================== OUTBOX ====================

    def queue_email(self, to: Optional[str], subject: str, html: str,
                    entity_kind: Optional[str] = None, entity_id: Optional[int] = None) -> Optional[Notification]:
        if not to:
            logger.warning(f"⚠️ Notificación '{subject}' sin destinatario, se omite")
            return None
        notification = Notification(
            channel="email",
            recipient=to,
            subject=subject,
            body=html,
            status="pending",
            attempts=0,
            entity_kind=entity_kind,
            entity_id=entity_id
        )
        self.db.add(notification)
        self._queued.append(notification)
        return notification

    def queue_sms(self, to: Optional[str], message: str,
                  entity_kind: Optional[str] = None, entity_id: Optional[int] = None) -> Optional[Notification]:
        if not to:
            return None
        notification = Notification(
            channel="sms",
            recipient=to,
            body=message,
            status="pending",
            attempts=0,
            entity_kind=entity_kind,
            entity_id=entity_id
        )
        self.db.add(notification)
        self._queued.append(notification)
        return notification

    def flush(self) -> List[int]:
        """Agendar el despacho de lo encolado; llamar después del commit"""
        ids = [n.id for n in self._queued if n.id is not None]
        self._queued = []
        if not ids:
            return ids

        if self.background_tasks is not None:
            self.background_tasks.add_task(dispatch_notifications, ids)
        else:
            dispatch_notifications(ids)
        return ids

    # ==================== PLANTILLAS ====================

    def quote_request_received(self, email: str, quote_id: int):
        return self.queue_email(
            email,
            f"Quote Request Received - {BRAND}",
            f"<h2>Quote Request Received</h2>"
            f"<p>Your quote request (ID: {quote_id}) has been received and is being processed.</p>"
            f"<p>You will receive an update within 24 hours.</p>",
            "quote", quote_id
        )

    def quote_approved(self, email: str, quote_id: int, amount: float):
        return self.queue_email(
            email,
            f"Quote Approved - {BRAND}",
            f"<h2>Quote Approved</h2>"
            f"<p>Your quote request (ID: {quote_id}) has been approved.</p>"
            f"<p>Total Amount: ${amount:,.2f}</p>"
            f"<p>Please log in to your dashboard to proceed with booking.</p>",
            "quote", quote_id
        )

    def booking_confirmation(self, email: str, booking_id: int):
        return self.queue_email(
            email,
            f"Booking Confirmed - {BRAND}",
            f"<h2>Booking Confirmed</h2>"
            f"<p>Your booking (ID: {booking_id}) has been confirmed.</p>"
            f"<p>You can track your booking status in your dashboard.</p>",
            "booking", booking_id
        )

    def booking_cancelled(self, email: str, booking_id: int, reason: Optional[str] = None):
        reason_html = f"<p>Reason: {escape(reason)}</p>" if reason else ""
        return self.queue_email(
            email,
            f"Booking Cancelled - {BRAND}",
            f"<h2>Booking Cancelled</h2>"
            f"<p>Your booking (ID: {booking_id}) has been cancelled.</p>{reason_html}",
            "booking", booking_id
        )

    def cargo_approved(self, email: str, cargo_id: int, booking_id: int, audience: str):
        return self.queue_email(
            email,
            f"Cargo Dispatch Approved - {BRAND}",
            f"<h2>Cargo Dispatch Approved</h2>"
            f"<p>Cargo dispatch {cargo_id} for booking {booking_id} has been approved.</p>"
            f"<p>{'Please prepare to receive the goods.' if audience == 'operations' else 'Your goods are cleared for dispatch.'}</p>",
            "cargo", cargo_id
        )

    def delivery_created(self, email: str, delivery_id: int, tracking_number: str):
        return self.queue_email(
            email,
            f"Delivery Request Received - {BRAND}",
            f"<h2>Delivery Request Received</h2>"
            f"<p>Your delivery request has been received.</p>"
            f"<p>Tracking Number: {tracking_number}</p>",
            "delivery", delivery_id
        )

    def delivery_scheduled(self, email: str, delivery_id: int, tracking_number: str, driver: Optional[str]):
        return self.queue_email(
            email,
            f"Delivery Scheduled - {BRAND}",
            f"<h2>Delivery Scheduled</h2>"
            f"<p>Your delivery {tracking_number} has been scheduled.</p>"
            f"<p>Driver: {escape(driver) if driver else 'To be assigned'}</p>",
            "delivery", delivery_id
        )

    def delivery_in_transit(self, email: str, delivery_id: int, tracking_number: str):
        return self.queue_email(
            email,
            f"Delivery Update - {BRAND}",
            f"<h2>Delivery Update</h2>"
            f"<p>Your delivery is in transit.</p>"
            f"<p>Tracking Number: {tracking_number}</p>"
            f"<p>You can track your delivery in your dashboard.</p>",
            "delivery", delivery_id
        )

    def delivery_in_transit_sms(self, mobile: Optional[str], delivery_id: int, tracking_number: str):
        return self.queue_sms(
            mobile,
            f"{BRAND}: your delivery {tracking_number} is in transit.",
            "delivery", delivery_id
        )

    def delivery_completed(self, email: str, delivery_id: int, tracking_number: str, notes: Optional[str] = None):
        notes_html = f"<p>Notes: {escape(notes)}</p>" if notes else ""
        return self.queue_email(
            email,
            f"Delivery Completed - {BRAND}",
            f"<h2>Delivery Completed</h2>"
            f"<p>Your delivery {tracking_number} has been delivered.</p>{notes_html}",
            "delivery", delivery_id
        )

    def invoice_sent(self, email: str, invoice_id: int, invoice_number: str, amount: float, due_date):
        return self.queue_email(
            email,
            f"Invoice {invoice_number} - {BRAND}",
            f"<h2>New Invoice</h2>"
            f"<p>Invoice {invoice_number} for ${amount:,.2f} is due on {due_date}.</p>",
            "invoice", invoice_id
        )

    def invoice_paid(self, email: str, invoice_id: int, invoice_number: str, amount: float):
        return self.queue_email(
            email,
            f"Payment Received - {invoice_number}",
            f"<h2>Payment Received</h2>"
            f"<p>We received your payment of ${amount:,.2f} for invoice {invoice_number}. Thank you!</p>",
            "invoice", invoice_id
        )

    def invoice_overdue(self, email: str, invoice_id: int, invoice_number: str, amount: float, due_date):
        return self.queue_email(
            email,
            f"Overdue Invoice - {invoice_number}",
            f"<h2>Invoice Overdue</h2>"
            f"<p>Invoice {invoice_number} for ${amount:,.2f} was due on {due_date} and is now overdue.</p>",
            "invoice", invoice_id
        )

    def welcome(self, email: str, user_id: int, first_name: str):
        return self.queue_email(
            email,
            f"Welcome to {BRAND}",
            f"<h2>Welcome to {BRAND}!</h2>"
            f"<p>Hello {first_name},</p>"
            f"<p>Your account has been created successfully.</p>",
            "user", user_id
        )

    def guest_account_created(self, email: str, user_id: int, first_name: str, temp_password: str):
        return self.queue_email(
            email,
            f"Guest Account Created - {BRAND}",
            f"<h2>Guest Account Created</h2>"
            f"<p>Hello {first_name},</p>"
            f"<p>A guest account has been created for you and is pending verification.</p>"
            f"<p>Temporary Password: <strong>{temp_password}</strong></p>"
            f"<p>Please log in and change your password once your account is verified.</p>",
            "user", user_id
        )

    def account_activated(self, email: str, user_id: int, first_name: str):
        return self.queue_email(
            email,
            f"Account Activated - {BRAND}",
            f"<h2>Account Activated</h2>"
            f"<p>Hello {first_name},</p>"
            f"<p>Your account has been activated. You can now access all features.</p>",
            "user", user_id
        )

    def account_verified(self, email: str, user_id: int, first_name: str):
        return self.queue_email(
            email,
            f"Account Verified - {BRAND}",
            f"<h2>Welcome, {first_name}!</h2>"
            f"<p>Your account has been verified. You can now log in and request quotes.</p>",
            "user", user_id
        )


# ==================== DESPACHO ====================

def _deliver(gateway: NotificationGateway, notification: Notification) -> bool:
    if notification.channel == "sms":
        return gateway.send_sms(notification.recipient, notification.body)
    return gateway.send_email(notification.recipient, notification.subject or "", notification.body)


def dispatch_notifications(notification_ids: List[int]) -> int:
    """Enviar notificaciones pendientes/fallidas; devuelve cuántas se enviaron"""
    db = database.SessionLocal()
    gateway = NotificationGateway()
    sent = 0
    try:
        notifications = (
            db.query(Notification)
            .filter(Notification.id.in_(notification_ids))
            .filter(Notification.status.in_(["pending", "failed"]))
            .all()
        )
        for notification in notifications:
            notification.attempts = (notification.attempts or 0) + 1
            try:
                ok = _deliver(gateway, notification)
                error = None if ok else "Gateway rejected the message"
            except Exception as e:
                # cualquier fallo del proveedor deja la fila reintentable
                logger.exception(f"💥 Error despachando notificación {notification.id}")
                ok, error = False, str(e)

            if ok:
                notification.status = "sent"
                notification.sent_at = datetime.now()
                notification.last_error = None
                sent += 1
            else:
                notification.status = "failed"
                notification.last_error = error
                logger.warning(
                    f"⚠️ Notificación {notification.id} falló (intento {notification.attempts}): {error}"
                )
            db.commit()
        return sent
    finally:
        db.close()


def retry_failed_notifications(db: Session, limit: int = 100) -> List[int]:
    """IDs fallidos con intentos restantes, para reenviar"""
    rows = (
        db.query(Notification.id)
        .filter(Notification.status == "failed")
        .filter(Notification.attempts < settings.notification_max_attempts)
        .order_by(Notification.id)
        .limit(limit)
        .all()
    )
    return [row.id for row in rows]
