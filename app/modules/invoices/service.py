# app/modules/invoices/service.py
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta
from fastapi import BackgroundTasks, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.audit import apply_override
from app.core.exceptions import NotFoundError, PreconditionError, UnexpectedError
from app.core.policy import EntityKind, ensure_can_view, scope_filter
from app.core.workflow import INVOICE_WORKFLOW, InvoiceStatus
from app.shared.database.models import Invoice, User
from app.shared.database.transaction import unit_of_work
from app.shared.services.notification_service import NotificationService
from .repository import InvoiceRepository
from .schemas import (
    InvoiceCreateRequest, InvoiceMarkPaidRequest, InvoicePayRequest,
    InvoiceUpdateRequest, InvoiceListResponse, InvoiceResponse
)

logger = logging.getLogger(__name__)

# Reintentos si dos emisiones concurrentes chocan al crear el contador del mes
INVOICE_NUMBER_ATTEMPTS = 3
NULLABLE_OVERRIDE_FIELDS = {"paid_at", "payment_method", "transaction_id"}


class InvoiceService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.repository = InvoiceRepository(db)
        self.notifications = NotificationService(db, background_tasks)

    def _get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.repository.get_by_id(invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    async def create_invoice(self, payload: InvoiceCreateRequest, actor: User) -> Invoice:
        """Emitir factura `draft` con número correlativo del mes"""
        booking = self.repository.get_booking(payload.booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        amount = payload.amount if payload.amount is not None else booking.total_amount
        due_date = payload.due_date or (datetime.now() + relativedelta(months=settings.invoice_due_months)).date()

        for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
            try:
                invoice_number = self.repository.next_invoice_number(datetime.now())
                invoice = self.repository.create({
                    "booking_id": booking.id,
                    "customer_id": booking.customer_id,
                    "invoice_number": invoice_number,
                    "amount": amount,
                    "status": InvoiceStatus.DRAFT.value,
                    "due_date": due_date,
                })
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"⚠️ Colisión de numeración de factura (intento {attempt})")
                if attempt == INVOICE_NUMBER_ATTEMPTS:
                    raise UnexpectedError("Failed to create invoice")
            except HTTPException:
                self.db.rollback()
                raise
            except Exception:
                self.db.rollback()
                logger.exception("💥 Error creando factura")
                raise UnexpectedError("Failed to create invoice")

        self.db.refresh(invoice)
        logger.info(f"🧾 Factura {invoice.invoice_number} emitida por {actor.id}")
        return invoice

    async def list_invoices(
        self,
        actor: User,
        status: Optional[str] = None,
        booking_id: Optional[int] = None,
        page: int = 1,
        size: int = 20
    ) -> Dict[str, Any]:
        INVOICE_WORKFLOW.validate_filter(status)
        scope = scope_filter(actor.role, actor.id, EntityKind.INVOICE)
        items, total, page, size, pages = self.repository.list(
            scope.criteria(Invoice, status), page, size, booking_id=booking_id
        )
        return InvoiceListResponse(
            items=[InvoiceResponse.model_validate(i) for i in items],
            total=total, page=page, size=size, pages=pages
        ).dict()

    async def get_invoice(self, invoice_id: int, actor: User) -> Invoice:
        invoice = self._get_invoice(invoice_id)
        ensure_can_view(actor, invoice, EntityKind.INVOICE)
        return invoice

    async def send_invoice(self, invoice_id: int, actor: User) -> Invoice:
        with unit_of_work(self.db, "send invoice"):
            invoice = self._get_invoice(invoice_id)
            invoice.status = INVOICE_WORKFLOW.next_state(invoice.status, "send")
            self.notifications.invoice_sent(
                invoice.customer.email, invoice.id, invoice.invoice_number, invoice.amount, invoice.due_date
            )

        self.db.refresh(invoice)
        self.notifications.flush()
        logger.info(f"📤 Factura {invoice.invoice_number} enviada")
        return invoice

    async def mark_as_paid(self, invoice_id: int, payload: InvoiceMarkPaidRequest, actor: User) -> Invoice:
        """Registro de pago por contabilidad"""
        with unit_of_work(self.db, "mark invoice as paid"):
            invoice = self._get_invoice(invoice_id)
            invoice.status = INVOICE_WORKFLOW.next_state(invoice.status, "mark_paid")
            invoice.paid_at = datetime.now()
            if payload.payment_method:
                invoice.payment_method = payload.payment_method
            if payload.transaction_id:
                invoice.transaction_id = payload.transaction_id
            self.notifications.invoice_paid(invoice.customer.email, invoice.id, invoice.invoice_number, invoice.amount)

        self.db.refresh(invoice)
        self.notifications.flush()
        logger.info(f"💰 Factura {invoice.invoice_number} pagada (registrado por {actor.id})")
        return invoice

    async def mark_as_overdue(self, invoice_id: int, actor: User) -> Invoice:
        with unit_of_work(self.db, "mark invoice as overdue"):
            invoice = self._get_invoice(invoice_id)
            invoice.status = INVOICE_WORKFLOW.next_state(invoice.status, "mark_overdue")
            self.notifications.invoice_overdue(
                invoice.customer.email, invoice.id, invoice.invoice_number, invoice.amount, invoice.due_date
            )

        self.db.refresh(invoice)
        self.notifications.flush()
        logger.info(f"⏰ Factura {invoice.invoice_number} vencida")
        return invoice

    async def cancel_invoice(self, invoice_id: int, actor: User) -> Invoice:
        with unit_of_work(self.db, "cancel invoice"):
            invoice = self._get_invoice(invoice_id)
            invoice.status = INVOICE_WORKFLOW.next_state(invoice.status, "cancel")

        self.db.refresh(invoice)
        logger.info(f"🚫 Factura {invoice.invoice_number} cancelada por {actor.id}")
        return invoice

    async def pay_invoice(self, invoice_id: int, payload: InvoicePayRequest, actor: User) -> Invoice:
        """Pago del cliente sobre una factura propia"""
        with unit_of_work(self.db, "process payment"):
            invoice = self._get_invoice(invoice_id)
            ensure_can_view(actor, invoice, EntityKind.INVOICE)
            if invoice.status == InvoiceStatus.PAID.value:
                raise PreconditionError("Invoice already paid", error="ALREADY_PAID")

            invoice.status = INVOICE_WORKFLOW.next_state(invoice.status, "pay")
            invoice.paid_at = datetime.now()
            invoice.payment_method = payload.payment_method
            details = payload.payment_details or {}
            if details.get("transaction_id"):
                invoice.transaction_id = str(details["transaction_id"])
            self.notifications.invoice_paid(actor.email, invoice.id, invoice.invoice_number, invoice.amount)

        self.db.refresh(invoice)
        self.notifications.flush()
        logger.info(f"💳 Factura {invoice.invoice_number} pagada por el cliente {actor.id}")
        return invoice

    async def delete_invoice(self, invoice_id: int, actor: User) -> None:
        with unit_of_work(self.db, "delete invoice"):
            invoice = self._get_invoice(invoice_id)
            number = invoice.invoice_number
            self.repository.delete(invoice)

        logger.info(f"🗑️ Factura {number} eliminada por {actor.id}")

    async def generate_pdf(self, invoice_id: int, actor: User) -> Dict[str, Any]:
        # TODO: renderizar el PDF real; por ahora devuelve los datos de la factura
        invoice = await self.get_invoice(invoice_id, actor)
        return {
            "message": "PDF generation not implemented yet",
            "invoice": InvoiceResponse.model_validate(invoice)
        }

    async def override_invoice(self, invoice_id: int, payload: InvoiceUpdateRequest, actor: User,
                               request: Optional[Request] = None) -> Invoice:
        changes = {
            k: v for k, v in payload.dict(exclude_unset=True).items()
            if v is not None or k in NULLABLE_OVERRIDE_FIELDS
        }

        with unit_of_work(self.db, "update invoice"):
            invoice = self._get_invoice(invoice_id)
            apply_override(self.db, invoice, changes, actor, EntityKind.INVOICE.value, request)

        self.db.refresh(invoice)
        return invoice
