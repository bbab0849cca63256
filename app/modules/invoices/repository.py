# app/modules/invoices/repository.py
from datetime import datetime
from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Any, Dict, Optional

from app.shared.database.models import Booking, Invoice, InvoiceSequence
from app.shared.database.pagination import paginate

INVOICE_PREFIX = "INV"

class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def next_invoice_number(self, now: datetime) -> str:
        """
        Siguiente `INV-YYYYMM-NNNN`

        La fila del periodo se bloquea con FOR UPDATE hasta el commit; si no
        existe se inicializa con las facturas ya emitidas en el mes.
        """
        period = now.strftime("%Y%m")
        sequence = (
            self.db.query(InvoiceSequence)
            .filter(InvoiceSequence.period == period)
            .with_for_update()
            .first()
        )
        if sequence is None:
            month_start = datetime(now.year, now.month, 1)
            issued = self.db.query(Invoice).filter(
                Invoice.created_at >= month_start,
                Invoice.created_at < month_start + relativedelta(months=1)
            ).count()
            sequence = InvoiceSequence(period=period, last_value=issued)
            self.db.add(sequence)

        sequence.last_value += 1
        self.db.flush()
        return f"{INVOICE_PREFIX}-{period}-{sequence.last_value:04d}"

    def create(self, data: Dict[str, Any]) -> Invoice:
        invoice = Invoice(**data)
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def delete(self, invoice: Invoice) -> None:
        self.db.delete(invoice)
        self.db.flush()

    def list(self, criteria: list, page: int, size: int, booking_id: Optional[int] = None):
        query = self.db.query(Invoice)
        conditions = list(criteria)
        if booking_id:
            conditions.append(Invoice.booking_id == booking_id)
        if conditions:
            query = query.filter(and_(*conditions))
        query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        return paginate(query, page, size)
