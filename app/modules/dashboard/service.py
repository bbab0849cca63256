# app/modules/dashboard/service.py
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.core.policy import Role
from app.shared.database.models import (
    Booking, CargoDispatchDetail, DeliveryRequest, Invoice, Quote, User
)
from .repository import DashboardRepository

logger = logging.getLogger(__name__)

PAID = ("paid",)
OUTSTANDING = ("sent", "overdue")


class DashboardService:
    """Estadísticas del dashboard, distintas por rol"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = DashboardRepository(db)

    async def get_stats(self, user: User) -> Dict[str, Any]:
        builders = {
            Role.CUSTOMER.value: self._customer_stats,
            Role.PURCHASE_SUPPORT.value: self._purchase_support_stats,
            Role.SALES_SUPPORT.value: self._sales_support_stats,
            Role.WAREHOUSE.value: self._warehouse_stats,
            Role.SUPERVISOR.value: self._supervisor_stats,
            Role.ACCOUNTS.value: self._accounts_stats,
            Role.ADMIN.value: self._admin_stats,
        }
        builder = builders.get(user.role)
        if builder is None:
            return {"role": user.role, "stats": {}, "message": "No stats available for this role"}

        logger.debug(f"📊 Estadísticas para {user.id} ({user.role})")
        return {"role": user.role, "stats": builder(user)}

    def _customer_stats(self, user: User) -> Dict[str, Any]:
        r = self.repository
        bookings = r.count_by_status(Booking, Booking.customer_id == user.id)
        return {
            "total_quotes": r.count(Quote, Quote.customer_id == user.id),
            "quotes_by_status": r.count_by_status(Quote, Quote.customer_id == user.id),
            "total_bookings": sum(bookings.values()),
            "active_bookings": bookings.get("active", 0) + bookings.get("confirmed", 0),
            "bookings_by_status": bookings,
            "deliveries_by_status": r.count_by_status(DeliveryRequest, DeliveryRequest.customer_id == user.id),
            "invoices_by_status": r.count_by_status(Invoice, Invoice.customer_id == user.id),
            "total_spent": r.invoice_total(PAID, Invoice.customer_id == user.id),
        }

    def _purchase_support_stats(self, user: User) -> Dict[str, Any]:
        r = self.repository
        quotes = r.count_by_status(Quote)
        return {
            "pending_quotes": quotes.get("pending", 0),
            "processing_quotes": quotes.get("processing", 0),
            "guest_customers": r.count(User, User.role == Role.CUSTOMER.value, User.is_active.is_(False)),
        }

    def _sales_support_stats(self, user: User) -> Dict[str, Any]:
        quotes = self.repository.count_by_status(Quote)
        return {
            "processing_quotes": quotes.get("processing", 0),
            "quoted_quotes": quotes.get("quoted", 0),
            "approved_quotes": quotes.get("approved", 0),
            "rejected_quotes": quotes.get("rejected", 0),
        }

    def _warehouse_stats(self, user: User) -> Dict[str, Any]:
        r = self.repository
        bookings = r.count_by_status(Booking)
        return {
            "assigned_quotes": r.count(Quote, Quote.assigned_to == user.id),
            "confirmed_bookings": bookings.get("confirmed", 0),
            "active_bookings": bookings.get("active", 0),
            "cargo_by_status": r.count_by_status(CargoDispatchDetail),
            "deliveries_by_status": r.count_by_status(DeliveryRequest),
        }

    def _supervisor_stats(self, user: User) -> Dict[str, Any]:
        r = self.repository
        quotes = r.count_by_status(Quote)
        bookings = r.count_by_status(Booking)
        return {
            "pending_approvals": quotes.get("quoted", 0),
            "confirmed_bookings": bookings.get("confirmed", 0),
            "completed_bookings": bookings.get("completed", 0),
            "quotes_by_status": quotes,
            "bookings_by_status": bookings,
            "cargo_by_status": r.count_by_status(CargoDispatchDetail),
            "deliveries_by_status": r.count_by_status(DeliveryRequest),
            "invoices_by_status": r.count_by_status(Invoice),
        }

    def _accounts_stats(self, user: User) -> Dict[str, Any]:
        r = self.repository
        invoices = r.count_by_status(Invoice)
        return {
            "pending_invoices": invoices.get("sent", 0),
            "paid_invoices": invoices.get("paid", 0),
            "overdue_invoices": invoices.get("overdue", 0),
            "invoices_by_status": invoices,
            "total_revenue": r.invoice_total(PAID),
            "outstanding_amount": r.invoice_total(OUTSTANDING),
        }

    def _admin_stats(self, user: User) -> Dict[str, Any]:
        r = self.repository
        return {
            **self._supervisor_stats(user),
            "users_by_role": r.users_by_role(),
            "total_revenue": r.invoice_total(PAID),
            "capacity": r.warehouse_capacity(),
        }
