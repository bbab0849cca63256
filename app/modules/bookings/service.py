# app/modules/bookings/service.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.orm import Session

from app.core.audit import apply_override
from app.core.exceptions import NotFoundError, PreconditionError, ValidationError
from app.core.policy import EntityKind, Role, ensure_can_view, scope_filter
from app.core.workflow import BOOKING_WORKFLOW, QUOTE_WORKFLOW, BookingStatus, QuoteStatus
from app.shared.database.models import Booking, User
from app.shared.database.transaction import unit_of_work
from app.shared.services.cache_service import cache_service
from app.shared.services.capacity_ledger import CapacityLedger
from app.shared.services.notification_service import NotificationService
from app.shared.services.pricing_service import PricingCalculator
from app.modules.quotes.repository import QuoteRepository
from .repository import BookingRepository
from .schemas import (
    BookingCreateRequest, BookingUpdateRequest, BookingListResponse,
    BookingResponse, BookingRequestItem
)

logger = logging.getLogger(__name__)

BOOKABLE_QUOTE_STATUSES = (QuoteStatus.QUOTED.value, QuoteStatus.APPROVED.value)
# Estados en los que el espacio reservado vuelve al almacén
RELEASING_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value)


class BookingService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.repository = BookingRepository(db)
        self.ledger = CapacityLedger(db)
        self.notifications = NotificationService(db, background_tasks)

    def _get_booking(self, booking_id: int) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _release_space(self, booking: Booking) -> None:
        if booking.reserved_space and booking.reserved_space > 0:
            self.ledger.release(booking.warehouse_id, booking.reserved_space)
            booking.reserved_space = 0

    def _reserve_space(self, booking: Booking, space: float) -> None:
        if not self.ledger.reserve(booking.warehouse_id, space):
            raise PreconditionError(
                "Insufficient warehouse space available",
                error="INSUFFICIENT_CAPACITY"
            )
        booking.reserved_space = space

    async def create_booking(self, payload: BookingCreateRequest, actor: User) -> Booking:
        """
        Crear reserva con reserva atómica de capacidad

        El descuento de `available_space` es un UPDATE condicional dentro de
        la misma transacción que inserta la reserva: si no alcanza el
        espacio, no se persiste nada.
        """
        with unit_of_work(self.db, "create booking"):
            quote = self.repository.get_quote(payload.quote_id)
            if not quote:
                raise NotFoundError("Quote not found")
            ensure_can_view(actor, quote, EntityKind.QUOTE)

            if quote.status not in BOOKABLE_QUOTE_STATUSES:
                raise PreconditionError(
                    f"Quote must be quoted before booking (current status '{quote.status}')",
                    error="QUOTE_NOT_BOOKABLE"
                )

            warehouse_id = payload.warehouse_id or quote.warehouse_id
            if not warehouse_id:
                raise ValidationError("warehouse_id is required when the quote has no warehouse")
            warehouse = self.repository.get_warehouse(warehouse_id)
            if not warehouse:
                raise NotFoundError("Warehouse not found")

            required_space = payload.required_space or quote.required_space or 0
            if not self.ledger.reserve(warehouse_id, required_space):
                raise PreconditionError(
                    "Insufficient warehouse space available",
                    error="INSUFFICIENT_CAPACITY"
                )

            total_amount = payload.total_amount
            if total_amount is None:
                if quote.final_price is not None:
                    total_amount = quote.final_price
                else:
                    total_amount = PricingCalculator.calculate(
                        required_space, warehouse.price_per_sqft, quote.duration, quote.storage_type
                    )["estimated_price"]

            if quote.status == QuoteStatus.QUOTED.value:
                quote.status = QUOTE_WORKFLOW.next_state(quote.status, "accept")

            booking = self.repository.create({
                "quote_id": quote.id,
                "customer_id": actor.id,
                "warehouse_id": warehouse_id,
                "status": BookingStatus.PENDING.value,
                "start_date": payload.start_date,
                "end_date": payload.end_date,
                "total_amount": total_amount,
                "reserved_space": required_space,
            })
            # la confirmación se envía al crear, y otra vez al confirmar
            self.notifications.booking_confirmation(actor.email, booking.id)

        self.db.refresh(booking)
        cache_service.invalidate_user_quotes(actor.id)
        self.notifications.flush()
        logger.info(f"📅 Reserva {booking.id} creada: {required_space} en almacén {warehouse_id}")
        return booking

    async def list_bookings(
        self,
        actor: User,
        status: Optional[str] = None,
        warehouse_id: Optional[int] = None,
        page: int = 1,
        size: int = 20
    ) -> Dict[str, Any]:
        BOOKING_WORKFLOW.validate_filter(status)
        scope = scope_filter(actor.role, actor.id, EntityKind.BOOKING)
        items, total, page, size, pages = self.repository.list(
            scope.criteria(Booking, status), page, size, warehouse_id=warehouse_id
        )

        results = []
        for booking in items:
            data = BookingResponse.model_validate(booking)
            if actor.role == Role.CUSTOMER.value:
                data.total_amount = None
            results.append(data)

        return BookingListResponse(items=results, total=total, page=page, size=size, pages=pages).dict()

    async def get_booking(self, booking_id: int, actor: User) -> Booking:
        booking = self._get_booking(booking_id)
        ensure_can_view(actor, booking, EntityKind.BOOKING)
        return booking

    async def confirm_booking(self, booking_id: int, actor: User) -> Booking:
        with unit_of_work(self.db, "confirm booking"):
            booking = self._get_booking(booking_id)
            booking.status = BOOKING_WORKFLOW.next_state(booking.status, "confirm")
            booking.approved_by_id = actor.id
            self.notifications.booking_confirmation(booking.customer.email, booking.id)

        self.db.refresh(booking)
        self.notifications.flush()
        logger.info(f"✅ Reserva {booking.id} confirmada por {actor.id}")
        return booking

    async def cancel_booking(self, booking_id: int, reason: Optional[str], actor: User) -> Booking:
        """Cancelar (supervisor/admin, o el propio cliente) y liberar espacio"""
        with unit_of_work(self.db, "cancel booking"):
            booking = self._get_booking(booking_id)
            ensure_can_view(actor, booking, EntityKind.BOOKING)
            booking.status = BOOKING_WORKFLOW.next_state(booking.status, "cancel")
            self._release_space(booking)
            self.notifications.booking_cancelled(booking.customer.email, booking.id, reason)

        self.db.refresh(booking)
        self.notifications.flush()
        logger.info(f"🚫 Reserva {booking.id} cancelada por {actor.id}")
        return booking

    async def approve_booking(self, booking_id: int, actor: User) -> Booking:
        """
        Visto bueno del cliente sobre una reserva `pending`

        El estado se mantiene en `pending`; sólo se registra la fecha de
        aprobación. La confirmación sigue siendo del supervisor.
        """
        with unit_of_work(self.db, "approve booking"):
            booking = self._get_booking(booking_id)
            ensure_can_view(actor, booking, EntityKind.BOOKING)
            booking.status = BOOKING_WORKFLOW.next_state(booking.status, "approve")
            booking.customer_approved_at = datetime.now()

        self.db.refresh(booking)
        return booking

    async def reject_booking(self, booking_id: int, reason: Optional[str], actor: User) -> Booking:
        """Rechazo del cliente → `cancelled`, libera espacio"""
        with unit_of_work(self.db, "reject booking"):
            booking = self._get_booking(booking_id)
            ensure_can_view(actor, booking, EntityKind.BOOKING)
            booking.status = BOOKING_WORKFLOW.next_state(booking.status, "reject")
            self._release_space(booking)
            self.notifications.booking_cancelled(booking.customer.email, booking.id, reason)

        self.db.refresh(booking)
        self.notifications.flush()
        return booking

    async def activate_booking(self, booking_id: int, actor: User) -> Booking:
        with unit_of_work(self.db, "activate booking"):
            booking = self._get_booking(booking_id)
            booking.status = BOOKING_WORKFLOW.next_state(booking.status, "activate")

        self.db.refresh(booking)
        return booking

    async def complete_booking(self, booking_id: int, actor: User) -> Booking:
        """Fin del periodo contratado: libera el espacio reservado"""
        with unit_of_work(self.db, "complete booking"):
            booking = self._get_booking(booking_id)
            booking.status = BOOKING_WORKFLOW.next_state(booking.status, "complete")
            self._release_space(booking)

        self.db.refresh(booking)
        return booking

    async def override_booking(self, booking_id: int, payload: BookingUpdateRequest, actor: User,
                               request: Optional[Request] = None) -> Booking:
        """
        Override administrativo, auditado; mantiene el ledger coherente

        Pasar a cancelled/completed libera el espacio retenido; salir de esos
        estados hacia uno vigente vuelve a reservar el espacio de la cotización.
        """
        changes = {k: v for k, v in payload.dict(exclude_unset=True).items()
                   if v is not None or k == "approved_by_id"}

        with unit_of_work(self.db, "update booking"):
            booking = self._get_booking(booking_id)
            start = changes.get("start_date", booking.start_date)
            end = changes.get("end_date", booking.end_date)
            if end < start:
                raise ValidationError("end_date must be on or after start_date")

            previous_status = booking.status
            apply_override(self.db, booking, changes, actor, EntityKind.BOOKING.value, request)
            if booking.status in RELEASING_STATUSES:
                self._release_space(booking)
            elif previous_status in RELEASING_STATUSES:
                self._reserve_space(booking, booking.quote.required_space)

        self.db.refresh(booking)
        return booking

    async def get_booking_requests(self) -> List[Dict[str, Any]]:
        """Cotizaciones `pending` en formato de solicitud de reserva"""
        quotes = QuoteRepository(self.db).get_pending()
        requests = []
        for quote in quotes:
            customer = quote.customer
            requests.append(BookingRequestItem(
                id=quote.id,
                booking_id=f"2RB{quote.id}",
                booking_date=quote.created_at.strftime("%Y-%m-%d %H:%M:%S") if quote.created_at else "",
                warehouse_name=quote.warehouse.name if quote.warehouse else "Not Assigned",
                remark="Special requirements" if quote.special_requirements else "okl",
                status=quote.status,
                customer_name=customer.full_name if customer else "Unknown",
                customer_email=customer.email if customer else "Unknown",
                storage_type=quote.storage_type,
                required_space=quote.required_space,
                preferred_location=quote.preferred_location,
                duration=quote.duration,
                special_requirements=quote.special_requirements
            ).dict())
        return requests
