# app/modules/deliveries/service.py
import logging
import secrets
import time
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.orm import Session

from app.core.audit import apply_override
from app.core.exceptions import NotFoundError
from app.core.policy import EntityKind, ensure_can_view, scope_filter
from app.core.workflow import DELIVERY_WORKFLOW, DeliveryStatus
from app.shared.database.models import DeliveryRequest, User
from app.shared.database.transaction import unit_of_work
from app.shared.services.notification_service import NotificationService
from .repository import DeliveryRepository
from .schemas import (
    DeliveryCreateRequest, DeliveryScheduleRequest, DeliveryAssignDriverRequest,
    DeliveryCompleteRequest, DeliveryUpdateRequest, DeliveryListResponse, DeliveryResponse
)

logger = logging.getLogger(__name__)

NULLABLE_OVERRIDE_FIELDS = {"scheduled_date", "assigned_driver", "delivery_notes"}
TRACKING_PREFIX = "WW"


def generate_tracking_number() -> str:
    """`WW` + últimos 8 dígitos del epoch en ms + 4 hex en mayúsculas"""
    timestamp = str(int(time.time() * 1000))[-8:]
    return f"{TRACKING_PREFIX}{timestamp}{secrets.token_hex(2).upper()}"


class DeliveryService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.repository = DeliveryRepository(db)
        self.notifications = NotificationService(db, background_tasks)

    def _get_delivery(self, delivery_id: int) -> DeliveryRequest:
        delivery = self.repository.get_by_id(delivery_id)
        if not delivery:
            raise NotFoundError("Delivery request not found")
        return delivery

    def _new_tracking_number(self) -> str:
        tracking_number = generate_tracking_number()
        while self.repository.tracking_number_exists(tracking_number):
            tracking_number = generate_tracking_number()
        return tracking_number

    async def create_delivery(self, payload: DeliveryCreateRequest, actor: User) -> DeliveryRequest:
        """Solicitud de entrega en `requested` con número de seguimiento"""
        with unit_of_work(self.db, "create delivery request"):
            booking = self.repository.get_booking(payload.booking_id)
            if not booking:
                raise NotFoundError("Booking not found")
            ensure_can_view(actor, booking, EntityKind.BOOKING)

            delivery = self.repository.create({
                **payload.dict(),
                "customer_id": actor.id,
                "status": DeliveryStatus.REQUESTED.value,
                "tracking_number": self._new_tracking_number(),
            })
            self.notifications.delivery_created(actor.email, delivery.id, delivery.tracking_number)

        self.db.refresh(delivery)
        self.notifications.flush()
        logger.info(f"🚚 Entrega {delivery.id} solicitada ({delivery.tracking_number})")
        return delivery

    async def list_deliveries(
        self,
        actor: User,
        status: Optional[str] = None,
        urgency: Optional[str] = None,
        page: int = 1,
        size: int = 20
    ) -> Dict[str, Any]:
        DELIVERY_WORKFLOW.validate_filter(status)
        scope = scope_filter(actor.role, actor.id, EntityKind.DELIVERY)
        items, total, page, size, pages = self.repository.list(
            scope.criteria(DeliveryRequest, status), page, size, urgency=urgency
        )
        return DeliveryListResponse(
            items=[DeliveryResponse.model_validate(d) for d in items],
            total=total, page=page, size=size, pages=pages
        ).dict()

    async def get_delivery(self, delivery_id: int, actor: User) -> DeliveryRequest:
        delivery = self._get_delivery(delivery_id)
        ensure_can_view(actor, delivery, EntityKind.DELIVERY)
        return delivery

    async def track_delivery(self, delivery_id: int) -> DeliveryRequest:
        """Proyección de seguimiento; cualquier usuario autenticado"""
        return self._get_delivery(delivery_id)

    async def schedule_delivery(self, delivery_id: int, payload: DeliveryScheduleRequest, actor: User) -> DeliveryRequest:
        """Programar (o reprogramar) fecha y chofer"""
        with unit_of_work(self.db, "schedule delivery"):
            delivery = self._get_delivery(delivery_id)
            delivery.status = DELIVERY_WORKFLOW.next_state(delivery.status, "schedule")
            delivery.scheduled_date = payload.scheduled_date
            if payload.assigned_driver:
                delivery.assigned_driver = payload.assigned_driver
            self.notifications.delivery_scheduled(
                delivery.customer.email, delivery.id, delivery.tracking_number, delivery.assigned_driver
            )

        self.db.refresh(delivery)
        self.notifications.flush()
        logger.info(f"📅 Entrega {delivery.id} programada para {delivery.scheduled_date} por {actor.id}")
        return delivery

    async def assign_driver(self, delivery_id: int, payload: DeliveryAssignDriverRequest, actor: User) -> DeliveryRequest:
        """Asignar chofer sin cambiar el estado"""
        with unit_of_work(self.db, "assign driver"):
            delivery = self._get_delivery(delivery_id)
            delivery.assigned_driver = payload.assigned_driver

        self.db.refresh(delivery)
        return delivery

    async def dispatch_delivery(self, delivery_id: int, actor: User) -> DeliveryRequest:
        """`scheduled` → `in_transit`; email y SMS si el cliente tiene móvil"""
        with unit_of_work(self.db, "dispatch delivery"):
            delivery = self._get_delivery(delivery_id)
            delivery.status = DELIVERY_WORKFLOW.next_state(delivery.status, "dispatch")
            customer = delivery.customer
            self.notifications.delivery_in_transit(customer.email, delivery.id, delivery.tracking_number)
            if customer.mobile:
                self.notifications.delivery_in_transit_sms(customer.mobile, delivery.id, delivery.tracking_number)

        self.db.refresh(delivery)
        self.notifications.flush()
        logger.info(f"🚛 Entrega {delivery.id} en tránsito")
        return delivery

    async def complete_delivery(self, delivery_id: int, payload: DeliveryCompleteRequest, actor: User) -> DeliveryRequest:
        with unit_of_work(self.db, "complete delivery"):
            delivery = self._get_delivery(delivery_id)
            delivery.status = DELIVERY_WORKFLOW.next_state(delivery.status, "complete")
            if payload.delivery_notes is not None:
                delivery.delivery_notes = payload.delivery_notes
            self.notifications.delivery_completed(
                delivery.customer.email, delivery.id, delivery.tracking_number, payload.delivery_notes
            )

        self.db.refresh(delivery)
        self.notifications.flush()
        logger.info(f"🏁 Entrega {delivery.id} entregada")
        return delivery

    async def override_delivery(self, delivery_id: int, payload: DeliveryUpdateRequest, actor: User,
                                request: Optional[Request] = None) -> DeliveryRequest:
        changes = {
            k: v for k, v in payload.dict(exclude_unset=True).items()
            if v is not None or k in NULLABLE_OVERRIDE_FIELDS
        }

        with unit_of_work(self.db, "update delivery request"):
            delivery = self._get_delivery(delivery_id)
            apply_override(self.db, delivery, changes, actor, EntityKind.DELIVERY.value, request)

        self.db.refresh(delivery)
        return delivery
