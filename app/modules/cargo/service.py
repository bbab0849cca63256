# app/modules/cargo/service.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.audit import apply_override
from app.core.exceptions import NotFoundError
from app.core.policy import EntityKind, ensure_can_view, scope_filter
from app.core.workflow import CARGO_WORKFLOW, CargoStatus, rejection_note
from app.shared.database.models import CargoDispatchDetail, User
from app.shared.database.transaction import unit_of_work
from app.shared.services.notification_service import NotificationService
from .repository import CargoRepository
from .schemas import CargoCreateRequest, CargoUpdateRequest, CargoListResponse, CargoResponse

logger = logging.getLogger(__name__)

NULLABLE_OVERRIDE_FIELDS = {"weight", "dimensions", "special_handling", "form_data", "approved_by_id"}


class CargoService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.repository = CargoRepository(db)
        self.notifications = NotificationService(db, background_tasks)

    def _get_cargo(self, cargo_id: int) -> CargoDispatchDetail:
        cargo = self.repository.get_by_id(cargo_id)
        if not cargo:
            raise NotFoundError("Cargo dispatch not found")
        return cargo

    async def create_cargo(self, payload: CargoCreateRequest, actor: User) -> CargoDispatchDetail:
        """Registrar despacho en `submitted`; el cliente sólo sobre reservas propias"""
        with unit_of_work(self.db, "create cargo dispatch"):
            booking = self.repository.get_booking(payload.booking_id)
            if not booking:
                raise NotFoundError("Booking not found")
            ensure_can_view(actor, booking, EntityKind.BOOKING)

            cargo = self.repository.create({
                **payload.dict(),
                "status": CargoStatus.SUBMITTED.value,
            })

        self.db.refresh(cargo)
        logger.info(f"📦 Despacho {cargo.id} registrado para reserva {booking.id} por {actor.id}")
        return cargo

    async def list_cargo(
        self,
        actor: User,
        status: Optional[str] = None,
        booking_id: Optional[int] = None,
        page: int = 1,
        size: int = 20
    ) -> Dict[str, Any]:
        CARGO_WORKFLOW.validate_filter(status)
        scope = scope_filter(actor.role, actor.id, EntityKind.CARGO)
        items, total, page, size, pages = self.repository.list(
            scope.criteria(CargoDispatchDetail, status), page, size, booking_id=booking_id
        )
        return CargoListResponse(
            items=[CargoResponse.model_validate(c) for c in items],
            total=total, page=page, size=size, pages=pages
        ).dict()

    async def get_cargo(self, cargo_id: int, actor: User) -> CargoDispatchDetail:
        cargo = self._get_cargo(cargo_id)
        ensure_can_view(actor, cargo, EntityKind.CARGO)
        return cargo

    async def get_cargo_by_booking(self, booking_id: int, actor: User) -> List[CargoDispatchDetail]:
        booking = self.repository.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        ensure_can_view(actor, booking, EntityKind.BOOKING)
        return self.repository.get_by_booking(booking_id)

    async def approve_cargo(self, cargo_id: int, actor: User) -> CargoDispatchDetail:
        """
        Aprobar despacho → `approved`

        Notifica al dueño del almacén (o al buzón de operaciones configurado)
        y al cliente de la reserva.
        """
        with unit_of_work(self.db, "approve cargo dispatch"):
            cargo = self._get_cargo(cargo_id)
            cargo.status = CARGO_WORKFLOW.next_state(cargo.status, "approve")
            cargo.approved_by_id = actor.id

            booking = cargo.booking
            owner = booking.warehouse.owner if booking.warehouse else None
            operations_email = owner.email if owner else settings.operations_email
            self.notifications.cargo_approved(operations_email, cargo.id, booking.id, "operations")
            self.notifications.cargo_approved(booking.customer.email, cargo.id, booking.id, "customer")

        self.db.refresh(cargo)
        self.notifications.flush()
        logger.info(f"✅ Despacho {cargo.id} aprobado por {actor.id}")
        return cargo

    async def reject_cargo(self, cargo_id: int, reason: Optional[str], actor: User) -> CargoDispatchDetail:
        """Rechazo: vuelve a `submitted` con la nota en special_handling"""
        with unit_of_work(self.db, "reject cargo dispatch"):
            cargo = self._get_cargo(cargo_id)
            cargo.status = CARGO_WORKFLOW.next_state(cargo.status, "reject")
            cargo.special_handling = rejection_note(reason)

        self.db.refresh(cargo)
        logger.info(f"❌ Despacho {cargo.id} rechazado por {actor.id}")
        return cargo

    async def process_cargo(self, cargo_id: int, actor: User) -> CargoDispatchDetail:
        with unit_of_work(self.db, "process cargo dispatch"):
            cargo = self._get_cargo(cargo_id)
            cargo.status = CARGO_WORKFLOW.next_state(cargo.status, "process")

        self.db.refresh(cargo)
        return cargo

    async def complete_cargo(self, cargo_id: int, actor: User) -> CargoDispatchDetail:
        with unit_of_work(self.db, "complete cargo dispatch"):
            cargo = self._get_cargo(cargo_id)
            cargo.status = CARGO_WORKFLOW.next_state(cargo.status, "complete")

        self.db.refresh(cargo)
        logger.info(f"🏁 Despacho {cargo.id} completado por {actor.id}")
        return cargo

    async def override_cargo(self, cargo_id: int, payload: CargoUpdateRequest, actor: User,
                             request: Optional[Request] = None) -> CargoDispatchDetail:
        changes = {
            k: v for k, v in payload.dict(exclude_unset=True).items()
            if v is not None or k in NULLABLE_OVERRIDE_FIELDS
        }

        with unit_of_work(self.db, "update cargo dispatch"):
            cargo = self._get_cargo(cargo_id)
            apply_override(self.db, cargo, changes, actor, EntityKind.CARGO.value, request)

        self.db.refresh(cargo)
        return cargo
