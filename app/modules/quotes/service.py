# app/modules/quotes/service.py
import logging
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.orm import Session

from app.core.audit import apply_override
from app.core.exceptions import NotFoundError, ValidationError
from app.core.policy import EntityKind, Role, ensure_can_view, scope_filter
from app.core.workflow import QUOTE_WORKFLOW, QuoteStatus, rejection_note
from app.shared.database.models import Quote, User
from app.shared.database.transaction import unit_of_work
from app.shared.services.cache_service import cache_service
from app.shared.services.notification_service import NotificationService
from app.shared.services.pricing_service import PricingCalculator
from .repository import QuoteRepository
from .schemas import (
    QuoteCreateRequest, QuoteAssignRequest, QuoteApproveRequest,
    QuoteUpdateRequest, QuoteListResponse, QuoteResponse
)

logger = logging.getLogger(__name__)

# Campos que el override puede poner en NULL
NULLABLE_OVERRIDE_FIELDS = {"special_requirements", "assigned_to", "final_price", "warehouse_id"}


class QuoteService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.repository = QuoteRepository(db)
        self.notifications = NotificationService(db, background_tasks)

    def _get_quote(self, quote_id: int) -> Quote:
        quote = self.repository.get_by_id(quote_id)
        if not quote:
            raise NotFoundError("Quote not found")
        return quote

    def _invalidate(self, quote: Quote) -> None:
        cache_service.invalidate_user_quotes(quote.customer_id)

    async def create_quote(self, payload: QuoteCreateRequest, actor: User) -> Quote:
        """Nueva cotización en `pending`; el cliente es siempre el actor"""
        data = payload.dict(exclude={"customer_id"})
        if payload.customer_id is not None and payload.customer_id != actor.id:
            logger.warning(
                f"⚠️ customer_id {payload.customer_id} ignorado; se usa el actor {actor.id}"
            )

        with unit_of_work(self.db, "create quote"):
            quote = self.repository.create({
                **data,
                "customer_id": actor.id,
                "status": QuoteStatus.PENDING.value,
            })
            self.notifications.quote_request_received(actor.email, quote.id)

        self.db.refresh(quote)
        self._invalidate(quote)
        self.notifications.flush()
        logger.info(f"📝 Cotización {quote.id} creada por cliente {actor.id}")
        return quote

    async def list_quotes(
        self,
        actor: User,
        status: Optional[str] = None,
        storage_type: Optional[str] = None,
        page: int = 1,
        size: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        """Listado con alcance por rol; el del cliente pasa por cache"""
        QUOTE_WORKFLOW.validate_filter(status)
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be 'asc' or 'desc'")

        cache_key = f"{status}:{storage_type}:{page}:{size}:{sort_by}:{sort_order}"
        is_customer = actor.role == Role.CUSTOMER.value
        if is_customer:
            cached = cache_service.get_user_quotes(actor.id, cache_key)
            if cached is not None:
                return cached

        scope = scope_filter(actor.role, actor.id, EntityKind.QUOTE)
        items, total, page, size, pages = self.repository.list(
            scope.criteria(Quote, status),
            page, size,
            storage_type=storage_type,
            sort_by=sort_by,
            sort_order=sort_order
        )
        result = QuoteListResponse(
            items=[QuoteResponse.model_validate(q) for q in items],
            total=total, page=page, size=size, pages=pages
        ).dict()

        if is_customer:
            cache_service.set_user_quotes(actor.id, cache_key, result)
        return result

    async def get_quote(self, quote_id: int, actor: User) -> Quote:
        quote = self._get_quote(quote_id)
        ensure_can_view(actor, quote, EntityKind.QUOTE)
        return quote

    async def assign_quote(self, quote_id: int, payload: QuoteAssignRequest, actor: User) -> Quote:
        """purchase_support asigna la cotización a un miembro del staff"""
        with unit_of_work(self.db, "assign quote"):
            quote = self._get_quote(quote_id)
            new_status = QUOTE_WORKFLOW.next_state(quote.status, "assign")

            assignee = self.repository.get_user(payload.assigned_to)
            if not assignee:
                raise NotFoundError("Assignee not found")
            if assignee.role == Role.CUSTOMER.value or not assignee.is_active:
                raise ValidationError("Quotes can only be assigned to active staff users", error="INVALID_ASSIGNEE")

            quote.assigned_to = assignee.id
            quote.status = new_status

        self.db.refresh(quote)
        self._invalidate(quote)
        logger.info(f"👤 Cotización {quote.id} asignada a {assignee.id} por {actor.id}")
        return quote

    async def approve_quote(self, quote_id: int, payload: QuoteApproveRequest, actor: User) -> Quote:
        """Cotizar: fija precio final y almacén"""
        with unit_of_work(self.db, "approve quote"):
            quote = self._get_quote(quote_id)
            new_status = QUOTE_WORKFLOW.next_state(quote.status, "approve")

            if not self.repository.get_warehouse(payload.warehouse_id):
                raise NotFoundError("Warehouse not found")

            quote.status = new_status
            quote.final_price = payload.final_price
            quote.warehouse_id = payload.warehouse_id
            self.notifications.quote_approved(quote.customer.email, quote.id, payload.final_price)

        self.db.refresh(quote)
        self._invalidate(quote)
        self.notifications.flush()
        logger.info(f"✅ Cotización {quote.id} cotizada en {payload.final_price} por {actor.id}")
        return quote

    async def reject_quote(self, quote_id: int, reason: Optional[str], actor: User) -> Quote:
        """Rechazo: sobreescribe special_requirements con la nota de rechazo"""
        with unit_of_work(self.db, "reject quote"):
            quote = self._get_quote(quote_id)
            quote.status = QUOTE_WORKFLOW.next_state(quote.status, "reject")
            quote.special_requirements = rejection_note(reason)

        self.db.refresh(quote)
        self._invalidate(quote)
        logger.info(f"❌ Cotización {quote.id} rechazada por {actor.id}")
        return quote

    async def accept_quote(self, quote_id: int, actor: User) -> Quote:
        """El cliente acepta una cotización `quoted`"""
        with unit_of_work(self.db, "accept quote"):
            quote = self._get_quote(quote_id)
            ensure_can_view(actor, quote, EntityKind.QUOTE)
            quote.status = QUOTE_WORKFLOW.next_state(quote.status, "accept")

        self.db.refresh(quote)
        self._invalidate(quote)
        return quote

    async def calculate_price(self, quote_id: int, actor: User) -> Dict[str, Any]:
        """Precio estimado; no modifica final_price"""
        quote = self._get_quote(quote_id)
        ensure_can_view(actor, quote, EntityKind.QUOTE)

        rate = quote.warehouse.price_per_sqft if quote.warehouse else None
        estimate = PricingCalculator.calculate(
            quote.required_space, rate, quote.duration, quote.storage_type
        )
        return {"quote_id": quote.id, **estimate}

    async def override_quote(self, quote_id: int, payload: QuoteUpdateRequest, actor: User,
                             request: Optional[Request] = None) -> Quote:
        """Override administrativo, auditado"""
        changes = {
            k: v for k, v in payload.dict(exclude_unset=True).items()
            if v is not None or k in NULLABLE_OVERRIDE_FIELDS
        }

        with unit_of_work(self.db, "update quote"):
            quote = self._get_quote(quote_id)
            if changes.get("warehouse_id") is not None and not self.repository.get_warehouse(changes["warehouse_id"]):
                raise NotFoundError("Warehouse not found")
            if changes.get("assigned_to") is not None and not self.repository.get_user(changes["assigned_to"]):
                raise NotFoundError("Assignee not found")
            apply_override(self.db, quote, changes, actor, EntityKind.QUOTE.value, request)

        self.db.refresh(quote)
        self._invalidate(quote)
        return quote
