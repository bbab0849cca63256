# app/core/policy.py
"""
Política de acceso

Una sola tabla declarativa `operación -> roles permitidos` consultada por
todos los endpoints (vía `require_operation`), más la tabla de alcance
`(rol, entidad) -> ScopeRule` que aplican los listados y las lecturas por id.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class Role(str, Enum):
    CUSTOMER = "customer"
    PURCHASE_SUPPORT = "purchase_support"
    SALES_SUPPORT = "sales_support"
    SUPERVISOR = "supervisor"
    WAREHOUSE = "warehouse"
    ACCOUNTS = "accounts"
    ADMIN = "admin"


ROLE_DESCRIPTIONS = {
    Role.CUSTOMER: "Can create quotes, manage bookings, and track deliveries",
    Role.PURCHASE_SUPPORT: "Processes quote requests and verifies customers",
    Role.SALES_SUPPORT: "Reviews and approves quotes",
    Role.SUPERVISOR: "Approves bookings and oversees operations",
    Role.WAREHOUSE: "Manages inventory and processes cargo",
    Role.ACCOUNTS: "Handles invoicing and payments",
    Role.ADMIN: "Full system access and user management",
}


class EntityKind(str, Enum):
    QUOTE = "quote"
    BOOKING = "booking"
    CARGO = "cargo"
    DELIVERY = "delivery"
    INVOICE = "invoice"


def _roles(*roles: Role) -> FrozenSet[str]:
    return frozenset(r.value for r in roles)


ALL_ROLES = _roles(*Role)
STAFF = _roles(*(r for r in Role if r != Role.CUSTOMER))

C = Role.CUSTOMER
PS = Role.PURCHASE_SUPPORT
SS = Role.SALES_SUPPORT
SUP = Role.SUPERVISOR
WH = Role.WAREHOUSE
ACC = Role.ACCOUNTS
ADM = Role.ADMIN

POLICY: Dict[str, FrozenSet[str]] = {
    # Cotizaciones
    "quote.create": _roles(C),
    "quote.list": _roles(C, PS, SS, SUP, WH, ADM),
    "quote.read": _roles(C, PS, SS, SUP, WH, ADM),
    "quote.assign": _roles(PS),
    "quote.approve": _roles(SS, SUP),
    "quote.reject": _roles(SS, SUP),
    "quote.accept": _roles(C),
    "quote.calculate_price": ALL_ROLES,
    "quote.override": _roles(ADM),

    # Reservas
    "booking.create": _roles(C),
    "booking.list": ALL_ROLES,
    "booking.read": ALL_ROLES,
    "booking.confirm": _roles(SUP, ADM),
    "booking.cancel": _roles(SUP, ADM, C),
    "booking.approve": _roles(C),
    "booking.reject": _roles(C),
    "booking.activate": _roles(SUP, ADM, WH),
    "booking.complete": _roles(SUP, ADM, WH),
    "booking.override": _roles(SUP, ADM),
    "booking.requests": _roles(PS, SUP, ADM),

    # Despacho de carga
    "cargo.create": ALL_ROLES,
    "cargo.list": _roles(C, PS, SUP, WH, ADM),
    "cargo.read": _roles(C, PS, SUP, WH, ADM),
    "cargo.approve": _roles(SUP, ADM),
    "cargo.reject": _roles(SUP, ADM),
    "cargo.process": _roles(WH, SUP, ADM),
    "cargo.complete": _roles(WH, SUP, ADM),
    "cargo.override": _roles(SUP, ADM),

    # Entregas
    "delivery.create": _roles(C),
    "delivery.list": _roles(C, PS, SUP, WH, ADM),
    "delivery.read": _roles(C, PS, SUP, WH, ADM),
    "delivery.schedule": _roles(SUP, ADM),
    "delivery.assign_driver": _roles(SUP, ADM),
    "delivery.dispatch": _roles(WH, SUP, ADM),
    "delivery.complete": _roles(WH, SUP, ADM),
    "delivery.track": ALL_ROLES,
    "delivery.override": _roles(SUP, ADM),

    # Facturas
    "invoice.create": _roles(ACC, ADM),
    "invoice.list": _roles(C, SUP, ACC, ADM),
    "invoice.read": _roles(C, SUP, ACC, ADM),
    "invoice.send": _roles(ACC, ADM),
    "invoice.mark_paid": _roles(ACC, ADM),
    "invoice.mark_overdue": _roles(ACC, ADM),
    "invoice.cancel": _roles(ACC, ADM),
    "invoice.pay": _roles(C),
    "invoice.delete": _roles(ACC, ADM),
    "invoice.override": _roles(ACC, ADM),
    "invoice.pdf": _roles(C, SUP, ACC, ADM),

    # Usuarios
    "user.profile": ALL_ROLES,
    "user.manage": _roles(ADM),
    "user.list_by_role": _roles(ADM, SUP, PS),
    "user.verify_guest": _roles(PS, ADM),

    # Almacenes
    "warehouse.list": ALL_ROLES,
    "warehouse.read": ALL_ROLES,
    "warehouse.write": _roles(WH, ADM),
    "warehouse.adjust_capacity": _roles(ADM),

    # Dashboard y notificaciones
    "dashboard.stats": ALL_ROLES,
    "notification.manage": _roles(ADM),
}


def authorize(role: str, operation: str) -> bool:
    """allow/deny para (rol, operación); operación desconocida = deny"""
    allowed = POLICY.get(operation)
    if allowed is None:
        return False
    return role in allowed


def allowed_roles(operation: str) -> List[str]:
    return sorted(POLICY.get(operation, frozenset()))


@dataclass(frozen=True)
class ScopeRule:
    """Predicado de alcance para listados y lecturas por id"""
    owner_id: Optional[int] = None
    assignee_id: Optional[int] = None
    default_statuses: Tuple[str, ...] = ()

    @property
    def unrestricted(self) -> bool:
        return self.owner_id is None and self.assignee_id is None and not self.default_statuses

    def criteria(self, model, status: Optional[str] = None) -> list:
        """
        Criterios SQLAlchemy para `model`

        `status` explícito reemplaza la vista por defecto del rol;
        `all` elimina el filtro de estado. La propiedad del cliente y la
        asignación nunca se pueden omitir.
        """
        conditions = []
        if self.owner_id is not None:
            conditions.append(_owner_column_condition(model, self.owner_id))
        if self.assignee_id is not None:
            conditions.append(model.assigned_to == self.assignee_id)

        if status and status != "all":
            conditions.append(model.status == status)
        elif not status and self.default_statuses:
            conditions.append(model.status.in_(self.default_statuses))
        return conditions

    def permits(self, record) -> bool:
        """Lectura por id: sólo propiedad/asignación, no la vista por estado"""
        if self.owner_id is not None and _record_owner_id(record) != self.owner_id:
            return False
        if self.assignee_id is not None and getattr(record, "assigned_to", None) != self.assignee_id:
            return False
        return True


def _owner_column_condition(model, owner_id: int):
    if hasattr(model, "customer_id"):
        return model.customer_id == owner_id
    # CargoDispatchDetail no tiene customer_id: se resuelve por la reserva
    from app.shared.database.models import Booking
    return model.booking.has(Booking.customer_id == owner_id)


def _record_owner_id(record) -> Optional[int]:
    if hasattr(record, "customer_id"):
        return record.customer_id
    booking = getattr(record, "booking", None)
    return booking.customer_id if booking is not None else None


DEFAULT_VIEWS: Dict[Tuple[str, str], Tuple[str, ...]] = {
    (PS.value, EntityKind.QUOTE.value): ("pending",),
    (PS.value, EntityKind.BOOKING.value): ("pending",),
    (PS.value, EntityKind.CARGO.value): ("submitted",),
    (PS.value, EntityKind.DELIVERY.value): ("requested",),
    (SS.value, EntityKind.QUOTE.value): ("processing", "quoted"),
    (SS.value, EntityKind.BOOKING.value): ("pending", "confirmed"),
    (WH.value, EntityKind.BOOKING.value): ("confirmed", "active"),
    (WH.value, EntityKind.CARGO.value): ("approved", "processing"),
    (WH.value, EntityKind.DELIVERY.value): ("scheduled", "in_transit"),
    (ACC.value, EntityKind.BOOKING.value): ("confirmed", "active", "completed"),
    (ACC.value, EntityKind.INVOICE.value): ("sent",),
}


def scope_filter(role: str, actor_id: int, kind: EntityKind) -> ScopeRule:
    """Alcance de (rol, actor) sobre un tipo de entidad"""
    kind_value = EntityKind(kind).value

    if role == Role.CUSTOMER.value:
        return ScopeRule(owner_id=actor_id)

    if role in (Role.SUPERVISOR.value, Role.ADMIN.value):
        return ScopeRule()

    if role == Role.WAREHOUSE.value and kind_value == EntityKind.QUOTE.value:
        return ScopeRule(assignee_id=actor_id)

    return ScopeRule(default_statuses=DEFAULT_VIEWS.get((role, kind_value), ()))


def ensure_can_view(user, record, kind: EntityKind) -> None:
    """Lectura por id: 403 si el registro está fuera del alcance del actor"""
    from app.core.exceptions import AuthorizationError

    if not scope_filter(user.role, user.id, kind).permits(record):
        raise AuthorizationError("Access denied")
