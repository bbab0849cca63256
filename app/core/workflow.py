# app/core/workflow.py
"""
Máquinas de estado del flujo Quote → Booking → Cargo/Delivery → Invoice

Cada entidad declara su enum de estados y una tabla de transiciones
`acción -> {estado_actual: estado_nuevo}`. Los servicios nunca escriben
`status` directamente en una transición: piden el siguiente estado a la
máquina, que rechaza con PreconditionError cualquier arista no declarada.
"""
from enum import Enum
from typing import Dict, List, Optional, Type

from app.core.exceptions import PreconditionError, ValidationError


class QuoteStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    QUOTED = "quoted"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CargoStatus(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    PROCESSING = "processing"
    COMPLETED = "completed"


class DeliveryStatus(str, Enum):
    REQUESTED = "requested"
    SCHEDULED = "scheduled"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class StorageType(str, Enum):
    COLD_STORAGE = "cold_storage"
    DRY_STORAGE = "dry_storage"
    HAZMAT = "hazmat"
    CLIMATE_CONTROLLED = "climate_controlled"


class Urgency(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    URGENT = "urgent"


class StateMachine:
    """Tabla de transiciones (estado_actual, acción) -> estado_nuevo"""

    def __init__(self, entity: str, states: Type[Enum], transitions: Dict[str, Dict[Enum, Enum]]):
        self.entity = entity
        self.states = states
        self.transitions = {}
        for action, edges in transitions.items():
            table = {}
            for source, target in edges.items():
                # Validación en construcción: ningún estado fuera del enum
                table[states(source).value] = states(target).value
            self.transitions[action] = table

    def is_valid_state(self, value: Optional[str]) -> bool:
        return value in {s.value for s in self.states}

    def can(self, current: str, action: str) -> bool:
        return current in self.transitions.get(action, {})

    def next_state(self, current: str, action: str) -> str:
        """Estado resultante de aplicar `action`, o PreconditionError"""
        if action not in self.transitions:
            raise ValueError(f"Acción '{action}' no definida para {self.entity}")

        edges = self.transitions[action]
        if current not in edges:
            raise PreconditionError(
                f"Cannot {action} {self.entity} in status '{current}'",
                error="INVALID_TRANSITION"
            )
        return edges[current]

    def allowed_actions(self, current: str) -> List[str]:
        return sorted(action for action, edges in self.transitions.items() if current in edges)

    def validate_filter(self, status: Optional[str]) -> Optional[str]:
        """Filtro de estado de un listado: un estado válido, `all` o nada"""
        if status is None or status == "all" or self.is_valid_state(status):
            return status
        raise ValidationError(
            f"Invalid {self.entity} status '{status}'",
            error="INVALID_STATUS"
        )


QUOTE_WORKFLOW = StateMachine("quote", QuoteStatus, {
    # reasignar mientras está en processing es válido; quoted/rejected/approved no vuelven atrás
    "assign": {
        QuoteStatus.PENDING: QuoteStatus.PROCESSING,
        QuoteStatus.PROCESSING: QuoteStatus.PROCESSING,
    },
    "approve": {QuoteStatus.PROCESSING: QuoteStatus.QUOTED},
    "reject": {
        QuoteStatus.PROCESSING: QuoteStatus.REJECTED,
        QuoteStatus.QUOTED: QuoteStatus.REJECTED,
    },
    "accept": {QuoteStatus.QUOTED: QuoteStatus.APPROVED},
})

BOOKING_WORKFLOW = StateMachine("booking", BookingStatus, {
    "confirm": {BookingStatus.PENDING: BookingStatus.CONFIRMED},
    # aprobación del cliente: registra el visto bueno, el estado no cambia
    "approve": {BookingStatus.PENDING: BookingStatus.PENDING},
    "activate": {BookingStatus.CONFIRMED: BookingStatus.ACTIVE},
    "complete": {BookingStatus.ACTIVE: BookingStatus.COMPLETED},
    "cancel": {
        BookingStatus.PENDING: BookingStatus.CANCELLED,
        BookingStatus.CONFIRMED: BookingStatus.CANCELLED,
    },
    "reject": {
        BookingStatus.PENDING: BookingStatus.CANCELLED,
        BookingStatus.CONFIRMED: BookingStatus.CANCELLED,
    },
})

CARGO_WORKFLOW = StateMachine("cargo dispatch", CargoStatus, {
    "approve": {CargoStatus.SUBMITTED: CargoStatus.APPROVED},
    "reject": {
        CargoStatus.SUBMITTED: CargoStatus.SUBMITTED,
        CargoStatus.APPROVED: CargoStatus.SUBMITTED,
    },
    "process": {CargoStatus.APPROVED: CargoStatus.PROCESSING},
    "complete": {CargoStatus.PROCESSING: CargoStatus.COMPLETED},
})

DELIVERY_WORKFLOW = StateMachine("delivery", DeliveryStatus, {
    "schedule": {
        DeliveryStatus.REQUESTED: DeliveryStatus.SCHEDULED,
        DeliveryStatus.SCHEDULED: DeliveryStatus.SCHEDULED,
    },
    "dispatch": {DeliveryStatus.SCHEDULED: DeliveryStatus.IN_TRANSIT},
    "complete": {DeliveryStatus.IN_TRANSIT: DeliveryStatus.DELIVERED},
})

INVOICE_WORKFLOW = StateMachine("invoice", InvoiceStatus, {
    "send": {InvoiceStatus.DRAFT: InvoiceStatus.SENT},
    "mark_paid": {
        InvoiceStatus.SENT: InvoiceStatus.PAID,
        InvoiceStatus.OVERDUE: InvoiceStatus.PAID,
    },
    "mark_overdue": {InvoiceStatus.SENT: InvoiceStatus.OVERDUE},
    "pay": {
        InvoiceStatus.SENT: InvoiceStatus.PAID,
        InvoiceStatus.OVERDUE: InvoiceStatus.PAID,
    },
    "cancel": {
        InvoiceStatus.DRAFT: InvoiceStatus.CANCELLED,
        InvoiceStatus.SENT: InvoiceStatus.CANCELLED,
        InvoiceStatus.OVERDUE: InvoiceStatus.CANCELLED,
    },
})


def rejection_note(reason: Optional[str]) -> str:
    """Texto que se guarda en el campo libre al rechazar"""
    if reason and reason.strip():
        return f"Rejected: {reason}"
    return "Rejected"
