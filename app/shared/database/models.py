# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text, Float,
    Numeric, ForeignKey, CheckConstraint, JSON,
    func
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB

from app.config.database import Base

# JSONB en PostgreSQL, JSON genérico en el resto de motores
JSONType = JSON().with_variant(JSONB(), "postgresql")

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# USUARIOS
# =====================================================

class User(Base, TimestampMixin):
    """Modelo de Usuario"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    mobile = Column(String(50))
    company = Column(String(255))
    role = Column(String(50), default='customer', nullable=False, index=True)
    # False para clientes invitados pendientes de verificación
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    quotes = relationship("Quote", back_populates="customer", foreign_keys="Quote.customer_id")
    bookings = relationship("Booking", back_populates="customer", foreign_keys="Booking.customer_id")
    owned_warehouses = relationship("Warehouse", back_populates="owner")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# =====================================================
# ALMACENES
# =====================================================

class Warehouse(Base, TimestampMixin):
    """Modelo de Almacén; available_space es el valor del ledger de capacidad"""
    __tablename__ = "warehouses"
    __table_args__ = (
        CheckConstraint('available_space >= 0', name='check_available_space_non_negative'),
        CheckConstraint('total_space > 0', name='check_total_space_positive'),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    storage_type = Column(String(50), nullable=False, index=True)
    total_space = Column(Float, nullable=False)
    available_space = Column(Float, nullable=False)
    price_per_sqft = Column(Numeric(10, 2), nullable=False)
    features = Column(JSONType, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"))

    # Relationships
    owner = relationship("User", back_populates="owned_warehouses")
    quotes = relationship("Quote", back_populates="warehouse")
    bookings = relationship("Booking", back_populates="warehouse")


# =====================================================
# FLUJO: COTIZACIONES → RESERVAS → CARGA / ENTREGAS → FACTURAS
# =====================================================

class Quote(Base, TimestampMixin):
    """Solicitud de cotización de almacenamiento"""
    __tablename__ = "quotes"
    __table_args__ = (
        CheckConstraint('required_space > 0', name='check_quote_required_space_positive'),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    storage_type = Column(String(50), nullable=False)
    required_space = Column(Float, nullable=False)
    preferred_location = Column(String(255), nullable=False)
    duration = Column(String(100), nullable=False)
    special_requirements = Column(Text)
    status = Column(String(20), nullable=False, default='pending', index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), index=True)
    final_price = Column(Numeric(12, 2))
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"))

    # Relationships
    customer = relationship("User", back_populates="quotes", foreign_keys=[customer_id])
    assignee = relationship("User", foreign_keys=[assigned_to])
    warehouse = relationship("Warehouse", back_populates="quotes")
    bookings = relationship("Booking", back_populates="quote")


class Booking(Base, TimestampMixin):
    """Reserva de espacio ligada a una cotización aceptada"""
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint('reserved_space >= 0', name='check_booking_reserved_space_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default='pending', index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id"))
    # Espacio retenido en el ledger; 0 cuando ya fue liberado
    reserved_space = Column(Float, nullable=False, default=0)
    customer_approved_at = Column(DateTime)

    # Relationships
    quote = relationship("Quote", back_populates="bookings")
    customer = relationship("User", back_populates="bookings", foreign_keys=[customer_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])
    warehouse = relationship("Warehouse", back_populates="bookings")
    cargo_items = relationship("CargoDispatchDetail", back_populates="booking")
    delivery_requests = relationship("DeliveryRequest", back_populates="booking")
    invoices = relationship("Invoice", back_populates="booking")


class CargoDispatchDetail(Base, TimestampMixin):
    """Movimiento físico de mercancía asociado a una reserva"""
    __tablename__ = "cargo_dispatch_details"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    item_description = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    weight = Column(Numeric(10, 2))
    dimensions = Column(String(255))
    special_handling = Column(Text)
    form_data = Column(JSONType)
    status = Column(String(20), nullable=False, default='submitted', index=True)
    approved_by_id = Column(Integer, ForeignKey("users.id"))

    # Relationships
    booking = relationship("Booking", back_populates="cargo_items")
    approved_by = relationship("User", foreign_keys=[approved_by_id])


class DeliveryRequest(Base, TimestampMixin):
    """Solicitud de transporte con número de seguimiento"""
    __tablename__ = "delivery_requests"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    delivery_address = Column(Text, nullable=False)
    preferred_date = Column(Date, nullable=False)
    scheduled_date = Column(Date)
    urgency = Column(String(20), nullable=False, default='standard')
    status = Column(String(20), nullable=False, default='requested', index=True)
    assigned_driver = Column(String(255))
    tracking_number = Column(String(50), nullable=False, unique=True, index=True)
    delivery_notes = Column(Text)

    # Relationships
    booking = relationship("Booking", back_populates="delivery_requests")
    customer = relationship("User", foreign_keys=[customer_id])


class Invoice(Base, TimestampMixin):
    """Factura asociada a una reserva"""
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    invoice_number = Column(String(50), nullable=False, unique=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default='draft', index=True)
    due_date = Column(Date, nullable=False)
    paid_at = Column(DateTime)
    payment_method = Column(String(50))
    transaction_id = Column(String(255))

    # Relationships
    booking = relationship("Booking", back_populates="invoices")
    customer = relationship("User", foreign_keys=[customer_id])


class InvoiceSequence(Base):
    """Contador por periodo (YYYYMM) para numerar facturas sin colisiones"""
    __tablename__ = "invoice_sequences"

    period = Column(String(6), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


# =====================================================
# NOTIFICACIONES Y AUDITORÍA
# =====================================================

class Notification(Base, TimestampMixin):
    """Outbox de notificaciones: se persiste con la transición y se despacha después"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    channel = Column(String(10), nullable=False, default='email')
    recipient = Column(String(255), nullable=False)
    subject = Column(String(255))
    body = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default='pending', index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    sent_at = Column(DateTime)
    entity_kind = Column(String(50))
    entity_id = Column(Integer)


class AuditLog(Base):
    """Registro de overrides administrativos e intentos prohibidos"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"))
    action = Column(String(100), nullable=False, index=True)
    entity_kind = Column(String(50))
    entity_id = Column(Integer)
    details = Column(JSONType)
    ip_address = Column(String(64))
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    actor = relationship("User", foreign_keys=[actor_id])
