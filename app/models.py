from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import CITEXT, INET
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PrincipalRole(str, Enum):
    ADMIN = 'ADMIN'
    MANAGER = 'MANAGER'
    OPERATOR = 'OPERATOR'
    VIEWER = 'VIEWER'


class ProjectStatus(str, Enum):
    ACTIVE = 'active'
    ON_HOLD = 'on_hold'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class OrderStatus(str, Enum):
    PENDING_RECEIVE = 'pending_receive'
    PENDING = 'pending'
    RECEIVED = 'received'
    PARTIAL = 'partial'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class DeliveryNoteStatus(str, Enum):
    RECEIVED = 'received'
    PROCESSING = 'processing'
    COMPLETED = 'completed'


class EquipmentCondition(str, Enum):
    NEW = 'new'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'


class EquipmentStatus(str, Enum):
    RECEIVED = 'received'
    INSTALLED = 'installed'
    CONFIGURED = 'configured'
    DECOMMISSIONED = 'decommissioned'


# SQLite only autoincrements INTEGER primary keys.
IdentityKey = BigInteger().with_variant(Integer(), 'sqlite')


def _values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Project(Base):
    __tablename__ = 'projects'
    __table_args__ = (
        UniqueConstraint('ritm_code', name='projects_ritm_code_key'),
    )

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True)
    ritm_code: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    client: Mapped[str] = mapped_column(Text, nullable=False)
    datacenter: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(ProjectStatus, name='project_status', values_callable=_values),
        nullable=False,
        default=ProjectStatus.ACTIVE,
        server_default=ProjectStatus.ACTIVE.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Order(Base):
    __tablename__ = 'orders'

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True)
    project_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    vendor: Mapped[str] = mapped_column(Text, nullable=False)
    expected_equipment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name='order_status', values_callable=_values),
        nullable=False,
        default=OrderStatus.PENDING_RECEIVE,
        server_default=OrderStatus.PENDING_RECEIVE.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DeliveryNote(Base):
    __tablename__ = 'delivery_notes'

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True)
    order_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    delivery_code: Mapped[str] = mapped_column(Text, nullable=False)
    carrier: Mapped[str | None] = mapped_column(Text)
    tracking_number: Mapped[str | None] = mapped_column(Text)
    estimated_equipment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    status: Mapped[DeliveryNoteStatus] = mapped_column(
        SQLEnum(DeliveryNoteStatus, name='delivery_note_status', values_callable=_values),
        nullable=False,
        default=DeliveryNoteStatus.RECEIVED,
        server_default=DeliveryNoteStatus.RECEIVED.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class EquipmentItem(Base):
    __tablename__ = 'equipment'
    __table_args__ = (
        Index('equipment_delivery_note_serial_key', 'delivery_note_id', text('lower(serial_number)'), unique=True),
    )

    id: Mapped[int] = mapped_column(IdentityKey, primary_key=True)
    delivery_note_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey('delivery_notes.id', ondelete='CASCADE'), nullable=False, index=True
    )
    serial_number: Mapped[str] = mapped_column(Text, nullable=False)
    asset_tag: Mapped[str | None] = mapped_column(Text)
    manufacturer: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(Text)
    condition: Mapped[EquipmentCondition] = mapped_column(
        SQLEnum(EquipmentCondition, name='equipment_condition', values_callable=_values),
        nullable=False,
        default=EquipmentCondition.NEW,
        server_default=EquipmentCondition.NEW.value,
    )
    status: Mapped[EquipmentStatus] = mapped_column(
        SQLEnum(EquipmentStatus, name='equipment_status', values_callable=_values),
        nullable=False,
        default=EquipmentStatus.RECEIVED,
        server_default=EquipmentStatus.RECEIVED.value,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    verification_photo_path: Mapped[str | None] = mapped_column(Text)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Principal(Base):
    __tablename__ = 'principals'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    username: Mapped[str] = mapped_column(CITEXT(), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[PrincipalRole] = mapped_column(SQLEnum(PrincipalRole, name='principal_role'), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuthEvent(Base):
    __tablename__ = 'auth_events'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    attempted_username: Mapped[str] = mapped_column(CITEXT(), nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    failure_reason: Mapped[str | None] = mapped_column(Text)
    principal_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('principals.id'))
    ip: Mapped[str | None] = mapped_column(INET)
    user_agent: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    actor_principal_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('principals.id'))
    action: Mapped[str] = mapped_column(Text, nullable=False)
    ip: Mapped[str | None] = mapped_column(INET)
    meta: Mapped[dict] = mapped_column('metadata', JSON, nullable=False, default=dict, server_default='{}')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class WebSession(Base):
    __tablename__ = 'web_sessions'
    __table_args__ = (
        UniqueConstraint('session_token', name='web_sessions_session_token_key'),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    session_token: Mapped[str] = mapped_column(String(128), nullable=False)
    principal_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('principals.id'), nullable=False)
    ip: Mapped[str | None] = mapped_column(INET)
    user_agent: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
