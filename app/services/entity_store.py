from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from app.models import (
    DeliveryNoteStatus,
    EquipmentCondition,
    EquipmentStatus,
    OrderStatus,
    ProjectStatus,
)


@dataclass(frozen=True)
class ProjectRecord:
    id: int
    ritm_code: str
    name: str
    client: str
    datacenter: str
    status: ProjectStatus = ProjectStatus.ACTIVE


@dataclass(frozen=True)
class OrderRecord:
    id: int
    project_id: int
    code: str
    vendor: str
    expected_equipment_count: int = 0
    status: OrderStatus = OrderStatus.PENDING_RECEIVE


@dataclass(frozen=True)
class DeliveryNoteRecord:
    id: int
    order_id: int
    delivery_code: str
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_equipment_count: int = 0
    status: DeliveryNoteStatus = DeliveryNoteStatus.RECEIVED


@dataclass(frozen=True)
class EquipmentRecord:
    id: int
    delivery_note_id: int
    serial_number: str
    manufacturer: str
    model: str
    asset_tag: str | None = None
    category: str | None = None
    condition: EquipmentCondition = EquipmentCondition.NEW
    status: EquipmentStatus = EquipmentStatus.RECEIVED
    is_verified: bool = False
    verification_photo_path: str | None = None


@dataclass(frozen=True)
class NewProject:
    ritm_code: str
    name: str
    client: str
    datacenter: str
    status: ProjectStatus = ProjectStatus.ACTIVE


@dataclass(frozen=True)
class NewOrder:
    project_id: int
    code: str
    vendor: str
    expected_equipment_count: int = 0
    status: OrderStatus = OrderStatus.PENDING_RECEIVE


@dataclass(frozen=True)
class NewDeliveryNote:
    order_id: int
    delivery_code: str
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_equipment_count: int = 0


@dataclass(frozen=True)
class NewEquipment:
    delivery_note_id: int
    serial_number: str
    manufacturer: str
    model: str
    asset_tag: str | None = None
    category: str | None = None
    condition: EquipmentCondition = EquipmentCondition.NEW
    status: EquipmentStatus = EquipmentStatus.RECEIVED


@dataclass(frozen=True)
class ProjectChanges:
    ritm_code: str
    name: str
    client: str
    datacenter: str
    status: ProjectStatus = ProjectStatus.ACTIVE


@dataclass(frozen=True)
class OrderChanges:
    code: str
    vendor: str
    expected_equipment_count: int = 0
    status: OrderStatus = OrderStatus.PENDING_RECEIVE


@dataclass(frozen=True)
class DeliveryNoteChanges:
    delivery_code: str
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_equipment_count: int = 0


@dataclass(frozen=True)
class EquipmentChanges:
    """Editable catalog fields; parent and verification state are not among them."""

    serial_number: str
    manufacturer: str
    model: str
    asset_tag: str | None = None
    category: str | None = None
    condition: EquipmentCondition = EquipmentCondition.NEW
    status: EquipmentStatus = EquipmentStatus.RECEIVED


def serial_key(serial_number: str) -> str:
    # Same folding as the lower(serial_number) unique index.
    return serial_number.strip().lower()


class EntityStore(Protocol):
    """Read/write access to the receiving hierarchy.

    Implementations raise ``StoreUnavailable`` when the backing storage fails
    and ``DuplicateEntity`` when a write collides with a RITM code or with a
    serial number already registered in the same delivery note. Lookups and
    updates by id return ``None`` for unknown ids; deletes return ``False``.
    Deleting a parent removes everything beneath it.
    """

    def get_project(self, project_id: int) -> ProjectRecord | None: ...

    def get_project_by_ritm(self, ritm_code: str) -> ProjectRecord | None: ...

    def list_projects(self) -> list[ProjectRecord]: ...

    def get_order(self, order_id: int) -> OrderRecord | None: ...

    def find_orders_by_project(self, project_id: int) -> list[OrderRecord]: ...

    def get_delivery_note(self, delivery_note_id: int) -> DeliveryNoteRecord | None: ...

    def find_delivery_notes_by_order(self, order_id: int) -> list[DeliveryNoteRecord]: ...

    def get_equipment(self, equipment_id: int) -> EquipmentRecord | None: ...

    def find_equipment_by_delivery_note(self, delivery_note_id: int) -> list[EquipmentRecord]: ...

    def update_equipment_verification(
        self,
        equipment_id: int,
        *,
        is_verified: bool,
        photo_path: str | None,
        expected_verified: bool | None = None,
    ) -> EquipmentRecord | None:
        """Write the verification fields of one item.

        When ``expected_verified`` is given the write only happens if the stored
        ``is_verified`` still equals it; otherwise ``None`` is returned and
        nothing changes. ``None`` is also returned for an unknown id.
        """
        ...

    def add_project(self, data: NewProject) -> ProjectRecord: ...

    def add_order(self, data: NewOrder) -> OrderRecord: ...

    def add_delivery_note(self, data: NewDeliveryNote) -> DeliveryNoteRecord: ...

    def add_equipment(self, data: NewEquipment) -> EquipmentRecord: ...

    def update_project(self, project_id: int, data: ProjectChanges) -> ProjectRecord | None: ...

    def update_order(self, order_id: int, data: OrderChanges) -> OrderRecord | None: ...

    def update_delivery_note(self, delivery_note_id: int, data: DeliveryNoteChanges) -> DeliveryNoteRecord | None: ...

    def update_equipment(self, equipment_id: int, data: EquipmentChanges) -> EquipmentRecord | None: ...

    def delete_project(self, project_id: int) -> bool: ...

    def delete_order(self, order_id: int) -> bool: ...

    def delete_delivery_note(self, delivery_note_id: int) -> bool: ...

    def delete_equipment(self, equipment_id: int) -> bool: ...
