from __future__ import annotations

import threading
from dataclasses import replace
from itertools import count

from app.services.entity_store import (
    DeliveryNoteChanges,
    DeliveryNoteRecord,
    EquipmentChanges,
    EquipmentRecord,
    NewDeliveryNote,
    NewEquipment,
    NewOrder,
    NewProject,
    OrderChanges,
    OrderRecord,
    ProjectChanges,
    ProjectRecord,
    serial_key,
)
from app.services.errors import DuplicateEntity


class MemoryEntityStore:
    """Process-local store used for fixtures, demos and tests.

    One lock guards every read and write. Reads copy under the lock; the RITM
    and per-note serial checks run in the same critical section as the write
    they guard.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = count(1)
        self.projects: dict[int, ProjectRecord] = {}
        self.orders: dict[int, OrderRecord] = {}
        self.delivery_notes: dict[int, DeliveryNoteRecord] = {}
        self.equipment: dict[int, EquipmentRecord] = {}
        # delivery note id -> serial key -> equipment id
        self._serials: dict[int, dict[str, int]] = {}

    # Helpers below expect the caller to hold the lock.

    def _check_ritm_free(self, ritm_code: str, *, exclude_id: int | None = None) -> None:
        for project in self.projects.values():
            if project.ritm_code == ritm_code and project.id != exclude_id:
                raise DuplicateEntity(f'RITM {ritm_code} already exists in the system as project: {project.name}')

    def _check_serial_free(self, delivery_note_id: int, serial_number: str, *, exclude_id: int | None = None) -> None:
        owner = self._serials.get(delivery_note_id, {}).get(serial_key(serial_number))
        if owner is not None and owner != exclude_id:
            raise DuplicateEntity(f'Serial number "{serial_number}" is already registered in this delivery note')

    def _drop_notes(self, note_ids: set[int]) -> None:
        for item_id in [i.id for i in self.equipment.values() if i.delivery_note_id in note_ids]:
            del self.equipment[item_id]
        for note_id in note_ids:
            self._serials.pop(note_id, None)
            self.delivery_notes.pop(note_id, None)

    def _drop_orders(self, order_ids: set[int]) -> None:
        self._drop_notes({n.id for n in self.delivery_notes.values() if n.order_id in order_ids})
        for order_id in order_ids:
            self.orders.pop(order_id, None)

    def get_project(self, project_id: int) -> ProjectRecord | None:
        with self._lock:
            return self.projects.get(project_id)

    def get_project_by_ritm(self, ritm_code: str) -> ProjectRecord | None:
        with self._lock:
            projects = list(self.projects.values())
        return next((p for p in projects if p.ritm_code == ritm_code), None)

    def list_projects(self) -> list[ProjectRecord]:
        with self._lock:
            projects = list(self.projects.values())
        return sorted(projects, key=lambda p: p.id)

    def get_order(self, order_id: int) -> OrderRecord | None:
        with self._lock:
            return self.orders.get(order_id)

    def find_orders_by_project(self, project_id: int) -> list[OrderRecord]:
        with self._lock:
            orders = list(self.orders.values())
        return sorted((o for o in orders if o.project_id == project_id), key=lambda o: o.id)

    def get_delivery_note(self, delivery_note_id: int) -> DeliveryNoteRecord | None:
        with self._lock:
            return self.delivery_notes.get(delivery_note_id)

    def find_delivery_notes_by_order(self, order_id: int) -> list[DeliveryNoteRecord]:
        with self._lock:
            notes = list(self.delivery_notes.values())
        return sorted((dn for dn in notes if dn.order_id == order_id), key=lambda dn: dn.id)

    def get_equipment(self, equipment_id: int) -> EquipmentRecord | None:
        with self._lock:
            return self.equipment.get(equipment_id)

    def find_equipment_by_delivery_note(self, delivery_note_id: int) -> list[EquipmentRecord]:
        with self._lock:
            items = list(self.equipment.values())
        return sorted((item for item in items if item.delivery_note_id == delivery_note_id), key=lambda item: item.id)

    def update_equipment_verification(
        self,
        equipment_id: int,
        *,
        is_verified: bool,
        photo_path: str | None,
        expected_verified: bool | None = None,
    ) -> EquipmentRecord | None:
        with self._lock:
            current = self.equipment.get(equipment_id)
            if current is None:
                return None
            if expected_verified is not None and current.is_verified != expected_verified:
                return None
            updated = replace(current, is_verified=is_verified, verification_photo_path=photo_path)
            self.equipment[equipment_id] = updated
            return updated

    def add_project(self, data: NewProject) -> ProjectRecord:
        with self._lock:
            self._check_ritm_free(data.ritm_code)
            record = ProjectRecord(
                id=next(self._ids),
                ritm_code=data.ritm_code,
                name=data.name,
                client=data.client,
                datacenter=data.datacenter,
                status=data.status,
            )
            self.projects[record.id] = record
            return record

    def add_order(self, data: NewOrder) -> OrderRecord:
        with self._lock:
            record = OrderRecord(
                id=next(self._ids),
                project_id=data.project_id,
                code=data.code,
                vendor=data.vendor,
                expected_equipment_count=data.expected_equipment_count,
                status=data.status,
            )
            self.orders[record.id] = record
            return record

    def add_delivery_note(self, data: NewDeliveryNote) -> DeliveryNoteRecord:
        with self._lock:
            record = DeliveryNoteRecord(
                id=next(self._ids),
                order_id=data.order_id,
                delivery_code=data.delivery_code,
                carrier=data.carrier,
                tracking_number=data.tracking_number,
                estimated_equipment_count=data.estimated_equipment_count,
            )
            self.delivery_notes[record.id] = record
            return record

    def add_equipment(self, data: NewEquipment) -> EquipmentRecord:
        with self._lock:
            self._check_serial_free(data.delivery_note_id, data.serial_number)
            record = EquipmentRecord(
                id=next(self._ids),
                delivery_note_id=data.delivery_note_id,
                serial_number=data.serial_number,
                manufacturer=data.manufacturer,
                model=data.model,
                asset_tag=data.asset_tag,
                category=data.category,
                condition=data.condition,
                status=data.status,
            )
            self.equipment[record.id] = record
            self._serials.setdefault(record.delivery_note_id, {})[serial_key(record.serial_number)] = record.id
            return record

    def update_project(self, project_id: int, data: ProjectChanges) -> ProjectRecord | None:
        with self._lock:
            current = self.projects.get(project_id)
            if current is None:
                return None
            self._check_ritm_free(data.ritm_code, exclude_id=project_id)
            updated = replace(
                current,
                ritm_code=data.ritm_code,
                name=data.name,
                client=data.client,
                datacenter=data.datacenter,
                status=data.status,
            )
            self.projects[project_id] = updated
            return updated

    def update_order(self, order_id: int, data: OrderChanges) -> OrderRecord | None:
        with self._lock:
            current = self.orders.get(order_id)
            if current is None:
                return None
            updated = replace(
                current,
                code=data.code,
                vendor=data.vendor,
                expected_equipment_count=data.expected_equipment_count,
                status=data.status,
            )
            self.orders[order_id] = updated
            return updated

    def update_delivery_note(self, delivery_note_id: int, data: DeliveryNoteChanges) -> DeliveryNoteRecord | None:
        with self._lock:
            current = self.delivery_notes.get(delivery_note_id)
            if current is None:
                return None
            updated = replace(
                current,
                delivery_code=data.delivery_code,
                carrier=data.carrier,
                tracking_number=data.tracking_number,
                estimated_equipment_count=data.estimated_equipment_count,
            )
            self.delivery_notes[delivery_note_id] = updated
            return updated

    def update_equipment(self, equipment_id: int, data: EquipmentChanges) -> EquipmentRecord | None:
        with self._lock:
            current = self.equipment.get(equipment_id)
            if current is None:
                return None
            self._check_serial_free(current.delivery_note_id, data.serial_number, exclude_id=equipment_id)
            updated = replace(
                current,
                serial_number=data.serial_number,
                manufacturer=data.manufacturer,
                model=data.model,
                asset_tag=data.asset_tag,
                category=data.category,
                condition=data.condition,
                status=data.status,
            )
            self.equipment[equipment_id] = updated
            keys = self._serials.setdefault(current.delivery_note_id, {})
            keys.pop(serial_key(current.serial_number), None)
            keys[serial_key(updated.serial_number)] = equipment_id
            return updated

    def delete_project(self, project_id: int) -> bool:
        with self._lock:
            if self.projects.pop(project_id, None) is None:
                return False
            self._drop_orders({o.id for o in self.orders.values() if o.project_id == project_id})
            return True

    def delete_order(self, order_id: int) -> bool:
        with self._lock:
            if order_id not in self.orders:
                return False
            self._drop_orders({order_id})
            return True

    def delete_delivery_note(self, delivery_note_id: int) -> bool:
        with self._lock:
            if delivery_note_id not in self.delivery_notes:
                return False
            self._drop_notes({delivery_note_id})
            return True

    def delete_equipment(self, equipment_id: int) -> bool:
        with self._lock:
            removed = self.equipment.pop(equipment_id, None)
            if removed is None:
                return False
            self._serials.get(removed.delivery_note_id, {}).pop(serial_key(removed.serial_number), None)
            return True
