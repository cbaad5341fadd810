from __future__ import annotations

import logging
import re

from app.services.entity_store import (
    DeliveryNoteChanges,
    DeliveryNoteRecord,
    EntityStore,
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
from app.services.errors import DuplicateEntity, EntityNotFound, InvalidEntity

logger = logging.getLogger(__name__)

RITM_RE = re.compile(r'^RITM\d{4,}$')


def _required(value: str | None, label: str) -> str:
    cleaned = (value or '').strip()
    if not cleaned:
        raise InvalidEntity(f'{label} is required')
    return cleaned


def _optional(value: str | None) -> str | None:
    cleaned = (value or '').strip()
    return cleaned or None


def _non_negative(value: int, label: str) -> int:
    if value < 0:
        raise InvalidEntity(f'{label} cannot be negative')
    return value


def _check_serial_free(store: EntityStore, delivery_note_id: int, serial: str, *, exclude_id: int | None = None) -> None:
    wanted = serial_key(serial)
    for item in store.find_equipment_by_delivery_note(delivery_note_id):
        if item.id != exclude_id and serial_key(item.serial_number) == wanted:
            raise DuplicateEntity(f'Serial number "{serial}" is already registered in this delivery note')


def validate_ritm_code(raw: str | None) -> str:
    ritm_code = _required(raw, 'RITM code').upper()
    if not RITM_RE.match(ritm_code):
        raise InvalidEntity('Invalid RITM format. Must start with "RITM" followed by at least four digits.')
    return ritm_code


def get_project(store: EntityStore, project_id: int) -> ProjectRecord:
    project = store.get_project(project_id)
    if project is None:
        raise EntityNotFound('Project', project_id)
    return project


def get_order(store: EntityStore, order_id: int) -> OrderRecord:
    order = store.get_order(order_id)
    if order is None:
        raise EntityNotFound('Order', order_id)
    return order


def get_delivery_note(store: EntityStore, delivery_note_id: int) -> DeliveryNoteRecord:
    note = store.get_delivery_note(delivery_note_id)
    if note is None:
        raise EntityNotFound('Delivery note', delivery_note_id)
    return note


def get_equipment(store: EntityStore, equipment_id: int) -> EquipmentRecord:
    item = store.get_equipment(equipment_id)
    if item is None:
        raise EntityNotFound('Equipment', equipment_id)
    return item


def list_orders(store: EntityStore, project_id: int) -> list[OrderRecord]:
    get_project(store, project_id)
    return store.find_orders_by_project(project_id)


def list_delivery_notes(store: EntityStore, order_id: int) -> list[DeliveryNoteRecord]:
    get_order(store, order_id)
    return store.find_delivery_notes_by_order(order_id)


def list_equipment(store: EntityStore, delivery_note_id: int) -> list[EquipmentRecord]:
    get_delivery_note(store, delivery_note_id)
    return store.find_equipment_by_delivery_note(delivery_note_id)


def create_project(store: EntityStore, data: NewProject) -> ProjectRecord:
    ritm_code = validate_ritm_code(data.ritm_code)
    existing = store.get_project_by_ritm(ritm_code)
    if existing is not None:
        raise DuplicateEntity(f'RITM {ritm_code} already exists in the system as project: {existing.name}')

    project = store.add_project(
        NewProject(
            ritm_code=ritm_code,
            name=_required(data.name, 'Project name'),
            client=_required(data.client, 'Client'),
            datacenter=_required(data.datacenter, 'Datacenter'),
            status=data.status,
        )
    )
    logger.info('Project %s created for %s', project.id, ritm_code)
    return project


def create_order(store: EntityStore, data: NewOrder) -> OrderRecord:
    get_project(store, data.project_id)
    order = store.add_order(
        NewOrder(
            project_id=data.project_id,
            code=_required(data.code, 'Order code'),
            vendor=_required(data.vendor, 'Vendor'),
            expected_equipment_count=_non_negative(data.expected_equipment_count, 'Expected equipment count'),
            status=data.status,
        )
    )
    logger.info('Order %s created under project %s', order.id, data.project_id)
    return order


def create_delivery_note(store: EntityStore, data: NewDeliveryNote) -> DeliveryNoteRecord:
    get_order(store, data.order_id)
    note = store.add_delivery_note(
        NewDeliveryNote(
            order_id=data.order_id,
            delivery_code=_required(data.delivery_code, 'Delivery code'),
            carrier=_optional(data.carrier),
            tracking_number=_optional(data.tracking_number),
            estimated_equipment_count=_non_negative(data.estimated_equipment_count, 'Estimated equipment count'),
        )
    )
    logger.info('Delivery note %s created under order %s', note.id, data.order_id)
    return note


def create_equipment(store: EntityStore, data: NewEquipment) -> EquipmentRecord:
    get_delivery_note(store, data.delivery_note_id)
    serial = _required(data.serial_number, 'Serial number')
    _check_serial_free(store, data.delivery_note_id, serial)

    item = store.add_equipment(
        NewEquipment(
            delivery_note_id=data.delivery_note_id,
            serial_number=serial,
            manufacturer=_required(data.manufacturer, 'Manufacturer'),
            model=_required(data.model, 'Model'),
            asset_tag=_optional(data.asset_tag),
            category=_optional(data.category),
            condition=data.condition,
            status=data.status,
        )
    )
    logger.info('Equipment %s (%s) registered in delivery note %s', item.id, serial, data.delivery_note_id)
    return item


def update_project(store: EntityStore, project_id: int, data: ProjectChanges) -> ProjectRecord:
    get_project(store, project_id)
    ritm_code = validate_ritm_code(data.ritm_code)
    existing = store.get_project_by_ritm(ritm_code)
    if existing is not None and existing.id != project_id:
        raise DuplicateEntity(f'RITM {ritm_code} already exists in the system as project: {existing.name}')

    project = store.update_project(
        project_id,
        ProjectChanges(
            ritm_code=ritm_code,
            name=_required(data.name, 'Project name'),
            client=_required(data.client, 'Client'),
            datacenter=_required(data.datacenter, 'Datacenter'),
            status=data.status,
        ),
    )
    if project is None:
        raise EntityNotFound('Project', project_id)
    logger.info('Project %s updated (status %s)', project_id, project.status.value)
    return project


def update_order(store: EntityStore, order_id: int, data: OrderChanges) -> OrderRecord:
    order = store.update_order(
        order_id,
        OrderChanges(
            code=_required(data.code, 'Order code'),
            vendor=_required(data.vendor, 'Vendor'),
            expected_equipment_count=_non_negative(data.expected_equipment_count, 'Expected equipment count'),
            status=data.status,
        ),
    )
    if order is None:
        raise EntityNotFound('Order', order_id)
    logger.info('Order %s updated', order_id)
    return order


def update_delivery_note(store: EntityStore, delivery_note_id: int, data: DeliveryNoteChanges) -> DeliveryNoteRecord:
    note = store.update_delivery_note(
        delivery_note_id,
        DeliveryNoteChanges(
            delivery_code=_required(data.delivery_code, 'Delivery code'),
            carrier=_optional(data.carrier),
            tracking_number=_optional(data.tracking_number),
            estimated_equipment_count=_non_negative(data.estimated_equipment_count, 'Estimated equipment count'),
        ),
    )
    if note is None:
        raise EntityNotFound('Delivery note', delivery_note_id)
    logger.info('Delivery note %s updated', delivery_note_id)
    return note


def update_equipment(store: EntityStore, equipment_id: int, data: EquipmentChanges) -> EquipmentRecord:
    """Edit catalog fields of one item; its delivery note and verification state stay as they are."""
    current = get_equipment(store, equipment_id)
    serial = _required(data.serial_number, 'Serial number')
    _check_serial_free(store, current.delivery_note_id, serial, exclude_id=equipment_id)

    item = store.update_equipment(
        equipment_id,
        EquipmentChanges(
            serial_number=serial,
            manufacturer=_required(data.manufacturer, 'Manufacturer'),
            model=_required(data.model, 'Model'),
            asset_tag=_optional(data.asset_tag),
            category=_optional(data.category),
            condition=data.condition,
            status=data.status,
        ),
    )
    if item is None:
        raise EntityNotFound('Equipment', equipment_id)
    logger.info('Equipment %s updated (%s)', equipment_id, serial)
    return item


def delete_project(store: EntityStore, project_id: int) -> None:
    if not store.delete_project(project_id):
        raise EntityNotFound('Project', project_id)
    logger.info('Project %s deleted with its orders, delivery notes and equipment', project_id)


def delete_order(store: EntityStore, order_id: int) -> None:
    if not store.delete_order(order_id):
        raise EntityNotFound('Order', order_id)
    logger.info('Order %s deleted with its delivery notes and equipment', order_id)


def delete_delivery_note(store: EntityStore, delivery_note_id: int) -> None:
    if not store.delete_delivery_note(delivery_note_id):
        raise EntityNotFound('Delivery note', delivery_note_id)
    logger.info('Delivery note %s deleted with its equipment', delivery_note_id)


def delete_equipment(store: EntityStore, equipment_id: int) -> None:
    if not store.delete_equipment(equipment_id):
        raise EntityNotFound('Equipment', equipment_id)
    logger.info('Equipment %s deleted', equipment_id)
