from __future__ import annotations

import logging

from app.context import RequestContext
from app.services.entity_store import EntityStore, EquipmentRecord, serial_key
from app.services.errors import AlreadyVerified, EntityNotFound, InvalidScan, SerialNotFound

logger = logging.getLogger(__name__)


def normalize_serial(raw: str | None) -> str:
    serial = (raw or '').strip()
    if not serial:
        raise InvalidScan('Enter a serial number to verify')
    return serial


def match_serial(items: list[EquipmentRecord], serial_number: str) -> EquipmentRecord | None:
    """Exact, case-insensitive match; never substring or fuzzy."""
    wanted = serial_key(serial_number)
    return next((item for item in items if serial_key(item.serial_number) == wanted), None)


def verify_equipment(
    store: EntityStore,
    *,
    serial_number: str,
    delivery_note_id: int,
    evidence_photo_path: str | None = None,
    context: RequestContext | None = None,
) -> EquipmentRecord:
    context = context or RequestContext()
    serial = normalize_serial(serial_number)
    if store.get_delivery_note(delivery_note_id) is None:
        raise EntityNotFound('Delivery note', delivery_note_id)

    # Only items of this delivery note are candidates, even if the serial exists elsewhere.
    item = match_serial(store.find_equipment_by_delivery_note(delivery_note_id), serial)
    if item is None:
        logger.info('Scan rejected: %s not in delivery note %s (actor=%s)', serial, delivery_note_id, context.actor)
        raise SerialNotFound(serial, delivery_note_id)
    if item.is_verified:
        logger.info('Scan rejected: equipment %s already verified (actor=%s)', item.id, context.actor)
        raise AlreadyVerified(serial, item.id)

    updated = store.update_equipment_verification(
        item.id,
        is_verified=True,
        photo_path=evidence_photo_path or None,
        expected_verified=False,
    )
    if updated is None:
        # Lost the race against a concurrent scan of the same item.
        logger.info('Scan rejected: equipment %s verified concurrently (actor=%s)', item.id, context.actor)
        raise AlreadyVerified(serial, item.id)

    logger.info(
        'Equipment %s (%s) verified in delivery note %s by %s from %s',
        updated.id,
        updated.serial_number,
        delivery_note_id,
        context.actor,
        context.ip or '-',
    )
    return updated


def unverify_equipment(
    store: EntityStore,
    *,
    equipment_id: int,
    context: RequestContext | None = None,
) -> EquipmentRecord:
    context = context or RequestContext()
    updated = store.update_equipment_verification(equipment_id, is_verified=False, photo_path=None)
    if updated is None:
        raise EntityNotFound('Equipment', equipment_id)
    logger.info('Equipment %s verification undone by %s', equipment_id, context.actor)
    return updated
