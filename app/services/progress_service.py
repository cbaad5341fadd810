from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from app.models import DeliveryNoteStatus, OrderStatus, ProjectStatus
from app.services.entity_store import EntityStore, EquipmentRecord
from app.services.errors import EntityNotFound


class ProgressLevel(str, Enum):
    DELIVERY_NOTE = 'delivery-note'
    ORDER = 'order'
    PROJECT = 'project'


@dataclass(frozen=True)
class Progress:
    verified: int
    total: int

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def percentage(self) -> int:
        return completion_percentage(self.verified, self.total)

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.verified == self.total

    def __add__(self, other: Progress) -> Progress:
        return Progress(verified=self.verified + other.verified, total=self.total + other.total)


EMPTY = Progress(verified=0, total=0)


def completion_percentage(verified: int, total: int) -> int:
    if total <= 0:
        return 0
    ratio = Decimal(100 * verified) / Decimal(total)
    return int(ratio.to_integral_value(rounding=ROUND_HALF_UP))


def summarize_equipment(items: list[EquipmentRecord]) -> Progress:
    return Progress(verified=sum(1 for item in items if item.is_verified), total=len(items))


def _fold(parts) -> Progress:
    # Sum first, divide once: small delivery notes do not skew the result.
    return sum(parts, EMPTY)


def progress_for_delivery_note(store: EntityStore, delivery_note_id: int) -> Progress:
    if store.get_delivery_note(delivery_note_id) is None:
        raise EntityNotFound('Delivery note', delivery_note_id)
    return summarize_equipment(store.find_equipment_by_delivery_note(delivery_note_id))


def progress_for_order(store: EntityStore, order_id: int) -> Progress:
    if store.get_order(order_id) is None:
        raise EntityNotFound('Order', order_id)
    return _fold(
        summarize_equipment(store.find_equipment_by_delivery_note(note.id))
        for note in store.find_delivery_notes_by_order(order_id)
    )


def progress_for_project(store: EntityStore, project_id: int) -> Progress:
    if store.get_project(project_id) is None:
        raise EntityNotFound('Project', project_id)
    return _fold(progress_for_order(store, order.id) for order in store.find_orders_by_project(project_id))


def progress_for(store: EntityStore, level: ProgressLevel, entity_id: int) -> Progress:
    if level == ProgressLevel.DELIVERY_NOTE:
        return progress_for_delivery_note(store, entity_id)
    if level == ProgressLevel.ORDER:
        return progress_for_order(store, entity_id)
    return progress_for_project(store, entity_id)


def delivery_note_status(progress: Progress) -> DeliveryNoteStatus:
    if progress.is_complete:
        return DeliveryNoteStatus.COMPLETED
    if progress.verified > 0:
        return DeliveryNoteStatus.PROCESSING
    return DeliveryNoteStatus.RECEIVED


def order_status(note_progress: list[Progress]) -> OrderStatus:
    completed = sum(1 for progress in note_progress if progress.is_complete)
    if note_progress and completed == len(note_progress):
        return OrderStatus.COMPLETED
    if completed > 0:
        return OrderStatus.PARTIAL
    return OrderStatus.PENDING_RECEIVE


def project_status(stored: ProjectStatus, order_statuses: list[OrderStatus]) -> ProjectStatus:
    if stored in {ProjectStatus.ON_HOLD, ProjectStatus.CANCELLED}:
        return stored
    if order_statuses and all(status == OrderStatus.COMPLETED for status in order_statuses):
        return ProjectStatus.COMPLETED
    return ProjectStatus.ACTIVE


def _order_status_for(store: EntityStore, order_id: int) -> OrderStatus:
    return order_status(
        [
            summarize_equipment(store.find_equipment_by_delivery_note(note.id))
            for note in store.find_delivery_notes_by_order(order_id)
        ]
    )


def derived_status(store: EntityStore, level: ProgressLevel, entity_id: int) -> str:
    """Lifecycle status implied by current verification facts; never persisted."""
    if level == ProgressLevel.DELIVERY_NOTE:
        return delivery_note_status(progress_for_delivery_note(store, entity_id)).value
    if level == ProgressLevel.ORDER:
        if store.get_order(entity_id) is None:
            raise EntityNotFound('Order', entity_id)
        return _order_status_for(store, entity_id).value

    project = store.get_project(entity_id)
    if project is None:
        raise EntityNotFound('Project', entity_id)
    statuses = [_order_status_for(store, order.id) for order in store.find_orders_by_project(entity_id)]
    return project_status(project.status, statuses).value
