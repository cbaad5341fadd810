from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import DeliveryNote, EquipmentItem, Order, Project
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
)
from app.services.errors import DuplicateEntity, StoreUnavailable

logger = logging.getLogger(__name__)


def _project(row: Project) -> ProjectRecord:
    return ProjectRecord(
        id=row.id,
        ritm_code=row.ritm_code,
        name=row.name,
        client=row.client,
        datacenter=row.datacenter,
        status=row.status,
    )


def _order(row: Order) -> OrderRecord:
    return OrderRecord(
        id=row.id,
        project_id=row.project_id,
        code=row.code,
        vendor=row.vendor,
        expected_equipment_count=row.expected_equipment_count,
        status=row.status,
    )


def _delivery_note(row: DeliveryNote) -> DeliveryNoteRecord:
    return DeliveryNoteRecord(
        id=row.id,
        order_id=row.order_id,
        delivery_code=row.delivery_code,
        carrier=row.carrier,
        tracking_number=row.tracking_number,
        estimated_equipment_count=row.estimated_equipment_count,
        status=row.status,
    )


def _equipment(row: EquipmentItem) -> EquipmentRecord:
    return EquipmentRecord(
        id=row.id,
        delivery_note_id=row.delivery_note_id,
        serial_number=row.serial_number,
        manufacturer=row.manufacturer,
        model=row.model,
        asset_tag=row.asset_tag,
        category=row.category,
        condition=row.condition,
        status=row.status,
        is_verified=row.is_verified,
        verification_photo_path=row.verification_photo_path,
    )


class SqlEntityStore:
    """EntityStore backed by one SQLAlchemy session; every write commits on its own."""

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateEntity(f'{action} conflicts with an existing record') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error('Entity store failure during %s', action, exc_info=True)
            raise StoreUnavailable(f'Entity store failure during {action}') from exc

    def get_project(self, project_id: int) -> ProjectRecord | None:
        with self._guard('get_project'):
            row = self.db.get(Project, project_id)
        return _project(row) if row else None

    def get_project_by_ritm(self, ritm_code: str) -> ProjectRecord | None:
        with self._guard('get_project_by_ritm'):
            row = self.db.execute(select(Project).where(Project.ritm_code == ritm_code)).scalar_one_or_none()
        return _project(row) if row else None

    def list_projects(self) -> list[ProjectRecord]:
        with self._guard('list_projects'):
            rows = self.db.execute(select(Project).order_by(Project.id.asc())).scalars().all()
        return [_project(row) for row in rows]

    def get_order(self, order_id: int) -> OrderRecord | None:
        with self._guard('get_order'):
            row = self.db.get(Order, order_id)
        return _order(row) if row else None

    def find_orders_by_project(self, project_id: int) -> list[OrderRecord]:
        with self._guard('find_orders_by_project'):
            rows = self.db.execute(
                select(Order).where(Order.project_id == project_id).order_by(Order.id.asc())
            ).scalars().all()
        return [_order(row) for row in rows]

    def get_delivery_note(self, delivery_note_id: int) -> DeliveryNoteRecord | None:
        with self._guard('get_delivery_note'):
            row = self.db.get(DeliveryNote, delivery_note_id)
        return _delivery_note(row) if row else None

    def find_delivery_notes_by_order(self, order_id: int) -> list[DeliveryNoteRecord]:
        with self._guard('find_delivery_notes_by_order'):
            rows = self.db.execute(
                select(DeliveryNote).where(DeliveryNote.order_id == order_id).order_by(DeliveryNote.id.asc())
            ).scalars().all()
        return [_delivery_note(row) for row in rows]

    def get_equipment(self, equipment_id: int) -> EquipmentRecord | None:
        with self._guard('get_equipment'):
            row = self.db.get(EquipmentItem, equipment_id)
        return _equipment(row) if row else None

    def find_equipment_by_delivery_note(self, delivery_note_id: int) -> list[EquipmentRecord]:
        with self._guard('find_equipment_by_delivery_note'):
            rows = self.db.execute(
                select(EquipmentItem)
                .where(EquipmentItem.delivery_note_id == delivery_note_id)
                .order_by(EquipmentItem.id.asc())
            ).scalars().all()
        return [_equipment(row) for row in rows]

    def update_equipment_verification(
        self,
        equipment_id: int,
        *,
        is_verified: bool,
        photo_path: str | None,
        expected_verified: bool | None = None,
    ) -> EquipmentRecord | None:
        now = datetime.now(tz=timezone.utc)
        stmt = update(EquipmentItem).where(EquipmentItem.id == equipment_id)
        if expected_verified is not None:
            # Compare-and-set on the current verification flag.
            stmt = stmt.where(EquipmentItem.is_verified == expected_verified)
        stmt = stmt.values(
            is_verified=is_verified,
            verification_photo_path=photo_path,
            verified_at=now if is_verified else None,
            updated_at=now,
        ).returning(EquipmentItem)
        stmt = stmt.execution_options(synchronize_session='fetch', populate_existing=True)

        with self._guard('update_equipment_verification'):
            row = self.db.execute(stmt).scalar_one_or_none()
            if row is None:
                self.db.rollback()
                return None
            record = _equipment(row)
            self.db.commit()
        return record

    def add_project(self, data: NewProject) -> ProjectRecord:
        row = Project(
            ritm_code=data.ritm_code,
            name=data.name,
            client=data.client,
            datacenter=data.datacenter,
            status=data.status,
        )
        with self._guard('add_project'):
            self.db.add(row)
            self.db.flush()
            record = _project(row)
            self.db.commit()
        return record

    def add_order(self, data: NewOrder) -> OrderRecord:
        row = Order(
            project_id=data.project_id,
            code=data.code,
            vendor=data.vendor,
            expected_equipment_count=data.expected_equipment_count,
            status=data.status,
        )
        with self._guard('add_order'):
            self.db.add(row)
            self.db.flush()
            record = _order(row)
            self.db.commit()
        return record

    def add_delivery_note(self, data: NewDeliveryNote) -> DeliveryNoteRecord:
        row = DeliveryNote(
            order_id=data.order_id,
            delivery_code=data.delivery_code,
            carrier=data.carrier,
            tracking_number=data.tracking_number,
            estimated_equipment_count=data.estimated_equipment_count,
        )
        with self._guard('add_delivery_note'):
            self.db.add(row)
            self.db.flush()
            record = _delivery_note(row)
            self.db.commit()
        return record

    def add_equipment(self, data: NewEquipment) -> EquipmentRecord:
        row = EquipmentItem(
            delivery_note_id=data.delivery_note_id,
            serial_number=data.serial_number,
            manufacturer=data.manufacturer,
            model=data.model,
            asset_tag=data.asset_tag,
            category=data.category,
            condition=data.condition,
            status=data.status,
        )
        with self._guard('add_equipment'):
            self.db.add(row)
            self.db.flush()
            record = _equipment(row)
            self.db.commit()
        return record

    def _apply(self, model, entity_id: int, action: str, changes: dict, to_record):
        with self._guard(action):
            row = self.db.get(model, entity_id)
            if row is None:
                return None
            for field, value in changes.items():
                setattr(row, field, value)
            self.db.flush()
            record = to_record(row)
            self.db.commit()
        return record

    def update_project(self, project_id: int, data: ProjectChanges) -> ProjectRecord | None:
        return self._apply(Project, project_id, 'update_project', asdict(data), _project)

    def update_order(self, order_id: int, data: OrderChanges) -> OrderRecord | None:
        return self._apply(Order, order_id, 'update_order', asdict(data), _order)

    def update_delivery_note(self, delivery_note_id: int, data: DeliveryNoteChanges) -> DeliveryNoteRecord | None:
        return self._apply(DeliveryNote, delivery_note_id, 'update_delivery_note', asdict(data), _delivery_note)

    def update_equipment(self, equipment_id: int, data: EquipmentChanges) -> EquipmentRecord | None:
        changes = asdict(data)
        changes['updated_at'] = datetime.now(tz=timezone.utc)
        return self._apply(EquipmentItem, equipment_id, 'update_equipment', changes, _equipment)

    def _delete(self, action: str, statements: list) -> bool:
        """Run child-first deletes; the last statement targets the entity itself."""
        with self._guard(action):
            result = None
            for stmt in statements:
                result = self.db.execute(stmt.execution_options(synchronize_session=False))
            if not result.rowcount:
                self.db.rollback()
                return False
            self.db.commit()
        # Bulk deletes bypass the identity map.
        self.db.expire_all()
        return True

    def delete_project(self, project_id: int) -> bool:
        order_ids = select(Order.id).where(Order.project_id == project_id)
        note_ids = select(DeliveryNote.id).where(DeliveryNote.order_id.in_(order_ids))
        return self._delete(
            'delete_project',
            [
                delete(EquipmentItem).where(EquipmentItem.delivery_note_id.in_(note_ids)),
                delete(DeliveryNote).where(DeliveryNote.order_id.in_(order_ids)),
                delete(Order).where(Order.project_id == project_id),
                delete(Project).where(Project.id == project_id),
            ],
        )

    def delete_order(self, order_id: int) -> bool:
        note_ids = select(DeliveryNote.id).where(DeliveryNote.order_id == order_id)
        return self._delete(
            'delete_order',
            [
                delete(EquipmentItem).where(EquipmentItem.delivery_note_id.in_(note_ids)),
                delete(DeliveryNote).where(DeliveryNote.order_id == order_id),
                delete(Order).where(Order.id == order_id),
            ],
        )

    def delete_delivery_note(self, delivery_note_id: int) -> bool:
        return self._delete(
            'delete_delivery_note',
            [
                delete(EquipmentItem).where(EquipmentItem.delivery_note_id == delivery_note_id),
                delete(DeliveryNote).where(DeliveryNote.id == delivery_note_id),
            ],
        )

    def delete_equipment(self, equipment_id: int) -> bool:
        return self._delete('delete_equipment', [delete(EquipmentItem).where(EquipmentItem.id == equipment_id)])
