from __future__ import annotations

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.models import DeliveryNote, EquipmentItem, Order, OrderStatus, Project, ProjectStatus
from app.services.entity_store import (
    EquipmentChanges,
    NewDeliveryNote,
    NewEquipment,
    NewOrder,
    NewProject,
    OrderChanges,
    ProjectChanges,
)
from app.services.errors import AlreadyVerified, DuplicateEntity, StoreUnavailable
from app.services.progress_service import progress_for_project
from app.services.sql_entity_store import SqlEntityStore
from app.services.verification_service import unverify_equipment, verify_equipment

DOMAIN_TABLES = [Project.__table__, Order.__table__, DeliveryNote.__table__, EquipmentItem.__table__]


class SqlEntityStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine('sqlite://')
        Project.metadata.create_all(self.engine, tables=DOMAIN_TABLES)
        self.db = Session(self.engine, expire_on_commit=False)
        self.store = SqlEntityStore(self.db)

        project = self.store.add_project(NewProject(ritm_code='RITM0001111', name='P', client='C', datacenter='D'))
        self.order = self.store.add_order(NewOrder(project_id=project.id, code='PO-1', vendor='Dell'))
        self.note = self.store.add_delivery_note(NewDeliveryNote(order_id=self.order.id, delivery_code='ALB-1'))
        for serial in ('SN-1', 'SN-2', 'SN-3'):
            self.store.add_equipment(
                NewEquipment(delivery_note_id=self.note.id, serial_number=serial, manufacturer='Dell', model='R760')
            )
        self.project_id = project.id

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def test_records_round_trip_through_lookups(self) -> None:
        self.assertEqual(self.store.get_project_by_ritm('RITM0001111').id, self.project_id)
        self.assertEqual([o.id for o in self.store.find_orders_by_project(self.project_id)], [self.order.id])
        items = self.store.find_equipment_by_delivery_note(self.note.id)
        self.assertEqual([item.serial_number for item in items], ['SN-1', 'SN-2', 'SN-3'])
        self.assertFalse(any(item.is_verified for item in items))

    def test_verify_and_unverify_persist(self) -> None:
        item = verify_equipment(
            self.store,
            serial_number='sn-3',
            delivery_note_id=self.note.id,
            evidence_photo_path='/uploads/equipment/x.jpg',
        )
        stored = self.store.get_equipment(item.id)
        self.assertTrue(stored.is_verified)
        self.assertEqual(stored.verification_photo_path, '/uploads/equipment/x.jpg')

        progress = progress_for_project(self.store, self.project_id)
        self.assertEqual((progress.verified, progress.total, progress.percentage), (1, 3, 33))

        with self.assertRaises(AlreadyVerified):
            verify_equipment(self.store, serial_number='SN-3', delivery_note_id=self.note.id)

        unverify_equipment(self.store, equipment_id=item.id)
        self.assertIsNone(self.store.get_equipment(item.id).verification_photo_path)

    def test_conditional_update_skips_when_value_changed(self) -> None:
        item = self.store.find_equipment_by_delivery_note(self.note.id)[0]
        self.assertIsNotNone(
            self.store.update_equipment_verification(item.id, is_verified=True, photo_path=None, expected_verified=False)
        )
        self.assertIsNone(
            self.store.update_equipment_verification(item.id, is_verified=True, photo_path='p', expected_verified=False)
        )
        self.assertIsNone(self.store.get_equipment(item.id).verification_photo_path)

    def test_case_insensitive_serial_index(self) -> None:
        with self.assertRaises(DuplicateEntity):
            self.store.add_equipment(
                NewEquipment(delivery_note_id=self.note.id, serial_number='sn-1', manufacturer='Dell', model='R760')
            )

    def test_database_errors_become_store_unavailable(self) -> None:
        with patch.object(self.db, 'execute', side_effect=OperationalError('SELECT 1', {}, Exception('gone'))):
            with self.assertRaises(StoreUnavailable):
                self.store.find_equipment_by_delivery_note(self.note.id)

    def test_updates_leave_verification_and_parent_alone(self) -> None:
        item = verify_equipment(
            self.store, serial_number='SN-1', delivery_note_id=self.note.id, evidence_photo_path='/uploads/equipment/a.jpg'
        )
        updated = self.store.update_equipment(
            item.id, EquipmentChanges(serial_number='SN-1A', manufacturer='Dell', model='R770', asset_tag='AT-9')
        )
        self.assertEqual((updated.serial_number, updated.model, updated.asset_tag), ('SN-1A', 'R770', 'AT-9'))
        self.assertEqual(updated.delivery_note_id, self.note.id)
        self.assertTrue(updated.is_verified)
        self.assertEqual(self.store.get_equipment(item.id).verification_photo_path, '/uploads/equipment/a.jpg')

        self.assertIsNone(self.store.update_order(999, OrderChanges(code='X', vendor='Y')))
        order = self.store.update_order(self.order.id, OrderChanges(code='PO-1b', vendor='HPE', status=OrderStatus.CANCELLED))
        self.assertEqual((order.code, order.status), ('PO-1b', OrderStatus.CANCELLED))

    def test_project_update_collides_on_ritm(self) -> None:
        other = self.store.add_project(NewProject(ritm_code='RITM0002222', name='Q', client='C', datacenter='D'))
        with self.assertRaises(DuplicateEntity):
            self.store.update_project(
                other.id, ProjectChanges(ritm_code='RITM0001111', name='Q', client='C', datacenter='D')
            )
        held = self.store.update_project(
            self.project_id,
            ProjectChanges(ritm_code='RITM0001111', name='P', client='C', datacenter='D', status=ProjectStatus.ON_HOLD),
        )
        self.assertEqual(held.status, ProjectStatus.ON_HOLD)

    def test_delete_project_removes_descendants(self) -> None:
        items = self.store.find_equipment_by_delivery_note(self.note.id)
        self.assertTrue(self.store.delete_project(self.project_id))
        self.assertIsNone(self.store.get_project(self.project_id))
        self.assertIsNone(self.store.get_order(self.order.id))
        self.assertIsNone(self.store.get_delivery_note(self.note.id))
        self.assertIsNone(self.store.get_equipment(items[0].id))
        self.assertFalse(self.store.delete_project(self.project_id))

    def test_delete_single_equipment(self) -> None:
        item = self.store.find_equipment_by_delivery_note(self.note.id)[0]
        self.assertTrue(self.store.delete_equipment(item.id))
        self.assertEqual(len(self.store.find_equipment_by_delivery_note(self.note.id)), 2)
        self.assertFalse(self.store.delete_equipment(item.id))


if __name__ == '__main__':
    unittest.main()
