from __future__ import annotations

import unittest

from app.models import EquipmentCondition, ProjectStatus
from app.services import catalog_service
from app.services.entity_store import (
    DeliveryNoteChanges,
    EquipmentChanges,
    NewDeliveryNote,
    NewEquipment,
    NewOrder,
    NewProject,
    OrderChanges,
    ProjectChanges,
)
from app.services.errors import DuplicateEntity, EntityNotFound, InvalidEntity
from app.services.memory_entity_store import MemoryEntityStore
from app.services.progress_service import ProgressLevel, derived_status
from app.services.verification_service import verify_equipment
from factories import build_site


class ProjectCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryEntityStore()

    def _project(self, ritm: str = 'RITM0012345', **overrides) -> NewProject:
        fields = {'ritm_code': ritm, 'name': 'Hall B', 'client': 'ACME', 'datacenter': 'BCN1'}
        fields.update(overrides)
        return NewProject(**fields)

    def test_create_project_normalises_ritm(self) -> None:
        project = catalog_service.create_project(self.store, self._project(' ritm0012345 '))
        self.assertEqual(project.ritm_code, 'RITM0012345')

    def test_ritm_format(self) -> None:
        for bad in ('RITM123', 'REQ0012345', 'RITM12A45', ''):
            with self.subTest(ritm=bad):
                with self.assertRaises(InvalidEntity):
                    catalog_service.create_project(self.store, self._project(bad))

    def test_ritm_must_be_unique(self) -> None:
        catalog_service.create_project(self.store, self._project())
        with self.assertRaises(DuplicateEntity):
            catalog_service.create_project(self.store, self._project(name='Other'))

    def test_required_fields(self) -> None:
        with self.assertRaises(InvalidEntity):
            catalog_service.create_project(self.store, self._project(client='  '))


class HierarchyCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = build_site()
        self.store = self.site.store

    def test_parents_must_exist(self) -> None:
        with self.assertRaises(EntityNotFound):
            catalog_service.create_order(self.store, NewOrder(project_id=999, code='PO', vendor='V'))
        with self.assertRaises(EntityNotFound):
            catalog_service.create_delivery_note(self.store, NewDeliveryNote(order_id=999, delivery_code='ALB'))
        with self.assertRaises(EntityNotFound):
            catalog_service.create_equipment(
                self.store, NewEquipment(delivery_note_id=999, serial_number='S', manufacturer='M', model='X')
            )

    def test_equipment_defaults(self) -> None:
        item = catalog_service.create_equipment(
            self.store,
            NewEquipment(delivery_note_id=self.site.empty_note, serial_number=' NEW-1 ', manufacturer='HPE', model='DL360'),
        )
        self.assertEqual(item.serial_number, 'NEW-1')
        self.assertEqual(item.condition, EquipmentCondition.NEW)
        self.assertFalse(item.is_verified)
        self.assertIsNone(item.verification_photo_path)

    def test_serial_unique_within_note_case_insensitive(self) -> None:
        with self.assertRaises(DuplicateEntity):
            catalog_service.create_equipment(
                self.store,
                NewEquipment(delivery_note_id=self.site.note_x, serial_number='sn-1', manufacturer='Dell', model='R760'),
            )
        # The same serial may exist under another delivery note.
        item = catalog_service.create_equipment(
            self.store,
            NewEquipment(delivery_note_id=self.site.note_y, serial_number='sn-1', manufacturer='Dell', model='R760'),
        )
        self.assertEqual(item.delivery_note_id, self.site.note_y)

    def test_negative_counts_rejected(self) -> None:
        with self.assertRaises(InvalidEntity):
            catalog_service.create_order(
                self.store,
                NewOrder(project_id=self.site.project_id, code='PO-9', vendor='V', expected_equipment_count=-1),
            )

    def test_listing_by_parent(self) -> None:
        notes = catalog_service.list_delivery_notes(self.store, self.site.order_id)
        self.assertEqual([note.delivery_code for note in notes], ['ALB-X', 'ALB-Y', 'ALB-EMPTY'])
        with self.assertRaises(EntityNotFound):
            catalog_service.list_equipment(self.store, 999)

class CatalogEditTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = build_site()
        self.store = self.site.store

    def _project_changes(self, **overrides) -> ProjectChanges:
        fields = {'ritm_code': 'RITM0005678', 'name': 'Rack 12', 'client': 'ACME', 'datacenter': 'MAD1'}
        fields.update(overrides)
        return ProjectChanges(**fields)

    def _equipment_changes(self, serial: str = 'SN-1', **overrides) -> EquipmentChanges:
        fields = {'serial_number': serial, 'manufacturer': 'Dell', 'model': 'R760'}
        fields.update(overrides)
        return EquipmentChanges(**fields)

    def test_put_project_on_hold_is_kept_by_derived_status(self) -> None:
        project = catalog_service.update_project(
            self.store, self.site.project_id, self._project_changes(name=' Rack 12b ', status=ProjectStatus.ON_HOLD)
        )
        self.assertEqual(project.name, 'Rack 12b')
        self.assertEqual(derived_status(self.store, ProgressLevel.PROJECT, self.site.project_id), 'on_hold')

    def test_project_update_validates_like_create(self) -> None:
        other = catalog_service.create_project(
            self.store, NewProject(ritm_code='RITM0009999', name='Other', client='C', datacenter='D')
        )
        with self.assertRaises(DuplicateEntity):
            catalog_service.update_project(self.store, self.site.project_id, self._project_changes(ritm_code='ritm0009999'))
        with self.assertRaises(InvalidEntity):
            catalog_service.update_project(self.store, other.id, self._project_changes(ritm_code='RITM12'))
        with self.assertRaises(EntityNotFound):
            catalog_service.update_project(self.store, 999, self._project_changes(ritm_code='RITM0004444'))
        # Keeping its own RITM code is not a collision.
        kept = catalog_service.update_project(self.store, other.id, self._project_changes(ritm_code='RITM0009999'))
        self.assertEqual(kept.ritm_code, 'RITM0009999')

    def test_order_and_delivery_note_updates(self) -> None:
        order = catalog_service.update_order(
            self.store, self.site.order_id, OrderChanges(code='PO-1b', vendor='HPE', expected_equipment_count=4)
        )
        self.assertEqual((order.code, order.vendor, order.project_id), ('PO-1b', 'HPE', self.site.project_id))
        with self.assertRaises(InvalidEntity):
            catalog_service.update_order(self.store, self.site.order_id, OrderChanges(code='', vendor='HPE'))

        note = catalog_service.update_delivery_note(
            self.store, self.site.note_x, DeliveryNoteChanges(delivery_code='ALB-X2', carrier='  ')
        )
        self.assertEqual((note.delivery_code, note.carrier, note.order_id), ('ALB-X2', None, self.site.order_id))
        with self.assertRaises(EntityNotFound):
            catalog_service.update_delivery_note(self.store, 999, DeliveryNoteChanges(delivery_code='X'))

    def test_equipment_update_keeps_parent_and_verification(self) -> None:
        verified = verify_equipment(
            self.store, serial_number='SN-1', delivery_note_id=self.site.note_x, evidence_photo_path='/uploads/equipment/a.jpg'
        )
        item = catalog_service.update_equipment(
            self.store, verified.id, self._equipment_changes('SN-1A', condition=EquipmentCondition.GOOD)
        )
        self.assertEqual(item.serial_number, 'SN-1A')
        self.assertEqual(item.condition, EquipmentCondition.GOOD)
        self.assertEqual(item.delivery_note_id, self.site.note_x)
        self.assertTrue(item.is_verified)
        self.assertEqual(item.verification_photo_path, '/uploads/equipment/a.jpg')

    def test_equipment_update_rejects_serial_of_sibling(self) -> None:
        first, _ = self.store.find_equipment_by_delivery_note(self.site.note_x)
        with self.assertRaises(DuplicateEntity):
            catalog_service.update_equipment(self.store, first.id, self._equipment_changes('sn-2'))
        renamed = catalog_service.update_equipment(self.store, first.id, self._equipment_changes('sn-1'))
        self.assertEqual(renamed.serial_number, 'sn-1')

    def test_deletes(self) -> None:
        item = self.store.find_equipment_by_delivery_note(self.site.note_y)[0]
        catalog_service.delete_equipment(self.store, item.id)
        with self.assertRaises(EntityNotFound):
            catalog_service.delete_equipment(self.store, item.id)

        catalog_service.delete_order(self.store, self.site.order_id)
        self.assertEqual(catalog_service.list_orders(self.store, self.site.project_id), [])
        self.assertIsNone(self.store.get_delivery_note(self.site.note_x))

        catalog_service.delete_project(self.store, self.site.project_id)
        with self.assertRaises(EntityNotFound):
            catalog_service.get_project(self.store, self.site.project_id)
        with self.assertRaises(EntityNotFound):
            catalog_service.delete_delivery_note(self.store, self.site.note_y)



if __name__ == '__main__':
    unittest.main()
