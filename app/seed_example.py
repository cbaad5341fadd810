from sqlalchemy import select

from app.models import Principal, PrincipalRole
from app.services.catalog_service import create_delivery_note, create_equipment, create_order, create_project
from app.services.entity_store import EntityStore, NewDeliveryNote, NewEquipment, NewOrder, NewProject
from app.security.passwords import hash_password

DEMO_PRINCIPALS = [
    ('admin', 'adminpass', PrincipalRole.ADMIN),
    ('manager', 'managerpass', PrincipalRole.MANAGER),
    ('operator', 'operatorpass', PrincipalRole.OPERATOR),
    ('viewer', 'viewerpass', PrincipalRole.VIEWER),
]

DEMO_EQUIPMENT = [
    ('DL-001-A', 'DL380 Gen11 #1', 'HPE', 'ProLiant DL380 Gen11', 'server'),
    ('DL-001-B', 'DL380 Gen11 #2', 'HPE', 'ProLiant DL380 Gen11', 'server'),
    ('SW-9300-1', 'Core switch A', 'Cisco', 'Catalyst 9300', 'network'),
]


def load_fixture(store: EntityStore) -> None:
    if store.get_project_by_ritm('RITM0001234') is not None:
        return

    project = create_project(
        store,
        NewProject(ritm_code='RITM0001234', name='MAD2 Compute Refresh', client='Demo Client', datacenter='MAD2'),
    )
    order = create_order(store, NewOrder(project_id=project.id, code='PO-2024-001', vendor='HPE', expected_equipment_count=3))
    note = create_delivery_note(
        store,
        NewDeliveryNote(
            order_id=order.id,
            delivery_code='ALB-0001',
            carrier='DHL',
            tracking_number='JD014600003828',
            estimated_equipment_count=len(DEMO_EQUIPMENT),
        ),
    )
    for serial, asset_tag, manufacturer, model, category in DEMO_EQUIPMENT:
        create_equipment(
            store,
            NewEquipment(
                delivery_note_id=note.id,
                serial_number=serial,
                asset_tag=asset_tag,
                manufacturer=manufacturer,
                model=model,
                category=category,
            ),
        )
    create_delivery_note(store, NewDeliveryNote(order_id=order.id, delivery_code='ALB-0002', carrier='SEUR'))


def seed() -> None:
    from app.db import SessionLocal
    from app.services.sql_entity_store import SqlEntityStore

    with SessionLocal() as db:
        for username, password, role in DEMO_PRINCIPALS:
            existing = db.execute(select(Principal).where(Principal.username == username)).scalar_one_or_none()
            if not existing:
                db.add(Principal(username=username, password_hash=hash_password(password), role=role, active=True))
        db.commit()

        load_fixture(SqlEntityStore(db))


if __name__ == '__main__':
    seed()
    print('Seed data inserted/verified.')
