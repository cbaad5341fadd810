from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from app.auth import CATALOG_EDITORS, PROJECT_ADMINS, require_role
from app.dependencies import get_entity_store, get_request_context
from app.schemas import (
    DeliveryNoteIn,
    DeliveryNoteOut,
    DeliveryNoteUpdateIn,
    EquipmentIn,
    EquipmentOut,
    EquipmentUpdateIn,
    OrderIn,
    OrderOut,
    OrderUpdateIn,
    ProjectIn,
    ProjectOut,
)
from app.security.csrf import verify_csrf
from app.services import catalog_service
from app.services.entity_store import (
    DeliveryNoteChanges,
    EntityStore,
    EquipmentChanges,
    NewDeliveryNote,
    NewEquipment,
    NewOrder,
    NewProject,
    OrderChanges,
    ProjectChanges,
)

router = APIRouter(tags=['catalog'], dependencies=[Depends(get_request_context)])
editor_dependencies = [Depends(require_role(*CATALOG_EDITORS)), Depends(verify_csrf)]
admin_dependencies = [Depends(require_role(*PROJECT_ADMINS)), Depends(verify_csrf)]


def _no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get('/projects', response_model=list[ProjectOut])
def list_projects(store: EntityStore = Depends(get_entity_store)):
    return store.list_projects()


@router.post('/projects', response_model=ProjectOut, status_code=status.HTTP_201_CREATED, dependencies=editor_dependencies)
def create_project(payload: ProjectIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.create_project(store, NewProject(**payload.model_dump()))


@router.get('/projects/{project_id}', response_model=ProjectOut)
def get_project(project_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.get_project(store, project_id)


@router.put('/projects/{project_id}', response_model=ProjectOut, dependencies=editor_dependencies)
def update_project(project_id: int, payload: ProjectIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.update_project(store, project_id, ProjectChanges(**payload.model_dump()))


@router.delete('/projects/{project_id}', status_code=status.HTTP_204_NO_CONTENT, dependencies=admin_dependencies)
def delete_project(project_id: int, store: EntityStore = Depends(get_entity_store)):
    catalog_service.delete_project(store, project_id)
    return _no_content()


@router.get('/projects/{project_id}/orders', response_model=list[OrderOut])
def list_project_orders(project_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.list_orders(store, project_id)


@router.post('/orders', response_model=OrderOut, status_code=status.HTTP_201_CREATED, dependencies=editor_dependencies)
def create_order(payload: OrderIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.create_order(store, NewOrder(**payload.model_dump()))


@router.get('/orders/{order_id}', response_model=OrderOut)
def get_order(order_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.get_order(store, order_id)


@router.put('/orders/{order_id}', response_model=OrderOut, dependencies=editor_dependencies)
def update_order(order_id: int, payload: OrderUpdateIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.update_order(store, order_id, OrderChanges(**payload.model_dump()))


@router.delete('/orders/{order_id}', status_code=status.HTTP_204_NO_CONTENT, dependencies=editor_dependencies)
def delete_order(order_id: int, store: EntityStore = Depends(get_entity_store)):
    catalog_service.delete_order(store, order_id)
    return _no_content()


@router.get('/orders/{order_id}/delivery-notes', response_model=list[DeliveryNoteOut])
def list_order_delivery_notes(order_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.list_delivery_notes(store, order_id)


@router.post(
    '/delivery-notes',
    response_model=DeliveryNoteOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=editor_dependencies,
)
def create_delivery_note(payload: DeliveryNoteIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.create_delivery_note(store, NewDeliveryNote(**payload.model_dump()))


@router.get('/delivery-notes/{delivery_note_id}', response_model=DeliveryNoteOut)
def get_delivery_note(delivery_note_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.get_delivery_note(store, delivery_note_id)


@router.put('/delivery-notes/{delivery_note_id}', response_model=DeliveryNoteOut, dependencies=editor_dependencies)
def update_delivery_note(
    delivery_note_id: int,
    payload: DeliveryNoteUpdateIn,
    store: EntityStore = Depends(get_entity_store),
):
    return catalog_service.update_delivery_note(store, delivery_note_id, DeliveryNoteChanges(**payload.model_dump()))


@router.delete(
    '/delivery-notes/{delivery_note_id}',
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=editor_dependencies,
)
def delete_delivery_note(delivery_note_id: int, store: EntityStore = Depends(get_entity_store)):
    catalog_service.delete_delivery_note(store, delivery_note_id)
    return _no_content()


@router.get('/delivery-notes/{delivery_note_id}/equipment', response_model=list[EquipmentOut])
def list_delivery_note_equipment(delivery_note_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.list_equipment(store, delivery_note_id)


@router.post('/equipment', response_model=EquipmentOut, status_code=status.HTTP_201_CREATED, dependencies=editor_dependencies)
def create_equipment(payload: EquipmentIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.create_equipment(store, NewEquipment(**payload.model_dump()))


@router.get('/equipment/{equipment_id}', response_model=EquipmentOut)
def get_equipment(equipment_id: int, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.get_equipment(store, equipment_id)


@router.put('/equipment/{equipment_id}', response_model=EquipmentOut, dependencies=editor_dependencies)
def update_equipment(equipment_id: int, payload: EquipmentUpdateIn, store: EntityStore = Depends(get_entity_store)):
    return catalog_service.update_equipment(store, equipment_id, EquipmentChanges(**payload.model_dump()))


@router.delete('/equipment/{equipment_id}', status_code=status.HTTP_204_NO_CONTENT, dependencies=editor_dependencies)
def delete_equipment(equipment_id: int, store: EntityStore = Depends(get_entity_store)):
    catalog_service.delete_equipment(store, equipment_id)
    return _no_content()
