from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.auth import VERIFIERS, require_role
from app.context import RequestContext
from app.dependencies import get_entity_store, get_evidence, get_request_context
from app.schemas import DeliveryNoteOut, EquipmentOut, ProgressOut, UploadOut, ValidationSessionOut
from app.security.csrf import verify_csrf
from app.services.catalog_service import get_delivery_note, list_equipment
from app.services.entity_store import EntityStore
from app.services.evidence_storage import EvidenceStorage, StagedPhoto
from app.services.progress_service import ProgressLevel, derived_status, progress_for
from app.services.verification_service import unverify_equipment
from app.services.verification_workflow import submit_scan

router = APIRouter(tags=['verification'])


async def _read_photo(upload: UploadFile | None) -> StagedPhoto | None:
    if upload is None or not upload.filename:
        return None
    return StagedPhoto(
        filename=upload.filename,
        content_type=upload.content_type or '',
        data=await upload.read(),
    )


def build_progress(store: EntityStore, level: ProgressLevel, entity_id: int) -> ProgressOut:
    progress = progress_for(store, level, entity_id)
    return ProgressOut(
        level=level.value,
        id=entity_id,
        verified=progress.verified,
        total=progress.total,
        percentage=progress.percentage,
        is_empty=progress.is_empty,
        derived_status=derived_status(store, level, entity_id),
    )


@router.post(
    '/equipment/verify',
    response_model=EquipmentOut,
    dependencies=[Depends(require_role(*VERIFIERS)), Depends(verify_csrf)],
)
async def verify(
    serial_number: str = Form('', alias='serialNumber'),
    delivery_note_id: int = Form(..., alias='deliveryNoteId'),
    photo: UploadFile | None = File(default=None),
    store: EntityStore = Depends(get_entity_store),
    evidence: EvidenceStorage = Depends(get_evidence),
    context: RequestContext = Depends(get_request_context),
):
    staged = await _read_photo(photo)
    return submit_scan(
        store,
        evidence,
        serial_number=serial_number,
        delivery_note_id=delivery_note_id,
        photo=staged,
        context=context,
    )


@router.post(
    '/equipment/{equipment_id}/unverify',
    response_model=EquipmentOut,
    dependencies=[Depends(require_role(*VERIFIERS)), Depends(verify_csrf)],
)
def unverify(
    equipment_id: int,
    store: EntityStore = Depends(get_entity_store),
    context: RequestContext = Depends(get_request_context),
):
    return unverify_equipment(store, equipment_id=equipment_id, context=context)


@router.post(
    '/uploads/equipment',
    response_model=UploadOut,
    dependencies=[Depends(require_role(*VERIFIERS)), Depends(verify_csrf)],
)
async def upload_equipment_photo(
    file: UploadFile = File(...),
    evidence: EvidenceStorage = Depends(get_evidence),
):
    staged = await _read_photo(file)
    if staged is None:
        staged = StagedPhoto(filename='', content_type='', data=b'')
    path = evidence.save(staged)
    return UploadOut(file_path=path, original_name=staged.filename, size=staged.size)


@router.get('/progress/{level}/{entity_id}', response_model=ProgressOut, dependencies=[Depends(get_request_context)])
def progress(
    level: ProgressLevel,
    entity_id: int,
    store: EntityStore = Depends(get_entity_store),
):
    return build_progress(store, level, entity_id)


@router.get(
    '/delivery-notes/{delivery_note_id}/validation',
    response_model=ValidationSessionOut,
    dependencies=[Depends(get_request_context)],
)
def validation_session(
    delivery_note_id: int,
    store: EntityStore = Depends(get_entity_store),
):
    note = get_delivery_note(store, delivery_note_id)
    items = list_equipment(store, delivery_note_id)
    summary = build_progress(store, ProgressLevel.DELIVERY_NOTE, delivery_note_id)
    return ValidationSessionOut(
        delivery_note=DeliveryNoteOut.model_validate(note),
        equipment=[EquipmentOut.model_validate(item) for item in items],
        progress=summary,
        all_verified=not summary.is_empty and summary.verified == summary.total,
    )
