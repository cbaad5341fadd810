from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from app.context import RequestContext
from app.services.entity_store import EntityStore, EquipmentRecord
from app.services.errors import EvidenceUploadFailed, ReceivingError, StoreUnavailable
from app.services.evidence_storage import EvidenceStorage, StagedPhoto
from app.services.notification_service import (
    LoggingChannel,
    Notification,
    NotificationChannel,
    error_notification,
    unverified_notification,
    verified_notification,
)
from app.services.progress_service import Progress, progress_for_delivery_note
from app.services.verification_service import normalize_serial, unverify_equipment, verify_equipment

logger = logging.getLogger(__name__)


def submit_scan(
    store: EntityStore,
    evidence: EvidenceStorage,
    *,
    serial_number: str,
    delivery_note_id: int,
    photo: StagedPhoto | None = None,
    context: RequestContext | None = None,
) -> EquipmentRecord:
    """One verification attempt: upload the photo (if any), then verify.

    Either the item ends up verified with the photo attached, or nothing is
    kept: a photo stored for a rejected scan is discarded again.
    """
    serial = normalize_serial(serial_number)
    photo_path = evidence.save(photo) if photo is not None else None
    try:
        return verify_equipment(
            store,
            serial_number=serial,
            delivery_note_id=delivery_note_id,
            evidence_photo_path=photo_path,
            context=context,
        )
    except (ReceivingError, StoreUnavailable):
        if photo_path:
            evidence.discard(photo_path)
        raise


class WorkflowState(str, Enum):
    IDLE = 'idle'
    PHOTO_STAGED = 'photo_staged'
    SUBMITTING = 'submitting'


@dataclass(frozen=True)
class ScanOutcome:
    success: bool
    notification: Notification
    item: EquipmentRecord | None = None
    progress: Progress | None = None
    photo_staged: bool = False


class VerificationWorkflow:
    """Validation session for one delivery note.

    Holds at most one staged photo. The photo is bound to whichever item the
    next successful scan matches; rejected scans and failed uploads keep it
    staged so the operator can retry without recapturing.
    """

    def __init__(
        self,
        store: EntityStore,
        evidence: EvidenceStorage,
        delivery_note_id: int,
        *,
        channel: NotificationChannel | None = None,
        context: RequestContext | None = None,
    ) -> None:
        self.store = store
        self.evidence = evidence
        self.delivery_note_id = delivery_note_id
        self.channel = channel or LoggingChannel()
        self.context = context or RequestContext()
        self.input_value = ''
        self._staged: StagedPhoto | None = None
        self._submitting = False

    @property
    def state(self) -> WorkflowState:
        if self._submitting:
            return WorkflowState.SUBMITTING
        if self._staged is not None:
            return WorkflowState.PHOTO_STAGED
        return WorkflowState.IDLE

    @property
    def staged_photo(self) -> StagedPhoto | None:
        return self._staged

    def stage_photo(self, photo: StagedPhoto) -> None:
        # A newer capture replaces the previous one.
        self._staged = photo

    def discard_photo(self) -> None:
        self._staged = None

    def progress(self) -> Progress:
        return progress_for_delivery_note(self.store, self.delivery_note_id)

    def is_complete(self) -> bool:
        return self.progress().is_complete

    def _report(self, notification: Notification) -> None:
        self.channel.notify(notification)

    def _failed(self, exc: Exception) -> ScanOutcome:
        notification = error_notification(exc)
        self._report(notification)
        return ScanOutcome(success=False, notification=notification, photo_staged=self._staged is not None)

    def submit(self, raw_serial: str) -> ScanOutcome:
        self.input_value = raw_serial
        self._submitting = True
        try:
            item = submit_scan(
                self.store,
                self.evidence,
                serial_number=raw_serial,
                delivery_note_id=self.delivery_note_id,
                photo=self._staged,
                context=self.context,
            )
        except EvidenceUploadFailed as exc:
            logger.warning('Evidence upload failed for delivery note %s: %s', self.delivery_note_id, exc.message)
            return self._failed(exc)
        except ReceivingError as exc:
            return self._failed(exc)
        except StoreUnavailable as exc:
            self._report(error_notification(exc))
            raise
        finally:
            self._submitting = False
            self.input_value = ''

        self._staged = None
        notification = verified_notification(item)
        self._report(notification)
        return ScanOutcome(success=True, notification=notification, item=item, progress=self.progress())

    def undo(self, equipment_id: int) -> ScanOutcome:
        try:
            item = unverify_equipment(self.store, equipment_id=equipment_id, context=self.context)
        except ReceivingError as exc:
            return self._failed(exc)
        except StoreUnavailable as exc:
            self._report(error_notification(exc))
            raise

        notification = unverified_notification(item)
        self._report(notification)
        return ScanOutcome(
            success=True,
            notification=notification,
            item=item,
            progress=self.progress(),
            photo_staged=self._staged is not None,
        )
