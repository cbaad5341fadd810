from __future__ import annotations


class ReceivingError(Exception):
    """Expected, operator-facing failure with a notification title and message."""

    kind = 'ReceivingError'
    title = 'Error'

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class VerificationError(ReceivingError):
    kind = 'VerificationError'
    title = 'Verification Error'


class InvalidScan(VerificationError):
    kind = 'InvalidScan'
    title = 'Invalid Serial Number'


class SerialNotFound(VerificationError):
    kind = 'NotFound'
    title = 'Equipment Not Found'

    def __init__(self, serial_number: str, delivery_note_id: int) -> None:
        super().__init__(f'Serial number "{serial_number}" does not belong to this delivery note.')
        self.serial_number = serial_number
        self.delivery_note_id = delivery_note_id


class AlreadyVerified(VerificationError):
    kind = 'AlreadyVerified'
    title = 'Equipment Already Verified'

    def __init__(self, serial_number: str, equipment_id: int) -> None:
        super().__init__(f'Equipment with S/N "{serial_number}" has already been verified.')
        self.serial_number = serial_number
        self.equipment_id = equipment_id


class EvidenceUploadFailed(ReceivingError):
    kind = 'EvidenceUploadFailed'
    title = 'Photo Upload Failed'


class EntityNotFound(ReceivingError):
    kind = 'EntityNotFound'
    title = 'Not Found'

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f'{entity} {entity_id} not found')
        self.entity = entity
        self.entity_id = entity_id


class DuplicateEntity(ReceivingError):
    kind = 'DuplicateEntity'
    title = 'Already Exists'


class InvalidEntity(ReceivingError):
    kind = 'InvalidEntity'
    title = 'Invalid Data'


class StoreUnavailable(Exception):
    """The entity store could not be reached or rejected the operation."""

    kind = 'StoreUnavailable'
    title = 'Storage Unavailable'
