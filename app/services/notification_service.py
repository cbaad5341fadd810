from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from app.services.entity_store import EquipmentRecord
from app.services.errors import AlreadyVerified, ReceivingError

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = 'success'
    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'


@dataclass(frozen=True)
class Notification:
    kind: str
    level: NotificationLevel
    title: str
    message: str


class NotificationChannel(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingChannel:
    _levels = {
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def notify(self, notification: Notification) -> None:
        logger.log(self._levels[notification.level], '%s: %s', notification.title, notification.message)


class CollectingChannel:
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None


def verified_notification(item: EquipmentRecord) -> Notification:
    return Notification(
        kind='Verified',
        level=NotificationLevel.SUCCESS,
        title='Equipment Verified',
        message=f'Equipment with S/N "{item.serial_number}" has been verified.',
    )


def unverified_notification(item: EquipmentRecord) -> Notification:
    return Notification(
        kind='Unverified',
        level=NotificationLevel.INFO,
        title='Verification Undone',
        message=f'Verification of equipment with S/N "{item.serial_number}" has been undone.',
    )


def error_notification(exc: Exception) -> Notification:
    if isinstance(exc, AlreadyVerified):
        level = NotificationLevel.WARNING
    else:
        level = NotificationLevel.ERROR
    if isinstance(exc, ReceivingError):
        return Notification(kind=exc.kind, level=level, title=exc.title, message=exc.message)
    return Notification(
        kind=getattr(exc, 'kind', type(exc).__name__),
        level=level,
        title=getattr(exc, 'title', 'Error'),
        message=str(exc) or 'Unexpected error',
    )
