from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from app.config import settings
from app.services.errors import EvidenceUploadFailed

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/webp', 'image/gif'}
_UNSAFE_NAME_RE = re.compile(r'[^a-zA-Z0-9._-]')


@dataclass(frozen=True)
class StagedPhoto:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class EvidenceStorage(Protocol):
    def save(self, photo: StagedPhoto) -> str:
        """Persist the photo and return an opaque reference for the equipment record."""
        ...

    def discard(self, reference: str) -> None:
        """Remove a stored photo that ended up attached to nothing."""
        ...


def sanitize_stem(filename: str) -> str:
    stem = Path(filename or 'photo').stem or 'photo'
    return _UNSAFE_NAME_RE.sub('_', stem)


class LocalEvidenceStorage:
    def __init__(self, root: Path, *, public_prefix: str = '/uploads', max_bytes: int = 10 * 1024 * 1024) -> None:
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip('/')
        self.max_bytes = max_bytes

    def _validate(self, photo: StagedPhoto) -> None:
        if not photo.data:
            raise EvidenceUploadFailed('No file provided')
        if photo.content_type not in ALLOWED_IMAGE_TYPES:
            raise EvidenceUploadFailed('Invalid file type. Only JPEG, JPG, PNG, WEBP, GIF files are allowed.')
        if photo.size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise EvidenceUploadFailed(f'File too large. Maximum file size is {limit_mb}MB.')

    def _generate_name(self, photo: StagedPhoto) -> str:
        suffix = Path(photo.filename or '').suffix.lower()
        return f'equipment_{int(time.time() * 1000)}_{secrets.randbelow(1000)}_{sanitize_stem(photo.filename)}{suffix}'

    def save(self, photo: StagedPhoto) -> str:
        self._validate(photo)
        target_dir = self.root / 'equipment'
        name = self._generate_name(photo)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / name).write_bytes(photo.data)
        except OSError as exc:
            logger.warning('Could not write evidence photo %s: %s', name, exc)
            raise EvidenceUploadFailed('Could not store the verification photo') from exc

        public_path = f'{self.public_prefix}/equipment/{name}'
        logger.info('Stored evidence photo %s (%d bytes) as %s', photo.filename, photo.size, public_path)
        return public_path

    def discard(self, reference: str) -> None:
        prefix = f'{self.public_prefix}/equipment/'
        if not reference.startswith(prefix):
            return
        name = Path(reference[len(prefix) :]).name
        try:
            (self.root / 'equipment' / name).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning('Could not remove orphaned evidence photo %s: %s', name, exc)


@lru_cache(maxsize=1)
def get_evidence_storage() -> LocalEvidenceStorage:
    return LocalEvidenceStorage(
        Path(settings.upload_dir),
        public_prefix=settings.upload_public_prefix,
        max_bytes=settings.max_upload_bytes,
    )
