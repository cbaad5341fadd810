from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from app.services.errors import EvidenceUploadFailed
from app.services.evidence_storage import LocalEvidenceStorage, StagedPhoto, sanitize_stem


class LocalEvidenceStorageTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.storage = LocalEvidenceStorage(self.root, public_prefix='/uploads/', max_bytes=64)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_save_writes_file_and_returns_public_reference(self) -> None:
        reference = self.storage.save(StagedPhoto('rack front (1).JPG', 'image/jpeg', b'abc'))

        self.assertTrue(reference.startswith('/uploads/equipment/equipment_'))
        self.assertTrue(reference.endswith('_rack_front__1_.jpg'))
        stored = self.root / 'equipment' / reference.rsplit('/', 1)[1]
        self.assertEqual(stored.read_bytes(), b'abc')

    def test_rejects_non_images(self) -> None:
        with self.assertRaises(EvidenceUploadFailed):
            self.storage.save(StagedPhoto('manifest.pdf', 'application/pdf', b'%PDF'))

    def test_rejects_oversized_photos(self) -> None:
        with self.assertRaises(EvidenceUploadFailed):
            self.storage.save(StagedPhoto('big.png', 'image/png', b'x' * 65))

    def test_rejects_empty_upload(self) -> None:
        with self.assertRaises(EvidenceUploadFailed):
            self.storage.save(StagedPhoto('', '', b''))

    def test_discard_removes_only_own_files(self) -> None:
        reference = self.storage.save(StagedPhoto('a.png', 'image/png', b'1'))
        self.storage.discard('/elsewhere/a.png')
        self.assertEqual(len(list((self.root / 'equipment').iterdir())), 1)

        self.storage.discard(reference)
        self.assertEqual(list((self.root / 'equipment').iterdir()), [])

    def test_sanitize_stem(self) -> None:
        self.assertEqual(sanitize_stem('../../etc/pass wd.png'), 'pass_wd')
        self.assertEqual(sanitize_stem(''), 'photo')


if __name__ == '__main__':
    unittest.main()
