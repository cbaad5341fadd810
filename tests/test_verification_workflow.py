from __future__ import annotations

import unittest
from unittest.mock import patch

from app.services.errors import StoreUnavailable
from app.services.notification_service import CollectingChannel, NotificationLevel
from app.services.verification_workflow import VerificationWorkflow, WorkflowState
from factories import FakeEvidenceStorage, build_site, jpeg


class VerificationWorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.site = build_site()
        self.store = self.site.store
        self.evidence = FakeEvidenceStorage()
        self.channel = CollectingChannel()
        self.workflow = VerificationWorkflow(self.store, self.evidence, self.site.note_x, channel=self.channel)

    def test_starts_idle(self) -> None:
        self.assertEqual(self.workflow.state, WorkflowState.IDLE)
        self.assertIsNone(self.workflow.staged_photo)

    def test_successful_scan_attaches_staged_photo_and_clears_it(self) -> None:
        self.workflow.stage_photo(jpeg())
        self.assertEqual(self.workflow.state, WorkflowState.PHOTO_STAGED)

        outcome = self.workflow.submit('sn-1')

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.item.verification_photo_path, self.evidence.saved[0])
        self.assertEqual((outcome.progress.verified, outcome.progress.total), (1, 2))
        self.assertEqual(self.workflow.state, WorkflowState.IDLE)
        self.assertEqual(self.workflow.input_value, '')
        self.assertEqual(self.channel.last.level, NotificationLevel.SUCCESS)

    def test_photo_binds_to_next_success_only(self) -> None:
        self.workflow.stage_photo(jpeg())
        self.workflow.submit('SN-1')
        outcome = self.workflow.submit('SN-2')
        self.assertIsNone(outcome.item.verification_photo_path)

    def test_not_found_keeps_photo_and_discards_upload(self) -> None:
        self.workflow.stage_photo(jpeg())

        outcome = self.workflow.submit('SN-9')

        self.assertFalse(outcome.success)
        self.assertTrue(outcome.photo_staged)
        self.assertEqual(outcome.notification.kind, 'NotFound')
        self.assertEqual(self.evidence.discarded, self.evidence.saved)
        self.assertEqual(self.workflow.state, WorkflowState.PHOTO_STAGED)
        self.assertEqual(self.workflow.input_value, '')

        retry = self.workflow.submit('SN-2')
        self.assertTrue(retry.success)
        self.assertEqual(retry.item.verification_photo_path, self.evidence.saved[-1])

    def test_already_verified_is_a_warning(self) -> None:
        self.workflow.submit('SN-1')
        outcome = self.workflow.submit('SN-1')
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.notification.kind, 'AlreadyVerified')
        self.assertEqual(outcome.notification.level, NotificationLevel.WARNING)

    def test_upload_failure_leaves_verification_untouched(self) -> None:
        workflow = VerificationWorkflow(self.store, FakeEvidenceStorage(fail=True), self.site.note_x, channel=self.channel)
        workflow.stage_photo(jpeg())

        outcome = workflow.submit('SN-1')

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.notification.kind, 'EvidenceUploadFailed')
        self.assertTrue(outcome.photo_staged)
        self.assertFalse(any(item.is_verified for item in self.store.equipment.values()))

    def test_store_failure_is_reported_and_propagated(self) -> None:
        with patch.object(self.store, 'find_equipment_by_delivery_note', side_effect=StoreUnavailable('db down')):
            with self.assertRaises(StoreUnavailable):
                self.workflow.submit('SN-1')
        self.assertEqual(self.channel.last.kind, 'StoreUnavailable')
        self.assertEqual(self.workflow.state, WorkflowState.IDLE)

    def test_completion_is_derived_and_not_a_hard_stop(self) -> None:
        self.workflow.submit('SN-1')
        self.workflow.submit('SN-2')
        self.assertTrue(self.workflow.is_complete())

        outcome = self.workflow.submit('SN-2')
        self.assertEqual(outcome.notification.kind, 'AlreadyVerified')

    def test_undo_reports_info_and_keeps_staged_photo(self) -> None:
        first = self.workflow.submit('SN-1')
        self.workflow.stage_photo(jpeg('next.jpg'))

        outcome = self.workflow.undo(first.item.id)

        self.assertTrue(outcome.success)
        self.assertFalse(outcome.item.is_verified)
        self.assertTrue(outcome.photo_staged)
        self.assertEqual(outcome.notification.level, NotificationLevel.INFO)
        self.assertEqual(outcome.progress.verified, 0)

    def test_empty_input_does_not_upload(self) -> None:
        self.workflow.stage_photo(jpeg())
        outcome = self.workflow.submit('  ')
        self.assertEqual(outcome.notification.kind, 'InvalidScan')
        self.assertEqual(self.evidence.saved, [])


if __name__ == '__main__':
    unittest.main()
