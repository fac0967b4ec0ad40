"""
Tests for the caller-owned import session (state transitions, retry).
"""

import unittest
from unittest import mock

from curriculum_ingest.errors import EmptyBatch, InvalidJson, MissingIds, SubmissionError
from curriculum_ingest.model import ImportContext, ImportType
from curriculum_ingest.session import ImportSession, ImportState

JSON_TEXT = '[{"code": "A", "name": "Alpha", "regulationId": 1, "departmentId": 1}]'


class TestImportSession(unittest.TestCase):
    def test_parse_success(self) -> None:
        session = ImportSession(ImportType.SUBJECTS)
        batch = session.parse(JSON_TEXT)

        self.assertIsNotNone(batch)
        self.assertEqual(session.state, ImportState.PREVIEW_READY)
        self.assertTrue(session.can_import)
        self.assertIsNone(session.error)

    def test_parse_failure_is_state_not_exception(self) -> None:
        session = ImportSession("subjects")
        self.assertIsNone(session.parse("{broken", fmt="json"))
        self.assertEqual(session.state, ImportState.FAILED)
        self.assertIsInstance(session.error, InvalidJson)
        self.assertFalse(session.can_import)

    def test_reparse_clears_previous_failure(self) -> None:
        session = ImportSession("subjects")
        session.parse("{broken", fmt="json")
        session.parse(JSON_TEXT)
        self.assertEqual(session.state, ImportState.PREVIEW_READY)
        self.assertIsNone(session.error)

    def test_empty_batch_cannot_be_submitted(self) -> None:
        session = ImportSession("subjects")
        session.parse("code,name")
        submitter = mock.Mock()

        self.assertFalse(session.can_import)
        with self.assertRaises(EmptyBatch):
            session.confirm(submitter)
        submitter.submit.assert_not_called()

    def test_confirm_success(self) -> None:
        session = ImportSession("subjects")
        session.parse(JSON_TEXT)
        submitter = mock.Mock()
        submitter.submit.return_value = 1

        self.assertEqual(session.confirm(submitter), 1)
        self.assertEqual(session.state, ImportState.IDLE)
        self.assertIsNone(session.batch)
        self.assertEqual(session.imported_count, 1)

    def test_failed_submit_keeps_batch_for_retry(self) -> None:
        session = ImportSession("subjects")
        batch = session.parse(JSON_TEXT)
        submitter = mock.Mock()
        submitter.submit.side_effect = [SubmissionError("boom", status_code=500), 1]

        with self.assertRaises(SubmissionError):
            session.confirm(submitter)
        self.assertEqual(session.state, ImportState.FAILED)
        self.assertIs(session.batch, batch)
        self.assertTrue(session.can_import)

        self.assertEqual(session.confirm(submitter), 1)
        submitter.submit.assert_called_with(batch)

    def test_cancelled_submit_keeps_batch_for_retry(self) -> None:
        session = ImportSession("subjects")
        batch = session.parse(JSON_TEXT)
        submitter = mock.Mock()
        submitter.submit.side_effect = [TimeoutError("cancelled"), 1]

        with self.assertRaises(TimeoutError):
            session.confirm(submitter)
        self.assertEqual(session.state, ImportState.FAILED)
        self.assertIs(session.batch, batch)
        self.assertTrue(session.can_import)

        self.assertEqual(session.confirm(submitter), 1)
        self.assertEqual(session.state, ImportState.IDLE)

    def test_rows_without_ids_cannot_be_submitted(self) -> None:
        session = ImportSession("subjects")
        session.parse("INSERT INTO subjects (code, name) VALUES ('A', 'B'), ('C', 'D');")
        submitter = mock.Mock()

        self.assertFalse(session.can_import)
        with self.assertRaises(MissingIds) as ctx:
            session.confirm(submitter)
        self.assertEqual(ctx.exception.rows, [1, 2])
        submitter.submit.assert_not_called()

    def test_context_ids_make_batch_submittable(self) -> None:
        session = ImportSession("subjects")
        session.parse(
            "INSERT INTO subjects (code, name) VALUES ('A', 'B');",
            context=ImportContext(regulation_id=1, department_id=2),
        )
        self.assertTrue(session.can_import)

    def test_reset(self) -> None:
        session = ImportSession("semesters")
        session.parse('{"number": 1}')
        session.reset()
        self.assertEqual(session.state, ImportState.IDLE)
        self.assertIsNone(session.batch)


if __name__ == "__main__":
    unittest.main()
