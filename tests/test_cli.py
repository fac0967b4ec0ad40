"""
Tests for CLI entry points.

These tests focus on:
- argument validation (unknown import type exits nonzero)
- preview output for a temporary input file
- import against a mocked client
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from curriculum_ingest.cli import main

SQL = "INSERT INTO subjects (code, name, credits) VALUES ('CS101', 'Intro to CS', 3);"


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.sql_path = Path(self._tmp.name) / "subjects.sql"
        self.sql_path.write_text(SQL, encoding="utf-8")

    def test_unknown_type_rejected(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["preview", str(self.sql_path), "--type", "courses"])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_preview_json(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            main(["preview", str(self.sql_path), "--json", "--regulation-id", "1", "--department-id", "2"])
        self.assertEqual(ctx.exception.code, 0)

        payload = json.loads(out.getvalue())
        self.assertEqual(payload[0]["code"], "CS101")
        self.assertEqual(payload[0]["regulationId"], 1)

    def test_preview_missing_file(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["preview", str(Path(self._tmp.name) / "missing.sql")])
        self.assertEqual(ctx.exception.code, 1)

    def test_preview_parse_error(self) -> None:
        bad = Path(self._tmp.name) / "bad.json"
        bad.write_text("[{", encoding="utf-8")
        with self.assertRaises(SystemExit) as ctx:
            main(["preview", str(bad), "--format", "json"])
        self.assertEqual(ctx.exception.code, 1)

    def test_import_uses_client(self) -> None:
        with mock.patch("curriculum_ingest.cli.ImportClient") as client_cls:
            client_cls.return_value.submit.return_value = 1
            with self.assertRaises(SystemExit) as ctx:
                main(
                    [
                        "import",
                        str(self.sql_path),
                        "--yes",
                        "--api-url",
                        "http://api.test",
                        "--regulation-id",
                        "1",
                        "--department-id",
                        "2",
                    ]
                )

        self.assertEqual(ctx.exception.code, 0)
        settings = client_cls.call_args[0][0]
        self.assertEqual(settings.api_base_url, "http://api.test")
        batch = client_cls.return_value.submit.call_args[0][0]
        self.assertEqual(batch.row_count, 1)

    def test_import_without_ids_blocked(self) -> None:
        with mock.patch("curriculum_ingest.cli.ImportClient") as client_cls:
            with self.assertRaises(SystemExit) as ctx:
                main(["import", str(self.sql_path), "--yes", "--api-url", "http://api.test"])

        self.assertEqual(ctx.exception.code, 1)
        client_cls.assert_not_called()

    def test_preview_file_with_bom(self) -> None:
        path = Path(self._tmp.name) / "bom.csv"
        path.write_text("\ufeffcode,name\nA,Alpha", encoding="utf-8")
        out = io.StringIO()
        with redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            main(["preview", str(path), "--json"])
        self.assertEqual(ctx.exception.code, 0)

        payload = json.loads(out.getvalue())
        self.assertEqual(payload[0]["code"], "A")
        self.assertEqual(payload[0]["name"], "Alpha")

    def test_preview_undecodable_file(self) -> None:
        path = Path(self._tmp.name) / "latin.csv"
        path.write_bytes(b"\xff\xfe\x00bad")
        with self.assertRaises(SystemExit) as ctx:
            main(["preview", str(path)])
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
