from __future__ import annotations

import csv
import json
import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from issue_attention import cli
from issue_attention import settings as settings_module
from issue_attention.cli import EXIT_ERROR, EXIT_LOCKED, EXIT_OK, build_parser, main
from issue_attention.status_store import ActivityStatusStore

LOCKED_PAYLOAD = {
    "projectStatusHistory": [
        {"projectTitle": "Board", "status": "Done", "occurredAt": "2024-05-01T00:00:00Z"}
    ]
}


class CliTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        env = mock.patch.dict(os.environ)
        env.start()
        self.addCleanup(env.stop)
        for key in ("ISSUE_ATTENTION_TARGET_PROJECT", "ISSUE_ATTENTION_TIME_ZONE"):
            os.environ.pop(key, None)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, name: str, data) -> str:
        path = self.tmp / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    def test_parser_requires_command(self) -> None:
        with self.assertRaises(SystemExit):
            build_parser().parse_args([])

    def test_hours(self) -> None:
        code = main(["hours", "2024-03-08T15:00:00Z", "2024-03-11T18:00:00Z"])
        self.assertEqual(code, EXIT_OK)
        self.assertEqual(main(["hours", "bad", "2024-03-11T18:00:00Z"]), EXIT_ERROR)

    def test_hours_unknown_time_zone(self) -> None:
        code = main(["hours", "2024-05-06T00:00:00Z", "2024-05-07T00:00:00Z", "--time-zone", "Mars/Base"])
        self.assertEqual(code, EXIT_ERROR)

    def test_hours_min_days(self) -> None:
        with mock.patch.object(cli, "display_threshold_check") as check:
            code = main(["hours", "2024-04-29T00:00:00Z", "2024-05-06T00:00:00Z", "--min-days", "5"])
        self.assertEqual(code, EXIT_OK)
        check.assert_called_once_with(5, True)

        with mock.patch.object(cli, "display_threshold_check") as check:
            main(["hours", "2024-04-29T00:00:00Z", "2024-05-03T00:00:00Z", "--min-days", "5"])
        check.assert_called_once_with(5, False)

    def test_settings_lists_saved_names(self) -> None:
        saved = self.tmp / "settings"
        saved.mkdir()
        (saved / "team.json").write_text(json.dumps({"name": "team"}), encoding="utf-8")
        (saved / "default.json").write_text(json.dumps({"name": "default"}), encoding="utf-8")
        with mock.patch.object(settings_module, "SETTINGS_DIR", saved), \
                mock.patch.object(cli.console, "print") as printed:
            code = main(["settings"])
        self.assertEqual(code, EXIT_OK)
        self.assertEqual([c.args[0] for c in printed.call_args_list], ["* default", "  team"])

    def test_set_status_rejects_locked_issue(self) -> None:
        payload = self._write("payload.json", LOCKED_PAYLOAD)
        store_path = self.tmp / "history.json"
        code = main([
            "--project", "Board", "set-status", "I_1", "todo",
            "--payload", payload, "--store", str(store_path),
        ])
        self.assertEqual(code, EXIT_LOCKED)
        self.assertEqual(ActivityStatusStore(store_path).history("I_1"), ())

    def test_set_status_records_transition(self) -> None:
        payload = self._write("payload.json", {})
        store_path = self.tmp / "history.json"
        code = main([
            "--project", "Board", "set-status", "I_1", "in_progress",
            "--payload", payload, "--store", str(store_path),
        ])
        self.assertEqual(code, EXIT_OK)
        self.assertEqual(ActivityStatusStore(store_path).latest("I_1").status, "in_progress")

    def test_set_status_invalid_value(self) -> None:
        payload = self._write("payload.json", {})
        code = main([
            "set-status", "I_1", "canceled", "--payload", payload,
            "--store", str(self.tmp / "history.json"),
        ])
        self.assertEqual(code, EXIT_ERROR)

    def test_status_with_events_file(self) -> None:
        payload = self._write("payload.json", LOCKED_PAYLOAD)
        events = self._write("events.json", [{"status": "todo", "occurredAt": "2024-05-02T00:00:00Z"}])
        self.assertEqual(main(["--project", "Board", "status", payload, "--events", events]), EXIT_OK)

    def test_classify_writes_reports(self) -> None:
        items = self._write("items.json", [
            {"id": "I_1", "kind": "issue", "number": 1, "title": "Old issue", "createdAt": "2024-01-02T00:00:00Z"},
            {"id": "PR_1", "kind": "pull_request", "number": 2, "title": "Fresh PR", "createdAt": "2024-05-03T00:00:00Z"},
        ])
        json_out = self.tmp / "out" / "report.json"
        csv_out = self.tmp / "out" / "report.csv"
        code = main([
            "classify", items, "--now", "2024-05-06T00:00:00Z",
            "--json-out", str(json_out), "--csv-out", str(csv_out),
        ])
        self.assertEqual(code, EXIT_OK)

        report = json.loads(json_out.read_text(encoding="utf-8"))
        self.assertEqual([r["id"] for r in report], ["I_1", "PR_1"])
        self.assertEqual(report[0]["attention"], ["issue_backlog"])
        self.assertEqual(report[1]["attention"], [])

        with csv_out.open(encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        self.assertEqual(rows[0]["attention"], "issue_backlog")
        self.assertEqual(rows[0]["backlog_issue"], "True")

    def test_classify_only_flagged(self) -> None:
        items = self._write("items.json", [
            {"id": "I_1", "kind": "issue", "createdAt": "2024-01-02T00:00:00Z"},
            {"id": "I_2", "kind": "issue", "createdAt": "2024-05-03T00:00:00Z"},
        ])
        json_out = self.tmp / "report.json"
        main(["classify", items, "--now", "2024-05-06T00:00:00Z", "--only-flagged", "--json-out", str(json_out)])
        report = json.loads(json_out.read_text(encoding="utf-8"))
        self.assertEqual([r["id"] for r in report], ["I_1"])

    def test_classify_rejects_bad_input(self) -> None:
        items = self._write("items.json", {"id": "I_1"})
        self.assertEqual(main(["classify", items]), EXIT_ERROR)


if __name__ == "__main__":
    unittest.main()
