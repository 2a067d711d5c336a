import json
import tempfile
import unittest
from pathlib import Path

from homegraph.ingest.runner import IngestOptions, ingest_into_db
from homegraph.store import sqlite_store

from household_fixtures import sample_household


class TestIngest(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.conn = sqlite_store.connect(":memory:")
        self.addCleanup(self.conn.close)

    def _write(self, data) -> Path:
        path = Path(self.tmp.name) / "household.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_ingests_every_kind(self):
        data = dict(sample_household(), household_id="hh-9")
        res = ingest_into_db(conn=self.conn, options=IngestOptions(input_path=self._write(data)))
        self.assertEqual(res["household_id"], "hh-9")
        self.assertEqual(res["records"]["spending_items"], 3)
        counts = sqlite_store.count_by_household(self.conn, "hh-9")
        self.assertEqual(counts["people"], 2)

    def test_missing_ids_are_generated(self):
        data = {"household_id": "hh-9", "vendors": [{"name": "A"}, {"name": "B"}]}
        ingest_into_db(conn=self.conn, options=IngestOptions(input_path=self._write(data)))
        rows = sqlite_store.list_by_household(self.conn, "vendors", "hh-9")
        self.assertEqual(len({r["id"] for r in rows}), 2)

    def test_household_override(self):
        data = {"household_id": "hh-9", "vendors": [{"id": "v1", "name": "A", "household_id": "other"}]}
        ingest_into_db(conn=self.conn, options=IngestOptions(input_path=self._write(data), household_id="hh-x"))
        self.assertEqual(len(sqlite_store.list_by_household(self.conn, "vendors", "hh-x")), 1)

    def test_missing_household_is_an_error(self):
        with self.assertRaises(ValueError):
            ingest_into_db(conn=self.conn, options=IngestOptions(input_path=self._write({"vendors": []})))

    def test_non_list_kind_is_an_error(self):
        with self.assertRaises(ValueError):
            ingest_into_db(conn=self.conn, options=IngestOptions(input_path=self._write({"household_id": "h", "tasks": {}})))


if __name__ == "__main__":
    unittest.main()
