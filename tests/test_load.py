import threading
import unittest

from homegraph.graph.load import DependencyUnavailable, LoadOptions, load_household
from homegraph.store.base import RECORD_KINDS

from household_fixtures import HOUSEHOLD, NOW, sample_household, sqlite_store_with


class _BarrierStore:
    """Every read waits until all reads are in flight."""

    def __init__(self):
        self.barrier = threading.Barrier(len(RECORD_KINDS), timeout=5)
        self.calls = []

    def list_by_household(self, kind, household_id, *, since=None, limit=None):
        self.calls.append((kind, since is not None, limit))
        self.barrier.wait()
        return [{"id": f"{kind}-1"}]


class _FailingStore:
    def __init__(self, failing_kind):
        self.failing_kind = failing_kind

    def list_by_household(self, kind, household_id, *, since=None, limit=None):
        if kind == self.failing_kind:
            raise ConnectionError("db down")
        return []


class TestLoadHousehold(unittest.TestCase):
    def test_loads_every_kind(self):
        store = sqlite_store_with(**sample_household())
        recs = load_household(store=store, household_id=HOUSEHOLD, now=NOW)
        self.assertEqual(len(recs.people), 2)
        self.assertEqual(len(recs.spending_items), 3)
        self.assertEqual(recs.total(), sum(len(v) for v in sample_household().values()))

    def test_reads_are_concurrent(self):
        store = _BarrierStore()
        recs = load_household(store=store, household_id=HOUSEHOLD, now=NOW)
        self.assertEqual(recs.total(), len(RECORD_KINDS))

    def test_window_and_caps_only_for_windowed_kinds(self):
        store = _BarrierStore()
        load_household(store=store, household_id=HOUSEHOLD, now=NOW, options=LoadOptions(task_limit=7))
        calls = {kind: (windowed, limit) for kind, windowed, limit in store.calls}
        self.assertEqual(calls["tasks"], (True, 7))
        self.assertEqual(calls["calendar_events"], (True, 100))
        self.assertEqual(calls["people"], (False, None))

    def test_window_excludes_old_records(self):
        store = sqlite_store_with(
            tasks=[
                {"id": "recent", "title": "Recent", "created_at": "2026-10-01"},
                {"id": "ancient", "title": "Ancient", "created_at": "2025-10-01"},
            ]
        )
        recs = load_household(store=store, household_id=HOUSEHOLD, now=NOW)
        self.assertEqual([t["id"] for t in recs.tasks], ["recent"])

    def test_any_failed_read_fails_the_load(self):
        with self.assertRaises(DependencyUnavailable) as cm:
            load_household(store=_FailingStore("vendors"), household_id=HOUSEHOLD, now=NOW)
        self.assertIsInstance(cm.exception.__cause__, ConnectionError)
        self.assertIn("vendors", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
