import unittest

from homegraph.chat.llm import LLMError
from homegraph.chat.rules import NOTHING_FOUND
from homegraph.engine import ask_household, build_household_graph
from homegraph.graph.load import DependencyUnavailable

from household_fixtures import HOUSEHOLD, NOW, sample_household, sqlite_store_with


class _Completer:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.user_content = None

    def complete(self, system_prompt, user_content, *, max_tokens, temperature):
        self.user_content = user_content
        if self.error:
            raise self.error
        return self.reply


class _BrokenStore:
    def list_by_household(self, kind, household_id, *, since=None, limit=None):
        raise OSError("disk I/O error")


class TestBuildHouseholdGraph(unittest.TestCase):
    def test_node_count_matches_records(self):
        data = sample_household()
        graph = build_household_graph(store=sqlite_store_with(**data), household_id=HOUSEHOLD, now=NOW)
        self.assertEqual(len(graph.nodes), sum(len(rows) for rows in data.values()))

    def test_rebuild_is_identical(self):
        store = sqlite_store_with(**sample_household())
        a = build_household_graph(store=store, household_id=HOUSEHOLD, now=NOW)
        b = build_household_graph(store=store, household_id=HOUSEHOLD, now=NOW)
        self.assertEqual([n.key for n in a.nodes], [n.key for n in b.nodes])
        self.assertEqual({e.identity() for e in a.edges}, {e.identity() for e in b.edges})
        self.assertIsNot(a.nodes, b.nodes)

    def test_store_failure_is_fatal(self):
        with self.assertRaises(DependencyUnavailable):
            build_household_graph(store=_BrokenStore(), household_id=HOUSEHOLD, now=NOW)


class TestAskHousehold(unittest.TestCase):
    def test_plumber_question_without_model(self):
        store = sqlite_store_with(vendors=[{"id": "v1", "name": "ABC Plumbing", "category": "Plumber", "phone": "555-1212"}])
        res = ask_household(store=store, household_id=HOUSEHOLD, question="who is our plumber?", now=NOW)
        self.assertIn("ABC Plumbing (Plumber) phone: 555-1212", res.answer)
        self.assertEqual(res.sources, [{"type": "vendor", "label": "ABC Plumbing", "id": "vendor:v1"}])
        self.assertEqual(res.answered_by, "rules")
        self.assertTrue(res.graph_summary.startswith("0 people, 1 vendors"))

    def test_empty_household_never_raises(self):
        res = ask_household(store=sqlite_store_with(), household_id=HOUSEHOLD, question="what is going on?", now=NOW)
        self.assertEqual(res.answer, NOTHING_FOUND)
        self.assertEqual(res.connections, [])
        self.assertEqual(res.sources, [])

    def test_connections_are_included(self):
        res = ask_household(
            store=sqlite_store_with(**sample_household()),
            household_id=HOUSEHOLD,
            question="how much have we spent on plumbing",
            now=NOW,
        )
        self.assertEqual(
            res.connections,
            [
                "You've spent $600 with ABC Plumbing in the last 6 months.",
                "Jane's Anniversary is in 10 days (Oct 28).",
            ],
        )

    def test_model_answer_gets_serialized_graph(self):
        completer = _Completer(reply="ABC Plumbing, 555-1212.")
        res = ask_household(
            store=sqlite_store_with(**sample_household()),
            household_id=HOUSEHOLD,
            question="who is our plumber?",
            completer=completer,
            now=NOW,
        )
        self.assertEqual(res.answer, "ABC Plumbing, 555-1212.")
        self.assertEqual(res.answered_by, "model")
        self.assertIn("## Vendors & Service Providers", completer.user_content)
        self.assertTrue(completer.user_content.endswith("Question: who is our plumber?"))

    def test_model_failure_is_invisible_to_caller(self):
        with self.assertLogs("homegraph.chat.answer", level="WARNING"):
            res = ask_household(
                store=sqlite_store_with(**sample_household()),
                household_id=HOUSEHOLD,
                question="who is our plumber?",
                completer=_Completer(error=LLMError("provider down")),
                now=NOW,
            )
        self.assertEqual(res.answered_by, "rules")
        self.assertIn("ABC Plumbing (Plumber) phone: 555-1212", res.answer)

    def test_store_failure_propagates(self):
        with self.assertRaises(DependencyUnavailable):
            ask_household(store=_BrokenStore(), household_id=HOUSEHOLD, question="anything", now=NOW)


if __name__ == "__main__":
    unittest.main()
