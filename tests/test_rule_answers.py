import unittest

from homegraph.chat.rules import NOTHING_FOUND, rule_based_answer
from homegraph.graph.models import GraphNode, NodeKey


def node(kind, sid, type_, label, **attrs):
    return GraphNode(key=NodeKey(kind, sid), type=type_, label=label, attributes=attrs)


PLUMBER = node("vendor", "v1", "vendor", "ABC Plumbing", category="Plumber", phone="555-1212", email=None)
JANE = node("person", "p1", "person", "Jane", role="parent", allergies=["peanuts"], dietary_rules=["vegetarian"])
LEAK = node("spending", "s1", "spending", "Leak repair", amount=200.0, date="2026-10-02")
DRAIN = node("spending", "s2", "spending", "Drain clearing", amount=150.5, date="2026-09-20")


class TestRuleBasedAnswer(unittest.TestCase):
    def test_when_last_picks_most_recent(self):
        relevant = [
            node("task", "t1", "task", "Clean gutters", created_at="2026-05-01"),
            node("visit", "v", "task", "Cleaning visit Oct 10", scheduled_at="2026-10-10"),
            node("event", "e1", "event", "Gutter inspection", start_at="2026-08-01 09:00"),
        ]
        self.assertEqual(
            rule_based_answer("When was the last gutter cleaning?", relevant),
            'The most recent match is "Cleaning visit Oct 10" on 2026-10-10. '
            "Found 3 related items in your household records.",
        )

    def test_when_last_skips_malformed_dates(self):
        relevant = [
            node("task", "t1", "task", "Broken", created_at="sometime soon"),
            node("task", "t2", "task", "Fine", created_at="2026-01-01"),
        ]
        answer = rule_based_answer("when did we last do this", relevant)
        self.assertIn('"Fine" on 2026-01-01', answer)
        self.assertIn("Found 2 related items", answer)

    def test_spend_totals_amounts(self):
        answer = rule_based_answer("How much did plumbing cost?", [DRAIN, LEAK, PLUMBER])
        self.assertEqual(answer, 'Found 2 spending records totaling $350.50. Most recent: "Leak repair".')

    def test_money_beats_identity(self):
        answer = rule_based_answer("Who did we pay and how much?", [PLUMBER, LEAK])
        self.assertTrue(answer.startswith("Found 1 spending record totaling $200.00"))

    def test_who_renders_contact_details(self):
        answer = rule_based_answer("who is our plumber?", [PLUMBER, JANE])
        self.assertEqual(answer, "ABC Plumbing (Plumber) phone: 555-1212\nJane (parent)")

    def test_who_falls_through_without_people_or_vendors(self):
        answer = rule_based_answer("who fixed the leak", [LEAK])
        self.assertEqual(answer, "Here's what I found related to your question:\n• Leak repair (spending)")

    def test_food_lists_allergies_and_preferences(self):
        relevant = [
            JANE,
            node("pref", "x", "preference", "Food: shellfish", key="shellfish", value="never serve", is_no_go=True),
            node("learned_pref", "y", "preference", "Learned: coffee", key="coffee", value="oat milk"),
        ]
        self.assertEqual(
            rule_based_answer("Any food allergies?", relevant),
            "Jane: allergies: peanuts diet: vegetarian\n"
            "Preference: shellfish = never serve (NO-GO)\n"
            "Preference: coffee = oat milk",
        )

    def test_upcoming_keeps_relevance_order(self):
        relevant = [
            node("task", "t1", "task", "File taxes", due_at="2026-10-20"),
            node("event", "e2", "event", "Dentist", start_at="2026-11-02 10:00", location="Main St Dental"),
            node("event", "e1", "event", "School play", start_at="2026-10-19 18:00"),
            node("task", "t2", "task", "No due date"),
        ]
        self.assertEqual(
            rule_based_answer("What's on the calendar next?", relevant),
            "Upcoming:\n"
            "Dentist - 2026-11-02 10:00 at Main St Dental\n"
            "School play - 2026-10-19 18:00\n"
            "File taxes - 2026-10-20",
        )

    def test_default_lists_up_to_five(self):
        relevant = [node("task", str(i), "task", f"Task {i}") for i in range(7)]
        answer = rule_based_answer("tell me about tasks", relevant)
        self.assertEqual(len(answer.splitlines()), 6)

    def test_nothing_found(self):
        self.assertEqual(rule_based_answer("anything?", []), NOTHING_FOUND)

    def test_odd_attribute_values_do_not_raise(self):
        relevant = [
            node("person", "p", "person", "Odd", allergies="dust", dietary_rules=5),
            node("spending", "s", "spending", "Weird", amount="12", date=["x"]),
            node("task", "t", "task", "Odd task", created_at=12345),
        ]
        for q in ("food?", "how much", "when was the last", "who", "next", "x"):
            self.assertIsInstance(rule_based_answer(q, relevant), str)


if __name__ == "__main__":
    unittest.main()
