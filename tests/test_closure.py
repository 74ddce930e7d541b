import unittest

import requests

from pipeline.closure import CLOSE_COMMENT, close_ticket, pick_transition, resolution_id_for

from fakes import FakeSession, make_jira, response

TRANSITIONS = "/rest/api/3/issue/LV-1/transitions"
COMMENT = "/rest/api/3/issue/LV-1/comment"


def _transitions(*names):
    return response(200, {"transitions": [{"id": str(n + 11), "name": name} for n, name in enumerate(names)]})


class TestPickTransition(unittest.TestCase):
    def test_priority_order(self) -> None:
        offered = [{"id": "1", "name": "Closed"}, {"id": "2", "name": "Done"}, {"id": "3", "name": "Reopen"}]
        self.assertEqual(("2", "Done"), pick_transition(offered))

    def test_wont_do_beats_everything(self) -> None:
        offered = [{"id": "1", "name": "Verified"}, {"id": "9", "name": "wont do"}]
        self.assertEqual(("9", "wont do"), pick_transition(offered))

    def test_name_match_is_exact(self) -> None:
        self.assertIsNone(pick_transition([{"id": "1", "name": "done"}, {"id": "2", "name": "Other"}]))

    def test_resolution_ids(self) -> None:
        self.assertEqual("10000", resolution_id_for("Done"))
        self.assertEqual("10001", resolution_id_for("wont do"))
        self.assertEqual("10601", resolution_id_for("Closed"))
        self.assertEqual("10608", resolution_id_for("Resolved"))
        self.assertEqual("10100", resolution_id_for("Verified"))
        self.assertEqual("10100", resolution_id_for("Something Else"))


class TestCloseTicket(unittest.TestCase):
    def test_closes_with_comment_in_one_call(self) -> None:
        session = (
            FakeSession()
            .on("GET", TRANSITIONS, _transitions("Start", "Done"))
            .on("POST", TRANSITIONS, response(204, text=""))
        )
        self.assertTrue(close_ticket(make_jira(session), "LV-1", "AX1"))

        body = session.calls_to("POST", TRANSITIONS)[0].json
        self.assertEqual({"id": "12"}, body["transition"])
        self.assertEqual({"resolution": {"id": "10000"}}, body["fields"])
        comment = body["update"]["comment"][0]["add"]["body"]
        self.assertEqual(CLOSE_COMMENT, comment["content"][0]["content"][0]["text"])
        self.assertEqual([], session.calls_to("POST", COMMENT))

    def test_no_suitable_transition(self) -> None:
        session = FakeSession().on("GET", TRANSITIONS, _transitions("Other"))
        self.assertFalse(close_ticket(make_jira(session), "LV-1", "AX1"))
        self.assertEqual([], session.calls_to("POST", TRANSITIONS))

    def test_falls_back_to_transition_only_then_comments(self) -> None:
        session = (
            FakeSession()
            .on("GET", TRANSITIONS, _transitions("Closed"))
            .on("POST", TRANSITIONS, [response(400, {"errorMessages": ["comment not allowed"]}), response(204, text="")])
            .on("POST", COMMENT, response(201, {}))
        )
        self.assertTrue(close_ticket(make_jira(session), "LV-1", "AX1"))

        first, second = session.calls_to("POST", TRANSITIONS)
        self.assertIn("update", first.json)
        self.assertNotIn("update", second.json)
        self.assertEqual({"resolution": {"id": "10601"}}, second.json["fields"])
        comment = session.calls_to("POST", COMMENT)[0].json["body"]
        self.assertIn("(AX1)", comment["content"][0]["content"][0]["text"])

    def test_comment_failure_does_not_fail_closure(self) -> None:
        session = (
            FakeSession()
            .on("GET", TRANSITIONS, _transitions("Done"))
            .on("POST", TRANSITIONS, [response(400, {}), response(204, text="")])
            .on("POST", COMMENT, requests.ConnectionError("down"))
        )
        self.assertTrue(close_ticket(make_jira(session), "LV-1", "AX1"))

    def test_both_transition_attempts_fail(self) -> None:
        session = (
            FakeSession()
            .on("GET", TRANSITIONS, _transitions("Done"))
            .on("POST", TRANSITIONS, response(400, {}))
        )
        self.assertFalse(close_ticket(make_jira(session), "LV-1", "AX1"))
        self.assertEqual([], session.calls_to("POST", COMMENT))

    def test_transition_fetch_errors_return_false(self) -> None:
        for answer in (response(403, {}), requests.ConnectionError("down"), response(200, text="not json")):
            with self.subTest(answer=answer):
                session = FakeSession().on("GET", TRANSITIONS, answer)
                self.assertFalse(close_ticket(make_jira(session), "LV-1", "AX1"))


if __name__ == "__main__":
    unittest.main()
