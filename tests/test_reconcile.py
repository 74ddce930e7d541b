import unittest
from unittest.mock import patch

import requests

from pipeline.reconcile import check_findings_resolved

from fakes import FakeSession, make_sonar, response


def _hotspots(table):
    def handler(call):
        answer = table.get(call.params["hotspot"], response(404, {}))
        if isinstance(answer, Exception):
            raise answer
        return answer

    return handler


class TestCheckFindingsResolved(unittest.TestCase):
    def setUp(self) -> None:
        self.sleeps = []

    def _check(self, session, keys, **kwargs):
        return check_findings_resolved(make_sonar(session), keys, sleep=self.sleeps.append, **kwargs)

    def test_open_issue_is_active_and_missing_hotspot_resolved(self) -> None:
        session = (
            FakeSession()
            .on("GET", "/api/issues/search", response(200, {"issues": [{"key": "k1"}]}))
            .on("GET", "/api/hotspots/show", response(404, {}))
        )
        self.assertEqual({"k1": False, "k2": True}, self._check(session, ["k1", "k2"]))
        shown = [c.params["hotspot"] for c in session.calls_to("GET", "/api/hotspots/show")]
        self.assertEqual(["k2"], shown)

    def test_nothing_found_anywhere_is_all_resolved(self) -> None:
        session = FakeSession().on("GET", "/api/issues/search", response(200, {"issues": []}))
        self.assertEqual({"a": True, "b": True}, self._check(session, ["a", "b"]))

    def test_hotspot_answers(self) -> None:
        table = {
            "gone": response(404, {}),
            "errors": response(200, {"errors": [{"msg": "Hotspot not found"}]}),
            "keyless": response(200, {"status": "TO_REVIEW"}),
            "fixed": response(200, {"key": "fixed", "status": "REVIEWED", "resolution": "FIXED"}),
            "safe": response(200, {"key": "safe", "status": "REVIEWED", "resolution": "SAFE"}),
            "ack": response(200, {"key": "ack", "status": "REVIEWED", "resolution": "ACKNOWLEDGED"}),
            "open": response(200, {"key": "open", "status": "TO_REVIEW"}),
            "denied": response(403, {}),
            "garbled": response(200, text="<html>"),
            "network": requests.ConnectionError("reset"),
        }
        session = (
            FakeSession()
            .on("GET", "/api/issues/search", response(200, {"issues": []}))
            .on("GET", "/api/hotspots/show", _hotspots(table))
        )

        states = self._check(session, list(table))

        expected = {
            "gone": True,
            "errors": True,
            "keyless": True,
            "fixed": True,
            "safe": True,
            "ack": False,
            "open": False,
            "denied": False,
            "garbled": False,
            "network": False,
        }
        self.assertEqual(expected, states)

    def test_failed_issue_search_keeps_the_batch_active(self) -> None:
        session = FakeSession().on("GET", "/api/issues/search", response(500, {}))
        self.assertEqual({"a": False, "b": False}, self._check(session, ["a", "b"]))
        self.assertEqual([], session.calls_to("GET", "/api/hotspots/show"))

    def test_batches_are_checked_separately(self) -> None:
        def issues(call):
            keys = call.params["issues"].split(",")
            if "k0" in keys:
                return response(500, {})
            return response(200, {"issues": []})

        session = (
            FakeSession()
            .on("GET", "/api/issues/search", issues)
            .on("GET", "/api/hotspots/show", response(404, {}))
        )

        states = self._check(session, ["k0", "k1", "k2", "k3"], batch_size=2)

        self.assertEqual({"k0": False, "k1": False, "k2": True, "k3": True}, states)
        self.assertIn(0.2, self.sleeps)

    def test_unexpected_failure_marks_everything_active(self) -> None:
        session = FakeSession()
        with patch("pipeline.reconcile.search_unresolved_issue_keys", side_effect=RuntimeError("boom")):
            states = self._check(session, ["a", "b", "a"])
        self.assertEqual({"a": False, "b": False}, states)

    def test_empty_input(self) -> None:
        self.assertEqual({}, self._check(FakeSession(), []))


if __name__ == "__main__":
    unittest.main()
