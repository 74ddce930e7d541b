import unittest

import requests

from pipeline.existence import build_existence_index, existence_jql

from fakes import FakeSession, make_jira, reference_field, response

FIELD = "customfield_11972"


def _build(session, identifiers, **kwargs):
    return build_existence_index(
        make_jira(session),
        identifiers,
        project_key="LV",
        reference_field=FIELD,
        reference_field_name="Sonar Reference Key",
        **kwargs,
    )


class TestExistenceJql(unittest.TestCase):
    def test_query_shape(self) -> None:
        jql = existence_jql("LV", "Sonar Reference Key", ["k1", 'we"ird'])
        self.assertEqual(
            'project = LV AND (("Sonar Reference Key[Paragraph]" ~ "k1") OR '
            '("Sonar Reference Key[Paragraph]" ~ "we\\"ird")) '
            "AND status NOT IN (Closed, Resolved, Done, Verified)",
            jql,
        )


class TestBuildExistenceIndex(unittest.TestCase):
    def test_maps_identifiers_to_ticket_keys(self) -> None:
        page = {
            "issues": [
                {"key": "LV-1", "fields": {FIELD: reference_field("k1")}},
                {"key": "LV-2", "fields": {FIELD: {"type": "doc", "content": []}}},
            ],
            "total": 2,
        }
        session = FakeSession().on("POST", "/rest/api/3/search", response(200, page))

        index = _build(session, ["k1", "k2", "k1"])

        self.assertEqual({"k1": "LV-1"}, dict(index))
        body = session.calls[0].json
        self.assertEqual(["key", "summary", FIELD], body["fields"])
        self.assertEqual(1000, body["maxResults"])
        self.assertEqual(1, body["jql"].count('~ "k1"'))

    def test_batches_of_fifty_and_failed_batch_is_skipped(self) -> None:
        def handler(call):
            if '~ "k0"' in call.json["jql"]:
                raise requests.ConnectionError("down")
            return response(200, {"issues": [{"key": "LV-9", "fields": {FIELD: reference_field("k120")}}]})

        session = FakeSession().on("POST", "/rest/api/3/search", handler)
        index = _build(session, [f"k{n}" for n in range(121)])

        # first batch fails (3 attempts), the other two answer
        self.assertEqual(3 + 2, len(session.calls))
        self.assertEqual({"k120": "LV-9"}, dict(index))

    def test_empty_input_makes_no_calls(self) -> None:
        session = FakeSession()
        self.assertEqual(0, len(_build(session, [])))
        self.assertEqual([], session.calls)


if __name__ == "__main__":
    unittest.main()
