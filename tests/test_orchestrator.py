import unittest
from unittest.mock import patch

import requests

from pipeline.orchestrator import close_resolved_tickets, fetch_open_tickets, open_tickets_jql
from sonar_jira.errors import TicketSearchError

from fakes import FakeSession, make_jira, make_sonar, reference_field, response

FIELD = "customfield_11972"
SEARCH = "/rest/api/3/search"


def ticket(key, identifier=None, raw_field=None):
    field = raw_field if raw_field is not None else (reference_field(identifier) if identifier else None)
    return {"key": key, "fields": {"summary": f"summary {key}", "status": {"name": "To Do"}, FIELD: field}}


def paged(tickets, page_size=100):
    def handler(call):
        start = call.json["startAt"]
        return response(200, {"issues": tickets[start : start + page_size], "total": len(tickets), "startAt": start})

    return handler


class TestOpenTicketsJql(unittest.TestCase):
    def test_excludes_terminal_and_review_statuses(self) -> None:
        self.assertEqual(
            'project = LV AND "Sonar Reference Key[Paragraph]" IS NOT EMPTY AND status NOT IN '
            '(Closed, Resolved, Done, Verified, "Code Review", "Code Review Pass")',
            open_tickets_jql("LV", "Sonar Reference Key"),
        )


class TestFetchOpenTickets(unittest.TestCase):
    def _fetch(self, session, page_size=100):
        return fetch_open_tickets(
            make_jira(session),
            project_key="LV",
            reference_field=FIELD,
            reference_field_name="Sonar Reference Key",
            page_size=page_size,
        )

    def test_pages_until_total(self) -> None:
        tickets = [ticket(f"LV-{n}", f"k{n}") for n in range(5)]
        session = FakeSession().on("POST", SEARCH, paged(tickets, page_size=2))

        refs = self._fetch(session, page_size=2)

        self.assertEqual([f"k{n}" for n in range(5)], [t.reference for t in refs])
        self.assertEqual([0, 2, 4], [c.json["startAt"] for c in session.calls])
        self.assertEqual(["key", "summary", FIELD, "status"], session.calls[0].json["fields"])

    def test_failed_page_keeps_what_was_fetched(self) -> None:
        first = response(200, {"issues": [ticket("LV-1", "k1")], "total": 3})
        session = FakeSession().on("POST", SEARCH, [first, requests.ConnectionError("down")])
        refs = self._fetch(session, page_size=1)
        self.assertEqual(["LV-1"], [t.key for t in refs])

    def test_no_ticket_at_all_is_fatal(self) -> None:
        session = FakeSession().on("POST", SEARCH, response(401, {}))
        with self.assertRaises(TicketSearchError):
            self._fetch(session)

    def test_malformed_first_page_is_fatal(self) -> None:
        session = FakeSession().on("POST", SEARCH, response(200, {"unexpected": True}))
        with self.assertRaises(TicketSearchError):
            self._fetch(session)


class TestCloseResolvedTickets(unittest.TestCase):
    def test_counts_every_outcome(self) -> None:
        tickets = [
            ticket("LV-1", "gone"),
            ticket("LV-2", "still-open"),
            ticket("LV-3", raw_field={"type": "doc", "content": []}),
            ticket("LV-4", "gone-but-stuck"),
            ticket("LV-5", "gone"),
            ticket("LV-6", "unknown"),
        ]
        jira_session = FakeSession().on("POST", SEARCH, paged(tickets))
        states = {"gone": True, "still-open": False, "gone-but-stuck": True}
        closed = []

        def fake_close(client, ticket_key, sonar_key):
            closed.append((ticket_key, sonar_key))
            return ticket_key != "LV-4"

        with patch("pipeline.orchestrator.check_findings_resolved", return_value=states) as check, patch(
            "pipeline.orchestrator.close_ticket", side_effect=fake_close
        ):
            summary = close_resolved_tickets(
                make_jira(jira_session),
                make_sonar(FakeSession()),
                project_key="LV",
                reference_field=FIELD,
                reference_field_name="Sonar Reference Key",
                sleep=lambda s: None,
            )

        self.assertEqual(
            {"ticketsChecked": 6, "ticketsClosed": 2, "ticketsNotResolved": 1, "ticketsWithErrors": 3},
            summary.to_dict(),
        )
        self.assertEqual(
            ["gone", "still-open", "gone-but-stuck", "gone", "unknown"],
            list(check.call_args.args[1]),
        )
        self.assertEqual(
            [("LV-1", "gone"), ("LV-4", "gone-but-stuck"), ("LV-5", "gone")],
            sorted(closed),
        )

    def test_end_to_end_with_fake_servers(self) -> None:
        tickets = [ticket("LV-1", "AX1"), ticket("LV-2", "AX2")]
        jira_session = (
            FakeSession()
            .on("POST", SEARCH, paged(tickets))
            .on("GET", "/rest/api/3/issue/LV-2/transitions", response(200, {"transitions": [{"id": "31", "name": "Done"}]}))
            .on("POST", "/rest/api/3/issue/LV-2/transitions", response(204, text=""))
        )
        sonar_session = (
            FakeSession()
            .on("GET", "/api/issues/search", response(200, {"issues": [{"key": "AX1"}]}))
            .on("GET", "/api/hotspots/show", response(404, {}))
        )

        summary = close_resolved_tickets(
            make_jira(jira_session),
            make_sonar(sonar_session),
            project_key="LV",
            reference_field=FIELD,
            reference_field_name="Sonar Reference Key",
            sleep=lambda s: None,
        )

        self.assertEqual((2, 1, 1, 0), (
            summary.tickets_checked, summary.tickets_closed, summary.tickets_not_resolved, summary.tickets_with_errors
        ))
        self.assertEqual([], jira_session.calls_to("GET", "/rest/api/3/issue/LV-1/transitions"))

    def test_tickets_without_identifiers_skip_the_resolution_check(self) -> None:
        tickets = [ticket("LV-1", raw_field={})]
        jira_session = FakeSession().on("POST", SEARCH, paged(tickets))
        sonar_session = FakeSession()

        summary = close_resolved_tickets(
            make_jira(jira_session),
            make_sonar(sonar_session),
            project_key="LV",
            reference_field=FIELD,
            reference_field_name="Sonar Reference Key",
        )

        self.assertEqual(1, summary.tickets_with_errors)
        self.assertEqual([], sonar_session.calls)


if __name__ == "__main__":
    unittest.main()
