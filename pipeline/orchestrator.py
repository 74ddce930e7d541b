"""pipeline.orchestrator

Reconciliation pass: close Jira tickets whose Sonar finding has gone away.

    fetch open tickets (paged) -> extract identifiers -> one resolution check
    -> per ticket: RESOLVED -> close, ACTIVE -> leave open, unknown -> error

Tickets are handled in batches of CLOSE_CONCURRENCY on a thread pool; every
future of a batch is joined before the next batch is submitted. All counters
are tallied on the calling thread from the futures' results.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

import requests

from sonar_jira.adf import parse_reference_field
from sonar_jira.domain import CloseSummary, TicketRef
from sonar_jira.errors import TicketSearchError
from tools.jira.api import jql_list, jql_quote, search_issues
from tools.jira.types import JiraClient
from tools.sonar.types import SonarClient

from .closure import close_ticket
from .constants import CLOSE_CONCURRENCY, REVIEW_STATUSES, TERMINAL_STATUSES, TICKET_PAGE_SIZE
from .existence import chunked
from .reconcile import check_findings_resolved

logger = logging.getLogger(__name__)

OUTCOME_CLOSED = "closed"
OUTCOME_NOT_RESOLVED = "not_resolved"
OUTCOME_ERROR = "error"


def open_tickets_jql(project_key: str, reference_field_name: str) -> str:
    field_ref = jql_quote(f"{reference_field_name}[Paragraph]")
    excluded = jql_list(TERMINAL_STATUSES + REVIEW_STATUSES)
    return f"project = {project_key} AND {field_ref} IS NOT EMPTY AND status NOT IN {excluded}"


def _ticket_from_issue(issue: Dict, reference_field: str) -> TicketRef:
    fields = issue.get("fields") or {}
    status = fields.get("status") or {}
    return TicketRef(
        key=str(issue.get("key") or ""),
        summary=str(fields.get("summary") or ""),
        status=str(status.get("name") or "") if isinstance(status, dict) else "",
        reference=parse_reference_field(fields.get(reference_field)),
    )


def fetch_open_tickets(
    client: JiraClient,
    *,
    project_key: str,
    reference_field: str,
    reference_field_name: str,
    page_size: int = TICKET_PAGE_SIZE,
) -> List[TicketRef]:
    """Every open ticket carrying a reference field.

    A failing page ends pagination; what was fetched so far is returned.
    Raises TicketSearchError if not even one ticket could be fetched.
    """
    jql = open_tickets_jql(project_key, reference_field_name)
    tickets: List[TicketRef] = []
    start_at = 0

    logger.info("📑 Fetching Jira tickets with pagination...")
    while True:
        try:
            page = search_issues(
                client,
                jql,
                fields=["key", "summary", reference_field, "status"],
                start_at=start_at,
                max_results=page_size,
            )
        except (requests.RequestException, ValueError) as e:
            logger.error("❌ Error during ticket pagination at startAt=%d: %s", start_at, e)
            if not tickets:
                raise TicketSearchError(f"Could not fetch any Jira tickets: {e}") from e
            logger.warning(
                "⚠️ Pagination error encountered, continuing with %d tickets already retrieved",
                len(tickets),
            )
            break

        issues = [i for i in page["issues"] if isinstance(i, dict)]
        tickets.extend(_ticket_from_issue(i, reference_field) for i in issues)

        total = page.get("total")
        start_at += len(page["issues"])
        if not page["issues"]:
            break
        if not isinstance(total, int) or start_at >= total:
            break
        logger.debug("🔍 Fetched %d/%d tickets", start_at, total)

    logger.info("✅ Pagination complete. Total tickets retrieved: %d", len(tickets))
    return tickets


def _settle(
    client: JiraClient,
    ticket: TicketRef,
    states: Dict[str, bool],
) -> str:
    if not ticket.reference:
        logger.warning("⚠️ Could not extract Sonar key from ticket %s", ticket.key)
        return OUTCOME_ERROR

    resolved = states.get(ticket.reference)
    if resolved is None:
        logger.warning("⚠️ Unknown resolution status for %s, skipping ticket %s", ticket.reference, ticket.key)
        return OUTCOME_ERROR
    if not resolved:
        return OUTCOME_NOT_RESOLVED

    if close_ticket(client, ticket.key, ticket.reference):
        return OUTCOME_CLOSED
    logger.error("❌ Failed to close ticket %s for resolved issue %s", ticket.key, ticket.reference)
    return OUTCOME_ERROR


def _preview(keys: List[str], limit: int = 20) -> str:
    head = ", ".join(keys[:limit])
    return f"{head} ... and {len(keys) - limit} more" if len(keys) > limit else head


def process_tickets(
    client: JiraClient,
    tickets: Sequence[TicketRef],
    states: Dict[str, bool],
    *,
    concurrency: int = CLOSE_CONCURRENCY,
) -> CloseSummary:
    summary = CloseSummary(tickets_checked=len(tickets))
    buckets: Dict[str, List[str]] = {OUTCOME_CLOSED: [], OUTCOME_NOT_RESOLVED: [], OUTCOME_ERROR: []}

    done = 0
    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        for batch in chunked(list(tickets), concurrency):
            futures = [(t, pool.submit(_settle, client, t, states)) for t in batch]
            for ticket, fut in futures:
                try:
                    outcome = fut.result()
                except Exception as e:
                    logger.error("❌ Error processing ticket %s: %s", ticket.key, e)
                    outcome = OUTCOME_ERROR
                buckets[outcome].append(ticket.key)

            done += len(batch)
            if done % 50 == 0 or done >= len(tickets):
                logger.info(
                    "📊 Processed %d/%d tickets - Closed: %d, Errors: %d, Not Resolved: %d",
                    done,
                    len(tickets),
                    len(buckets[OUTCOME_CLOSED]),
                    len(buckets[OUTCOME_ERROR]),
                    len(buckets[OUTCOME_NOT_RESOLVED]),
                )

    summary.tickets_closed = len(buckets[OUTCOME_CLOSED])
    summary.tickets_not_resolved = len(buckets[OUTCOME_NOT_RESOLVED])
    summary.tickets_with_errors = len(buckets[OUTCOME_ERROR])

    if buckets[OUTCOME_CLOSED]:
        logger.info("✅ Closed tickets (%d): %s", summary.tickets_closed, _preview(buckets[OUTCOME_CLOSED]))
    if buckets[OUTCOME_ERROR]:
        logger.warning("❌ Error tickets (%d): %s", summary.tickets_with_errors, _preview(buckets[OUTCOME_ERROR]))
    if buckets[OUTCOME_NOT_RESOLVED]:
        logger.info(
            "⏳ Not resolved tickets (%d): %s",
            summary.tickets_not_resolved,
            _preview(buckets[OUTCOME_NOT_RESOLVED]),
        )
    return summary


def close_resolved_tickets(
    jira: JiraClient,
    sonar: SonarClient,
    *,
    project_key: str,
    reference_field: str,
    reference_field_name: str,
    sleep: Optional[Callable[[float], None]] = None,
) -> CloseSummary:
    """Run one full reconciliation pass and return its counters."""
    logger.info("🔄 Starting process to close Jira tickets for resolved SonarQube issues...")
    tickets = fetch_open_tickets(
        jira,
        project_key=project_key,
        reference_field=reference_field,
        reference_field_name=reference_field_name,
    )

    identifiers = [t.reference for t in tickets if t.reference]
    logger.info("✅ Extracted %d SonarQube keys from %d tickets", len(identifiers), len(tickets))

    states: Dict[str, bool] = {}
    if identifiers:
        states = check_findings_resolved(sonar, identifiers, sleep=sleep or time.sleep)
    else:
        logger.warning("⚠️ No SonarQube keys found in any tickets.")

    summary = process_tickets(jira, tickets, states)
    logger.info("🏁 Ticket processing completed: %s", summary.to_dict())
    return summary
