"""pipeline.existence

Which findings already have an open Jira ticket?

We ask Jira in batches of ``EXISTENCE_BATCH_SIZE`` with one OR-ed text match
per identifier on the reference field, then read the identifier back out of
each returned ticket. A batch that fails just contributes nothing; the
creation engine will then treat those findings as new.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import requests

from sonar_jira.adf import parse_reference_field
from tools.jira.api import jql_list, jql_quote, search_issues
from tools.jira.types import JiraClient

from .constants import EXISTENCE_BATCH_SIZE, EXISTENCE_MAX_RESULTS, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


class ExistenceIndex(Mapping[str, str]):
    """Read-only snapshot: finding identifier -> Jira ticket key."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(entries or {})

    def __getitem__(self, identifier: str) -> str:
        return self._entries[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExistenceIndex({self._entries!r})"


def unique_in_order(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        if v and v not in seen:
            seen[v] = None
    return list(seen)


def chunked(values: List[str], size: int) -> Iterator[List[str]]:
    for i in range(0, len(values), size):
        yield values[i : i + size]


def existence_jql(project_key: str, reference_field_name: str, identifiers: List[str]) -> str:
    field_ref = jql_quote(f"{reference_field_name}[Paragraph]")
    matches = " OR ".join(f"({field_ref} ~ {jql_quote(k)})" for k in identifiers)
    return (
        f"project = {project_key} AND ({matches}) "
        f"AND status NOT IN {jql_list(TERMINAL_STATUSES)}"
    )


def build_existence_index(
    client: JiraClient,
    identifiers: Iterable[str],
    *,
    project_key: str,
    reference_field: str,
    reference_field_name: str,
    batch_size: int = EXISTENCE_BATCH_SIZE,
) -> ExistenceIndex:
    """Map each identifier that already has a non-terminal ticket to that ticket."""
    keys = unique_in_order(identifiers)
    entries: Dict[str, str] = {}
    if not keys:
        return ExistenceIndex()

    batches = list(chunked(keys, batch_size))
    logger.info("🔍 Checking %d identifiers for existing tickets in %d batches", len(keys), len(batches))

    for n, batch in enumerate(batches, start=1):
        jql = existence_jql(project_key, reference_field_name, batch)
        try:
            page = search_issues(
                client,
                jql,
                fields=["key", "summary", reference_field],
                max_results=EXISTENCE_MAX_RESULTS,
            )
        except (requests.RequestException, ValueError) as e:
            logger.error("❌ Existence check batch %d/%d failed: %s", n, len(batches), e)
            continue

        found = 0
        for issue in page["issues"]:
            if not isinstance(issue, dict):
                continue
            fields = issue.get("fields") or {}
            identifier = parse_reference_field(fields.get(reference_field))
            if identifier is None:
                logger.warning("⚠️ Unparseable reference field on ticket %s; skipping", issue.get("key"))
                continue
            entries[identifier] = str(issue.get("key"))
            found += 1
        logger.debug("📦 Batch %d/%d: %d existing tickets", n, len(batches), found)

    logger.info("✅ Existence index built: %d of %d identifiers already ticketed", len(entries), len(keys))
    return ExistenceIndex(entries)
