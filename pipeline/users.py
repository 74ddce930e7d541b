"""pipeline.users

Resolve assignee emails from the project catalog to Jira account ids.

The cache is an explicit object handed to whoever needs it (the composition
root creates one per process), not module state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import requests

from tools.jira.api import search_users
from tools.jira.types import JiraClient

logger = logging.getLogger(__name__)


class UserAccountCache:
    """email -> Jira accountId; only grows during a run."""

    def __init__(self) -> None:
        self._accounts: Dict[str, str] = {}

    def get(self, email: Optional[str]) -> Optional[str]:
        if not email:
            return None
        return self._accounts.get(email)

    def set(self, email: str, account_id: str) -> None:
        self._accounts[email] = account_id

    def clear(self) -> None:
        self._accounts.clear()

    def __contains__(self, email: object) -> bool:
        return email in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)


@dataclass
class LookupStats:
    total: int = 0
    resolved: int = 0
    cache_hits: int = 0
    failed: int = 0


def _pick_account(users: List[Dict[str, Any]]) -> Optional[str]:
    """The account id when the search matched exactly one user."""
    if len(users) != 1:
        return None
    return users[0].get("accountId")


def resolve_assignees(
    client: JiraClient,
    emails: Iterable[str],
    cache: UserAccountCache,
) -> LookupStats:
    """Look up each not-yet-cached email once; failures leave it unresolved."""
    unique: List[str] = []
    for e in emails:
        e = (e or "").strip()
        if e and e not in unique:
            unique.append(e)

    stats = LookupStats(total=len(unique))
    logger.info("📧 Found %d unique assignee emails to lookup", len(unique))

    for email in unique:
        if email in cache:
            logger.debug("💾 Using cached accountId for %s", email)
            stats.cache_hits += 1
            continue

        try:
            users = search_users(client, email)
        except (requests.RequestException, ValueError) as e:
            logger.error("❌ Error looking up Jira user %s: %s", email, e)
            stats.failed += 1
            continue

        account_id = _pick_account(users)
        if not users:
            logger.warning("⚠️ Jira user not found: %s", email)
            stats.failed += 1
        elif not account_id:
            logger.warning("⚠️ Ambiguous Jira user lookup for %s (%d matches); not assigning", email, len(users))
            stats.failed += 1
        else:
            cache.set(email, str(account_id))
            logger.info("✅ Found Jira user: %s -> %s", email, account_id)
            stats.resolved += 1

    logger.info(
        "🎉 Jira user lookup completed: %d emails, %d resolved, %d cache hits, %d cached in total",
        stats.total,
        stats.resolved,
        stats.cache_hits,
        len(cache),
    )
    return stats
