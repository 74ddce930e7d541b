"""pipeline.reconcile

Decide, per Sonar identifier, whether the finding behind a Jira ticket is
gone (RESOLVED, ``True``) or still there (ACTIVE, ``False``).

State machine per batch of ``RESOLUTION_BATCH_SIZE`` identifiers
-----------------------------------------------------------------
    default            -> RESOLVED
    returned by issues/search?resolved=false          -> ACTIVE
    still RESOLVED -> hotspots/show:
        404 / body with ``errors`` / body without ``key`` -> RESOLVED
        REVIEWED + FIXED|SAFE                              -> RESOLVED
        any other hotspot                                  -> ACTIVE

RESOLVED is only kept when Sonar positively says the finding is gone. Anything
we could not confirm (failed issue search, non-404 error, network failure,
unreadable body) ends up ACTIVE, and so does every key if the pass itself
blows up. ACTIVE tickets are left open.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Sequence

import requests

from tools.sonar.api import search_unresolved_issue_keys, show_hotspot
from tools.sonar.types import SonarClient

from .constants import (
    HOTSPOT_CHECK_DELAY,
    HOTSPOT_CLOSING_RESOLUTIONS,
    HOTSPOT_REVIEWED,
    RESOLUTION_BATCH_DELAY,
    RESOLUTION_BATCH_SIZE,
)
from .existence import chunked, unique_in_order

logger = logging.getLogger(__name__)

RESOLVED = True
ACTIVE = False


def _preview(keys: List[str], limit: int = 5) -> str:
    head = ", ".join(keys[:limit])
    return f"{head} ... and {len(keys) - limit} more" if len(keys) > limit else head


def hotspot_state(client: SonarClient, hotspot_key: str) -> bool:
    """RESOLVED/ACTIVE for one identifier that is not an open issue."""
    try:
        resp = show_hotspot(client, hotspot_key)
    except requests.RequestException as e:
        logger.warning("❌ Hotspot check failed for %s: %s", hotspot_key, e)
        return ACTIVE

    if resp.status_code == 404:
        return RESOLVED
    if not resp.ok:
        logger.warning("❌ Hotspot check for %s returned HTTP %d", hotspot_key, resp.status_code)
        return ACTIVE

    try:
        data = resp.json()
    except ValueError as e:
        logger.warning("❌ Unreadable hotspot response for %s: %s", hotspot_key, e)
        return ACTIVE
    if not isinstance(data, dict):
        logger.warning("❌ Unexpected hotspot response shape for %s", hotspot_key)
        return ACTIVE

    if data.get("errors") or not data.get("key"):
        return RESOLVED
    if data.get("status") == HOTSPOT_REVIEWED and data.get("resolution") in HOTSPOT_CLOSING_RESOLUTIONS:
        return RESOLVED
    return ACTIVE


def _check_batch(
    client: SonarClient,
    batch: List[str],
    states: Dict[str, bool],
    sleep: Callable[[float], None],
) -> None:
    for key in batch:
        states[key] = RESOLVED

    try:
        open_issues = search_unresolved_issue_keys(client, batch)
    except (requests.RequestException, ValueError) as e:
        logger.error("❌ Error checking issues batch, keeping %d keys active: %s", len(batch), e)
        for key in batch:
            states[key] = ACTIVE
        return

    for key in open_issues:
        if key in states:
            states[key] = ACTIVE
    logger.info("🔍 Found %d active unresolved issues in batch", len(open_issues))

    pending = [k for k in batch if states[k] is RESOLVED]
    for n, key in enumerate(pending):
        if n:
            sleep(HOTSPOT_CHECK_DELAY)
        states[key] = hotspot_state(client, key)


def check_findings_resolved(
    client: SonarClient,
    identifiers: Sequence[str],
    *,
    batch_size: int = RESOLUTION_BATCH_SIZE,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, bool]:
    """Map every requested identifier to RESOLVED (True) or ACTIVE (False)."""
    keys = unique_in_order(identifiers)
    if not keys:
        return {}

    logger.debug("🔍 Batch checking %d SonarQube items for resolution status...", len(keys))
    states: Dict[str, bool] = {}
    try:
        batches = list(chunked(keys, batch_size))
        for n, batch in enumerate(batches, start=1):
            if n > 1:
                sleep(RESOLUTION_BATCH_DELAY)
            logger.debug("📡 Processing batch %d/%d (%d keys)", n, len(batches), len(batch))
            _check_batch(client, batch, states, sleep)
    except Exception:
        logger.exception("💥 Error during batch check; treating all %d keys as active", len(keys))
        return {k: ACTIVE for k in keys}

    resolved = [k for k in keys if states[k]]
    active = [k for k in keys if not states[k]]
    logger.info(
        "✅ Batch check completed: %d resolved, %d active, %d total",
        len(resolved),
        len(active),
        len(keys),
    )
    if resolved:
        logger.info("✅ Resolved items: %s", _preview(resolved))
    if active:
        logger.info("🔒 Active items: %s", _preview(active))
    return states
