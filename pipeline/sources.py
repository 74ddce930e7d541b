"""pipeline.sources

Finding source adapter: pull issues and hotspots for a list of Sonar projects.

Failure policy
--------------
A project whose issues call fails (network error, non-2xx, malformed payload)
contributes zero issues; its hotspots are fetched independently, and the same
rule applies to them. One bad project never aborts the run.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

import requests

from sonar_jira.domain import Finding, FindingBatch
from tools.sonar.api import fetch_project_hotspots, fetch_project_issues
from tools.sonar.types import SonarClient

logger = logging.getLogger(__name__)

FETCH_ERRORS = (requests.RequestException, ValueError, TypeError, KeyError)


def _with_project(item: Any, project_key: str) -> Any:
    # Older servers omit "project" on hotspot items.
    if isinstance(item, dict) and not item.get("project"):
        return {**item, "project": project_key}
    return item


def _fetch_kind(
    label: str,
    project_key: str,
    fetch: Callable[[], list],
    parse: Callable[[dict], Finding],
) -> List[Finding]:
    try:
        findings = [parse(item) for item in fetch()]
    except FETCH_ERRORS as e:
        logger.error("❌ Failed to fetch %s for project %s: %s", label, project_key, e)
        return []

    if findings:
        logger.info("✅ Found %d %s for project %s", len(findings), label, project_key)
    else:
        logger.info("ℹ️ No %s found for project %s", label, project_key)
    return findings


def fetch_project_findings(client: SonarClient, project_key: str) -> FindingBatch:
    """Issues + hotspots of one project; never raises for API trouble."""
    logger.debug("🔍 Starting analysis for project: %s", project_key)
    issues = _fetch_kind(
        "issues",
        project_key,
        lambda: fetch_project_issues(client, project_key),
        lambda item: Finding.from_issue(_with_project(item, project_key)),
    )
    hotspots = _fetch_kind(
        "security hotspots",
        project_key,
        lambda: fetch_project_hotspots(client, project_key),
        lambda item: Finding.from_hotspot(_with_project(item, project_key)),
    )
    return FindingBatch(issues=issues, hotspots=hotspots)


def fetch_findings(
    client: SonarClient,
    project_keys: Sequence[str],
    *,
    fallback_project: Optional[str] = None,
) -> FindingBatch:
    """Findings for every project in ``project_keys``, in input order.

    With no projects, ``fallback_project`` is used; with neither, the result
    is empty.
    """
    keys = [k for k in project_keys if k]
    if not keys:
        if not fallback_project:
            logger.warning("🚫 No enabled projects and no fallback project key. Returning empty results.")
            return FindingBatch()
        logger.info("🔄 Using fallback project key: %s", fallback_project)
        keys = [fallback_project]

    out = FindingBatch()
    for n, key in enumerate(keys, start=1):
        logger.info("📊 [%d/%d] Processing project: %s", n, len(keys), key)
        out.extend(fetch_project_findings(client, key))

    logger.info(
        "📥 SonarQube data collection completed: %d issues, %d hotspots from %d projects",
        len(out.issues),
        len(out.hotspots),
        len(keys),
    )
    if not len(out):
        logger.warning("🤷 No issues or hotspots found in SonarQube response")
    return out
