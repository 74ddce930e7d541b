"""tools/sonar/api.py

All SonarQube HTTP calls live here.

Design goals:
  - Keep network I/O separated from the reconciliation logic in pipeline/.
  - Raise on failure for whole-project fetches (the caller decides that a
    failed project counts as zero findings).
  - Hand raw responses back for per-key lookups whose status code is itself
    the answer (hotspots/show: 404 means "gone").
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import requests

from tools.http_utils import request_with_retry, short_text

from .types import SonarClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 500
# SonarQube refuses to page past this many results for one query.
MAX_RESULTS = 10_000
RESULT_WINDOW_MESSAGE = "Can return only the first 10000 results"

ISSUE_FILTERS: Dict[str, str] = {
    "resolved": "false",
    "types": "BUG,VULNERABILITY",
    "inNewCodePeriod": "false",
}


def _get(client: SonarClient, path: str, params: Dict[str, Any]) -> requests.Response:
    return request_with_retry(
        client.session,
        "GET",
        f"{client.cfg.host}{path}",
        params=params,
        policy=client.policy,
        sleep=client.sleep,
    )


def _json_object(resp: requests.Response, what: str) -> Dict[str, Any]:
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


def _fetch_paged(
    client: SonarClient,
    path: str,
    params: Dict[str, Any],
    items_key: str,
) -> List[Dict[str, Any]]:
    """Collect every page of a Sonar search endpoint.

    Raises ``requests.HTTPError`` on a failed page and ``ValueError`` on a
    malformed payload; a project is all-or-nothing.
    """
    out: List[Dict[str, Any]] = []
    page = 1

    while True:
        resp = _get(client, path, {**params, "p": page, "ps": PAGE_SIZE})

        if resp.status_code == 400 and RESULT_WINDOW_MESSAGE in resp.text:
            logger.warning("⚠️ Hit SonarQube 10k result limit on %s. Keeping first %d.", path, len(out))
            break

        if not resp.ok:
            raise requests.HTTPError(
                f"HTTP {resp.status_code} from {path}: {short_text(resp)!r}",
                response=resp,
            )

        data = _json_object(resp, path)
        items = data.get(items_key)
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ValueError(f"{path}: '{items_key}' is not a list")
        out.extend(i for i in items if isinstance(i, dict))

        total = (data.get("paging") or {}).get("total")
        if len(items) < PAGE_SIZE:
            break
        if isinstance(total, int) and len(out) >= total:
            break
        if page * PAGE_SIZE >= MAX_RESULTS:
            break
        page += 1

    return out


def fetch_project_issues(client: SonarClient, project_key: str) -> List[Dict[str, Any]]:
    """Unresolved BUG/VULNERABILITY issues of one project (all pages)."""
    params = {"componentKeys": project_key, **ISSUE_FILTERS}
    return _fetch_paged(client, "/api/issues/search", params, "issues")


def fetch_project_hotspots(client: SonarClient, project_key: str) -> List[Dict[str, Any]]:
    """Every security hotspot of one project, whatever its review status (all pages)."""
    params = {"projectKey": project_key}
    return _fetch_paged(client, "/api/hotspots/search", params, "hotspots")


def search_unresolved_issue_keys(client: SonarClient, keys: Sequence[str]) -> List[str]:
    """Which of ``keys`` are still open issues.

    One request for the whole list (callers keep lists at <= 50 keys).
    Raises on HTTP failure or malformed payload.
    """
    if not keys:
        return []
    params = {
        "issues": ",".join(keys),
        "resolved": "false",
        "ps": max(len(keys), 1),
    }
    resp = _get(client, "/api/issues/search", params)
    if not resp.ok:
        raise requests.HTTPError(
            f"HTTP {resp.status_code} from /api/issues/search: {short_text(resp)!r}",
            response=resp,
        )
    data = _json_object(resp, "/api/issues/search")
    issues = data.get("issues") or []
    if not isinstance(issues, list):
        raise ValueError("/api/issues/search: 'issues' is not a list")
    return [str(i["key"]) for i in issues if isinstance(i, dict) and i.get("key")]


def show_hotspot(client: SonarClient, hotspot_key: str) -> requests.Response:
    """Raw ``/api/hotspots/show`` response; the caller interprets 404."""
    return _get(client, "/api/hotspots/show", {"hotspot": hotspot_key})
