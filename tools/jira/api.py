"""tools/jira/api.py

All Jira HTTP calls live here (REST API v3).

Two flavours of function:
  - lookups whose failure the caller just logs (search, user search, create)
    raise ``requests.HTTPError`` / ``ValueError`` on a bad answer
  - workflow calls whose status code drives the closure logic (transitions,
    comments) return the raw ``requests.Response``
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from tools.http_utils import request_with_retry, short_text

from .types import JiraClient

logger = logging.getLogger(__name__)

API_ROOT = "/rest/api/3"


def _call(client: JiraClient, method: str, path: str, **kwargs: Any) -> requests.Response:
    client.limiter.wait()
    return request_with_retry(
        client.session,
        method,
        f"{client.cfg.host}{API_ROOT}{path}",
        policy=client.policy,
        sleep=client.sleep,
        **kwargs,
    )


def _raise_for_status(resp: requests.Response, what: str) -> None:
    if not resp.ok:
        raise requests.HTTPError(
            f"{what} failed: HTTP {resp.status_code}: {short_text(resp)!r}",
            response=resp,
        )


def search_issues(
    client: JiraClient,
    jql: str,
    *,
    fields: Sequence[str],
    start_at: int = 0,
    max_results: int = 100,
) -> Dict[str, Any]:
    """POST /search. Returns the decoded page (``issues``, ``total``, ...)."""
    resp = _call(
        client,
        "POST",
        "/search",
        json={
            "jql": jql,
            "fields": list(fields),
            "startAt": start_at,
            "maxResults": max_results,
        },
    )
    _raise_for_status(resp, "Jira search")
    data = resp.json()
    if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
        raise ValueError("Invalid response format from Jira search API")
    return data


def create_issue(client: JiraClient, payload: Dict[str, Any]) -> str:
    """POST /issue. Returns the new ticket key."""
    resp = _call(client, "POST", "/issue", json=payload)
    _raise_for_status(resp, "Jira issue create")
    data = resp.json()
    key = data.get("key") if isinstance(data, dict) else None
    if not key:
        raise ValueError("Jira issue create returned no key")
    return str(key)


def search_users(client: JiraClient, query: str) -> List[Dict[str, Any]]:
    """GET /user/search?query=... (matching accounts, possibly empty)."""
    resp = _call(client, "GET", "/user/search", params={"query": query})
    _raise_for_status(resp, f"Jira user search for {query}")
    data = resp.json()
    if not isinstance(data, list):
        raise ValueError("Jira user search did not return a list")
    return [u for u in data if isinstance(u, dict)]


def get_transitions(client: JiraClient, ticket_key: str) -> requests.Response:
    return _call(client, "GET", f"/issue/{ticket_key}/transitions")


def post_transition(client: JiraClient, ticket_key: str, body: Dict[str, Any]) -> requests.Response:
    return _call(client, "POST", f"/issue/{ticket_key}/transitions", json=body)


def add_comment(client: JiraClient, ticket_key: str, body: Dict[str, Any]) -> requests.Response:
    return _call(client, "POST", f"/issue/{ticket_key}/comment", json={"body": body})


def jql_quote(value: str) -> str:
    """Quote a value for a JQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def jql_list(values: Sequence[str]) -> str:
    """``(A, B, "Code Review")``: bare words stay bare, the rest are quoted."""
    parts: List[str] = []
    for v in values:
        parts.append(v if v.replace("_", "").isalnum() else jql_quote(v))
    return f"({', '.join(parts)})"


def transition_names(payload: Optional[Dict[str, Any]]) -> List[str]:
    items = (payload or {}).get("transitions") or []
    return [str(t.get("name")) for t in items if isinstance(t, dict)]
