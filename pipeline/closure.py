"""pipeline.closure

Close one Jira ticket whose Sonar finding is gone.

Steps:
  1) GET transitions
  2) pick the first of PREFERRED_TRANSITIONS offered by the workflow
  3) POST the transition with resolution + explanatory comment
  4) if Jira rejects that, POST the bare transition and add the comment
     separately (best effort)

``close_ticket`` answers True/False and never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from sonar_jira import adf
from tools.http_utils import short_text
from tools.jira.api import add_comment, get_transitions, post_transition, transition_names
from tools.jira.types import JiraClient

from .constants import DEFAULT_RESOLUTION_ID, PREFERRED_TRANSITIONS, TRANSITION_RESOLUTION_IDS

logger = logging.getLogger(__name__)

CLOSE_COMMENT = (
    "Automatically closed by the SonarQube-Jira integration as the related "
    "SonarQube issue has been resolved."
)
FOLLOW_UP_COMMENT = (
    "Automatically closed by SonarQube-Jira integration because the corresponding "
    "SonarQube issue ({sonar_key}) has been resolved."
)


def pick_transition(transitions: List[Dict[str, Any]]) -> Optional[Tuple[str, str]]:
    """(id, name) of the highest-priority available transition, if any."""
    for preferred in PREFERRED_TRANSITIONS:
        for t in transitions:
            if isinstance(t, dict) and t.get("name") == preferred:
                return str(t.get("id")), preferred
    return None


def resolution_id_for(transition_name: str) -> str:
    return TRANSITION_RESOLUTION_IDS.get(transition_name, DEFAULT_RESOLUTION_ID)


def transition_body(transition_id: str, resolution_id: str, *, with_comment: bool) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "fields": {"resolution": {"id": resolution_id}},
        "transition": {"id": str(transition_id)},
    }
    if with_comment:
        comment = adf.doc(adf.paragraph(adf.text(CLOSE_COMMENT)))
        body["update"] = {"comment": [{"add": {"body": comment}}]}
    return body


def _add_follow_up_comment(client: JiraClient, ticket_key: str, sonar_key: str) -> None:
    comment = adf.doc(adf.paragraph(adf.text(FOLLOW_UP_COMMENT.format(sonar_key=sonar_key))))
    try:
        resp = add_comment(client, ticket_key, comment)
    except requests.RequestException as e:
        logger.warning("⚠️ Error adding comment to ticket %s: %s", ticket_key, e)
        return
    if not resp.ok:
        logger.warning("⚠️ Failed to add comment to ticket %s, but transition succeeded", ticket_key)


def _close(client: JiraClient, ticket_key: str, sonar_key: str) -> bool:
    resp = get_transitions(client, ticket_key)
    if not resp.ok:
        logger.error(
            "❌ Failed to get transitions for ticket %s: HTTP %d %r",
            ticket_key,
            resp.status_code,
            short_text(resp),
        )
        return False

    payload = resp.json()
    available = (payload or {}).get("transitions") if isinstance(payload, dict) else None
    picked = pick_transition(available if isinstance(available, list) else [])
    if picked is None:
        logger.warning(
            "⚠️ Could not find a suitable transition for ticket %s (available: %s)",
            ticket_key,
            ", ".join(transition_names(payload if isinstance(payload, dict) else None)) or "none",
        )
        return False

    transition_id, transition_name = picked
    resolution_id = resolution_id_for(transition_name)

    resp = post_transition(
        client, ticket_key, transition_body(transition_id, resolution_id, with_comment=True)
    )
    if not resp.ok:
        logger.warning("⚠️ Transition with comment failed for ticket %s, trying transition only...", ticket_key)
        resp = post_transition(
            client, ticket_key, transition_body(transition_id, resolution_id, with_comment=False)
        )
        if resp.ok:
            _add_follow_up_comment(client, ticket_key, sonar_key)

    if not resp.ok:
        logger.error(
            "❌ Failed to close ticket %s via %r: HTTP %d %r",
            ticket_key,
            transition_name,
            resp.status_code,
            short_text(resp),
        )
        return False

    logger.info("✅ Successfully closed ticket %s (sonar key %s, transition %r)", ticket_key, sonar_key, transition_name)
    return True


def close_ticket(client: JiraClient, ticket_key: str, sonar_key: str) -> bool:
    """Transition ``ticket_key`` to a closed state. True only on success."""
    logger.debug("🔒 Closing Jira ticket %s for resolved SonarQube issue %s...", ticket_key, sonar_key)
    try:
        return _close(client, ticket_key, sonar_key)
    except (requests.RequestException, ValueError) as e:
        logger.error("❌ Error closing ticket %s: %s", ticket_key, e)
        return False
