"""pipeline.constants

Tuning knobs and fixed workflow facts shared by the engines.

Transition names and resolution ids belong to the Jira workflow, which is
configured outside this tool; they are treated as fixed here.
"""

from __future__ import annotations

from typing import Dict, Tuple

# ---- batching ----
EXISTENCE_BATCH_SIZE = 50
RESOLUTION_BATCH_SIZE = 50
TICKET_PAGE_SIZE = 100
EXISTENCE_MAX_RESULTS = 1000
CLOSE_CONCURRENCY = 5

# Above this many projects, sync() works through them in PROJECT_BATCH_SIZE chunks.
PROJECT_BATCH_THRESHOLD = 10
PROJECT_BATCH_SIZE = 5

# ---- pacing (seconds) ----
JIRA_MIN_INTERVAL = 0.1
HOTSPOT_CHECK_DELAY = 0.05
RESOLUTION_BATCH_DELAY = 0.2
PROJECT_BATCH_DELAY = 1.0

# ---- Jira workflow ----
TERMINAL_STATUSES: Tuple[str, ...] = ("Closed", "Resolved", "Done", "Verified")
REVIEW_STATUSES: Tuple[str, ...] = ("Code Review", "Code Review Pass")

PREFERRED_TRANSITIONS: Tuple[str, ...] = ("wont do", "Done", "Closed", "Resolved", "Verified")

TRANSITION_RESOLUTION_IDS: Dict[str, str] = {
    "Verified": "10100",
    "wont do": "10001",
    "Done": "10000",
    "Closed": "10601",
    "Resolved": "10608",
}
DEFAULT_RESOLUTION_ID = "10100"

ISSUE_TYPE = "Bug"

# ---- ticket content ----
SUMMARY_MAX_LEN = 254
PRIORITY_HIGHEST = "Highest"
PRIORITY_HIGH = "High"
HIGHEST_ISSUE_SEVERITIES = frozenset({"BLOCKER", "CRITICAL"})
HIGHEST_HOTSPOT_PROBABILITIES = frozenset({"HIGH", "MEDIUM"})

# ---- Sonar hotspot review outcome ----
HOTSPOT_REVIEWED = "REVIEWED"
HOTSPOT_CLOSING_RESOLUTIONS = frozenset({"FIXED", "SAFE"})
