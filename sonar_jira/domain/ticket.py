"""sonar_jira.domain.ticket

Tracker-side vocabulary: ticket references and the summaries returned by the
two outward operations (ticket creation and ticket closure).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TicketRef:
    """A Jira ticket as seen by the reconciliation pass."""

    key: str
    summary: str = ""
    status: str = ""
    # Finding identifier recovered from the reference field (None if unparseable).
    reference: Optional[str] = None


@dataclass
class CreateResult:
    """Outcome of ``create_tickets_for_findings``.

    ``created`` holds new ticket keys in creation order. ``existing`` holds the
    keys of tickets that already covered a finding (each key once).
    """

    created: List[str] = field(default_factory=list)
    existing: List[str] = field(default_factory=list)

    def add_existing(self, ticket_key: str) -> None:
        if ticket_key not in self.existing:
            self.existing.append(ticket_key)

    def merge(self, other: "CreateResult") -> None:
        self.created.extend(other.created)
        for key in other.existing:
            self.add_existing(key)

    def to_dict(self) -> Dict[str, Any]:
        return {"created": list(self.created), "existing": list(self.existing)}


@dataclass
class CloseSummary:
    """Counters produced by one reconciliation pass."""

    tickets_checked: int = 0
    tickets_closed: int = 0
    tickets_not_resolved: int = 0
    tickets_with_errors: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "ticketsChecked": self.tickets_checked,
            "ticketsClosed": self.tickets_closed,
            "ticketsNotResolved": self.tickets_not_resolved,
            "ticketsWithErrors": self.tickets_with_errors,
        }
