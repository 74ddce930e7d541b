"""sonar_jira.domain

Domain objects that form the *contract* between the API clients and the
engines.

Key idea
--------
SonarQube and Jira speak their own JSON dialects. The clients translate those
into the small set of types below so the engines never need to know vendor
quirks beyond the reference field.
"""

from __future__ import annotations

from .finding import KIND_HOTSPOT, KIND_ISSUE, Finding, FindingBatch, FindingKind
from .ticket import CloseSummary, CreateResult, TicketRef

__all__ = [
    "CloseSummary",
    "CreateResult",
    "Finding",
    "FindingBatch",
    "FindingKind",
    "KIND_HOTSPOT",
    "KIND_ISSUE",
    "TicketRef",
]
