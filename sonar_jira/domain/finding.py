"""sonar_jira.domain.finding

Representation of a single SonarQube finding (issue or security hotspot).

Why dataclasses instead of untyped dicts?
----------------------------------------
SonarQube returns two different payload shapes:

* ``/api/issues/search`` items carry ``severity`` and ``type``
* ``/api/hotspots/search`` items carry ``vulnerabilityProbability``

Downstream code (priority mapping, permalinks, summaries) only cares about a
handful of fields. Parsing both shapes into one frozen type at the API
boundary keeps that logic from sprinkling ``.get()`` calls everywhere.

The original payload is kept in ``raw`` for logging and debugging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional

FindingKind = Literal["issue", "hotspot"]

KIND_ISSUE: FindingKind = "issue"
KIND_HOTSPOT: FindingKind = "hotspot"


def _str_or_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _author_of(d: Mapping[str, Any]) -> Optional[str]:
    # issues use "author"; hotspots use "author" too but older servers send "assignee"
    return _str_or_none(d.get("author")) or _str_or_none(d.get("assignee"))


@dataclass(frozen=True)
class Finding:
    """One issue or hotspot, immutable for the lifetime of a sync run."""

    key: str
    project: str
    component: str
    message: str
    kind: FindingKind

    # issues: BLOCKER/CRITICAL/MAJOR/MINOR/INFO
    severity: Optional[str] = None
    # hotspots: HIGH/MEDIUM/LOW
    vulnerability_probability: Optional[str] = None
    # issues: BUG/VULNERABILITY
    issue_type: Optional[str] = None

    creation_date: Optional[str] = None
    author: Optional[str] = None

    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def file_name(self) -> str:
        """Last ``:``-delimited segment of the component path."""
        return (self.component or "").split(":")[-1]

    @property
    def is_hotspot(self) -> bool:
        return self.kind == KIND_HOTSPOT

    @classmethod
    def from_issue(cls, d: Mapping[str, Any]) -> "Finding":
        """Parse an item of ``/api/issues/search``."""
        if not isinstance(d, Mapping):
            raise TypeError(f"Finding.from_issue expected mapping, got {type(d)!r}")
        key = _str_or_none(d.get("key"))
        if not key:
            raise ValueError("issue payload has no key")
        return cls(
            key=key,
            project=str(d.get("project") or ""),
            component=str(d.get("component") or ""),
            message=str(d.get("message") or ""),
            kind=KIND_ISSUE,
            severity=_str_or_none(d.get("severity")),
            issue_type=_str_or_none(d.get("type")),
            creation_date=_str_or_none(d.get("creationDate")),
            author=_author_of(d),
            raw=dict(d),
        )

    @classmethod
    def from_hotspot(cls, d: Mapping[str, Any]) -> "Finding":
        """Parse an item of ``/api/hotspots/search``."""
        if not isinstance(d, Mapping):
            raise TypeError(f"Finding.from_hotspot expected mapping, got {type(d)!r}")
        key = _str_or_none(d.get("key"))
        if not key:
            raise ValueError("hotspot payload has no key")
        return cls(
            key=key,
            project=str(d.get("project") or ""),
            component=str(d.get("component") or ""),
            message=str(d.get("message") or ""),
            kind=KIND_HOTSPOT,
            vulnerability_probability=_str_or_none(d.get("vulnerabilityProbability")),
            creation_date=_str_or_none(d.get("creationDate")),
            author=_author_of(d),
            raw=dict(d),
        )


@dataclass
class FindingBatch:
    """Issues and hotspots collected for one run, in project order."""

    issues: List[Finding] = field(default_factory=list)
    hotspots: List[Finding] = field(default_factory=list)

    def all(self) -> List[Finding]:
        return [*self.issues, *self.hotspots]

    def extend(self, other: "FindingBatch") -> None:
        self.issues.extend(other.issues)
        self.hotspots.extend(other.hotspots)

    def __len__(self) -> int:
        return len(self.issues) + len(self.hotspots)
