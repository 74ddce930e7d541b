"""sonar_jira.projects

Static project configuration: which SonarQube projects to sync, who gets the
tickets, and which Jira component they land in.

File format (YAML; a JSON file works too since JSON is valid YAML)::

    projects:
      - key: my-service
        name: My Service
        assignee: dev@example.com
        component: Backend
        isChecked: true

    jira:
      extra_fields:
        customfield_10200: {value: Others}

Disabled entries (``isChecked: false``) and entries without a key are
filtered out by :meth:`ProjectCatalog.enabled` before they reach the engines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT = "Others"

DEFAULT_EXTRA_FIELDS: Dict[str, Any] = {
    "customfield_10200": {"value": "Others"},
    "customfield_11569": {"value": "Automation"},
}


@dataclass(frozen=True)
class ProjectConfig:
    """One entry of the ``projects:`` list."""

    key: str
    name: str = ""
    assignee: Optional[str] = None
    component: Optional[str] = None
    enabled: bool = False

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ProjectConfig":
        assignee = str(d.get("assignee") or "").strip() or None
        component = d.get("component")
        return cls(
            key=str(d.get("key") or "").strip(),
            name=str(d.get("name") or "").strip(),
            assignee=assignee,
            component=str(component) if component is not None else None,
            enabled=bool(d.get("isChecked", d.get("enabled", False))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "assignee": self.assignee,
            "component": self.component,
            "isChecked": self.enabled,
        }


@dataclass(frozen=True)
class ProjectInfo:
    """What ticket creation needs to know about a Sonar project."""

    name: str
    assignee: Optional[str]
    component: Optional[str]


@dataclass(frozen=True)
class ProjectCatalog:
    projects: List[ProjectConfig] = field(default_factory=list)
    extra_fields: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_EXTRA_FIELDS))

    def enabled(self) -> List[ProjectConfig]:
        return [p for p in self.projects if p.enabled and p.key]

    def find(self, project_key: str) -> Optional[ProjectConfig]:
        for p in self.projects:
            if p.key == project_key:
                return p
        return None

    def info(self, project_key: str) -> ProjectInfo:
        p = self.find(project_key)
        if p is None:
            return ProjectInfo(name=project_key, assignee=None, component=DEFAULT_COMPONENT)
        return ProjectInfo(name=p.name or project_key, assignee=p.assignee, component=p.component)

    def assignee_emails(self) -> List[str]:
        """Distinct non-blank assignee emails, in file order."""
        seen: List[str] = []
        for p in self.projects:
            if p.assignee and p.assignee not in seen:
                seen.append(p.assignee)
        return seen

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ProjectCatalog":
        items = raw.get("projects") or []
        if not isinstance(items, list):
            raise ConfigurationError("'projects' must be a list")
        projects = [ProjectConfig.from_dict(item) for item in items if isinstance(item, Mapping)]

        jira_block = raw.get("jira") or {}
        extra = jira_block.get("extra_fields") if isinstance(jira_block, Mapping) else None
        if extra is None:
            extra_fields = dict(DEFAULT_EXTRA_FIELDS)
        elif isinstance(extra, Mapping):
            extra_fields = dict(extra)
        else:
            raise ConfigurationError("'jira.extra_fields' must be a mapping")

        return cls(projects=projects, extra_fields=extra_fields)


def load_project_catalog(path: Union[str, Path]) -> ProjectCatalog:
    """Load the project catalog from YAML.

    A missing file is not an error (the fallback project key may still be
    configured); an unreadable or wrongly-shaped file is.
    """
    p = Path(path).expanduser()
    if not p.exists():
        logger.warning("⚠️ Project config not found at %s; using an empty catalog", p)
        return ProjectCatalog()

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse project config {p}: {e}") from e

    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Project config must be a mapping/object at top level: {p}")

    catalog = ProjectCatalog.from_dict(raw)
    logger.info(
        "📂 Loaded %d projects (%d enabled) from %s",
        len(catalog.projects),
        len(catalog.enabled()),
        p,
    )
    return catalog
