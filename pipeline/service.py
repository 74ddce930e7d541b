"""pipeline.service

This module defines a *single, high-level* object that represents this repo's
primary capabilities.

Why this exists
---------------
The behavior lives in several engine modules (:mod:`pipeline.sources`,
:mod:`pipeline.creation`, :mod:`pipeline.orchestrator`, ...). Callers (the CLI,
scripts, a scheduler) should not have to wire those together themselves, so
:class:`SonarJiraSync` gives the repo one front door:

- ``fetch_findings(...)``                    : pull issues + hotspots from Sonar
- ``create_tickets_for_findings(...)``       : open Jira tickets for new findings
- ``close_tickets_for_resolved_findings()``  : the reconciliation pass
- ``sync(...)``                              : fetch + create, batched for large project lists
- ``list_projects()``                        : which projects a sync would cover

Build it via :func:`pipeline.wiring.build_service`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from sonar_jira.domain import CloseSummary, CreateResult, FindingBatch
from sonar_jira.projects import ProjectCatalog, ProjectConfig
from sonar_jira.settings import Settings
from tools.jira.types import JiraClient
from tools.sonar.types import SonarClient

from .constants import PROJECT_BATCH_DELAY, PROJECT_BATCH_SIZE, PROJECT_BATCH_THRESHOLD
from .creation import TicketTemplate, create_tickets
from .existence import chunked, unique_in_order
from .orchestrator import close_resolved_tickets
from .sources import fetch_findings as fetch_sonar_findings
from .users import UserAccountCache, resolve_assignees

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectListing:
    """Projects a sync would cover and where that list came from."""

    projects: List[ProjectConfig] = field(default_factory=list)
    fallback: bool = False
    message: str = ""

    @property
    def keys(self) -> List[str]:
        return [p.key for p in self.projects]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "fallback": self.fallback,
            "message": self.message,
        }


def describe_result(result: CreateResult) -> Dict[str, Any]:
    """Human summary of a creation run: message + totals."""
    created, existing = len(result.created), len(result.existing)
    if created and existing:
        message, emoji = "Some Jira tickets created, some already existed", "⚡"
    elif created:
        message, emoji = "Jira tickets created successfully", "🎉"
    elif existing:
        message, emoji = "All Jira tickets already exist", "🔄"
    else:
        message, emoji = "No Jira tickets created or found", "🤷"

    summary = {
        "totalCreated": created,
        "totalExisting": existing,
        "totalProcessed": created + existing,
    }
    logger.info("%s Final result: %s %s", emoji, message, summary)
    return {"message": message, "summary": summary}


def describe_close_summary(summary: CloseSummary) -> Dict[str, Any]:
    message = (
        f"Successfully processed {summary.tickets_checked} tickets, "
        f"closed {summary.tickets_closed} resolved tickets"
    )
    return {"message": message, "summary": summary.to_dict()}


class SonarJiraSync:
    """High-level facade over the sync + reconciliation engines."""

    def __init__(
        self,
        *,
        settings: Settings,
        catalog: ProjectCatalog,
        sonar: SonarClient,
        jira: JiraClient,
        cache: Optional[UserAccountCache] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.sonar = sonar
        self.jira = jira
        self.cache = cache if cache is not None else UserAccountCache()
        self._sleep = sleep

    @property
    def template(self) -> TicketTemplate:
        return TicketTemplate(
            jira_project=self.settings.jira_project,
            reference_field=self.settings.reference_field,
            reference_field_name=self.settings.reference_field_name,
            sonar_base_url=self.settings.sonar_base_url,
            extra_fields=dict(self.catalog.extra_fields),
        )

    def list_projects(self) -> ProjectListing:
        enabled = self.catalog.enabled()
        logger.info(
            "📊 Project analysis completed: %d total, %d enabled",
            len(self.catalog.projects),
            len(enabled),
        )
        if enabled:
            return ProjectListing(projects=enabled, message=f"Found {len(enabled)} active projects")

        fallback = self.settings.sonar_fallback_project
        if fallback:
            logger.info("🔄 Using fallback project key from environment: %s", fallback)
            return ProjectListing(
                projects=[ProjectConfig(key=fallback, enabled=True)],
                fallback=True,
                message="Using environment fallback project",
            )

        logger.warning("🚫 No projects enabled and no fallback key defined in environment")
        return ProjectListing(message="No active projects found")

    def fetch_findings(self, projects: Optional[Sequence[str]] = None) -> FindingBatch:
        """Findings for ``projects``, or for every enabled catalog project."""
        if projects is None:
            projects = [p.key for p in self.catalog.enabled()]
        keys = unique_in_order(projects)
        return fetch_sonar_findings(
            self.sonar,
            keys,
            fallback_project=self.settings.sonar_fallback_project,
        )

    def create_tickets_for_findings(self, findings: Optional[FindingBatch]) -> CreateResult:
        if findings is None:
            raise ValueError("findings are required")

        resolve_assignees(self.jira, self.catalog.assignee_emails(), self.cache)
        return create_tickets(
            self.jira,
            findings,
            catalog=self.catalog,
            cache=self.cache,
            template=self.template,
        )

    def close_tickets_for_resolved_findings(self) -> CloseSummary:
        return close_resolved_tickets(
            self.jira,
            self.sonar,
            project_key=self.settings.jira_project,
            reference_field=self.settings.reference_field,
            reference_field_name=self.settings.reference_field_name,
            sleep=self._sleep,
        )

    def sync(self, projects: Optional[Sequence[str]] = None) -> CreateResult:
        """Fetch findings and create tickets.

        More than PROJECT_BATCH_THRESHOLD projects are processed in chunks of
        PROJECT_BATCH_SIZE; a chunk that fails is logged and skipped.
        """
        keys = unique_in_order(self.list_projects().keys if projects is None else projects)
        if len(keys) <= PROJECT_BATCH_THRESHOLD:
            return self.create_tickets_for_findings(self.fetch_findings(keys))

        batches = list(chunked(keys, PROJECT_BATCH_SIZE))
        logger.warning(
            "⚡ Large project count detected (%d projects). Processing in %d batches...",
            len(keys),
            len(batches),
        )
        total = CreateResult()
        for n, batch in enumerate(batches, start=1):
            logger.info("📦 Batch %d/%d: %s", n, len(batches), ", ".join(batch))
            try:
                result = self.create_tickets_for_findings(self.fetch_findings(batch))
            except Exception as e:
                logger.error("❌ Batch %d failed, continuing with next batch: %s", n, e)
                continue
            total.merge(result)
            logger.info(
                "✅ Batch %d completed: %d created, %d existing",
                n,
                len(result.created),
                len(result.existing),
            )
            if n < len(batches):
                self._sleep(PROJECT_BATCH_DELAY)

        logger.info(
            "🏁 All batches processed: %d created, %d existing",
            len(total.created),
            len(total.existing),
        )
        return total
