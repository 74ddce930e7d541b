"""pipeline.creation

Turn Sonar findings into Jira tickets.

Flow per run
------------
1) Build the existence index for every finding key (one pass, batched).
2) Walk issues, then hotspots:
     - already ticketed -> recorded under ``existing`` (each ticket once)
     - ticketed earlier in this run -> skipped
     - otherwise        -> build payload, POST /issue, record under ``created``
3) Any failure for one finding is logged and the walk continues.

The payload builders are pure functions so they can be tested without HTTP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from sonar_jira import adf
from sonar_jira.domain import CreateResult, Finding, FindingBatch
from sonar_jira.projects import ProjectCatalog, ProjectInfo
from tools.jira.api import create_issue
from tools.jira.types import JiraClient

from .constants import (
    HIGHEST_HOTSPOT_PROBABILITIES,
    HIGHEST_ISSUE_SEVERITIES,
    ISSUE_TYPE,
    PRIORITY_HIGH,
    PRIORITY_HIGHEST,
    SUMMARY_MAX_LEN,
)
from .existence import ExistenceIndex, build_existence_index
from .users import UserAccountCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketTemplate:
    """Per-deployment constants that go into every ticket."""

    jira_project: str
    reference_field: str
    reference_field_name: str
    sonar_base_url: str
    extra_fields: Dict[str, Any] = field(default_factory=dict)


def build_summary(finding: Finding) -> str:
    summary = f"{finding.message} in {finding.file_name}"
    if len(summary) > SUMMARY_MAX_LEN:
        summary = summary[: SUMMARY_MAX_LEN - 3] + "..."
    return summary


def priority_for(finding: Finding) -> str:
    if finding.is_hotspot:
        level = (finding.vulnerability_probability or "").upper()
        return PRIORITY_HIGHEST if level in HIGHEST_HOTSPOT_PROBABILITIES else PRIORITY_HIGH
    level = (finding.severity or "").upper()
    return PRIORITY_HIGHEST if level in HIGHEST_ISSUE_SEVERITIES else PRIORITY_HIGH


def permalink_for(finding: Finding, sonar_base_url: str) -> str:
    base = sonar_base_url.rstrip("/")
    if finding.is_hotspot:
        return f"{base}/security_hotspots?id={finding.project}&hotspots={finding.key}"
    return (
        f"{base}/project/issues?resolved=false&types={finding.issue_type or ''}"
        f"&id={finding.project}&issues={finding.key}"
    )


def build_description(finding: Finding, info: ProjectInfo, sonar_base_url: str) -> Dict[str, Any]:
    label = "Hotspot" if finding.is_hotspot else "Issue"
    items = [
        adf.list_item(adf.paragraph(adf.text(f"Project: {info.name} ({finding.project})"))),
        adf.list_item(adf.paragraph(adf.text(f"Message: {finding.message}"))),
        adf.list_item(adf.paragraph(adf.text(f"File: {finding.file_name}"))),
        adf.list_item(
            adf.paragraph(
                adf.text("SonarQube Link: "),
                adf.link_text(f"View {label}", permalink_for(finding, sonar_base_url)),
            )
        ),
    ]
    return adf.doc(adf.heading(f"{label} Details", level=3), adf.bullet_list(items))


def build_ticket_payload(
    finding: Finding,
    *,
    info: ProjectInfo,
    template: TicketTemplate,
    account_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Full ``POST /issue`` body for one finding.

    Raises ValueError when the payload would be rejected anyway (blank
    summary, no project, no issue type).
    """
    fields: Dict[str, Any] = {
        "project": {"key": template.jira_project},
        "summary": build_summary(finding),
        "description": build_description(finding, info, template.sonar_base_url),
        "issuetype": {"name": ISSUE_TYPE},
        template.reference_field: adf.reference_doc(finding.key),
        "priority": {"name": priority_for(finding)},
    }
    if info.component and info.component.strip():
        fields["components"] = [{"name": info.component}]
    fields.update(template.extra_fields)
    if account_id:
        fields["assignee"] = {"accountId": account_id}

    if not fields["summary"].strip():
        raise ValueError("Summary is required and cannot be empty")
    if not template.jira_project:
        raise ValueError("Project key is required")
    return {"fields": fields}


def _create_one(
    client: JiraClient,
    finding: Finding,
    *,
    catalog: ProjectCatalog,
    cache: UserAccountCache,
    template: TicketTemplate,
) -> str:
    info = catalog.info(finding.project)
    account_id = cache.get(info.assignee)
    if info.assignee and not account_id:
        logger.warning("⚠️ User %s not found in cache, skipping assignment", info.assignee)

    payload = build_ticket_payload(finding, info=info, template=template, account_id=account_id)
    logger.info("🆕 Creating new Jira ticket for %s: %s...", finding.kind, finding.message[:50])
    key = create_issue(client, payload)
    logger.info("🎉 Jira ticket created successfully: %s (sonar key %s)", key, finding.key)
    return key


def create_tickets(
    client: JiraClient,
    findings: FindingBatch,
    *,
    catalog: ProjectCatalog,
    cache: UserAccountCache,
    template: TicketTemplate,
    index: Optional[ExistenceIndex] = None,
) -> CreateResult:
    """Create a ticket for every finding not already covered by an open one."""
    ordered = findings.all()
    result = CreateResult()
    if not ordered:
        logger.info("🤷 No findings to process")
        return result

    if index is None:
        index = build_existence_index(
            client,
            (f.key for f in ordered),
            project_key=template.jira_project,
            reference_field=template.reference_field,
            reference_field_name=template.reference_field_name,
        )

    # sonar key -> ticket created earlier in this run
    ticketed: Dict[str, str] = {}

    for n, finding in enumerate(ordered, start=1):
        logger.debug("[%d/%d] Processing %s %s", n, len(ordered), finding.kind, finding.key)
        if finding.key in ticketed:
            logger.debug(
                "🔁 Skipping repeated %s %s - ticketed in this run: %s",
                finding.kind,
                finding.key,
                ticketed[finding.key],
            )
            continue
        existing = index.get(finding.key)
        if existing:
            logger.debug("🔄 Skipping %s %s - ticket already exists: %s", finding.kind, finding.key, existing)
            result.add_existing(existing)
            continue
        try:
            key = _create_one(client, finding, catalog=catalog, cache=cache, template=template)
        except (requests.RequestException, ValueError) as e:
            logger.error("❌ Failed to create Jira ticket for %s %s: %s", finding.kind, finding.key, e)
            continue
        ticketed[finding.key] = key
        result.created.append(key)

    logger.info(
        "✅ Ticket creation finished: %d created, %d already existed",
        len(result.created),
        len(result.existing),
    )
    return result
