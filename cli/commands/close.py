from __future__ import annotations

import logging

from pipeline.service import SonarJiraSync, describe_close_summary

from cli.common import print_json

logger = logging.getLogger(__name__)


def run_close(args, service: SonarJiraSync) -> int:
    logger.info("🔍 Closing Jira tickets for resolved SonarQube findings")
    summary = service.close_tickets_for_resolved_findings()
    print_json(describe_close_summary(summary))
    return 0
