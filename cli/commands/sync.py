from __future__ import annotations

import logging

from pipeline.service import SonarJiraSync, describe_result

from cli.common import print_json

logger = logging.getLogger(__name__)


def run_sync(args, service: SonarJiraSync) -> int:
    projects = args.projects or None
    if projects:
        logger.info("🚀 Syncing %d project(s): %s", len(projects), ", ".join(projects))
    else:
        logger.info("🚀 Syncing every enabled project")

    result = service.sync(projects)
    print_json(describe_result(result))
    return 0
