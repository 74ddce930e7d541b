from __future__ import annotations

import argparse
import logging
from typing import Callable, Dict

from cli.commands.close import run_close
from cli.commands.projects import run_projects
from cli.commands.sync import run_sync

from pipeline.service import SonarJiraSync
from sonar_jira.errors import ConfigurationError, TicketSearchError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2

COMMANDS: Dict[str, Callable[[argparse.Namespace, SonarJiraSync], int]] = {
    "sync": run_sync,
    "close": run_close,
    "projects": run_projects,
}


def dispatch(args: argparse.Namespace, build: Callable[..., SonarJiraSync]) -> int:
    """Build the service and run the chosen subcommand; map failures to exit codes."""
    try:
        service = build(env_file=args.env_file, projects_file=args.projects_file)
    except ConfigurationError as e:
        logger.error("❌ Configuration error: %s", e)
        return EXIT_CONFIG

    handler = COMMANDS[args.command]
    try:
        return handler(args, service)
    except ConfigurationError as e:
        logger.error("❌ Configuration error: %s", e)
        return EXIT_CONFIG
    except TicketSearchError as e:
        logger.error("💥 Critical error in %s: %s", args.command, e)
        return EXIT_FATAL
