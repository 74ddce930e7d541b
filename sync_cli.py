#!/usr/bin/env python3
"""
CLI for the SonarQube -> Jira sync.

Subcommands:
  1) sync      - fetch findings and open Jira tickets for new ones
  2) close     - close Jira tickets whose finding has been resolved
  3) projects  - show which projects a sync would cover

Usage:
  python sync_cli.py sync
  python sync_cli.py sync --project my-service --project other-service
  python sync_cli.py close --verbose
  python sync_cli.py --env-file prod.env --projects-file config/projects.yaml projects

Exit codes: 0 success, 1 pipeline-fatal error, 2 configuration error.
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from cli.args.base import add_base_args, add_subcommands
from cli.common import configure_logging
from cli.dispatch import dispatch
from pipeline.wiring import build_service


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync SonarQube issues and security hotspots into Jira tickets.",
    )
    add_base_args(parser)
    add_subcommands(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)
    return dispatch(args, build_service)


if __name__ == "__main__":
    raise SystemExit(main())
