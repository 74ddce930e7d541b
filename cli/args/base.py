from __future__ import annotations

import argparse


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register flags that apply to every subcommand.

    This includes:
    - where configuration comes from (.env, project catalog)
    - log verbosity
    """

    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file to load (default: .env at the repo root).",
    )
    parser.add_argument(
        "--projects-file",
        default=None,
        help=(
            "Project catalog (YAML/JSON). Overrides SONAR_JIRA_PROJECTS_FILE "
            "(default: config/projects.yaml)."
        ),
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Log per-item detail (DEBUG).")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")


def add_subcommands(parser: argparse.ArgumentParser) -> None:
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    sync = sub.add_parser(
        "sync",
        help="Fetch SonarQube findings and open Jira tickets for the new ones.",
    )
    sync.add_argument(
        "--project",
        dest="projects",
        action="append",
        metavar="KEY",
        help="SonarQube project key to sync (repeatable). Default: every enabled project.",
    )

    sub.add_parser(
        "close",
        help="Close Jira tickets whose SonarQube finding has been resolved.",
    )
    sub.add_parser(
        "projects",
        help="Show which projects a sync would cover.",
    )
