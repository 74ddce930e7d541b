"""cli.common

Small shared helpers for CLI command modules.

The CLI is split by subcommand (sync/close/projects). A few helpers are
useful across all of them; keeping them here avoids subtle drift when two
files copy/paste the same logic.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional, TextIO

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def log_level(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging once for the process (stderr, timestamped)."""
    logging.basicConfig(level=log_level(verbose=verbose, quiet=quiet), format=LOG_FORMAT)
    # urllib3 logs every connection at DEBUG; keep it out of --verbose output.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_json(payload: Any, stream: Optional[TextIO] = None) -> None:
    out = stream or sys.stdout
    out.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
