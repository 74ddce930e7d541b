"""sonar_jira.errors

Exceptions that are allowed to escape the engines.

Everything else (a single finding, a single ticket, one search batch) is
caught and counted where it happens; only these two conditions stop a run.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Required configuration is missing or unreadable."""


class TicketSearchError(RuntimeError):
    """The tracker search failed before a single ticket could be retrieved."""
