"""sonar_jira.settings

Runtime settings read from the environment.

Values come from ``os.environ`` after the composition root has called
``load_dotenv`` (see :mod:`pipeline.wiring`). This module itself never reads
files; that keeps tests free to pass a plain dict.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from .errors import ConfigurationError

REQUIRED_ENV: Tuple[str, ...] = (
    "SONARQUBE_BASE_URL",
    "SONARQUBE_TOKEN",
    "JIRA_BASE_URL",
    "JIRA_USERNAME",
    "JIRA_API_TOKEN",
)

DEFAULT_JIRA_PROJECT = "LV"
DEFAULT_REFERENCE_FIELD = "customfield_11972"
DEFAULT_REFERENCE_FIELD_NAME = "Sonar Reference Key"
DEFAULT_PROJECTS_FILE = "config/projects.yaml"


@dataclass(frozen=True)
class Settings:
    """Connection settings for SonarQube and Jira."""

    sonar_base_url: str
    sonar_token: str
    jira_base_url: str
    jira_username: str
    jira_api_token: str

    # Used when the project catalog has nothing enabled.
    sonar_fallback_project: Optional[str] = None

    jira_project: str = DEFAULT_JIRA_PROJECT
    # Custom field id + display name of the paragraph field holding the Sonar key.
    reference_field: str = DEFAULT_REFERENCE_FIELD
    reference_field_name: str = DEFAULT_REFERENCE_FIELD_NAME
    projects_file: str = DEFAULT_PROJECTS_FILE


def missing_env(environ: Mapping[str, str], required: Tuple[str, ...] = REQUIRED_ENV) -> List[str]:
    """Names from ``required`` that are absent or blank, in declaration order."""
    return [name for name in required if not (environ.get(name) or "").strip()]


def _opt(environ: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    val = (environ.get(name) or "").strip()
    return val or default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings`, failing fast with every missing name listed."""
    env = os.environ if environ is None else environ

    missing = missing_env(env)
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Settings(
        sonar_base_url=env["SONARQUBE_BASE_URL"].strip().rstrip("/"),
        sonar_token=env["SONARQUBE_TOKEN"].strip(),
        jira_base_url=env["JIRA_BASE_URL"].strip().rstrip("/"),
        jira_username=env["JIRA_USERNAME"].strip(),
        jira_api_token=env["JIRA_API_TOKEN"].strip(),
        sonar_fallback_project=_opt(env, "SONARQUBE_PROJECT_KEY"),
        jira_project=_opt(env, "JIRA_PROJECT_KEY", DEFAULT_JIRA_PROJECT) or DEFAULT_JIRA_PROJECT,
        reference_field=_opt(env, "JIRA_REFERENCE_FIELD", DEFAULT_REFERENCE_FIELD) or DEFAULT_REFERENCE_FIELD,
        reference_field_name=(
            _opt(env, "JIRA_REFERENCE_FIELD_NAME", DEFAULT_REFERENCE_FIELD_NAME)
            or DEFAULT_REFERENCE_FIELD_NAME
        ),
        projects_file=_opt(env, "SONAR_JIRA_PROJECTS_FILE", DEFAULT_PROJECTS_FILE) or DEFAULT_PROJECTS_FILE,
    )
