"""pipeline.wiring

This module is the **composition root** for the Python runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load configuration / environment variables (``.env`` via python-dotenv)
- read the project catalog
- build the HTTP clients, the shared rate limiter and the user cache
- build the high-level :class:`~pipeline.service.SonarJiraSync` facade

Keeping this wiring in one place prevents configuration and dependency setup
from being duplicated across entrypoints (CLI, scripts, schedulers).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from sonar_jira.projects import load_project_catalog
from sonar_jira.settings import load_settings
from tools.http_utils import RateLimiter
from tools.jira.types import JiraClient, JiraConfig
from tools.sonar.types import SonarClient, SonarConfig

from .constants import JIRA_MIN_INTERVAL
from .service import SonarJiraSync
from .users import UserAccountCache

ROOT_DIR: Path = Path(__file__).resolve().parents[1]
ENV_PATH: Path = ROOT_DIR / ".env"


def _resolve_path(path: Union[str, Path]) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else ROOT_DIR / p


def build_service(
    *,
    load_env: bool = True,
    env_file: Optional[Union[str, Path]] = None,
    projects_file: Optional[Union[str, Path]] = None,
) -> SonarJiraSync:
    """Build the facade from the environment.

    Raises :class:`~sonar_jira.errors.ConfigurationError` when required
    environment variables are missing or the project file is malformed.
    """
    if load_env:
        # Values already in the process environment win over the file.
        load_dotenv(Path(env_file) if env_file else ENV_PATH, override=False)

    settings = load_settings()
    catalog = load_project_catalog(_resolve_path(projects_file or settings.projects_file))

    sonar = SonarClient(SonarConfig(host=settings.sonar_base_url, token=settings.sonar_token))
    jira = JiraClient(
        JiraConfig(
            host=settings.jira_base_url,
            username=settings.jira_username,
            api_token=settings.jira_api_token,
        ),
        limiter=RateLimiter(JIRA_MIN_INTERVAL),
    )

    return SonarJiraSync(
        settings=settings,
        catalog=catalog,
        sonar=sonar,
        jira=jira,
        cache=UserAccountCache(),
    )
