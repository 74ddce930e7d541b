from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

import requests

from tools.http_utils import DEFAULT_RETRY_POLICY, RetryPolicy


@dataclass(frozen=True)
class SonarConfig:
    """Connection settings for SonarQube API calls."""
    host: str
    token: str


@dataclass
class SonarClient:
    """Config + session + retry policy, passed to every function in api.py."""
    cfg: SonarConfig
    session: requests.Session = field(default_factory=requests.Session)
    policy: RetryPolicy = DEFAULT_RETRY_POLICY
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        # SonarQube basic auth: token as username, empty password.
        self.session.auth = (self.cfg.token, "")
        self.session.headers.update({"Accept": "application/json"})
