from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

import requests

from tools.http_utils import DEFAULT_RETRY_POLICY, RateLimiter, RetryPolicy


@dataclass(frozen=True)
class JiraConfig:
    """Connection settings for Jira Cloud REST v3 calls."""
    host: str
    username: str
    api_token: str


@dataclass
class JiraClient:
    """Config + session + shared rate limiter, passed to every function in api.py.

    Every request waits on ``limiter`` first, so one limiter instance covers
    searches, creates, transitions and comments alike.
    """
    cfg: JiraConfig
    session: requests.Session = field(default_factory=requests.Session)
    limiter: RateLimiter = field(default_factory=RateLimiter)
    policy: RetryPolicy = DEFAULT_RETRY_POLICY
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        self.session.auth = (self.cfg.username, self.cfg.api_token)
        self.session.headers.update({"Accept": "application/json"})
