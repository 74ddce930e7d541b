"""Jira Cloud integration modules.

Split into:
  - api.py      : all HTTP calls to Jira (search, create, transitions, comments, users)
  - types.py    : connection config + client bundle (session, shared rate limiter)
"""
