"""SonarQube integration modules.

Split into:
  - api.py      : all HTTP calls to SonarQube
  - types.py    : connection config + client bundle

The engines in pipeline/ decide what a response *means* (e.g. a 404 from
hotspots/show counts as "resolved"); this package only talks HTTP.
"""
