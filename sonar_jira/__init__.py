"""sonar_jira

Core package for the SonarQube -> Jira synchronization tool.

Why this exists
---------------
The HTTP clients live under ``tools/`` and the engines live under
``pipeline/``. Both need to agree on the same small set of *contracts*:

* domain types (findings, ticket references, run summaries)
* runtime settings and the project catalog
* the Atlassian Document Format (ADF) shapes we write and read back

Keeping those here, with no dependency on ``tools`` or ``pipeline``, lets the
CLI and the engines stay thin composition layers over reusable pieces.
"""

from __future__ import annotations
