from __future__ import annotations

from pipeline.service import SonarJiraSync

from cli.common import print_json


def run_projects(args, service: SonarJiraSync) -> int:
    print_json(service.list_projects().to_dict())
    return 0
