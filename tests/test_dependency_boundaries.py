import ast
import unittest
from pathlib import Path
from typing import Iterator, List, Set, Tuple


REPO_ROOT = Path(__file__).resolve().parents[1]

# Layering, inner to outer: sonar_jira -> tools -> pipeline -> cli
FORBIDDEN_IMPORTS = {
    "sonar_jira": ("tools", "pipeline", "cli", "sync_cli"),
    "tools": ("pipeline", "cli", "sync_cli"),
    "pipeline": ("cli", "sync_cli"),
}

# The contract package does no network I/O.
HTTP_LIBRARIES = ("requests", "urllib3", "tenacity")


def source_files(package: str) -> Iterator[Path]:
    for path in sorted((REPO_ROOT / package).rglob("*.py")):
        if "__pycache__" in path.parts or any(part.startswith(".") for part in path.parts):
            continue
        yield path


def absolute_import_roots(path: Path) -> Set[Tuple[str, str]]:
    """(root package, full module name) for every absolute import in ``path``."""
    tree = ast.parse(path.read_text(encoding="utf-8", errors="ignore"), filename=str(path))
    found: Set[Tuple[str, str]] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.update((a.name.partition(".")[0], a.name) for a in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            found.add((node.module.partition(".")[0], node.module))
    return found


def violations(package: str, forbidden: Tuple[str, ...]) -> List[str]:
    problems: List[str] = []
    for path in source_files(package):
        bad = sorted(name for root, name in absolute_import_roots(path) if root in forbidden)
        if bad:
            problems.append(f"{path.relative_to(REPO_ROOT)} -> {', '.join(bad)}")
    return problems


class TestDependencyBoundaries(unittest.TestCase):
    def test_layers_only_import_inward(self) -> None:
        for package, forbidden in FORBIDDEN_IMPORTS.items():
            with self.subTest(package=package):
                self.assertTrue((REPO_ROOT / package).is_dir(), f"missing package dir: {package}")
                problems = violations(package, forbidden)
                self.assertEqual(problems, [], "imports against the layering:\n" + "\n".join(problems))

    def test_contract_package_has_no_http_client(self) -> None:
        problems = violations("sonar_jira", HTTP_LIBRARIES)
        self.assertEqual(problems, [], "\n".join(problems))


if __name__ == "__main__":
    unittest.main()
