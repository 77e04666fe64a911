from __future__ import annotations

import ast
import re
import sys
import tomllib
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
LOCAL_MODULES = {"nodepulse_core", "nodepulse_api", "scripts"}
# Import name -> distribution name where the two differ.
DISTRIBUTION_NAMES = {"dotenv": "python-dotenv", "prometheus_client": "prometheus-client"}


def _pyproject() -> dict:
    return tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))


def _imported_top_level_modules() -> set[str]:
    names: set[str] = set()
    for path in [*(ROOT / "src").rglob("*.py"), *(ROOT / "scripts").glob("*.py")]:
        tree = ast.parse(path.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                names.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                names.add(node.module.split(".")[0])
    return names - LOCAL_MODULES - set(sys.stdlib_module_names) - {"__future__"}


def test_dev_optional_dependency_group_exists() -> None:
    optional = _pyproject()["project"]["optional-dependencies"]
    assert "dev" in optional
    dev_group = " ".join(optional["dev"])
    assert "pytest" in dev_group
    assert "httpx" in dev_group


def test_dashboard_template_is_packaged() -> None:
    package_data = _pyproject()["tool"]["setuptools"]["package-data"]
    assert "templates/*.html" in package_data["nodepulse_api"]


def test_every_imported_library_is_declared() -> None:
    declared = {
        re.split(r"[<>=!~\[ ]", requirement, maxsplit=1)[0].lower()
        for requirement in _pyproject()["project"]["dependencies"]
    }
    imported = _imported_top_level_modules()
    assert "starlette" in imported
    missing = {DISTRIBUTION_NAMES.get(name, name) for name in imported} - declared
    assert missing == set()
