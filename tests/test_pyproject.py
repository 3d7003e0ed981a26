"""Basic pytest smoke tests for MediaSync packaging metadata."""

import re
import tomllib
from pathlib import Path

SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+(?:[+-][0-9A-Za-z-.]+)?$")


def _pyproject() -> dict:
    pyproject_path = Path("pyproject.toml")
    assert pyproject_path.exists(), "pyproject.toml should exist at the project root"
    with pyproject_path.open("rb") as f:
        return tomllib.load(f)


def test_project_metadata() -> None:
    """Ensure core project metadata is present and well-formed."""
    project = _pyproject().get("project")
    assert isinstance(project, dict), "[project] table must exist in pyproject.toml"

    assert project.get("name") == "MediaSync"

    version = project.get("version")
    assert isinstance(version, str) and SEMVER_PATTERN.fullmatch(version), (
        "Version must follow semantic versioning"
    )


def test_runtime_dependencies_are_declared() -> None:
    """Every third-party runtime import is listed as a dependency."""
    dependencies = _pyproject()["project"]["dependencies"]
    names = {re.split(r"[<>=\[ ]", dep, maxsplit=1)[0].lower() for dep in dependencies}

    assert {
        "aiohttp",
        "alembic",
        "colorama",
        "fastapi",
        "pydantic",
        "pydantic-settings",
        "sqlalchemy",
        "tzlocal",
        "uvicorn",
    } <= names
