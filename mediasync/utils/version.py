"""Version and build metadata helpers."""

from pathlib import Path

import tomlkit

__all__ = ["get_docker_status", "get_git_hash", "get_pyproject_version"]

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def get_pyproject_version() -> str:
    """Get MediaSync's version from the pyproject.toml file.

    Returns:
        str: The declared project version, or "unknown" if unavailable
    """
    toml_file = PROJECT_ROOT / "pyproject.toml"
    if not toml_file.is_file():
        return "unknown"

    with toml_file.open("r", encoding="utf-8") as f:
        toml_data = tomlkit.load(f)

    project = toml_data.get("project", {})
    return str(project.get("version", "unknown"))


def get_git_hash() -> str:
    """Get the commit hash of the checked out branch.

    Returns:
        str: The current commit hash, or "unknown" outside of a git checkout
    """
    git_dir = PROJECT_ROOT / ".git"
    try:
        head = (git_dir / "HEAD").read_text(encoding="utf-8").strip()
        if not head.startswith("ref: refs/heads/"):
            return "unknown"

        ref_path = git_dir / head.removeprefix("ref: ")
        if not ref_path.is_file():
            return "unknown"
        return ref_path.read_text(encoding="utf-8").strip()
    except OSError:
        return "unknown"


def get_docker_status() -> bool:
    """Check if MediaSync is running inside a Docker container.

    Returns:
        bool: True if running inside a Docker container, False otherwise
    """
    return Path("/.dockerenv").is_file()
