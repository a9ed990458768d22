"""
Git repository fixtures for testing.

Provides a factory for the canonical services repository and helpers that
act on a user's working clone the way an editor would.
"""

import json
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

SERVICES: List[Dict] = [
    {
        "id": 42,
        "name": "Calendar",
        "serviceId": "https://calendar.example.com/**",
        "contacts": [{"name": "Bob Builder", "email": "b@x.com"}],
        "environments": ["dev"],
    },
    {
        "id": 7,
        "name": "Mail",
        "serviceId": "https://mail.example.com/**",
        "contacts": [{"name": "Alice Liddell", "email": "alice@example.com"}],
    },
]


def git(path: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=path, check=True, capture_output=True, text=True)
    return result.stdout.strip()


class ServiceRepositoryFactory:
    """Factory for creating test service repositories."""

    @staticmethod
    def create_master_repo(path: Path, services: Optional[List[Dict]] = None) -> Path:
        """Create a non-bare repository on ``master`` holding service definitions."""
        path.mkdir(parents=True, exist_ok=True)

        subprocess.run(["git", "init"], cwd=path, check=True, capture_output=True)
        git(path, "symbolic-ref", "HEAD", "refs/heads/master")
        git(path, "config", "user.name", "Test User")
        git(path, "config", "user.email", "test@example.com")

        (path / "services").mkdir()
        for service in services if services is not None else SERVICES:
            (path / "services" / f"{service['id']}.json").write_text(json.dumps(service, indent=2))
        (path / "services" / "ordering.json").write_text("[42, 7]")
        (path / "README.md").write_text("# Service registry")

        git(path, "add", "--all")
        git(path, "commit", "-m", "Initial services")
        return path

    @staticmethod
    def head(path: Path, ref: str = "HEAD") -> str:
        return git(path, "rev-parse", ref)

    @staticmethod
    def branches(path: Path) -> List[str]:
        output = git(path, "for-each-ref", "--format=%(refname)", "refs/heads")
        return output.splitlines()

    @staticmethod
    def note(path: Path, ref: str) -> str:
        return git(path, "notes", "--ref", "refs/notes/commits", "show", ref)


def write_user_file(repo_path: Path, relative: str, content: str) -> Path:
    """Change a file in a user's working clone without committing it."""
    target = repo_path / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    return target
