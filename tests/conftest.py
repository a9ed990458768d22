"""
Global pytest configuration and fixtures.

Every test gets its own canonical repository, user repository root and
submission queue under ``tmp_path``; nothing touches the real environment.
"""

import itertools
import os
from pathlib import Path
from typing import Callable

import pytest

from fixtures.git_repos import ServiceRepositoryFactory
from mgmt_workflow.configuration import ManagementConfig, load_config
from mgmt_workflow.git import RepositoryFactory
from mgmt_workflow.models import UserProfile
from mgmt_workflow.notifications import LogNotifier
from mgmt_workflow.registry import RepositoryServiceRegistry
from mgmt_workflow.submissions import SubmissionQueue


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep MGMT_* variables from the invoking shell out of every test."""
    for name in list(os.environ):
        if name.upper().startswith("MGMT_"):
            monkeypatch.delenv(name)


@pytest.fixture
def master_repo(tmp_path: Path) -> Path:
    """Canonical services repository with two published services."""
    return ServiceRepositoryFactory.create_master_repo(tmp_path / "services-repo")


@pytest.fixture
def config(tmp_path: Path, master_repo: Path) -> ManagementConfig:
    return load_config(
        submissions_dir=tmp_path / "submissions",
        master_repository=master_repo,
        user_repositories_dir=tmp_path / "user-repos",
        mail_enabled=True,
        operation_timeout_seconds=5,
    )


@pytest.fixture
def quiet_config(config: ManagementConfig) -> ManagementConfig:
    """Same layout with notifications switched off."""
    return config.model_copy(update={"mail_enabled": False})


@pytest.fixture
def factory(config: ManagementConfig) -> RepositoryFactory:
    return RepositoryFactory(config)


@pytest.fixture
def notifier(config: ManagementConfig) -> LogNotifier:
    return LogNotifier(config)


@pytest.fixture
def queue(config: ManagementConfig) -> SubmissionQueue:
    return SubmissionQueue(config.submissions_dir)


@pytest.fixture
def registry(factory: RepositoryFactory) -> RepositoryServiceRegistry:
    return RepositoryServiceRegistry(factory)


@pytest.fixture
def clock() -> Callable[[], str]:
    """Deterministic, strictly increasing timestamps."""
    counter = itertools.count(1)
    return lambda: f"20240101120000{next(counter):06d}"


@pytest.fixture
def alice() -> UserProfile:
    return UserProfile(id="alice", email="alice@example.com", first_name="Alice", family_name="Liddell")


@pytest.fixture
def bob() -> UserProfile:
    return UserProfile(id="bob", email="b@x.com", first_name="Bob", family_name="Builder")


@pytest.fixture
def user_clone(factory: RepositoryFactory) -> Callable[[UserProfile], Path]:
    """Make sure a user's working clone exists and return its path."""

    def clone(user: UserProfile) -> Path:
        with factory.for_user(user):
            pass
        return factory.user_path(user)

    return clone
