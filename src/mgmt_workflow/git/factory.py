"""Opens per-user and canonical repository handles"""

import logging
import re
import threading
from pathlib import Path
from typing import Dict

from git import GitCommandError, Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from ..configuration import ManagementConfig
from ..error_handling import InvalidRequest, RepositoryUnavailable
from ..models import UserProfile
from .repository import RepositoryHandle, RepositoryKind

logger = logging.getLogger(__name__)

SAFE_USER_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._@+-]*$")

_locks: Dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def repository_lock(path: Path) -> threading.RLock:
    """One lock per repository path, shared by every handle in the process."""
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


class RepositoryFactory:
    """Creates scoped handles on the canonical repository and on users' clones."""

    def __init__(self, config: ManagementConfig):
        self.config = config

    @property
    def timeout(self) -> float:
        return self.config.operation_timeout_seconds

    def user_path(self, user: UserProfile) -> Path:
        if not SAFE_USER_ID.match(user.id) or ".." in user.id:
            raise InvalidRequest(f"User id {user.id!r} can not name a repository")
        return self.config.user_repositories_dir / user.id

    def for_user(self, user: UserProfile) -> RepositoryHandle:
        """Open the user's working repository, cloning the canonical one on first use."""
        path = self.user_path(user)
        lock = self._acquire(path)
        try:
            if not (path / ".git").exists():
                repo = self._clone(path)
            else:
                repo = self._open(path)
        except BaseException:
            lock.release()
            raise
        logger.debug(f"Opened repository of {user.id} at {path}")
        return RepositoryHandle(repo, RepositoryKind.USER, lock, self.timeout)

    def master(self) -> RepositoryHandle:
        path = self.config.master_repository
        lock = self._acquire(path)
        try:
            repo = self._open(path)
        except BaseException:
            lock.release()
            raise
        return RepositoryHandle(repo, RepositoryKind.MASTER, lock, self.timeout)

    def _acquire(self, path: Path) -> threading.RLock:
        lock = repository_lock(path)
        if not lock.acquire(timeout=self.timeout):
            raise RepositoryUnavailable(f"Timed out waiting for repository {path}")
        return lock

    def _open(self, path: Path) -> Repo:
        try:
            return Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryUnavailable(f"No repository at {path}") from e

    def _clone(self, path: Path) -> Repo:
        master = self.config.master_repository
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            repo = Repo.clone_from(str(master), str(path))
        except (GitCommandError, OSError) as e:
            raise RepositoryUnavailable(f"Could not create repository at {path}: {e}") from e
        logger.info(f"Cloned {master} into {path}")
        return repo
