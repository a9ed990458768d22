"""Scoped repository handles exposing the workflow's version control primitives"""

import functools
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from git import GitCommandError, Repo
from git.exc import BadName

from ..error_handling import NotFound, RepositoryUnavailable
from ..models import BranchRef, ReviewStatus, ReviewSummary, UserProfile
from . import operations as ops

logger = logging.getLogger(__name__)

T = TypeVar("T")

MASTER_BRANCH = "master"
UPSTREAM_MASTER = "origin/master"


class RepositoryKind(str, Enum):
    USER = "user"
    MASTER = "master"


def git_operation(name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Turn git command failures into RepositoryUnavailable, without retrying."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(self: "RepositoryHandle", *args: Any, **kwargs: Any) -> T:
            self._ensure_open()
            try:
                return cast(T, func(self, *args, **kwargs))
            except (GitCommandError, BadName) as e:
                detail = (getattr(e, "stderr", None) or str(e)).strip()
                logger.error(f"git {name} failed in {self.path}: {detail}")
                raise RepositoryUnavailable(f"Repository operation '{name}' failed: {detail}") from e

        return wrapper

    return decorator


def unit_title(name: str) -> str:
    """Reduce ``refs/heads/alice_1``, ``origin/alice_1`` or ``alice_1`` to ``alice_1``."""
    return name.rstrip("/").rsplit("/", 1)[-1]


class RepositoryHandle:
    """
    An open repository, scoped to one request.

    The handle owns the repository lock from creation until ``close()``; use it
    as a context manager so that the lock is released on every exit path.
    """

    def __init__(
        self,
        repo: Repo,
        kind: RepositoryKind,
        lock: threading.RLock,
        timeout: Optional[float] = None,
    ):
        self.repo = repo
        self.kind = kind
        self.timeout = timeout
        self._lock = lock
        self._closed = False

    @property
    def path(self) -> str:
        return self.repo.working_dir or self.repo.git_dir

    def __enter__(self) -> "RepositoryHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.repo.close()
        finally:
            self._lock.release()
            logger.debug(f"Released {self.kind.value} repository {self.path}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise RepositoryUnavailable(f"Repository handle for {self.path} is closed")

    @git_operation("status")
    def is_undefined(self, against: Optional[str] = None) -> bool:
        """
        True when there is nothing local to act on.

        Without ``against`` only the working tree is inspected. With an upstream
        revision, commits on HEAD that the upstream lacks also count as local work.
        """
        if ops.git_has_working_changes(self.repo):
            return False
        if against is None:
            return True
        return not ops.git_is_ahead_of(self.repo, against, self.timeout)

    @git_operation("add")
    def stage_all_changes(self) -> None:
        ops.git_add_all(self.repo, self.timeout)

    @git_operation("commit")
    def commit(self, author: UserProfile, message: str) -> str:
        return ops.git_commit(self.repo, ops.actor_for(author), message)

    @git_operation("branch")
    def create_branch(self, name: str, start_point: str) -> None:
        ops.git_create_branch(self.repo, name, start_point, self.timeout)

    @git_operation("cherry-pick")
    def cherry_pick(self, commit_id: str) -> None:
        ops.git_cherry_pick(self.repo, commit_id, self.timeout)

    @git_operation("checkout")
    def checkout(self, branch_name: str) -> None:
        ops.git_checkout(self.repo, branch_name, self.timeout)

    @git_operation("reset")
    def reset(self, commit_id: str) -> None:
        ops.git_reset_hard(self.repo, commit_id, self.timeout)

    @git_operation("reset")
    def discard_changes(self) -> None:
        ops.git_discard_changes(self.repo, self.timeout)

    @property
    def active_branch(self) -> Optional[str]:
        """The checked out branch, or None on a detached HEAD."""
        self._ensure_open()
        if self.repo.head.is_detached:
            return None
        return self.repo.active_branch.name

    def list_branches(self) -> Iterator[BranchRef]:
        """Lazily enumerate branches; the iterator is only valid while the handle is open."""
        self._ensure_open()
        try:
            for branch in ops.git_branches(self.repo):
                self._ensure_open()
                yield branch
        except (GitCommandError, BadName, ValueError) as e:
            raise RepositoryUnavailable(f"Could not list branches of {self.path}: {e}") from e

    @git_operation("push")
    def create_review_unit(
        self, commit_id: str, title: str, source_commit: Optional[str] = None
    ) -> str:
        """
        Publish ``commit_id`` to the canonical repository as review unit ``title``.

        The local commit the submission came from (``source_commit``, defaulting
        to ``commit_id``) is remembered so the submission can be reverted later.
        """
        ref = f"refs/heads/{title}"
        ops.git_push_ref(self.repo, commit_id, ref, timeout=self.timeout)
        ops.git_update_ref(
            self.repo, ops.SUBMISSION_REF_PREFIX + title, source_commit or commit_id, self.timeout
        )
        logger.info(f"Opened review unit {title} at {commit_id[:8]}")
        return ref

    @git_operation("notes")
    def mark_reverted(self, review_unit: str, actor: UserProfile) -> None:
        title = unit_title(review_unit)
        tip = ops.git_resolve(self.repo, f"refs/heads/{title}", self.timeout)
        if tip is None:
            raise NotFound(f"Review unit {title} does not exist")
        stamp = datetime.now().isoformat(timespec="seconds")
        ops.git_notes_append(
            self.repo, tip, f"REVERTED by {actor.id} on {stamp}", ops.actor_for(actor), self.timeout
        )

    @git_operation("rev-parse")
    def find_commit_before_submission(self, review_unit: str) -> str:
        """Return the parent of the local commit that produced ``review_unit``."""
        title = unit_title(review_unit)
        source = ops.git_resolve(self.repo, ops.SUBMISSION_REF_PREFIX + title, self.timeout)
        if source is None:
            raise NotFound(f"No submission named {title} in this repository")
        parents = self.repo.commit(source).parents
        if not parents:
            raise NotFound(f"Submission {title} has no preceding commit")
        return parents[0].hexsha

    @git_operation("log")
    def summarize(self, branch: BranchRef) -> ReviewSummary:
        """Describe a review unit branch together with its review status."""
        commit = self.repo.commit(branch.commit)
        note = ops.git_notes_show(self.repo, branch.commit, self.timeout)
        return ReviewSummary(
            name=branch.name,
            title=branch.short_name,
            status=ReviewStatus.from_note(note),
            commit=branch.commit,
            message=commit.message.strip(),
            author=commit.author.email or "",
            committed=ops.commit_time(self.repo, branch.commit),
        )

    def read_files(self, revision: str = MASTER_BRANCH, suffix: str = ".json") -> Iterator[tuple[str, bytes]]:
        self._ensure_open()
        try:
            yield from ops.git_tree_files(self.repo, revision, suffix)
        except (GitCommandError, BadName, ValueError) as e:
            raise RepositoryUnavailable(f"Could not read {revision} of {self.path}: {e}") from e
