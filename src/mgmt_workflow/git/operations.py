"""Git operations used by the submission workflow"""

import logging
from datetime import datetime
from typing import Iterator, Optional

from git import Actor, GitCommandError, Repo
from git.refs import Head, RemoteReference

from ..models import BranchRef, UserProfile

logger = logging.getLogger(__name__)

SUBMISSION_REF_PREFIX = "refs/submissions/"
NOTES_REF = "refs/notes/commits"


def actor_for(user: UserProfile) -> Actor:
    """Build the git identity of a user profile."""
    return Actor(user.display_name or user.id, user.email)


def identity_env(actor: Actor) -> dict[str, str]:
    """Environment that makes CLI git commands act as ``actor``."""
    return {
        "GIT_AUTHOR_NAME": actor.name,
        "GIT_AUTHOR_EMAIL": actor.email,
        "GIT_COMMITTER_NAME": actor.name,
        "GIT_COMMITTER_EMAIL": actor.email,
    }


def git_has_working_changes(repo: Repo) -> bool:
    """True when the working tree or index differs from HEAD, untracked files included"""
    return repo.is_dirty(index=True, working_tree=True, untracked_files=True)


def git_is_ahead_of(repo: Repo, upstream: str, timeout: Optional[float] = None) -> bool:
    """True when HEAD carries commits that ``upstream`` does not"""
    try:
        upstream_sha = repo.git.rev_parse("--verify", upstream, kill_after_timeout=timeout)
    except GitCommandError:
        # No upstream to compare with, everything local is ahead
        return repo.head.is_valid()
    count = repo.git.rev_list("--count", f"{upstream_sha}..HEAD", kill_after_timeout=timeout)
    return int(count.strip() or 0) > 0


def git_add_all(repo: Repo, timeout: Optional[float] = None) -> None:
    """Stage every working tree change, deletions and untracked files included"""
    repo.git.add("--all", kill_after_timeout=timeout)


def git_commit(repo: Repo, author: Actor, message: str) -> str:
    """Commit the index as ``author`` and return the new commit sha"""
    commit = repo.index.commit(message, author=author, committer=author)
    logger.info(f"Created commit {commit.hexsha[:8]} by {author.email}: {message!r}")
    return commit.hexsha


def git_create_branch(
    repo: Repo, branch_name: str, start_point: str, timeout: Optional[float] = None
) -> None:
    """Create ``branch_name`` at ``start_point`` and switch to it"""
    repo.git.checkout("-b", branch_name, start_point, kill_after_timeout=timeout)
    logger.info(f"Created branch {branch_name} from {start_point}")


def git_checkout(repo: Repo, branch_name: str, timeout: Optional[float] = None) -> None:
    """Switch to an existing branch"""
    repo.git.checkout(branch_name, kill_after_timeout=timeout)
    logger.debug(f"Switched to branch {branch_name}")


def git_cherry_pick(repo: Repo, commit_hash: str, timeout: Optional[float] = None) -> None:
    """Apply ``commit_hash`` to the index and working tree without committing.

    Conflicting hunks are resolved in favour of ``commit_hash``.
    """
    repo.git.cherry_pick("--no-commit", "--strategy-option=theirs", commit_hash, kill_after_timeout=timeout)
    logger.info(f"Cherry-picked {commit_hash[:8]} onto {repo.active_branch.name}")


def git_reset_hard(repo: Repo, commit_hash: str, timeout: Optional[float] = None) -> None:
    """Move the current branch to ``commit_hash``, discarding later history and changes"""
    repo.git.reset("--hard", commit_hash, kill_after_timeout=timeout)
    logger.info(f"Reset {repo.active_branch.name} to {commit_hash[:8]}")


def git_discard_changes(repo: Repo, timeout: Optional[float] = None) -> None:
    """Drop index and working tree changes, including an interrupted cherry-pick"""
    repo.git.reset("--hard", "HEAD", kill_after_timeout=timeout)
    logger.info(f"Discarded local changes in {repo.working_dir}")


def git_push_ref(
    repo: Repo,
    commit_hash: str,
    ref: str,
    remote: str = "origin",
    timeout: Optional[float] = None,
) -> None:
    """Publish ``commit_hash`` as ``ref`` on ``remote``"""
    repo.git.push(remote, f"{commit_hash}:{ref}", kill_after_timeout=timeout)
    logger.info(f"Pushed {commit_hash[:8]} to {remote} as {ref}")


def git_update_ref(repo: Repo, ref: str, commit_hash: str, timeout: Optional[float] = None) -> None:
    repo.git.update_ref(ref, commit_hash, kill_after_timeout=timeout)


def git_resolve(repo: Repo, revision: str, timeout: Optional[float] = None) -> Optional[str]:
    """Resolve a revision to a commit sha, or None when it does not exist"""
    try:
        return repo.git.rev_parse("--verify", "--quiet", f"{revision}^{{commit}}", kill_after_timeout=timeout)
    except GitCommandError:
        return None


def git_notes_show(repo: Repo, commit_hash: str, timeout: Optional[float] = None) -> Optional[str]:
    """Return the note attached to ``commit_hash``, or None"""
    try:
        return repo.git.notes("--ref", NOTES_REF, "show", commit_hash, kill_after_timeout=timeout)
    except GitCommandError:
        return None


def git_notes_append(
    repo: Repo,
    commit_hash: str,
    message: str,
    actor: Actor,
    timeout: Optional[float] = None,
) -> None:
    """Append ``message`` to the note on ``commit_hash``, creating it if needed"""
    repo.git.notes(
        "--ref",
        NOTES_REF,
        "append",
        "-m",
        message,
        commit_hash,
        env=identity_env(actor),
        kill_after_timeout=timeout,
    )
    logger.info(f"Annotated {commit_hash[:8]}: {message!r}")


def git_branches(repo: Repo) -> Iterator[BranchRef]:
    """Lazily enumerate local and remote-tracking branches"""
    for ref in repo.references:
        if not isinstance(ref, (Head, RemoteReference)):
            continue
        if ref.path.endswith("/HEAD"):
            continue
        yield BranchRef(name=ref.path, commit=ref.commit.hexsha)


def git_tree_files(repo: Repo, revision: str, suffix: str) -> Iterator[tuple[str, bytes]]:
    """Yield ``(path, content)`` for every blob under ``revision`` ending in ``suffix``"""
    tree = repo.commit(revision).tree
    for item in tree.traverse():
        if item.type == "blob" and item.path.endswith(suffix):
            yield item.path, item.data_stream.read()


def commit_time(repo: Repo, commit_hash: str) -> str:
    return datetime.fromtimestamp(repo.commit(commit_hash).committed_date).isoformat()
