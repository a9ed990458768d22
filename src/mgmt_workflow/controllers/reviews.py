"""Listing and reverting review units"""

import logging
from typing import List

from ..configuration import ManagementConfig
from ..error_handling import NothingToRevert
from ..git import MASTER_BRANCH, UPSTREAM_MASTER, RepositoryFactory, unit_title
from ..logging_config import context_logger
from ..models import ReviewStatus, ReviewSummary, UserProfile
from ..notifications import Notifier, notify

logger = logging.getLogger(__name__)


def owner_marker(user: UserProfile) -> str:
    return f"/{user.id}_"


def review_units_for(factory: RepositoryFactory, user: UserProfile) -> List[ReviewSummary]:
    """
    Review units submitted by ``user``, in branch enumeration order.

    Units are recognised by ``/<user id>_`` in the branch name, so an id that is
    a prefix of another user's id followed by ``_`` also matches.
    """
    marker = owner_marker(user)
    with factory.master() as master:
        return [
            master.summarize(branch)
            for branch in master.list_branches()
            if marker in branch.name
        ]


class ReviewController:
    def __init__(self, factory: RepositoryFactory, config: ManagementConfig, notifier: Notifier):
        self.factory = factory
        self.config = config
        self.notifier = notifier

    def list_review_units(self, user: UserProfile) -> List[ReviewSummary]:
        return review_units_for(self.factory, user)

    def list_outstanding(self, user: UserProfile) -> List[ReviewSummary]:
        return [s for s in self.list_review_units(user) if s.status == ReviewStatus.OPEN]

    def revert_submission(self, user: UserProfile, branch: str) -> str:
        """
        Rewind the user's branch to just before ``branch`` was submitted, then
        flag the review unit as reverted in the canonical repository.

        The two steps use two repositories without a shared transaction: if the
        second fails, the user's branch is already rewound while the unit still
        reads as open. The submission keeps resolving to the same commit, so a
        repeated revert resets to the same place.

        Submissions are made from ``master``, so that is the branch rewound,
        whatever branch the user's repository happens to be on.

        Returns the commit the user's ``master`` now points at.
        """
        log = context_logger(logger, user_id=user.id, branch=branch)
        with self.factory.for_user(user) as repo:
            if repo.is_undefined(against=UPSTREAM_MASTER):
                raise NothingToRevert()
            target = repo.find_commit_before_submission(branch)
            if repo.active_branch != MASTER_BRANCH:
                log.warning(f"{user.id} is on {repo.active_branch}, switching to {MASTER_BRANCH}")
                repo.discard_changes()
                repo.checkout(MASTER_BRANCH)
            repo.reset(target)

        log.info(f"Rewound {user.id} to {target[:8]} before {branch}")

        with self.factory.master() as master:
            master.mark_reverted(branch, user)

        notify(self.notifier, self.config.notifications.revert, user.email, unit_title(branch))
        return target
