"""Submitting a user's working changes for review"""

import logging
from dataclasses import dataclass
from typing import Callable, List

from ..configuration import ManagementConfig
from ..error_handling import NothingToSubmit, WorkflowError
from ..git import MASTER_BRANCH, UPSTREAM_MASTER, RepositoryFactory
from ..logging_config import context_logger
from ..models import ReviewSummary, UserProfile
from ..notifications import Notifier, notify
from ..submissions import timestamp
from .reviews import review_units_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    branch: str
    title: str
    review_unit: str
    source_commit: str
    review_commit: str


class SubmissionWorkflow:
    """Turns a user's working changes into a review unit on the canonical repository."""

    def __init__(
        self,
        factory: RepositoryFactory,
        config: ManagementConfig,
        notifier: Notifier,
        clock: Callable[[], str] = timestamp,
    ):
        self.factory = factory
        self.config = config
        self.notifier = notifier
        self.clock = clock

    def submit_for_review(self, user: UserProfile, message: str) -> SubmissionResult:
        """
        Commit the user's working changes and open a review unit for them.

        The commit lands on the user's ``master``; a ``submit-<timestamp>`` branch
        is started from ``origin/master``, the commit is cherry-picked onto it and
        committed again, and that commit is published as ``<user id>_<timestamp>``.
        The cherry-pick keeps the user's side of any conflict with an earlier,
        unmerged submission.

        The user's repository is left on ``master``, also when publishing fails;
        the local commit on ``master`` is kept in that case.
        """
        with self.factory.for_user(user) as repo:
            if repo.is_undefined():
                raise NothingToSubmit()

            stamp = self.clock()
            branch_name = f"submit-{stamp}"
            title = f"{user.id}_{stamp}"
            log = context_logger(logger, user_id=user.id, branch=branch_name)

            repo.stage_all_changes()
            source = repo.commit(user, message)
            repo.create_branch(branch_name, UPSTREAM_MASTER)
            try:
                repo.cherry_pick(source)
                review = repo.commit(user, message)
                unit = repo.create_review_unit(review, title, source_commit=source)
            except WorkflowError:
                log.warning(f"Abandoning {branch_name}, returning {user.id} to {MASTER_BRANCH}")
                repo.discard_changes()
                repo.checkout(MASTER_BRANCH)
                raise
            repo.checkout(MASTER_BRANCH)

        log.info(f"{user.id} submitted {title} from {source[:8]}")
        notify(self.notifier, self.config.notifications.delegated_submit, user.email, title)
        return SubmissionResult(
            branch=branch_name,
            title=title,
            review_unit=unit,
            source_commit=source,
            review_commit=review,
        )

    def list_review_units(self, user: UserProfile) -> List[ReviewSummary]:
        return review_units_for(self.factory, user)
