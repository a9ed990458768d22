"""Queued (non-versioned) registration requests: submit, edit, remove, cancel, promote"""

import logging
from typing import Callable, List, Union

from ..configuration import ManagementConfig, NotificationTemplate
from ..error_handling import AccessDenied, NotFound
from ..logging_config import context_logger
from ..models import PendingSubmission, RegisteredService, SubmissionKind, UserProfile
from ..notifications import Notifier, notify
from ..registry import ServiceRegistry
from ..submissions import SubmissionQueue, record_name, timestamp

logger = logging.getLogger(__name__)


def parse_service_id(value: Union[str, int]) -> Union[int, None]:
    """Return ``value`` as a service id, or None unless it is a plain run of ASCII digits."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


class RegistrationController:
    """
    Handles registration requests from non-administrators.

    Every request becomes a file in the submission queue, attributed to the
    requesting user, and triggers a notification when mail is configured.
    """

    def __init__(
        self,
        queue: SubmissionQueue,
        registry: ServiceRegistry,
        config: ManagementConfig,
        notifier: Notifier,
        clock: Callable[[], str] = timestamp,
    ):
        self.queue = queue
        self.registry = registry
        self.config = config
        self.notifier = notifier
        self.clock = clock

    def submit_new(self, user: UserProfile, service: RegisteredService) -> str:
        record_id = service.id if service.id > 0 else self.clock()
        filename = record_name(SubmissionKind.SUBMIT, record_id)
        self.queue.write(filename, service, user, exclusive=True)
        self._notify(user, self.config.notifications.submit, service)
        return filename

    def save_edit(self, user: UserProfile, service_id: Union[str, int], service: RegisteredService) -> str:
        """
        Queue an edit of a published service, or overwrite a pending request.

        A numeric ``service_id`` writes ``edit-<id>.json``; anything else is taken
        as the name of an existing pending request, which is replaced.
        """
        numeric = parse_service_id(service_id)
        if numeric is not None:
            filename = record_name(SubmissionKind.EDIT, numeric)
        else:
            filename = str(service_id)
            if not self.queue.exists(filename):
                raise NotFound(f"No pending request named {filename}")
        self.queue.write(filename, service, user)
        self._notify(user, self.config.notifications.change, service)
        return filename

    def request_removal(self, user: UserProfile, service_id: int) -> str:
        service = self.registry.find_by_id(service_id)
        filename = record_name(SubmissionKind.REMOVE, service.id)
        self.queue.write(filename, service, user, exclusive=True)
        self._notify(user, self.config.notifications.remove, service)
        return filename

    def fetch_owned(self, user: UserProfile, service_id: int) -> RegisteredService:
        service = self.registry.find_by_id(service_id)
        if not service.is_owned_by(user.email):
            raise AccessDenied("You do not own this service.")
        return service

    def cancel(self, user: UserProfile, filename: str) -> None:
        """Delete a pending request; only its original submitter may do so."""
        if not self.queue.exists(filename):
            raise NotFound(f"No pending request named {filename}")
        author = self.queue.author(filename)
        if not author.is_known or author.email != user.email:
            raise AccessDenied("You are not the original submitter of the request")
        self.queue.delete(filename)
        context_logger(logger, user_id=user.id, filename=filename).info(f"{user.id} cancelled {filename}")

    def promote(self, user: UserProfile, service_id: int) -> str:
        service = self.registry.find_by_id(service_id)
        published = service.model_copy(update={"environments": None})
        return self.save_edit(user, str(service_id), published)

    def pending_for(self, user: UserProfile) -> List[PendingSubmission]:
        return self.queue.entries(owner=user.email)

    def _notify(self, user: UserProfile, template: NotificationTemplate, service: RegisteredService) -> None:
        notify(self.notifier, template, user.email, service.name)
