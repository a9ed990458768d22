"""Notification collaborators used when a submission changes state"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Protocol, Sequence

from .configuration import ManagementConfig, NotificationTemplate

logger = logging.getLogger(__name__)


@dataclass
class SentNotification:
    recipient: str
    subject: str
    text: str
    sent_at: datetime = field(default_factory=datetime.now)


class Notifier(Protocol):
    """Protocol for components that deliver workflow notifications."""

    def is_configured(self) -> bool:
        """True when notifications can be delivered."""
        ...

    def send(self, template: NotificationTemplate, recipient: str, body_args: Sequence[Any]) -> None:
        """Render ``template`` with ``body_args`` and deliver it to ``recipient``."""
        ...


class LogNotifier:
    """
    Default notifier: renders each message, keeps it in memory and logs it.

    Delivery transports are out of scope for the workflow; this notifier is what
    the workflow talks to when ``mail_enabled`` is set.
    """

    def __init__(self, config: ManagementConfig):
        self.enabled = config.mail_enabled
        self._sent: List[SentNotification] = []
        self._lock = threading.Lock()

    def is_configured(self) -> bool:
        return self.enabled

    def send(self, template: NotificationTemplate, recipient: str, body_args: Sequence[Any]) -> None:
        subject, text = template.render(*body_args)
        notification = SentNotification(recipient=recipient, subject=subject, text=text)
        with self._lock:
            self._sent.append(notification)
        logger.info(f"📧 Notified {recipient}: {subject}")

    @property
    def sent(self) -> List[SentNotification]:
        with self._lock:
            return list(self._sent)


def notify(notifier: Notifier, template: NotificationTemplate, recipient: str, *args: Any) -> bool:
    """Send ``template`` if the notifier is configured; report whether it was sent."""
    if not notifier.is_configured():
        logger.debug(f"Notifications not configured, skipping message to {recipient}")
        return False
    notifier.send(template, recipient, args)
    return True
