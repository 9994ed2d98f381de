"""
Notifier — user-facing notifications for report workflows.

Each notification has a short title, a description, and a variant
("default" or "destructive"). The default implementation writes them to the
log; embedding applications can subclass Notifier to surface them elsewhere.
"""
import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT


class Notifier:
    """Logs notifications. Destructive ones are logged at error level."""

    def notify(self, title: str, description: str, variant: str = DEFAULT) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        if variant == DESTRUCTIVE:
            logger.error(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")
        return notification


class RecordingNotifier(Notifier):
    """Keeps every notification in memory, in order."""

    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def notify(self, title: str, description: str, variant: str = DEFAULT) -> Notification:
        notification = super().notify(title, description, variant)
        self.notifications.append(notification)
        return notification

    @property
    def titles(self) -> List[str]:
        return [n.title for n in self.notifications]
