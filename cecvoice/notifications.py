"""
User-facing notifications raised by the voice controllers.
"""

from typing import Callable, List, NamedTuple, Optional

from cecvoice.debug import debug_log

VARIANTS = ["default", "destructive", "success"]


class Notification(NamedTuple):
    title: str
    description: str
    variant: str = "default"


class Notifier:
    """Collects notifications and forwards them to an optional listener."""

    def __init__(self, listener: Optional[Callable[[Notification], None]] = None):
        self.listener = listener
        self.history: List[Notification] = []

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        """
        Raise a notification.

        Args:
            title: Short heading
            description: Message shown to the user
            variant: One of "default", "destructive" or "success"

        Returns:
            The recorded notification
        """
        if variant not in VARIANTS:
            raise ValueError(f"Unknown notification variant: {variant}")

        notification = Notification(title, description, variant)
        self.history.append(notification)
        debug_log(f"[{variant}] {title}: {description}")
        if self.listener:
            self.listener(notification)
        return notification

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None
