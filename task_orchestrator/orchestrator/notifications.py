"""Observer registration for progress and lifecycle notifications."""

from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from ..models.events import Notification
from ..utils.logging import get_logger


Subscriber = Callable[[Notification], None]


class NotificationChannel:
    """Delivers typed notifications to registered subscribers.

    Subscribers are called synchronously in registration order. A subscriber
    that raises is logged and skipped; delivery to the others continues.
    """

    def __init__(self):
        """Initialize notification channel."""
        self.logger = get_logger("notifications")
        self._subscriptions: List[Tuple[Subscriber, Optional[FrozenSet[str]]]] = []

    def subscribe(
        self,
        callback: Subscriber,
        event_types: Optional[Iterable[str]] = None
    ) -> Callable[[], None]:
        """Register a subscriber.

        Args:
            callback: Called with each matching notification
            event_types: Restrict delivery to these ``event_type`` values

        Returns:
            A function that removes the subscription
        """
        wanted = frozenset(event_types) if event_types is not None else None
        self._subscriptions.append((callback, wanted))

        def unsubscribe():
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber) -> bool:
        """Remove a subscriber; returns False if it was not registered."""
        for index, (registered, _) in enumerate(self._subscriptions):
            if registered == callback:
                del self._subscriptions[index]
                return True
        return False

    def emit(self, event: Notification):
        """Deliver a notification to every matching subscriber."""
        for callback, wanted in list(self._subscriptions):
            if wanted is not None and event.event_type not in wanted:
                continue
            try:
                callback(event)
            except Exception as e:
                self.logger.error(
                    f"Subscriber {getattr(callback, '__name__', callback)!r} failed on "
                    f"{event.event_type}: {e}",
                    exc_info=True
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
