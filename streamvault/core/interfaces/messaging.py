"""
Messaging interfaces for the event bus.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Union

from ..domain.events import Event, EventPriority


class IEventBus(ABC):
    """Interface for event bus implementations."""

    @abstractmethod
    async def publish(self, event: Union[Event, str], data: Any = None,
                      priority: EventPriority = EventPriority.NORMAL,
                      correlation_id: Optional[str] = None) -> str:
        """
        Publish an event to the event bus.

        Args:
            event: Event object or event name string
            data: Event data (if event is a string)
            priority: Event priority (if event is a string)
            correlation_id: Correlation id (if event is a string)

        Returns:
            Event ID for tracking
        """
        pass

    @abstractmethod
    async def subscribe(self, event_name: str, handler: Callable[[Event], Any],
                        priority: EventPriority = EventPriority.NORMAL) -> str:
        """
        Subscribe to events with the given name.

        Args:
            event_name: Name of events to subscribe to (supports wildcards)
            handler: Sync or async function to handle events
            priority: Handler priority for ordering

        Returns:
            Subscription ID for unsubscribing
        """
        pass

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe from events using subscription ID."""
        pass

    @abstractmethod
    async def get_metrics(self) -> Dict[str, Any]:
        """Get event bus metrics."""
        pass

    @abstractmethod
    async def wait_until_idle(self) -> None:
        """Wait until every published event has been dispatched."""
        pass
