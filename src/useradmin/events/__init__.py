from .bus import Event, EventBus, Subscription
from .domain_events import DomainEvent
from .admin_events import (
    BulkOperationCompletedEvent,
    SessionExpiredEvent,
    UserSavedEvent,
    UsersDeletedEvent,
    UsersLoadedEvent,
)

__all__ = [
    "BulkOperationCompletedEvent",
    "DomainEvent",
    "Event",
    "EventBus",
    "SessionExpiredEvent",
    "Subscription",
    "UserSavedEvent",
    "UsersDeletedEvent",
    "UsersLoadedEvent",
]
