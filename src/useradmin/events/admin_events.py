from dataclasses import dataclass, field

from .domain_events import DomainEvent


@dataclass(frozen=True)
class UsersLoadedEvent(DomainEvent):
    user_count: int = 0
    total_count: int = 0
    page: int = 1


@dataclass(frozen=True)
class UserSavedEvent(DomainEvent):
    user_id: str = ""
    created: bool = False
    assigned_store_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class UsersDeletedEvent(DomainEvent):
    user_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BulkOperationCompletedEvent(DomainEvent):
    action: str = ""
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SessionExpiredEvent(DomainEvent):
    reason: str = ""
