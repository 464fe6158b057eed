"""Base class for the admin-screen events published on the ``EventBus``."""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of something that happened to the user list.

    ``source`` names the view model or service that published the event.
    """

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""

    def stamped(self, source: str) -> "DomainEvent":
        """Return this event with *source* filled in, unless it already has one."""
        if self.source:
            return self
        return dataclasses.replace(self, source=source)
