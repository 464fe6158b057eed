"""BaseViewModel: shared lifecycle for the admin-screen view models.

A view model is created when its view mounts and disposed when it unmounts.
Event-bus subscriptions made through :meth:`subscribe_event` are cancelled by
:meth:`dispose`; errors are routed through :meth:`report_error`.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from useradmin.errors import SessionExpiredError, TransportError, ValidationError
from useradmin.errors.handler import ErrorHandler, ErrorSeverity
from useradmin.events.admin_events import SessionExpiredEvent
from useradmin.events.bus import EventBus, Subscription
from useradmin.events.domain_events import DomainEvent
from useradmin.gui.viewmodels.signal import Signal


class BaseViewModel:
    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self._event_bus = event_bus
        self._error_handler = error_handler
        self._subscriptions: list[Subscription] = []
        self._logger = logging.getLogger(type(self).__module__)
        self.disposed = False

        self.error_occurred = Signal()
        self.notification = Signal()  # emits (message, level)
        self.session_expired = Signal()

    def subscribe_event(
        self,
        event_bus: EventBus,
        event_type: Type,
        handler: Callable,
    ) -> Subscription:
        """Subscribe to an event type and track the subscription."""
        sub = event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def publish(self, event) -> None:
        if self._event_bus is None:
            return
        if isinstance(event, DomainEvent):
            event = event.stamped(type(self).__name__)
        self._event_bus.publish(event)

    def notify(self, message: str, level: str = "info") -> None:
        self.notification.emit(message, level)

    def report_error(self, error: Exception, prefix: str = "") -> None:
        """Surface *error* to the UI; a session expiry triggers the logout flow."""
        message = f"{prefix}{error}" if prefix else str(error)
        if self._error_handler is not None:
            self._error_handler.handle(error, ErrorSeverity.ERROR, {"detail": message})
        else:
            self._logger.error("%s", message)
        if isinstance(error, SessionExpiredError):
            if self._error_handler is None:
                self.publish(SessionExpiredEvent(reason=str(error)))
            self.session_expired.emit(str(error))
            return
        self.error_occurred.emit(message)

    async def attempt(self, awaitable: Awaitable[Any], prefix: str = "") -> Tuple[bool, Any]:
        """Await a service call; report validation and transport failures.

        Returns ``(True, result)`` on success and ``(False, None)`` otherwise.
        Prior view state is left untouched on failure.
        """
        try:
            return True, await awaitable
        except (ValidationError, TransportError) as exc:
            self.report_error(exc, prefix)
            return False, None

    def dispose(self) -> None:
        """Cancel all tracked event subscriptions."""
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        self.disposed = True
