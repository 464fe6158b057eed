import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from useradmin.errors import SessionExpiredError
from useradmin.events.admin_events import SessionExpiredEvent
from useradmin.events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


class ErrorHandler:
    """Central sink for errors surfaced by the view models.

    Logs at the severity's level, publishes ``ErrorOccurredEvent`` and hands
    ERROR/CRITICAL messages to the notification banner callback.  A
    ``SessionExpiredError`` is always escalated to CRITICAL and additionally
    publishes ``SessionExpiredEvent`` so the logout flow can run.
    """

    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._ui_callback = callback

    def handle(self, error: Exception, severity: ErrorSeverity = ErrorSeverity.ERROR, context: dict = None):
        if isinstance(error, SessionExpiredError):
            severity = ErrorSeverity.CRITICAL

        log_method = getattr(self._logger, severity.value, self._logger.error)
        log_method(f"{error.__class__.__name__}: {error}", extra=context or {})

        self._events.publish(ErrorOccurredEvent(
            error=error,
            severity=severity,
            context=context or {}
        ))
        if isinstance(error, SessionExpiredError):
            self._events.publish(SessionExpiredEvent(reason=str(error), source="error_handler"))

        if self._ui_callback and severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self._ui_callback(str(error), severity)
