"""Domain events emitted by the attendance and payroll services.

Notification and audit collaborators subscribe to these; the core never calls
them directly, so a failing subscriber cannot fail a check-in or a lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Protocol

logger = logging.getLogger("attendance_payroll.events")

CHECKED_IN = "attendance.checked_in"
LATE_CHECK_IN = "attendance.late_check_in"
BREAK_STARTED = "attendance.break_started"
BREAK_ENDED = "attendance.break_ended"
CHECKED_OUT = "attendance.checked_out"
ATTENDANCE_VERIFIED = "attendance.verified"

PAYROLL_CALCULATED = "payroll.calculated"
PAYROLL_APPROVED = "payroll.approved"
PAYROLL_SIGNED = "payroll.signed"
PAYROLL_LOCKED = "payroll.locked"
PAYROLL_PAID = "payroll.paid"


@dataclass(frozen=True)
class DomainEvent:
    name: str
    occurred_at: datetime
    actor_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)


class EventSink(Protocol):
    def publish(self, event: DomainEvent) -> None:
        raise NotImplementedError


class EventDispatcher:
    """Fan-out publisher. Subscriber errors are logged and swallowed."""

    def __init__(self):
        self._subscribers: list[tuple[str | None, Callable[[DomainEvent], None]]] = []

    def subscribe(self, handler: Callable[[DomainEvent], None], *, name: str | None = None) -> None:
        self._subscribers.append((name, handler))

    def publish(self, event: DomainEvent) -> None:
        logger.debug("event %s", event.name, extra={"event": event.name, "actor_id": event.actor_id})
        for name, handler in list(self._subscribers):
            if name is not None and name != event.name:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("event subscriber failed", extra={"event": event.name})


class RecordingSink:
    """Keeps published events in memory (used by tests and local tooling)."""

    def __init__(self):
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.name for e in self.events]


def audit_log_subscriber(event: DomainEvent) -> None:
    """Default subscriber: one INFO line per event on the audit logger."""

    logging.getLogger("attendance_payroll.audit").info(
        "%s actor=%s %s",
        event.name,
        event.actor_id,
        event.payload,
        extra={"event": event.name, "actor_id": event.actor_id},
    )
