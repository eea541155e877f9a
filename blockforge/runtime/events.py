"""
Named-event bus for generated scripts.

Event names are plain strings: ``start``, ``update``, ``keydown:<code>``,
``keyup:<code>``, ``click:<objectId>``, ``collide:<objectId>:<tag>``,
``trigger:<objectId>:<tag>``, ``overlap:<objectId>:<tag>``,
``message:<name>`` and ``timer:<objectId>:<n>``.

Handlers of one event run in registration order. A handler that returns a
generator becomes a scheduler task. Failures are logged and recorded, never
propagated to the caller of ``emit``.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .faults import RuntimeFault
from .scheduler import FaultSink, Scheduler

logger = logging.getLogger(__name__)

START_EVENT = "start"


@dataclass
class Subscription:
    event: str
    handler: Callable[..., Any]
    owner_id: Optional[str] = None
    active: bool = True


class EventBus:
    def __init__(self, scheduler: Scheduler, on_fault: Optional[FaultSink] = None):
        self.scheduler = scheduler
        self.stopped = False
        self._handlers: Dict[str, List[Subscription]] = {}
        self._on_fault = on_fault

    def subscribe(
        self,
        event: str,
        handler: Callable[..., Any],
        owner_id: Optional[str] = None,
    ) -> Subscription:
        subscription = Subscription(event=event, handler=handler, owner_id=owner_id)
        self._handlers.setdefault(event, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        handlers = self._handlers.get(subscription.event)
        if handlers and subscription in handlers:
            handlers.remove(subscription)

    def remove_owner(self, owner_id: str) -> int:
        removed = 0
        for event, handlers in list(self._handlers.items()):
            keep = []
            for subscription in handlers:
                if subscription.owner_id == owner_id:
                    subscription.active = False
                    removed += 1
                else:
                    keep.append(subscription)
            self._handlers[event] = keep
        return removed

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def emit(self, event: str, payload: Any = None) -> int:
        """Run every handler of ``event``; return how many were invoked."""
        if self.stopped and event != START_EVENT:
            return 0

        invoked = 0
        # Handlers added or removed while dispatching take effect next emit.
        for subscription in list(self._handlers.get(event, ())):
            if not subscription.active:
                continue
            invoked += 1
            try:
                result = subscription.handler(payload)
            except Exception as exc:
                logger.exception("Handler for '%s' failed.", event)
                self._report(RuntimeFault(event, exc, owner_id=subscription.owner_id))
                continue
            if inspect.isgenerator(result):
                self.scheduler.start_task(result, name=event, owner_id=subscription.owner_id)
        return invoked

    def clear(self) -> None:
        for handlers in self._handlers.values():
            for subscription in handlers:
                subscription.active = False
        self._handlers.clear()

    def _report(self, fault: RuntimeFault) -> None:
        if self._on_fault is not None:
            self._on_fault(fault)
