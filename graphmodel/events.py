"""Observer plumbing for graph collections and objects.

Collections and graph objects expose ``subscribe(**callbacks)``; each
subscription holds a set of optional named callbacks (``on_added``,
``on_deleted``, ``on_changed``, ``on_property_changed``,
``on_category_changed``) and is removed with ``unsubscribe()``.
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from graphmodel.errors import EventDispatchError

logger = logging.getLogger("graphmodel.events")

EventHandler = Callable[..., None]


class EventSubscription:
    """Handle returned by :meth:`EventEmitter.subscribe`."""

    __slots__ = ("_emitter", "_handlers")

    def __init__(self, emitter: "EventEmitter", handlers: Dict[str, EventHandler]) -> None:
        self._emitter: Optional[EventEmitter] = emitter
        self._handlers = handlers

    @property
    def active(self) -> bool:
        return self._emitter is not None

    def unsubscribe(self) -> None:
        """Stop listening. Calling this more than once is harmless."""
        if self._emitter is not None:
            self._emitter._remove(self)
            self._emitter = None


class EventEmitter:
    """Dispatches named events to subscribed observers.

    Args:
        events: Names of the events this emitter accepts. Subscribing to an
            unknown name raises ``TypeError`` so misspelled callbacks are
            caught early.
        name: Owner name used in log messages.
    """

    def __init__(self, events: FrozenSet[str], name: str = "emitter") -> None:
        self._events = events
        self._name = name
        self._subscriptions: List[EventSubscription] = []

    @property
    def size(self) -> int:
        """Number of active subscriptions."""
        return len(self._subscriptions)

    def subscribe(self, **handlers: Optional[EventHandler]) -> EventSubscription:
        """Subscribe a set of named callbacks.

        Args:
            **handlers: Callbacks keyed by event name. ``None`` values are
                ignored.

        Returns:
            EventSubscription: Handle used to unsubscribe.
        """
        unknown = set(handlers) - self._events
        if unknown:
            raise TypeError(
                f"Unknown event(s) for {self._name}: {', '.join(sorted(unknown))}"
            )
        subscription = EventSubscription(
            self, {key: value for key, value in handlers.items() if value is not None}
        )
        self._subscriptions.append(subscription)
        return subscription

    def emit(self, event: str, *args: Any, collect_errors: bool = False) -> None:
        """Notify every observer of ``event``.

        Args:
            event: Event name.
            *args: Arguments passed to each callback.
            collect_errors: When False, the first observer error propagates
                and stops notification. When True, all observers are
                notified and errors are raised afterwards as a single
                :class:`EventDispatchError`.
        """
        if not self._subscriptions:
            return

        errors: List[BaseException] = []
        # Snapshot: observers may unsubscribe while being notified.
        for subscription in list(self._subscriptions):
            handler = subscription._handlers.get(event)
            if handler is None:
                continue
            if not collect_errors:
                handler(*args)
                continue
            try:
                handler(*args)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Observer for %s.%s raised %s: %s",
                    self._name,
                    event,
                    type(exc).__name__,
                    exc,
                )
                errors.append(exc)

        if errors:
            raise EventDispatchError("One or more errors occurred", errors)

    def clear(self) -> None:
        """Remove all observers."""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    def _remove(self, subscription: EventSubscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass


__all__ = ["EventEmitter", "EventHandler", "EventSubscription"]
