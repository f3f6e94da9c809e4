"""
Synchronous event emission for records, collections and views.

Every observable object in syncviews (records, collections, views) mixes in
:class:`Events`. Unlike a message bus, delivery is immediate and inline: by
the time ``trigger()`` returns, every subscriber has run. The views rely on
exactly this to stay consistent between two source mutations.

Manifesto:
    - **Synchronous:** no queues, no scheduling, no suspension points
    - **Ordered:** subscribers run in registration order, ``"all"`` last
    - **Snapshot dispatch:** the subscriber list is copied before dispatch,
      so subscribing or unsubscribing from inside a handler never corrupts
      the running delivery
    - **Errors propagate:** a raising handler aborts the trigger and reaches
      the caller of the mutation

Architecture:
    ::

        Events
        ├── on / once / off            subscriptions on this emitter
        ├── listen_to / stop_listening subscriptions this object holds elsewhere
        └── trigger(name, *args)       dispatch to name subscribers, then "all"

        Subscription(id, event, callback, listener, once)

Examples:
    >>> emitter = Events()
    >>> seen = []
    >>> emitter.on("add remove", lambda *args: seen.append(args))
    >>> emitter.trigger("add", 1)
    >>> seen
    [(1,)]

Tags:
    events, observer, subscription, synchronous, syncviews

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

__all__ = ["ALL_EVENTS", "EventCallback", "Events", "Subscription"]

ALL_EVENTS = "all"

EventCallback = Callable[..., Any]


@dataclass
class Subscription:
    """Internal subscription record."""

    id: str
    event: str
    callback: EventCallback
    listener: object | None = None
    once: bool = False


def _split(event: str) -> list[str]:
    return event.split()


class Events:
    """Mixin providing a synchronous subscription table.

    The special event name ``"all"`` receives every event, with the event
    name prepended to the arguments.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._listening_to: dict[int, Events] = {}

    # ── Subscribing ──────────────────────────────────────────────

    def on(
        self,
        event: str | Mapping[str, EventCallback],
        callback: EventCallback | None = None,
        *,
        listener: object | None = None,
    ) -> Events:
        """Subscribe ``callback`` to one or more space-separated event names.

        ``event`` may also be a mapping of event names to callbacks.
        """
        return self._register(event, callback, listener, once=False)

    def once(
        self,
        event: str | Mapping[str, EventCallback],
        callback: EventCallback | None = None,
        *,
        listener: object | None = None,
    ) -> Events:
        """Like :meth:`on`, but the subscription is dropped before its first call."""
        return self._register(event, callback, listener, once=True)

    def off(
        self,
        event: str | None = None,
        callback: EventCallback | None = None,
        *,
        listener: object | None = None,
    ) -> Events:
        """Drop every subscription matching all of the given filters."""
        names = _split(event) if event is not None else list(self._subscriptions)
        for name in names:
            subs = self._subscriptions.get(name)
            if not subs:
                continue
            remaining = [
                sub
                for sub in subs
                if not (
                    (callback is None or sub.callback == callback)
                    and (listener is None or sub.listener is listener)
                )
            ]
            if remaining:
                self._subscriptions[name] = remaining
            else:
                del self._subscriptions[name]
        return self

    def listen_to(
        self,
        other: Events,
        event: str | Mapping[str, EventCallback],
        callback: EventCallback | None = None,
    ) -> Events:
        """Subscribe to ``other`` and remember it for :meth:`stop_listening`."""
        self._listening_to[id(other)] = other
        other.on(event, callback, listener=self)
        return self

    def stop_listening(
        self,
        other: Events | None = None,
        event: str | None = None,
        callback: EventCallback | None = None,
    ) -> Events:
        """Release subscriptions this object holds on ``other`` (or on everything)."""
        targets = [other] if other is not None else list(self._listening_to.values())
        for target in targets:
            target.off(event, callback, listener=self)
            if not target._has_listener(self):
                self._listening_to.pop(id(target), None)
        return self

    # ── Dispatch ─────────────────────────────────────────────────

    def trigger(self, event: str, *args: Any) -> Events:
        """Call the subscribers of ``event``, then the ``"all"`` subscribers."""
        subs = list(self._subscriptions.get(event, ()))
        catch_all = list(self._subscriptions.get(ALL_EVENTS, ()))
        for sub in subs:
            self._dispatch(sub, args)
        if event != ALL_EVENTS:
            for sub in catch_all:
                self._dispatch(sub, (event, *args))
        return self

    @property
    def subscription_count(self) -> int:
        """Number of active subscriptions."""
        return sum(len(subs) for subs in self._subscriptions.values())

    # ── Internals ────────────────────────────────────────────────

    def _register(
        self,
        event: str | Mapping[str, EventCallback],
        callback: EventCallback | None,
        listener: object | None,
        *,
        once: bool,
    ) -> Events:
        if isinstance(event, Mapping):
            for name, handler in event.items():
                self._register(name, handler, listener, once=once)
            return self
        if callback is None:
            raise TypeError(f"No callback given for event {event!r}")
        for name in _split(event):
            self._subscriptions.setdefault(name, []).append(
                Subscription(
                    id=f"sub_{uuid.uuid4().hex[:12]}",
                    event=name,
                    callback=callback,
                    listener=listener,
                    once=once,
                )
            )
        return self

    def _dispatch(self, sub: Subscription, args: tuple[Any, ...]) -> None:
        if sub.once:
            subs = self._subscriptions.get(sub.event, [])
            remaining = [other for other in subs if other is not sub]
            if len(remaining) == len(subs):
                # already dropped by an earlier handler of this trigger
                return
            if remaining:
                self._subscriptions[sub.event] = remaining
            else:
                del self._subscriptions[sub.event]
        sub.callback(*args)

    def _has_listener(self, listener: object) -> bool:
        return any(
            sub.listener is listener
            for subs in self._subscriptions.values()
            for sub in subs
        )
