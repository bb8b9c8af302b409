"""
Reactive Container

A value holder that notifies subscribers synchronously after each
committed mutation.

GUARANTEES:
===========
1. update(transform) applies the transform and commits under one lock,
   so concurrent writers are serialized
2. Subscribers run after the commit, outside the commit lock, and
   receive the committed value - never a partially applied one
3. Notifications are published in commit order. A subscriber's last
   observed value is always the current one
4. A transform returning the identical object is a no-op: no commit,
   no notification
"""

from __future__ import annotations
from typing import Callable, Generic, List, TypeVar
import threading

T = TypeVar('T')

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]

class ReactiveContainer(Generic[T]):
    """
    Publish-on-mutate value holder.

    Two reentrant locks: _lock guards the value, _publish orders
    notifications. A writer takes _publish before committing and keeps
    it until its subscribers have run, so a second writer's notification
    can never overtake the first. A write made from inside a subscriber
    bumps the version, and the outer notification stops there since
    every subscriber has already seen the newer value.
    """

    def __init__(self, initial: T, name: str = "container"):
        self._value = initial
        self._version = 0
        self._name = name
        self._lock = threading.RLock()
        self._publish = threading.RLock()
        self._subscribers: List[Subscriber] = []

    @property
    def name(self) -> str:
        return self._name

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        with self._publish:
            with self._lock:
                version = self._commit(value)
            self._notify(value, version)

    def update(self, transform: Callable[[T], T]) -> T:
        """
        Read-modify-write.

        Returns the committed value. If the transform raises, nothing is
        committed and the exception propagates to the caller.
        """
        with self._publish:
            with self._lock:
                current = self._value
                updated = transform(current)
                if updated is current:
                    return current
                version = self._commit(updated)
            self._notify(updated, version)
        return updated

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """
        Register a subscriber. It is called once immediately with the
        current value, then after every commit.
        """
        with self._publish:
            with self._lock:
                self._subscribers.append(callback)
                current = self._value
            callback(current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _commit(self, value: T) -> int:
        self._value = value
        self._version += 1
        return self._version

    def _notify(self, value: T, version: int) -> None:
        for callback in list(self._subscribers):
            if self._version != version:
                return
            callback(value)


class DerivedValue(Generic[T]):
    """
    Read-only projection of a container (selected peer, for example).

    Subscribers are only called when the projected value changes.
    """

    def __init__(self, source: ReactiveContainer, project: Callable[[object], T]):
        self._source = source
        self._project = project

    def get(self) -> T:
        return self._project(self._source.get())

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        sentinel = object()
        last = [sentinel]

        def on_change(value: object) -> None:
            projected = self._project(value)
            if last[0] is sentinel or projected != last[0]:
                last[0] = projected
                callback(projected)

        return self._source.subscribe(on_change)
