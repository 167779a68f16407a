"""Cancellation handle attached to a request.

A context is either the background context, which never finishes, or a
cancellable one with an optional deadline. Children finish when their parent
does. A parent holds its children weakly, so children that go out of scope
are dropped without being cancelled. The transport checks the context before
sending and while reading the body, and registers a callback so cancelling
wakes the caller and closes the in-flight response.
"""
from __future__ import annotations

import threading
import time
import weakref
from typing import Callable

from fluent_http.ports.http_client import RequestCancelledError, RequestTimeoutError


class RequestContext:
    def __init__(
        self,
        *,
        parent: RequestContext | None = None,
        deadline: float | None = None,
        cancellable: bool = True,
    ) -> None:
        self._parent = parent
        self._deadline = deadline
        self._cancellable = cancellable
        self._cancelled = threading.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._children: weakref.WeakSet[RequestContext] = weakref.WeakSet()
        self._lock = threading.Lock()
        if parent is not None:
            parent._adopt(self)
            if parent._deadline is not None and (deadline is None or parent._deadline < deadline):
                self._deadline = parent._deadline

    @classmethod
    def background(cls) -> RequestContext:
        return cls(cancellable=False)

    @classmethod
    def with_cancel(cls, parent: RequestContext | None = None) -> RequestContext:
        return cls(parent=parent)

    @classmethod
    def with_timeout(cls, seconds: float, parent: RequestContext | None = None) -> RequestContext:
        return cls(parent=parent, deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        """Monotonic-clock deadline, or None."""
        return self._deadline

    def cancel(self) -> None:
        if not self._cancellable:
            return
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
            children = list(self._children)
            self._children.clear()
        self._detach()
        for child in children:
            child.cancel()
        for callback in callbacks:
            callback()

    def release(self) -> None:
        """Detach from the parent without cancelling; a later parent cancel no longer reaches this context."""
        self._detach()

    def _adopt(self, child: RequestContext) -> None:
        if not self._cancellable:
            return
        with self._lock:
            if not self._cancelled.is_set():
                self._children.add(child)
                return
        child.cancel()

    def _detach(self) -> None:
        parent = self._parent
        if parent is None:
            return
        with parent._lock:
            parent._children.discard(self)

    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def done(self) -> bool:
        return self.cancelled() or self.expired()

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_done(self) -> None:
        if self.cancelled():
            raise RequestCancelledError("request context cancelled")
        if self.expired():
            raise RequestTimeoutError("request context deadline exceeded")

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run `callback` when the context is cancelled; returns an unregister function.

        Runs immediately if the context is already cancelled. The background
        context never cancels, so nothing is stored for it.
        """
        if not self._cancellable:
            return lambda: None
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                registered = True
            else:
                registered = False
        if not registered:
            callback()
            return lambda: None

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister
