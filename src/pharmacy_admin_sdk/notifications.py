from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable

Listener = Callable[["Notification"], None]


@dataclass(frozen=True)
class Notification:
    level: str
    title: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationCenter:
    """Toast queue shared by services; front ends drain or subscribe."""

    messages: list[Notification] = field(default_factory=list)
    listeners: list[Listener] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> Notification:
        notification = Notification(level=level, title=title, message=message, details=details or {})
        with self._lock:
            self.messages.append(notification)
            listeners = list(self.listeners)
        for listener in listeners:
            listener(notification)
        return notification

    def error(self, title: str, message: str, **details: Any) -> Notification:
        return self.push(level="error", title=title, message=message, details=details)

    def success(self, title: str, message: str, **details: Any) -> Notification:
        return self.push(level="success", title=title, message=message, details=details)

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self.listeners.append(listener)

    def drain(self) -> list[Notification]:
        with self._lock:
            drained = list(self.messages)
            self.messages.clear()
        return drained

    def clear(self) -> None:
        with self._lock:
            self.messages.clear()

    def render(self) -> dict[str, Any]:
        with self._lock:
            return {
                "count": len(self.messages),
                "messages": [
                    {"level": n.level, "title": n.title, "message": n.message, "details": n.details}
                    for n in self.messages
                ],
            }
