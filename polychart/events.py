from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional


EventName = Literal["tooltip", "tooltip_move", "tooltip_hide"]
EVENT_NAMES: tuple[str, ...] = ("tooltip", "tooltip_move", "tooltip_hide")

PointerEventType = Literal["mouseover", "mousemove", "mouseout"]


@dataclass(frozen=True)
class PointerEvent:
    event_type: PointerEventType
    x: float
    y: float
    page_x: Optional[float] = None
    page_y: Optional[float] = None


class EventBus:
    """Single-channel pub/sub owned by one chart instance.

    Each event name holds at most one handler; `on` replaces whatever was registered before.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, Callable[..., Any]] = {}

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"unknown event: {event}")
        self._listeners[event] = handler

    def off(self, event: str) -> None:
        self._listeners.pop(event, None)

    def trigger(self, event: str, *args: Any) -> bool:
        listener = self._listeners.get(event)
        if listener is None:
            return False
        listener(*args)
        return True

    def has_listener(self, event: str) -> bool:
        return event in self._listeners

    def clear(self) -> None:
        self._listeners.clear()
