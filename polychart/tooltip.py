from __future__ import annotations

import datetime as dt
import html
from typing import Any, Mapping

from polychart.events import EventBus, PointerEvent
from polychart.scene import Element
from polychart.series import DataKeys


DEFAULT_TOOLTIP_STYLE = {
    "background": "#f9f9f9",
    "border": "1px solid #d3d3d3",
    "padding": "5px",
    "border-radius": "4px",
}


def create_tooltip(container: Element, show: bool, config: Mapping[str, Any] | None = None) -> Element:
    """Tooltip handle for a panel; detached (never rendered) when the tooltip feature is off."""
    if not show:
        return Element(tag="div", attrs={"class": "tooltip", "visibility": "hidden"})
    style = dict(DEFAULT_TOOLTIP_STYLE)
    for key, value in (config or {}).items():
        style[_css_name(key)] = value
    tooltip = container.append("div", class_="tooltip", position="absolute", visibility="hidden")
    tooltip.attrs.update(style)
    return tooltip


class TooltipWidget:
    def show(self, handle: Element, datum: Any, data_keys: DataKeys) -> None:
        if not isinstance(datum, Mapping):
            return
        lines = []
        for axis, key in data_keys.coordinates.items():
            lines.append(f"{axis.upper() if len(axis) == 1 else axis}: {format_value(datum.get(key))}")
        if data_keys.magnitude and data_keys.magnitude in datum:
            lines.append(f"{data_keys.magnitude}: {format_value(datum.get(data_keys.magnitude))}")
        handle.attrs["visibility"] = "visible"
        handle.set_text("<br>".join(lines))

    def move(self, handle: Element, event: PointerEvent) -> None:
        page_x = event.page_x if event.page_x is not None else event.x
        page_y = event.page_y if event.page_y is not None else event.y
        handle.attrs["top"] = f"{page_y - 10:g}px"
        handle.attrs["left"] = f"{page_x + 10:g}px"

    def hide(self, handle: Element) -> None:
        handle.attrs["visibility"] = "hidden"


def install_tooltip_handlers(bus: EventBus, widget: TooltipWidget) -> None:
    """Route the bus's tooltip events to `widget`; re-installing replaces the previous routes."""
    bus.on("tooltip", widget.show)
    bus.on("tooltip_move", widget.move)
    bus.on("tooltip_hide", widget.hide)


def format_value(value: Any) -> str:
    if isinstance(value, dt.datetime):
        return value.strftime("%b %Y")
    if isinstance(value, dt.date):
        return value.strftime("%b %Y")
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def _css_name(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("-" + ch.lower())
        else:
            out.append(ch)
    return "".join(out).replace("_", "-")
