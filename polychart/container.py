from __future__ import annotations

from typing import Any

from polychart.config import MARGIN_SIDES, Margin
from polychart.errors import MarginError
from polychart.scene import Element, translate


def init_container(host: Element, width: float, height: float, merge: bool) -> Element:
    """Drawing surface under `host`.

    Merge mode reuses an existing `svg` child untouched so several panels layer onto it;
    otherwise the host is cleared and a fresh surface created.
    """
    if not isinstance(host, Element):
        raise TypeError(f"host must be a scene Element, got {type(host)!r}")
    if merge:
        existing = host.child_elements("svg")
        if len(existing):
            return existing.nodes[0]
    else:
        host.clear()
    return host.append("svg", width=width, height=height, role="img", aria_label="Chart")


def init_group(surface: Element, margin: Any, *, offset_y: float = 0.0) -> Element:
    margin = _checked_margin(margin)
    return surface.append(
        "g",
        class_="chart-group",
        transform=translate(margin.left, margin.top + offset_y),
    )


def _checked_margin(margin: Any) -> Margin:
    if isinstance(margin, Margin):
        return margin
    if not hasattr(margin, "get"):
        raise MarginError(f"margin must be a mapping, got {type(margin)!r}")
    missing = [side for side in MARGIN_SIDES if side not in margin]
    if missing:
        raise MarginError(f"margin is missing sides: {', '.join(missing)}")
    return Margin(**{side: margin[side] for side in MARGIN_SIDES})
