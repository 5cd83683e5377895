from __future__ import annotations

import logging
import re
from typing import Any, Mapping

import numpy as np

from polychart.binding import CreateParams
from polychart.scales import BandScale, TimeScale, format_ticks_for_axis, position
from polychart.scene import Element, Selection, translate

LOGGER = logging.getLogger(__name__)

GRID_STROKE = "#ccc"
GRID_DASH = "2,2"
DEFAULT_DATE_FORMAT = "%m / %y"


def option(config: Mapping[str, Any] | None, name: str, alias: str | None = None, default: Any = None) -> Any:
    """Read a feature option by its snake_case name, accepting the camelCase alias too."""
    if not config:
        return default
    if name in config:
        return config[name]
    if alias is not None and alias in config:
        return config[alias]
    return default


def css_class(name: Any) -> str:
    return re.sub(r"[^\w-]+", "-", str(name).strip()) or "series"


def add_clip_path(params: CreateParams) -> str:
    """Clip rectangle covering the plot area; returns the `url(#...)` reference."""
    clip_id = f"clip-{params.panel_index}"
    defs = params.chart_group.append("defs")
    clip = defs.append("clipPath", id=clip_id)
    clip.append("rect", x=0, y=0, width=params.plot_width, height=params.plot_height)
    return f"url(#{clip_id})"


def x_pixel(params: CreateParams, value: Any) -> float | None:
    return position(params.scales.x, value, center=True)


def render_grid(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    y_scale = params.scales.y
    x_scale = params.scales.x

    y_grid = params.chart_group.append("g", class_="grid grid-y")
    for tick in y_scale.ticks(int(option(config, "y_ticks", "yTicks", 10))):
        pixel = y_scale.map_domain(tick)
        y_grid.append(
            "line", x1=0, x2=params.plot_width, y1=pixel, y2=pixel, stroke=GRID_STROKE, stroke_dasharray=GRID_DASH
        )

    x_grid = params.chart_group.append("g", class_="grid grid-x")
    for pixel in _x_ticks(x_scale, config)[0]:
        x_grid.append(
            "line", x1=pixel, x2=pixel, y1=0, y2=params.plot_height, stroke=GRID_STROKE, stroke_dasharray=GRID_DASH
        )
    return Selection.of([y_grid, x_grid])


def render_axis(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    x_scale = params.scales.x
    y_scale = params.scales.y

    x_group = params.chart_group.append("g", class_="axis axis-x", transform=translate(0, params.plot_height))
    x_group.append("line", class_="domain", x1=0, x2=params.plot_width, y1=0, y2=0, stroke="currentColor")
    for pixel, label in zip(*_x_ticks(x_scale, config)):
        tick = x_group.append("g", class_="tick", transform=translate(pixel, 0))
        tick.append("line", y2=6, stroke="currentColor")
        tick.append(
            "text", y=9, dx="0.8em", dy="0.15em", text_anchor="start", transform="rotate(20)"
        ).set_text(label)

    y_group = params.chart_group.append("g", class_="axis axis-y")
    y_group.append("line", class_="domain", x1=0, x2=0, y1=0, y2=params.plot_height, stroke="currentColor")
    ticks = y_scale.ticks(int(option(config, "y_ticks", "yTicks", 10)))
    decimals = int(option(config, "y_tick_decimals", "yTickDecimals", 2))
    for tick_value, label in zip(ticks, y_scale.tick_labels(ticks, decimals=decimals)):
        tick = y_group.append("g", class_="tick", transform=translate(0, y_scale.map_domain(tick_value)))
        tick.append("line", x2=-6, stroke="currentColor")
        tick.append("text", x=-9, dy="0.32em", text_anchor="end").set_text(label)
    return Selection.of([x_group, y_group])


def render_label(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    nodes: list[Element] = []
    title = option(config, "title")
    x_label = option(config, "x_axis", "xAxis")
    y_label = option(config, "y_axis", "yAxis")
    group = params.chart_group
    if title:
        nodes.append(
            group.append(
                "text",
                class_="label label-title",
                x=params.plot_width / 2,
                y=-params.margin.top / 2,
                text_anchor="middle",
                font_size="16px",
            ).set_text(str(title))
        )
    if x_label:
        nodes.append(
            group.append(
                "text",
                class_="label label-x",
                x=params.plot_width / 2,
                y=params.plot_height + params.margin.bottom - 10,
                text_anchor="middle",
            ).set_text(str(x_label))
        )
    if y_label:
        nodes.append(
            group.append(
                "text",
                class_="label label-y",
                transform="rotate(-90)",
                x=-params.plot_height / 2,
                y=-params.margin.left + 20,
                text_anchor="middle",
            ).set_text(str(y_label))
        )
    return Selection.of(nodes)


def render_tooltip(params: CreateParams, config: Mapping[str, Any] | None = None) -> None:
    # The tooltip element is created with the panel; this entry only marks the feature as known.
    return None


def _x_ticks(x_scale: Any, config: Mapping[str, Any] | None) -> tuple[list[float], list[str]]:
    fmt = option(config, "x_tick_format", "xTickFormat")
    count = option(config, "x_ticks", "xTicks")
    if isinstance(x_scale, BandScale):
        values = list(x_scale.ticks())
        pixels = [x_scale(v) + x_scale.bandwidth() / 2 for v in values]
        return pixels, x_scale.tick_labels(values)

    ticks = x_scale.ticks(int(count or 5))
    pixels = [x_scale.map_domain(v) for v in ticks]
    if isinstance(x_scale, TimeScale):
        return pixels, _date_labels(x_scale, ticks, fmt or DEFAULT_DATE_FORMAT)
    return pixels, _number_labels(ticks, fmt)


def _date_labels(x_scale: TimeScale, ticks: np.ndarray, fmt: str) -> list[str]:
    try:
        return x_scale.tick_labels(ticks, fmt=fmt)
    except ValueError:
        LOGGER.warning("invalid date format %r, falling back to %r", fmt, DEFAULT_DATE_FORMAT)
        return x_scale.tick_labels(ticks, fmt=DEFAULT_DATE_FORMAT)


def _number_labels(ticks: np.ndarray, fmt: str | None) -> list[str]:
    if not fmt:
        return format_ticks_for_axis(ticks)
    try:
        return [format(float(v), fmt) for v in ticks]
    except ValueError:
        LOGGER.warning("invalid number format %r, using default tick labels", fmt)
        return format_ticks_for_axis(ticks)
