from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

from polychart.binding import CreateParams
from polychart.features.canvas import add_clip_path, css_class, option, x_pixel
from polychart.scene import Element, Selection
from polychart.series import DataPoint, series_name, series_points
from polychart.values import numeric_value

POINT_RADIUS = 4
BUBBLE_MIN_RADIUS = 5.0
BUBBLE_MAX_RADIUS = 20.0


def plotted_points(params: CreateParams, series: Mapping[str, Any]) -> list[tuple[DataPoint, float, float]]:
    """Points of one series that land on both scales, with their pixel coordinates."""
    out: list[tuple[DataPoint, float, float]] = []
    for point in series_points(series, params.data_keys):
        if not isinstance(point, Mapping):
            continue
        px = x_pixel(params, point.get(params.x_key))
        py = params.scales.y(point.get(params.y_key))
        if px is None or py is None:
            continue
        out.append((point, px, py))
    return out


def render_line(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    return _render_path(params, "line", config)


def render_area(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    return _render_path(params, "area", config)


def _render_path(params: CreateParams, kind: str, config: Mapping[str, Any] | None) -> Selection:
    group = params.chart_group.append("g", class_=f"{kind}-group")
    paths: list[Element] = []
    for series in params.series:
        name = series_name(series, params.data_keys)
        coords = [(px, py) for _, px, py in plotted_points(params, series)]
        color = params.color_scale(name)
        if kind == "line":
            path = group.append(
                "path",
                class_=css_class(name),
                d=_line_path(coords),
                fill="none",
                stroke=color,
                stroke_width=option(config, "stroke_width", "strokeWidth", 2),
            )
        else:
            path = group.append(
                "path",
                class_=css_class(name),
                d=_area_path(coords, params.plot_height),
                fill=color,
                fill_opacity=option(config, "fill_opacity", "fillOpacity", 0.4),
                stroke_width=0,
            )
        path.datum = series
        paths.append(path)
    return Selection.of(paths)


def render_points(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    """Circle per plotted point, reconciled against any circles already in the panel."""
    existing = params.chart_group.child_elements("g.points-group")
    group = existing.nodes[0] if len(existing) else params.chart_group.append("g", class_="points-group")
    radius = option(config, "radius", default=POINT_RADIUS)
    drawn = Selection()
    for series in params.series:
        name = series_name(series, params.data_keys)
        plotted = plotted_points(params, series)
        enter, update = group.join(f"circle.{css_class(name)}", [point for point, _, _ in plotted])
        for node in enter:
            node.attr("r", radius).attr("fill", params.color_scale(name))
        for node, (_, px, py) in zip(list(update) + list(enter), plotted):
            node.attr("cx", px).attr("cy", py)
        drawn = drawn + update + enter
    return drawn


def render_bubbles(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    min_radius = float(option(config, "min_radius", "minRadius", BUBBLE_MIN_RADIUS))
    max_radius = float(option(config, "max_radius", "maxRadius", BUBBLE_MAX_RADIUS))
    size_key = params.data_keys.magnitude or params.y_key
    radius = SqrtScale(_size_extent(params, size_key), (min_radius, max_radius))

    clip = add_clip_path(params)
    group = params.chart_group.append("g", class_="bubbles-group", clip_path=clip)
    nodes: list[Element] = []
    for series in params.series:
        name = series_name(series, params.data_keys)
        for point, px, py in plotted_points(params, series):
            size = numeric_value(point.get(size_key))
            node = group.append(
                "circle",
                class_=css_class(name),
                cx=px,
                cy=py,
                r=radius(size if size is not None else 0.0),
                fill=params.color_scale(name),
                fill_opacity=0.7,
            )
            node.datum = point
            nodes.append(node)
    return Selection.of(nodes)


class SqrtScale:
    """Square-root scale (sign-preserving) from a numeric domain onto a radius range."""

    def __init__(self, domain: tuple[float, float], range_: tuple[float, float]) -> None:
        self.domain = domain
        self.range = range_

    def __call__(self, value: float) -> float:
        d0, d1 = (_signed_sqrt(v) for v in self.domain)
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2.0
        return r0 + (_signed_sqrt(value) - d0) * (r1 - r0) / (d1 - d0)


def _size_extent(params: CreateParams, key: str) -> tuple[float, float]:
    values: list[float] = []
    for one in params.series:
        for point in series_points(one, params.data_keys):
            value = numeric_value(point.get(key)) if isinstance(point, Mapping) else None
            if value is not None:
                values.append(value)
    # Zero extremes fall back like missing ones.
    lo = min(values) if values else 0.0
    hi = max(values) if values else 1.0
    return (lo or 0.0, hi or 1.0)


def _signed_sqrt(value: float) -> float:
    return math.copysign(math.sqrt(abs(value)), value)


def _line_path(coords: Sequence[tuple[float, float]]) -> str:
    if not coords:
        return ""
    head, *rest = coords
    return "M" + _pair(head) + "".join("L" + _pair(p) for p in rest)


def _area_path(coords: Sequence[tuple[float, float]], baseline: float) -> str:
    if not coords:
        return ""
    top = _line_path(coords)
    return f"{top}L{_pair((coords[-1][0], baseline))}L{_pair((coords[0][0], baseline))}Z"


def _pair(point: tuple[float, float]) -> str:
    return f"{point[0]:g},{point[1]:g}"
