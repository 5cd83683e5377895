from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from polychart.binding import CreateParams
from polychart.features.canvas import add_clip_path, css_class, option
from polychart.scales import BandScale, LinearScale, sub_band_scale
from polychart.scene import Element, Selection
from polychart.series import BAR_VARIANTS, DataKeys, DataPoint, Series, series_name, series_points
from polychart.values import coordinate_value, numeric_value

LOGGER = logging.getLogger(__name__)

ERROR_BAR_SHARE = 0.2
ERROR_STROKE_WIDTH = 1.5

StackSegment = tuple[DataPoint, float, float]


def stack_layers(series: Sequence[Series], data_keys: DataKeys, x_key: str, y_key: str) -> list[list[StackSegment]]:
    """Diverging stack aligned by canonical x value.

    Each series contributes its first point per x. Non-negative values grow upward from the
    running positive total, negative values downward from the running negative total.
    """
    positive: dict[Any, float] = {}
    negative: dict[Any, float] = {}
    layers: list[list[StackSegment]] = []
    for one in series:
        layer: list[StackSegment] = []
        seen: set[Any] = set()
        for point in series_points(one, data_keys):
            if not isinstance(point, Mapping):
                continue
            value = numeric_value(point.get(y_key))
            key = coordinate_value(point.get(x_key))
            if value is None or key in seen:
                continue
            seen.add(key)
            if value >= 0:
                lo = positive.get(key, 0.0)
                positive[key] = lo + value
                layer.append((point, lo, lo + value))
            else:
                hi = negative.get(key, 0.0)
                negative[key] = hi + value
                layer.append((point, hi + value, hi))
        layers.append(layer)
    return layers


def render_bars(params: CreateParams, config: Mapping[str, Any] | None = None) -> Selection:
    variant = option(config, "variant", default="grouped")
    if variant not in BAR_VARIANTS:
        LOGGER.warning("unknown bar variant %r, drawing grouped bars", variant)
        variant = "grouped"
    fill_opacity = option(config, "fill_opacity", "fillOpacity", 0.5)

    clip = add_clip_path(params)
    group = params.chart_group.append("g", class_="bars-group", clip_path=clip)
    names = [series_name(one, params.data_keys) for one in params.series]
    x_values = [
        point.get(params.x_key)
        for one in params.series
        for point in series_points(one, params.data_keys)
        if isinstance(point, Mapping)
    ]
    slots = sub_band_scale(params.scales.x, names, x_values)

    if variant == "stacked":
        nodes = _stacked(params, group, slots, fill_opacity)
    elif variant == "overlapped":
        nodes = _side_by_side(params, group, slots, fill_opacity, overlap=True)
    else:
        nodes = _side_by_side(params, group, slots, fill_opacity, overlap=False)
        if variant == "error":
            _error_bars(params, group, nodes)
    return Selection.of(nodes)


def _side_by_side(
    params: CreateParams,
    group: Element,
    slots: BandScale,
    fill_opacity: float,
    *,
    overlap: bool,
) -> list[Element]:
    y_scale = params.scales.y
    baseline = y_scale.baseline()
    nodes: list[Element] = []
    for one in params.series:
        name = series_name(one, params.data_keys)
        offset = 0.0 if overlap else slots(name) or 0.0
        width = _full_width(params, slots) if overlap else slots.bandwidth()
        for point in series_points(one, params.data_keys):
            if not isinstance(point, Mapping):
                continue
            left = _group_left(params, slots, point.get(params.x_key))
            top = y_scale(point.get(params.y_key))
            if left is None or top is None:
                continue
            height = abs(baseline - top)
            if width <= 0 or height <= 0:
                continue
            nodes.append(
                _bar(group, point, name, params, left + offset, min(top, baseline), width, height, fill_opacity)
            )
    return nodes


def _stacked(params: CreateParams, group: Element, slots: BandScale, fill_opacity: float) -> list[Element]:
    width = _full_width(params, slots)
    nodes: list[Element] = []
    layers = stack_layers(params.series, params.data_keys, params.x_key, params.y_key)
    for one, layer in zip(params.series, layers):
        name = series_name(one, params.data_keys)
        for point, lo, hi in layer:
            left = _group_left(params, slots, point.get(params.x_key))
            if left is None:
                continue
            top = _pixel_or_baseline(params.scales.y, hi)
            bottom = _pixel_or_baseline(params.scales.y, lo)
            nodes.append(
                _bar(group, point, name, params, left, min(top, bottom), width, abs(bottom - top), fill_opacity)
            )
    return nodes


def _error_bars(params: CreateParams, group: Element, bars: Sequence[Element]) -> None:
    magnitude_key = params.data_keys.magnitude
    if magnitude_key is None:
        LOGGER.warning("error bars need a `magnitude` data key, drawing plain bars")
        return
    magnitudes = [
        value
        for one in params.series
        for point in series_points(one, params.data_keys)
        if isinstance(point, Mapping)
        for value in (numeric_value(point.get(magnitude_key)),)
        if value is not None
    ]
    domain = (min(magnitudes, default=0.0) or 0.0, max(magnitudes, default=1.0) or 1.0)
    scale = LinearScale(domain, (0.0, params.plot_height * ERROR_BAR_SHARE))

    for bar in bars:
        size = scale(bar.datum.get(magnitude_key))
        if size is None:
            continue
        x = float(bar.attrs["x"])
        width = float(bar.attrs["width"])
        # Whiskers hang off the value end of the bar, not the baseline end.
        y = _pixel_or_baseline(params.scales.y, numeric_value(bar.datum.get(params.y_key)))
        whisker = group.append("g", class_="error-bars-group")
        centre = x + width / 2
        for x1, x2, y1, y2 in (
            (centre, centre, y - size, y + size),
            (x + width / 4, x + 3 * width / 4, y - size, y - size),
            (x + width / 4, x + 3 * width / 4, y + size, y + size),
        ):
            whisker.append("line", x1=x1, x2=x2, y1=y1, y2=y2, stroke="black", stroke_width=ERROR_STROKE_WIDTH)


def _bar(
    group: Element,
    point: DataPoint,
    name: str,
    params: CreateParams,
    x: float,
    y: float,
    width: float,
    height: float,
    fill_opacity: float,
) -> Element:
    node = group.append(
        "rect",
        class_=css_class(name),
        x=x,
        y=y,
        width=width,
        height=height,
        fill=params.color_scale(name),
        fill_opacity=fill_opacity,
    )
    node.datum = point
    return node


def _full_width(params: CreateParams, slots: BandScale) -> float:
    if isinstance(params.scales.x, BandScale):
        return params.scales.x.bandwidth()
    return slots.range[1] - slots.range[0]


def _group_left(params: CreateParams, slots: BandScale, x_value: Any) -> float | None:
    pixel = params.scales.x(x_value)
    if pixel is None:
        return None
    if isinstance(params.scales.x, BandScale):
        return pixel
    # Continuous axes centre the group on the x value.
    return pixel - _full_width(params, slots) / 2


def _pixel_or_baseline(y_scale: LinearScale, value: float | None) -> float:
    pixel = y_scale(value)
    return y_scale.baseline() if pixel is None else pixel
