from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from polychart.config import Margin
from polychart.domains import DiscreteDomain, PanelDomains, ValueRange
from polychart.events import EventBus
from polychart.scales import LinearScale, OrdinalColorScale, Scales, create_scales
from polychart.scene import Element
from polychart.series import DataKeys, Series, series_name


@dataclass(frozen=True)
class ValidationReport:
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ValidationFailure:
    errors: tuple[str, ...]

    def message(self) -> str:
        return "; ".join(self.errors)


@dataclass(frozen=True)
class BoundPanel:
    series: Sequence[Series]
    data_keys: DataKeys
    domains: PanelDomains
    scales: Scales
    color_scale: OrdinalColorScale


@dataclass(frozen=True)
class CreateParams:
    """Everything a feature renderer needs to draw one panel."""

    series: Sequence[Series]
    data_keys: DataKeys
    chart_group: Element
    scales: Scales
    color_scale: OrdinalColorScale
    tooltip: Element
    events: EventBus
    plot_width: float
    plot_height: float
    margin: Margin
    domains: PanelDomains
    coordinate_system: str = "cartesian"
    x_axis: str = "x"
    y_axis: str = "y"
    x_type: str | None = None
    panel_index: int = 0

    @property
    def x_key(self) -> str:
        return self.data_keys.coordinates[self.x_axis]

    @property
    def y_key(self) -> str:
        return self.data_keys.coordinates[self.y_axis]


def validate_panel(series: Any, data_keys: DataKeys) -> ValidationReport:
    """Structural check of a panel: first series and first point only."""
    errors: list[str] = []
    if isinstance(series, (str, bytes, Mapping)) or not isinstance(series, Sequence) or not series:
        errors.append("series must be a non-empty list")
        return ValidationReport(errors=tuple(errors))

    first = series[0]
    points = first.get(data_keys.data) if isinstance(first, Mapping) else None
    if points is None or isinstance(points, (str, bytes)) or not isinstance(points, Sequence):
        errors.append(f"data key `{data_keys.data}` is missing in the first series")
        return ValidationReport(errors=tuple(errors))

    first_point = points[0] if points else None
    if isinstance(first_point, Mapping):
        for key in data_keys.coordinates.values():
            if key not in first_point:
                errors.append(f"coordinate key `{key}` is missing in the data points")
    return ValidationReport(errors=tuple(errors))


def bind_panel(
    series: Sequence[Series],
    data_keys: DataKeys,
    *,
    domains: PanelDomains,
    plot_width: float,
    plot_height: float,
    x_type: str | None = None,
    x_axis: str = "x",
    y_axis: str = "y",
    y_transform: Callable[[float], float] | None = None,
) -> BoundPanel | ValidationFailure:
    report = validate_panel(series, data_keys)
    if not report.ok:
        return ValidationFailure(errors=report.errors)
    if plot_width <= 0 or plot_height <= 0:
        return ValidationFailure(
            errors=(f"plot area must be positive, got {plot_width:g}x{plot_height:g} after margins",)
        )

    scales = create_scales(
        domains.discrete.get(x_axis, DiscreteDomain(())),
        domains.ranges.get(y_axis, ValueRange.default()),
        plot_width,
        plot_height,
        x_type,
        y_transform=y_transform,
    )
    extra = {
        axis: LinearScale(value_range.as_tuple(), (plot_height, 0.0))
        for axis, value_range in domains.ranges.items()
        if axis not in (x_axis, y_axis) and value_range.is_finite
    }
    if extra:
        scales = Scales(x=scales.x, y=scales.y, extra=extra)
    color_scale = OrdinalColorScale([series_name(one, data_keys) for one in series])
    return BoundPanel(
        series=series,
        data_keys=data_keys,
        domains=domains,
        scales=scales,
        color_scale=color_scale,
    )
