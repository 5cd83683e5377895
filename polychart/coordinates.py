from __future__ import annotations

import logging
import math
from typing import Callable, ClassVar, Sequence

from polychart.config import COORDINATE_SYSTEMS
from polychart.domains import (
    DiscreteDomain,
    PanelDomains,
    ValueRange,
    aggregate_value_range,
    collect_axis_values,
    numeric_extent,
)
from polychart.errors import ChartConfigError
from polychart.series import DataKeys, Series, series_points
from polychart.values import numeric_value

LOGGER = logging.getLogger(__name__)


class CoordinateStrategy:
    """Per-coordinate-system domain rules.

    `required_axes` must all be declared in a panel's data keys. `key_axes` identify a
    position for stacking; `value_axis` is the stack-aware axis (None when the system has no
    magnitude axis). `x_axis`/`y_axis` are the two axes projected onto the rectangular plot area.
    """

    name: ClassVar[str] = ""
    required_axes: ClassVar[tuple[str, ...]] = ()
    key_axes: ClassVar[tuple[str, ...]] = ()
    value_axis: ClassVar[str | None] = None
    x_axis: ClassVar[str] = "x"
    y_axis: ClassVar[str] = "y"

    def axes(self, data_keys: DataKeys) -> tuple[str, ...]:
        return tuple(data_keys.coordinates)

    def planar_axes(self, data_keys: DataKeys) -> tuple[str, str]:
        return (self.x_axis, self.y_axis)

    def missing_axes(self, data_keys: DataKeys) -> tuple[str, ...]:
        return tuple(axis for axis in self.required_axes if axis not in data_keys.coordinates)

    def value_transform(self) -> Callable[[float], float] | None:
        return None

    def calculate_axes_domains(self, series: Sequence[Series], data_keys: DataKeys) -> dict[str, DiscreteDomain]:
        return {
            axis: DiscreteDomain.from_values(collect_axis_values(series, data_keys, axis))
            for axis in self.axes(data_keys)
        }

    def value_range(self, series: Sequence[Series], data_keys: DataKeys, variant: str) -> ValueRange:
        if self.value_axis is None:
            raise ChartConfigError(f"{self.name} charts have no value axis to aggregate")
        raw = aggregate_value_range(
            series,
            data_keys,
            key_axes=self.key_axes,
            value_axis=self.value_axis,
            variant=variant,
        )
        return raw.include_zero()

    def calculate_merged_domains(
        self,
        all_series: Sequence[Sequence[Series]],
        all_data_keys: Sequence[DataKeys],
        variants: Sequence[str],
    ) -> dict[str, list[ValueRange]]:
        """One interval per panel for every numeric axis; the value axis is stacking-aware."""
        merged: dict[str, list[ValueRange]] = {}
        for index, (series, data_keys) in enumerate(zip(all_series, all_data_keys, strict=True)):
            variant = variants[index] if index < len(variants) else "grouped"
            for axis in self.axes(data_keys):
                if axis == self.value_axis:
                    value_range = self.value_range(series, data_keys, variant)
                else:
                    value_range = numeric_extent(series, data_keys, axis).include_zero()
                merged.setdefault(axis, [ValueRange.empty()] * index).append(value_range)
            for axis, ranges in merged.items():
                if len(ranges) <= index:
                    ranges.append(ValueRange.empty())
        return merged

    def panel_domains(self, series: Sequence[Series], data_keys: DataKeys, variant: str) -> PanelDomains:
        """Discrete domains for every axis and numeric ranges for the axes that have numbers.

        The plotted value axis keeps its range even when empty so the synchronizer can default it.
        """
        discrete = self.calculate_axes_domains(series, data_keys)
        merged = self.calculate_merged_domains([series], [data_keys], [variant])
        _, y_axis = self.planar_axes(data_keys)
        ranges = {
            axis: values[0]
            for axis, values in merged.items()
            if axis == y_axis or not values[0].is_empty
        }
        return PanelDomains(discrete=discrete, ranges=ranges)


class CartesianStrategy(CoordinateStrategy):
    name = "cartesian"
    required_axes = ("x", "y")
    key_axes = ("x",)
    value_axis = "y"


class HexagonalStrategy(CartesianStrategy):
    name = "hexagonal"


class LogarithmicStrategy(CartesianStrategy):
    """Cartesian aggregation over strictly positive values, bounds reported as log10 exponents."""

    name = "logarithmic"

    def value_transform(self) -> Callable[[float], float] | None:
        return math.log10

    def value_range(self, series: Sequence[Series], data_keys: DataKeys, variant: str) -> ValueRange:
        dropped = _count_non_positive(series, data_keys, data_keys.coordinates.get(self.y_axis))
        if dropped:
            LOGGER.warning("logarithmic axis ignores %d non-positive value(s)", dropped)
        raw = aggregate_value_range(
            series,
            data_keys,
            key_axes=self.key_axes,
            value_axis=self.y_axis,
            variant=variant,
            keep=lambda value: value > 0,
        )
        if not raw.is_finite:
            return raw
        return ValueRange(math.log10(raw.vmin), math.log10(raw.vmax)).include_zero()


class PolarStrategy(CoordinateStrategy):
    name = "polar"
    required_axes = ("angle", "radius")
    key_axes = ("angle",)
    value_axis = "radius"
    x_axis = "angle"
    y_axis = "radius"


class SphericalStrategy(CoordinateStrategy):
    name = "spherical"
    required_axes = ("longitude", "latitude", "radius")
    key_axes = ("longitude", "latitude")
    value_axis = "radius"
    x_axis = "longitude"
    y_axis = "radius"


class CylindricalStrategy(CoordinateStrategy):
    name = "cylindrical"
    required_axes = ("angle", "height", "radius")
    key_axes = ("angle", "height")
    value_axis = "radius"
    x_axis = "angle"
    y_axis = "radius"


class GeographicStrategy(CoordinateStrategy):
    name = "geographic"
    required_axes = ("longitude", "latitude")
    key_axes = ("longitude", "latitude")
    x_axis = "longitude"
    y_axis = "latitude"


class TernaryStrategy(CoordinateStrategy):
    name = "ternary"
    required_axes = ("a", "b", "c")
    key_axes = ("a", "b", "c")
    x_axis = "a"
    y_axis = "b"


class ParallelStrategy(CoordinateStrategy):
    """Every declared coordinate is a dimension with its own vertical axis."""

    name = "parallel"

    def missing_axes(self, data_keys: DataKeys) -> tuple[str, ...]:
        if len(data_keys.coordinates) < 2:
            return ("<second dimension>",)
        return ()

    def planar_axes(self, data_keys: DataKeys) -> tuple[str, str]:
        dims = tuple(data_keys.coordinates)
        return (dims[0], dims[1])

    def calculate_merged_domains(
        self,
        all_series: Sequence[Sequence[Series]],
        all_data_keys: Sequence[DataKeys],
        variants: Sequence[str],
    ) -> dict[str, list[ValueRange]]:
        merged: dict[str, list[ValueRange]] = {}
        for index, (series, data_keys) in enumerate(zip(all_series, all_data_keys, strict=True)):
            for axis in data_keys.coordinates:
                ranges = merged.setdefault(axis, [ValueRange.empty()] * index)
                ranges.append(numeric_extent(series, data_keys, axis).include_zero())
            for ranges in merged.values():
                if len(ranges) <= index:
                    ranges.append(ValueRange.empty())
        return merged


_STRATEGIES: dict[str, type[CoordinateStrategy]] = {
    cls.name: cls
    for cls in (
        CartesianStrategy,
        PolarStrategy,
        SphericalStrategy,
        CylindricalStrategy,
        GeographicStrategy,
        LogarithmicStrategy,
        ParallelStrategy,
        TernaryStrategy,
        HexagonalStrategy,
    )
}
if set(_STRATEGIES) != set(COORDINATE_SYSTEMS):
    raise RuntimeError("coordinate strategies do not cover every coordinate system")


def strategy_for(coordinate_system: str) -> CoordinateStrategy:
    try:
        return _STRATEGIES[coordinate_system]()
    except (KeyError, TypeError) as exc:
        raise ChartConfigError(f"unknown coordinate system: {coordinate_system!r}") from exc


def _count_non_positive(series: Sequence[Series], data_keys: DataKeys, field_name: str | None) -> int:
    if field_name is None:
        return 0
    count = 0
    for one in series:
        for point in series_points(one, data_keys):
            if not hasattr(point, "get"):
                continue
            value = numeric_value(point.get(field_name))
            if value is not None and value <= 0:
                count += 1
    return count
