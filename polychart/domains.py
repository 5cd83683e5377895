from __future__ import annotations

from dataclasses import dataclass, field, replace
import math
from typing import Any, Iterator, Sequence

from polychart.series import DataKeys, Series, series_points
from polychart.values import coordinate_value, numeric_value, sort_values, unique_values


DEFAULT_DISCRETE = (0, 1)


@dataclass(frozen=True)
class ValueRange:
    vmin: float
    vmax: float

    def __iter__(self) -> Iterator[float]:
        yield self.vmin
        yield self.vmax

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.vmin) and math.isfinite(self.vmax)

    @property
    def is_empty(self) -> bool:
        return self.vmin > self.vmax

    def include_zero(self) -> "ValueRange":
        # An empty range stays empty so callers can still detect missing data.
        if self.is_empty:
            return self
        return ValueRange(min(0.0, self.vmin), max(0.0, self.vmax))

    def union(self, other: "ValueRange") -> "ValueRange":
        return ValueRange(min(self.vmin, other.vmin), max(self.vmax, other.vmax))

    def as_tuple(self) -> tuple[float, float]:
        return (self.vmin, self.vmax)

    @classmethod
    def empty(cls) -> "ValueRange":
        return cls(math.inf, -math.inf)

    @classmethod
    def default(cls) -> "ValueRange":
        return cls(0.0, 1.0)


@dataclass(frozen=True)
class DiscreteDomain:
    values: tuple[Any, ...]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def numeric_extent(self) -> ValueRange:
        numbers = [v for v in (numeric_value(x) for x in self.values) if v is not None]
        if not numbers:
            return ValueRange.empty()
        return ValueRange(min(numbers), max(numbers))

    @classmethod
    def from_values(cls, values: Sequence[Any]) -> "DiscreteDomain":
        return cls(tuple(sort_values(unique_values(values))))


@dataclass(frozen=True)
class PanelDomains:
    """Resolved domains of one panel: a discrete domain per axis plus numeric ranges."""

    discrete: dict[str, DiscreteDomain] = field(default_factory=dict)
    ranges: dict[str, ValueRange] = field(default_factory=dict)

    def with_discrete(self, axis: str, domain: DiscreteDomain) -> "PanelDomains":
        return replace(self, discrete={**self.discrete, axis: domain})

    def with_range(self, axis: str, value_range: ValueRange) -> "PanelDomains":
        return replace(self, ranges={**self.ranges, axis: value_range})


def aggregate_value_range(
    series: Sequence[Series],
    data_keys: DataKeys,
    *,
    key_axes: Sequence[str],
    value_axis: str,
    variant: str,
    keep: Any = None,
) -> ValueRange:
    """Stacking-aware raw extent of `value_axis` for one panel, without zero inclusion.

    Points are grouped by their canonical key-axis tuple. For the `stacked` variant every
    series contributes its first point at a key; non-negative values feed a positive total and
    negative values a negative total. Other variants take the pointwise min/max. `keep` is an
    optional predicate on the numeric value; rejected values are ignored.
    """
    key_fields = [data_keys.coordinates[axis] for axis in key_axes if axis in data_keys.coordinates]
    value_field = data_keys.coordinates.get(value_axis)
    if value_field is None:
        return ValueRange.empty()

    stacked = variant == "stacked"
    vmin = math.inf
    vmax = -math.inf
    positive: dict[tuple[Any, ...], float] = {}
    negative: dict[tuple[Any, ...], float] = {}

    for one in series:
        seen: set[tuple[Any, ...]] = set()
        for point in series_points(one, data_keys):
            if not hasattr(point, "get"):
                continue
            value = numeric_value(point.get(value_field))
            if value is None or (keep is not None and not keep(value)):
                continue
            if not stacked:
                vmin = min(vmin, value)
                vmax = max(vmax, value)
                continue
            key = tuple(coordinate_value(point.get(f)) for f in key_fields)
            if key in seen:
                continue
            seen.add(key)
            if value >= 0:
                positive[key] = positive.get(key, 0.0) + value
                negative.setdefault(key, 0.0)
            else:
                negative[key] = negative.get(key, 0.0) + value
                positive.setdefault(key, 0.0)

    if stacked:
        for total in positive.values():
            vmax = max(vmax, total)
        for total in negative.values():
            vmin = min(vmin, total)
    return ValueRange(vmin, vmax)


def numeric_extent(series: Sequence[Series], data_keys: DataKeys, axis: str) -> ValueRange:
    field_name = data_keys.coordinates.get(axis)
    if field_name is None:
        return ValueRange.empty()
    vmin = math.inf
    vmax = -math.inf
    for one in series:
        for point in series_points(one, data_keys):
            if not hasattr(point, "get"):
                continue
            value = numeric_value(point.get(field_name))
            if value is None:
                continue
            vmin = min(vmin, value)
            vmax = max(vmax, value)
    return ValueRange(vmin, vmax)


def collect_axis_values(series: Sequence[Series], data_keys: DataKeys, axis: str) -> list[Any]:
    field_name = data_keys.coordinates.get(axis)
    if field_name is None:
        return []
    out: list[Any] = []
    for one in series:
        for point in series_points(one, data_keys):
            if hasattr(point, "get") and field_name in point:
                out.append(point[field_name])
    return out
