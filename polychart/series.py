from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from polychart.errors import ChartConfigError


DataPoint = Mapping[str, Any]
Series = Mapping[str, Any]
XValueType = Literal["date", "number", "string"]
BarVariant = Literal["grouped", "stacked", "overlapped", "error"]

X_VALUE_TYPES = ("date", "number", "string")
BAR_VARIANTS = ("grouped", "stacked", "overlapped", "error")


@dataclass(frozen=True)
class DataKeys:
    name: str
    data: str
    coordinates: Mapping[str, str]
    magnitude: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ChartConfigError("data keys `name` must be a non-empty string")
        if not isinstance(self.data, str) or not self.data:
            raise ChartConfigError("data keys `data` must be a non-empty string")
        if not isinstance(self.coordinates, Mapping) or not self.coordinates:
            raise ChartConfigError("data keys `coordinates` must be a non-empty mapping")
        for axis, key in self.coordinates.items():
            if not isinstance(axis, str) or not isinstance(key, str):
                raise ChartConfigError(f"coordinate mapping must be str -> str, got {axis!r} -> {key!r}")
        if self.magnitude is not None and not isinstance(self.magnitude, str):
            raise ChartConfigError("data keys `magnitude` must be a string")

    def key_for(self, axis: str) -> str:
        try:
            return self.coordinates[axis]
        except KeyError as exc:
            raise ChartConfigError(f"axis `{axis}` is not declared in data keys coordinates") from exc

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "DataKeys":
        if isinstance(raw, DataKeys):
            return raw
        if not isinstance(raw, Mapping):
            raise ChartConfigError(f"data keys must be a mapping, got {type(raw)!r}")
        missing = [k for k in ("name", "data", "coordinates") if k not in raw]
        if missing:
            raise ChartConfigError(f"data keys missing fields: {', '.join(missing)}")
        coordinates = raw["coordinates"]
        return cls(
            name=raw["name"],
            data=raw["data"],
            coordinates=dict(coordinates) if isinstance(coordinates, Mapping) else coordinates,
            magnitude=raw.get("magnitude"),
        )


@dataclass(frozen=True)
class ChartFeature:
    feature: str
    hide: bool = False
    config: Mapping[str, Any] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.feature, str):
            raise ChartConfigError(f"feature name must be a string, got {self.feature!r}")
        if not isinstance(self.hide, bool):
            raise ChartConfigError(f"feature `{self.feature}` hide flag must be a boolean")
        if self.config is not None and not isinstance(self.config, Mapping):
            raise ChartConfigError(f"feature `{self.feature}` config must be a mapping")

    def option(self, key: str, default: Any = None) -> Any:
        if self.config is None:
            return default
        return self.config.get(key, default)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ChartFeature":
        if isinstance(raw, ChartFeature):
            return raw
        if not isinstance(raw, Mapping) or "feature" not in raw:
            raise ChartConfigError(f"feature entry must be a mapping with a `feature` field: {raw!r}")
        return cls(feature=raw["feature"], hide=raw.get("hide", False), config=raw.get("config"))


def features_from_list(raw: Sequence[Any]) -> tuple[ChartFeature, ...]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise ChartConfigError("features must be a list of feature entries")
    return tuple(ChartFeature.from_mapping(item) for item in raw)


def panel_variant(features: Sequence[ChartFeature]) -> str:
    """Stacking mode of a panel: the variant of its first visible bar feature."""
    for feature in features:
        if feature.feature == "bar" and not feature.hide:
            return str(feature.option("variant") or "grouped")
    return "grouped"


def series_points(series: Series, data_keys: DataKeys) -> Sequence[DataPoint]:
    """Points of one series, or an empty tuple when the series does not carry the data key."""
    if not isinstance(series, Mapping):
        return ()
    points = series.get(data_keys.data)
    if isinstance(points, (str, bytes)) or not isinstance(points, Sequence):
        return ()
    return points


def series_name(series: Series, data_keys: DataKeys) -> str:
    return str(series.get(data_keys.name, "")) if isinstance(series, Mapping) else ""
