from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Real
from pathlib import Path
import tomllib
from typing import Any, Mapping

from polychart.errors import ChartConfigError, MarginError
from polychart.series import X_VALUE_TYPES, ChartFeature, DataKeys, features_from_list


COORDINATE_SYSTEMS = (
    "cartesian",
    "polar",
    "spherical",
    "cylindrical",
    "geographic",
    "logarithmic",
    "parallel",
    "ternary",
    "hexagonal",
)

DEFAULT_MARGIN = {"top": 20, "right": 30, "bottom": 50, "left": 40}
MARGIN_SIDES = ("top", "right", "bottom", "left")


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class Margin:
    top: float = DEFAULT_MARGIN["top"]
    right: float = DEFAULT_MARGIN["right"]
    bottom: float = DEFAULT_MARGIN["bottom"]
    left: float = DEFAULT_MARGIN["left"]

    def __post_init__(self) -> None:
        bad = [side for side in MARGIN_SIDES if not _is_number(getattr(self, side))]
        if bad:
            raise MarginError(f"margin sides must be numbers: {', '.join(bad)}")

    @classmethod
    def from_mapping(cls, raw: Any) -> "Margin":
        """Missing sides take the cartesian defaults; present sides must be numeric."""
        if isinstance(raw, Margin):
            return raw
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise MarginError(f"margin must be a mapping, got {type(raw)!r}")
        values = {side: raw.get(side, DEFAULT_MARGIN[side]) for side in MARGIN_SIDES}
        if any(value is None for value in values.values()):
            values = {side: DEFAULT_MARGIN[side] if value is None else value for side, value in values.items()}
        return cls(**values)


@dataclass(frozen=True)
class ChartConfig:
    width: float
    height: float
    margin: Margin = field(default_factory=Margin)
    squash: bool = False
    sync_x: bool = False
    sync_y: bool = False
    merge: bool = False
    x_type: str | None = None
    coordinate_system: str = "cartesian"

    def __post_init__(self) -> None:
        if not _is_number(self.width) or self.width <= 0:
            raise ChartConfigError("width must be a positive number")
        if not _is_number(self.height) or self.height <= 0:
            raise ChartConfigError("height must be a positive number")
        if not isinstance(self.margin, Margin):
            raise ChartConfigError("margin must be a Margin; use ChartConfig.from_mapping for raw input")
        for flag in ("squash", "sync_x", "sync_y", "merge"):
            if not isinstance(getattr(self, flag), bool):
                raise ChartConfigError(f"{flag} must be a boolean value")
        if self.x_type is not None and self.x_type not in X_VALUE_TYPES:
            raise ChartConfigError(f"x_type must be one of {', '.join(X_VALUE_TYPES)}, got {self.x_type!r}")
        if self.coordinate_system not in COORDINATE_SYSTEMS:
            raise ChartConfigError(f"unknown coordinate system: {self.coordinate_system!r}")

    @property
    def plot_width(self) -> float:
        return self.width - self.margin.left - self.margin.right

    def panel_height(self, panel_count: int) -> float:
        if self.squash and panel_count > 0:
            return self.height / panel_count
        return self.height

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ChartConfig":
        if isinstance(raw, ChartConfig):
            return raw
        if not isinstance(raw, Mapping):
            raise ChartConfigError(f"chart config must be a mapping, got {type(raw)!r}")
        missing = [k for k in ("width", "height") if k not in raw]
        if missing:
            raise ChartConfigError(f"chart config missing fields: {', '.join(missing)}")
        try:
            margin = Margin.from_mapping(raw.get("margin"))
        except MarginError as exc:
            raise ChartConfigError(str(exc)) from exc
        return cls(
            width=raw["width"],
            height=raw["height"],
            margin=margin,
            squash=raw.get("squash", False),
            sync_x=raw.get("sync_x", raw.get("syncX", False)),
            sync_y=raw.get("sync_y", raw.get("syncY", False)),
            merge=raw.get("merge", False),
            x_type=raw.get("x_type", raw.get("xType")),
            coordinate_system=raw.get("coordinate_system", raw.get("type", "cartesian")),
        )


@dataclass(frozen=True)
class ChartSpec:
    """Everything a render needs except the series themselves."""

    config: ChartConfig
    data_keys: tuple[DataKeys, ...]
    features: tuple[tuple[ChartFeature, ...], ...]


def chart_spec_from_dict(raw: Mapping[str, Any]) -> ChartSpec:
    if not isinstance(raw, Mapping):
        raise ChartConfigError("chart spec must be a mapping")
    config = ChartConfig.from_mapping(raw.get("chart", {}))
    panels = raw.get("panels", [])
    if not isinstance(panels, list) or not panels:
        raise ChartConfigError("chart spec must declare at least one [[panels]] entry")
    data_keys: list[DataKeys] = []
    features: list[tuple[ChartFeature, ...]] = []
    for index, panel in enumerate(panels):
        if not isinstance(panel, Mapping) or "data_keys" not in panel:
            raise ChartConfigError(f"panel {index} must define `data_keys`")
        data_keys.append(DataKeys.from_mapping(panel["data_keys"]))
        features.append(features_from_list(panel.get("features", [])))
    return ChartSpec(config=config, data_keys=tuple(data_keys), features=tuple(features))


def load_chart_spec(path: str | Path) -> ChartSpec:
    with Path(path).open("rb") as fh:
        raw = tomllib.load(fh)
    return chart_spec_from_dict(raw)
