from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Mapping, Protocol, Sequence

from polychart.binding import CreateParams
from polychart.scene import Selection
from polychart.series import ChartFeature

LOGGER = logging.getLogger(__name__)


class FeatureKind(str, Enum):
    TOOLTIP = "tooltip"
    GRID = "grid"
    AXIS = "axis"
    LABEL = "label"
    AREA = "area"
    LINE = "line"
    POINT = "point"
    BUBBLES = "bubbles"
    BAR = "bar"
    CUSTOM = "custom"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str) -> "FeatureKind":
        try:
            kind = cls(name)
        except ValueError:
            return cls.UNKNOWN
        if kind in (cls.CUSTOM, cls.UNKNOWN):
            return cls.UNKNOWN
        return kind


INTERACTIVE_KINDS = frozenset({FeatureKind.POINT, FeatureKind.BUBBLES, FeatureKind.BAR})


class FeatureRenderer(Protocol):
    def __call__(self, params: CreateParams, config: Mapping[str, Any] | None) -> Selection | None:
        ...


@dataclass(frozen=True)
class ResolvedFeature:
    feature: ChartFeature
    kind: FeatureKind
    renderer: FeatureRenderer | None
    interactive: bool = False

    @property
    def name(self) -> str:
        return self.feature.feature


@dataclass(frozen=True)
class DrawnFeature:
    name: str
    kind: FeatureKind
    selection: Selection | None


class FeatureRegistry:
    """Name -> renderer table, resolved into tagged features before any drawing happens."""

    def __init__(self) -> None:
        self._renderers: dict[str, tuple[FeatureRenderer, bool]] = {}

    def register(self, name: str, renderer: FeatureRenderer, *, interactive: bool | None = None) -> None:
        if not name or not isinstance(name, str):
            raise ValueError("feature name must be a non-empty string")
        if not callable(renderer):
            raise TypeError(f"renderer for `{name}` must be callable")
        if interactive is None:
            interactive = FeatureKind.parse(name) in INTERACTIVE_KINDS
        self._renderers[name] = (renderer, interactive)

    def resolve_one(self, feature: ChartFeature) -> ResolvedFeature:
        entry = self._renderers.get(feature.feature)
        if entry is None:
            return ResolvedFeature(feature=feature, kind=FeatureKind.UNKNOWN, renderer=None)
        renderer, interactive = entry
        kind = FeatureKind.parse(feature.feature)
        if kind is FeatureKind.UNKNOWN:
            kind = FeatureKind.CUSTOM
        return ResolvedFeature(feature=feature, kind=kind, renderer=renderer, interactive=interactive)

    def resolve(self, features: Sequence[ChartFeature]) -> tuple[ResolvedFeature, ...]:
        return tuple(self.resolve_one(feature) for feature in features)


def default_registry() -> FeatureRegistry:
    from polychart.features.bar import render_bars
    from polychart.features.canvas import render_axis, render_grid, render_label, render_tooltip
    from polychart.features.point import render_area, render_bubbles, render_line, render_points

    registry = FeatureRegistry()
    registry.register(FeatureKind.TOOLTIP.value, render_tooltip)
    registry.register(FeatureKind.GRID.value, render_grid)
    registry.register(FeatureKind.AXIS.value, render_axis)
    registry.register(FeatureKind.LABEL.value, render_label)
    registry.register(FeatureKind.AREA.value, render_area)
    registry.register(FeatureKind.LINE.value, render_line)
    registry.register(FeatureKind.POINT.value, render_points)
    registry.register(FeatureKind.BUBBLES.value, render_bubbles)
    registry.register(FeatureKind.BAR.value, render_bars)
    return registry


def apply_features(
    params: CreateParams,
    features: Sequence[ChartFeature | ResolvedFeature],
    registry: FeatureRegistry | None = None,
) -> tuple[DrawnFeature, ...]:
    """Draw `features` onto the panel in caller order.

    Hidden features are skipped without a message; unknown ones are reported and skipped.
    Only selections returned by interactive kinds get pointer handlers, and those handlers
    route through the panel's own event bus.
    """
    table = registry if registry is not None else default_registry()
    drawn: list[DrawnFeature] = []
    for item in features:
        resolved = item if isinstance(item, ResolvedFeature) else table.resolve_one(item)
        if resolved.feature.hide:
            continue
        if resolved.renderer is None:
            LOGGER.warning("feature renderer not found for feature: %s", resolved.name)
            continue
        selection = resolved.renderer(params, resolved.feature.config)
        if isinstance(selection, Selection) and resolved.interactive:
            attach_tooltip_handlers(selection, params)
        drawn.append(DrawnFeature(name=resolved.name, kind=resolved.kind, selection=selection))
    return tuple(drawn)


def attach_tooltip_handlers(selection: Selection, params: CreateParams) -> None:
    bus = params.events
    tooltip = params.tooltip
    data_keys = params.data_keys

    def on_over(event: Any, datum: Any) -> None:
        bus.trigger("tooltip", tooltip, datum, data_keys)

    def on_move(event: Any, datum: Any) -> None:
        bus.trigger("tooltip_move", tooltip, event)

    def on_out(event: Any, datum: Any) -> None:
        bus.trigger("tooltip_hide", tooltip)

    selection.on("mouseover", on_over).on("mousemove", on_move).on("mouseout", on_out)
