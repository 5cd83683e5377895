from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Mapping, Sequence

from polychart.binding import BoundPanel, CreateParams, ValidationFailure, bind_panel
from polychart.config import ChartConfig
from polychart.container import init_container, init_group
from polychart.coordinates import CoordinateStrategy, strategy_for
from polychart.errors import ChartConfigError
from polychart.events import EventBus
from polychart.features import DrawnFeature, FeatureRegistry, apply_features, default_registry
from polychart.scene import Element
from polychart.series import ChartFeature, DataKeys, Series, features_from_list, panel_variant
from polychart.sync import SyncedDomains, synchronize
from polychart.tooltip import TooltipWidget, create_tooltip, install_tooltip_handlers

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PanelRender:
    index: int
    host: Element
    surface: Element
    group: Element
    tooltip: Element
    params: CreateParams
    drawn: tuple[DrawnFeature, ...]


@dataclass(frozen=True)
class DroppedPanel:
    index: int
    reason: str


@dataclass(frozen=True)
class RenderResult:
    panels: tuple[PanelRender, ...]
    dropped: tuple[DroppedPanel, ...]
    domains: SyncedDomains

    @property
    def ok(self) -> bool:
        return not self.dropped


class Chart:
    """One chart bound to a host element.

    The chart owns its event bus, so tooltip routing never leaks between chart instances.
    Re-rendering replaces the previous drawing (or layers onto it in merge mode).
    """

    def __init__(
        self,
        host: Element,
        *,
        registry: FeatureRegistry | None = None,
        tooltip: TooltipWidget | None = None,
    ) -> None:
        if not isinstance(host, Element):
            raise TypeError(f"host must be a scene Element, got {type(host)!r}")
        self.host = host
        self.events = EventBus()
        self.registry = registry if registry is not None else default_registry()
        self.tooltip = tooltip if tooltip is not None else TooltipWidget()

    def render(
        self,
        data: Sequence[Sequence[Series]],
        data_keys_array: Sequence[DataKeys | Mapping[str, Any]],
        features: Sequence[Sequence[ChartFeature | Mapping[str, Any]]],
        config: ChartConfig | Mapping[str, Any],
    ) -> RenderResult:
        chart_config = ChartConfig.from_mapping(config)
        panels = _check_panel_lists(data, data_keys_array, features)
        data_keys = [DataKeys.from_mapping(raw) for raw in data_keys_array]
        panel_features = [features_from_list(raw) for raw in features]
        strategy = strategy_for(chart_config.coordinate_system)
        _check_axes(strategy, data_keys)

        synced = self._domains(strategy, panels, data_keys, panel_features, chart_config)
        x_axis, y_axis = strategy.planar_axes(data_keys[0])
        panel_height = chart_config.panel_height(len(panels))
        margin = chart_config.margin
        plot_width = chart_config.plot_width
        plot_height = panel_height - margin.top - margin.bottom

        if not chart_config.merge:
            self.host.clear()

        rendered: list[PanelRender] = []
        dropped: list[DroppedPanel] = []
        for index, series in enumerate(panels):
            bound = bind_panel(
                series,
                data_keys[index],
                domains=synced.per_panel[index],
                plot_width=plot_width,
                plot_height=plot_height,
                x_type=chart_config.x_type,
                x_axis=x_axis,
                y_axis=y_axis,
                y_transform=strategy.value_transform(),
            )
            if isinstance(bound, ValidationFailure):
                LOGGER.error("panel %d dropped: %s", index, bound.message())
                dropped.append(DroppedPanel(index=index, reason=bound.message()))
                continue

            panel_host = self.host if chart_config.merge else self.host.append("div", class_="chart-panel")
            surface_height = chart_config.height if chart_config.merge else panel_height
            surface = init_container(panel_host, chart_config.width, surface_height, chart_config.merge)
            offset_y = index * panel_height if chart_config.merge and chart_config.squash else 0.0
            group = init_group(surface, margin, offset_y=offset_y)

            rendered.append(
                self._draw_panel(
                    index,
                    bound,
                    panel_host,
                    surface,
                    group,
                    panel_features[index],
                    chart_config,
                    plot_height,
                    (x_axis, y_axis),
                )
            )

        install_tooltip_handlers(self.events, self.tooltip)
        return RenderResult(panels=tuple(rendered), dropped=tuple(dropped), domains=synced)

    def _domains(
        self,
        strategy: CoordinateStrategy,
        panels: Sequence[Sequence[Series]],
        data_keys: Sequence[DataKeys],
        panel_features: Sequence[Sequence[ChartFeature]],
        config: ChartConfig,
    ) -> SyncedDomains:
        per_panel = [
            strategy.panel_domains(_series_list(series), keys, panel_variant(feats))
            for series, keys, feats in zip(panels, data_keys, panel_features)
        ]
        x_axis, y_axis = strategy.planar_axes(data_keys[0])
        return synchronize(config.sync_x, config.sync_y, per_panel, x_axis=x_axis, y_axis=y_axis)

    def _draw_panel(
        self,
        index: int,
        bound: BoundPanel,
        panel_host: Element,
        surface: Element,
        group: Element,
        features: Sequence[ChartFeature],
        config: ChartConfig,
        plot_height: float,
        planar: tuple[str, str],
    ) -> PanelRender:
        tooltip_feature = next((f for f in features if f.feature == "tooltip" and not f.hide), None)
        tooltip = create_tooltip(
            panel_host,
            tooltip_feature is not None,
            tooltip_feature.config if tooltip_feature is not None else None,
        )
        params = CreateParams(
            series=bound.series,
            data_keys=bound.data_keys,
            chart_group=group,
            scales=bound.scales,
            color_scale=bound.color_scale,
            tooltip=tooltip,
            events=self.events,
            plot_width=config.plot_width,
            plot_height=plot_height,
            margin=config.margin,
            domains=bound.domains,
            coordinate_system=config.coordinate_system,
            x_axis=planar[0],
            y_axis=planar[1],
            x_type=config.x_type,
            panel_index=index,
        )
        drawn = apply_features(params, self.registry.resolve(features), self.registry)
        return PanelRender(
            index=index,
            host=panel_host,
            surface=surface,
            group=group,
            tooltip=tooltip,
            params=params,
            drawn=drawn,
        )


def initialize_chart(
    container: Element,
    data: Sequence[Sequence[Series]],
    data_keys_array: Sequence[DataKeys | Mapping[str, Any]],
    features: Sequence[Sequence[ChartFeature | Mapping[str, Any]]],
    config: ChartConfig | Mapping[str, Any],
    *,
    registry: FeatureRegistry | None = None,
    tooltip: TooltipWidget | None = None,
) -> RenderResult:
    return Chart(container, registry=registry, tooltip=tooltip).render(data, data_keys_array, features, config)


def _check_panel_lists(data: Any, data_keys_array: Any, features: Any) -> list[Any]:
    for label, value in (("data", data), ("data keys", data_keys_array), ("features", features)):
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
            raise ChartConfigError(f"{label} must be a list with one entry per panel")
    if not data:
        raise ChartConfigError("at least one panel is required")
    if not len(data) == len(data_keys_array) == len(features):
        raise ChartConfigError(
            "data, data keys and features must have the same length, got "
            f"{len(data)}, {len(data_keys_array)} and {len(features)}"
        )
    return list(data)


def _check_axes(strategy: CoordinateStrategy, data_keys: Sequence[DataKeys]) -> None:
    for index, keys in enumerate(data_keys):
        missing = strategy.missing_axes(keys)
        if missing:
            raise ChartConfigError(
                f"panel {index}: {strategy.name} charts need coordinates for {', '.join(missing)}"
            )


def _series_list(series: Any) -> Sequence[Series]:
    if isinstance(series, (str, bytes, Mapping)) or not isinstance(series, Sequence):
        return ()
    return series
