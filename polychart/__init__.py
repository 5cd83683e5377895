from polychart.adapters import series_from_frame, series_from_records
from polychart.chart import Chart, DroppedPanel, PanelRender, RenderResult, initialize_chart
from polychart.config import ChartConfig, ChartSpec, Margin, chart_spec_from_dict, load_chart_spec
from polychart.coordinates import CoordinateStrategy, strategy_for
from polychart.errors import ChartConfigError, ChartDataError, ChartError, MarginError, PanelError
from polychart.events import EventBus, PointerEvent
from polychart.export import rasterize, save_png, save_svg
from polychart.features import FeatureKind, FeatureRegistry, apply_features, default_registry
from polychart.scene import Element, Selection, new_host, to_svg_markup
from polychart.series import ChartFeature, DataKeys
from polychart.tooltip import TooltipWidget

__all__ = [
    "Chart",
    "ChartConfig",
    "ChartConfigError",
    "ChartDataError",
    "ChartError",
    "ChartFeature",
    "ChartSpec",
    "CoordinateStrategy",
    "DataKeys",
    "DroppedPanel",
    "Element",
    "EventBus",
    "FeatureKind",
    "FeatureRegistry",
    "Margin",
    "MarginError",
    "PanelError",
    "PanelRender",
    "PointerEvent",
    "RenderResult",
    "Selection",
    "TooltipWidget",
    "apply_features",
    "chart_spec_from_dict",
    "default_registry",
    "initialize_chart",
    "load_chart_spec",
    "new_host",
    "rasterize",
    "save_png",
    "save_svg",
    "series_from_frame",
    "series_from_records",
    "strategy_for",
    "to_svg_markup",
]
