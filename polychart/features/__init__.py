from polychart.features.registry import (
    INTERACTIVE_KINDS,
    DrawnFeature,
    FeatureKind,
    FeatureRegistry,
    FeatureRenderer,
    ResolvedFeature,
    apply_features,
    attach_tooltip_handlers,
    default_registry,
)

__all__ = [
    "INTERACTIVE_KINDS",
    "DrawnFeature",
    "FeatureKind",
    "FeatureRegistry",
    "FeatureRenderer",
    "ResolvedFeature",
    "apply_features",
    "attach_tooltip_handlers",
    "default_registry",
]
