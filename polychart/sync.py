from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Sequence

from polychart.domains import DEFAULT_DISCRETE, DiscreteDomain, PanelDomains, ValueRange

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncedDomains:
    shared_x: DiscreteDomain | None
    shared_y: ValueRange | None
    per_panel: tuple[PanelDomains, ...]


def merge_discrete(domains: Sequence[DiscreteDomain]) -> DiscreteDomain:
    values = [value for domain in domains for value in domain]
    return DiscreteDomain.from_values(values)


def merge_ranges(ranges: Sequence[ValueRange]) -> ValueRange:
    merged = ValueRange.empty()
    for value_range in ranges:
        merged = merged.union(value_range)
    return merged.include_zero()


def safe_discrete(domain: DiscreteDomain | None, *, label: str) -> DiscreteDomain:
    if domain is None or len(domain) == 0:
        LOGGER.warning("%s domain is empty, defaulting to %s", label, list(DEFAULT_DISCRETE))
        return DiscreteDomain(DEFAULT_DISCRETE)
    return domain


def safe_range(value_range: ValueRange | None, *, label: str) -> ValueRange:
    if value_range is None or not value_range.is_finite:
        LOGGER.warning("%s domain contains invalid values, defaulting to [0, 1]", label)
        return ValueRange.default()
    return value_range


def synchronize(
    sync_x: bool,
    sync_y: bool,
    per_panel: Sequence[PanelDomains],
    *,
    x_axis: str = "x",
    y_axis: str = "y",
) -> SyncedDomains:
    """Combine per-panel domains into shared ones where synchronization is requested.

    Unsynchronized panels keep their own domains. Every returned domain is usable by the scale
    factory: empty discrete domains become (0, 1) and non-finite ranges become [0, 1].
    """
    shared_x: DiscreteDomain | None = None
    shared_y: ValueRange | None = None

    if sync_x:
        shared_x = safe_discrete(
            merge_discrete([p.discrete.get(x_axis, DiscreteDomain(())) for p in per_panel]),
            label=f"synchronized {x_axis}",
        )
    if sync_y:
        shared_y = safe_range(
            merge_ranges([p.ranges.get(y_axis, ValueRange.empty()) for p in per_panel]),
            label=f"synchronized {y_axis}",
        )

    resolved: list[PanelDomains] = []
    for index, panel in enumerate(per_panel):
        x_domain = shared_x if shared_x is not None else safe_discrete(
            panel.discrete.get(x_axis), label=f"panel {index} {x_axis}"
        )
        y_range = shared_y if shared_y is not None else safe_range(
            panel.ranges.get(y_axis), label=f"panel {index} {y_axis}"
        )
        ranges = {
            axis: safe_range(value_range, label=f"panel {index} {axis}")
            for axis, value_range in panel.ranges.items()
            if axis != y_axis
        }
        ranges[y_axis] = y_range
        resolved.append(replace(panel, ranges=ranges).with_discrete(x_axis, x_domain))

    return SyncedDomains(shared_x=shared_x, shared_y=shared_y, per_panel=tuple(resolved))
