from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Sequence

import numpy as np

from polychart.domains import DiscreteDomain, ValueRange
from polychart.errors import ChartConfigError
from polychart.series import X_VALUE_TYPES
from polychart.values import coordinate_value, numeric_value, to_datetime


BAND_PADDING = 0.1
SUB_BAND_PADDING_IN_BAND = 0.05
SUB_BAND_PADDING_CONTINUOUS = 0.2
SUB_BAND_MAX_WIDTH = 50.0
SUB_BAND_FALLBACK_WIDTH = 20.0

CATEGORY10 = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)


class LinearScale:
    """Continuous mapping from a numeric domain to a pixel range.

    `transform` is applied to input values before the affine map (log10 for logarithmic
    value axes, where the domain is expressed in exponents).
    """

    kind = "linear"

    def __init__(
        self,
        domain: tuple[float, float],
        range_: tuple[float, float],
        *,
        transform: Callable[[float], float] | None = None,
    ) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))
        self.transform = transform

    def __call__(self, value: Any) -> float | None:
        number = numeric_value(value)
        if number is None:
            return None
        if self.transform is not None:
            if number <= 0:
                return None
            number = self.transform(number)
        return self.map_domain(number)

    def map_domain(self, number: float) -> float:
        """Affine map of a domain-space number (an exponent on log axes)."""
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2.0
        return r0 + (float(number) - d0) * (r1 - r0) / (d1 - d0)

    def baseline(self) -> float:
        """Pixel of domain value 0 (exponent 0 on log axes), clamped into the range."""
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0
        pixel = r0 + (0.0 - d0) * (r1 - r0) / (d1 - d0)
        return min(max(pixel, min(r0, r1)), max(r0, r1))

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return d0
        return d0 + (pixel - r0) * (d1 - d0) / (r1 - r0)

    def ticks(self, count: int = 10) -> np.ndarray:
        lo, hi = sorted(self.domain)
        return generate_nice_ticks(lo, hi, count)

    def tick_labels(self, ticks: np.ndarray, *, decimals: int | None = None) -> list[str]:
        if self.transform is not None:
            return [format_tick(float(10.0 ** v)) for v in ticks]
        if decimals is not None:
            return [f"{float(v):.{decimals}f}" for v in ticks]
        return format_ticks_for_axis(ticks)


class TimeScale(LinearScale):
    """Linear scale over epoch milliseconds that reads and reports datetimes."""

    kind = "time"

    def ticks(self, count: int = 5) -> np.ndarray:
        lo, hi = sorted(self.domain)
        if lo == hi:
            return np.asarray([lo], dtype=np.float64)
        return np.linspace(lo, hi, max(2, count), dtype=np.float64)

    def tick_labels(self, ticks: np.ndarray, *, fmt: str = "%m / %y") -> list[str]:
        return [to_datetime(v).strftime(fmt) for v in ticks]

    @property
    def domain_datetimes(self) -> tuple[dt.datetime, dt.datetime]:
        return (to_datetime(self.domain[0]), to_datetime(self.domain[1]))


class BandScale:
    """Discrete scale: equal-width bands with inner/outer padding, centred in the range."""

    kind = "band"

    def __init__(
        self,
        domain: Sequence[Any],
        range_: tuple[float, float],
        *,
        padding: float = BAND_PADDING,
    ) -> None:
        self.domain = tuple(coordinate_value(v) for v in domain)
        self.range = (float(range_[0]), float(range_[1]))
        self.padding = float(padding)
        self._index = {value: i for i, value in enumerate(self.domain)}
        n = len(self.domain)
        start, stop = self.range
        self._step = (stop - start) / max(1.0, n - self.padding + self.padding * 2)
        self._start = start + (stop - start - self._step * (n - self.padding)) * 0.5
        self._bandwidth = self._step * (1.0 - self.padding)

    def __call__(self, value: Any) -> float | None:
        index = self._index.get(coordinate_value(value))
        if index is None:
            return None
        return self._start + self._step * index

    def bandwidth(self) -> float:
        return self._bandwidth

    def step(self) -> float:
        return self._step

    def ticks(self, count: int | None = None) -> tuple[Any, ...]:
        return self.domain

    def tick_labels(self, ticks: Sequence[Any], **_: Any) -> list[str]:
        return [str(v) for v in ticks]


class OrdinalColorScale:
    """Stable category colors; unseen names extend the domain in first-use order."""

    def __init__(self, names: Sequence[str], palette: Sequence[str] = CATEGORY10) -> None:
        self.palette = tuple(palette)
        self._index: dict[str, int] = {}
        for name in names:
            self._index.setdefault(name, len(self._index))

    @property
    def domain(self) -> tuple[str, ...]:
        return tuple(self._index)

    def __call__(self, name: str) -> str:
        index = self._index.setdefault(name, len(self._index))
        return self.palette[index % len(self.palette)]


Scale = LinearScale | TimeScale | BandScale


@dataclass(frozen=True)
class Scales:
    x: Scale
    y: LinearScale
    extra: dict[str, LinearScale] = field(default_factory=dict)

    def __getitem__(self, axis: str) -> Scale:
        if axis == "x":
            return self.x
        if axis == "y":
            return self.y
        return self.extra[axis]


def create_scales(
    x_domain: DiscreteDomain,
    y_domain: ValueRange,
    pixel_width: float,
    pixel_height: float,
    x_value_type: str | None,
    *,
    y_transform: Callable[[float], float] | None = None,
) -> Scales:
    if x_value_type is not None and x_value_type not in X_VALUE_TYPES:
        raise ChartConfigError(f"invalid x value type: {x_value_type!r}")

    if x_value_type in ("date", "number"):
        extent = x_domain.numeric_extent()
        if not extent.is_finite:
            extent = ValueRange.default()
        cls = TimeScale if x_value_type == "date" else LinearScale
        x_scale: Scale = cls(extent.as_tuple(), (0.0, pixel_width))
    else:
        x_scale = BandScale(x_domain.values, (0.0, pixel_width), padding=BAND_PADDING)

    y_scale = LinearScale(y_domain.as_tuple(), (pixel_height, 0.0), transform=y_transform)
    return Scales(x=x_scale, y=y_scale)


def sub_band_scale(x_scale: Scale, series_names: Sequence[str], x_values: Sequence[Any]) -> BandScale:
    """Lateral slots for several series sharing one x position (bars, error bars)."""
    if isinstance(x_scale, BandScale):
        return BandScale(series_names, (0.0, x_scale.bandwidth()), padding=SUB_BAND_PADDING_IN_BAND)

    pixels = sorted({p for p in (x_scale(v) for v in x_values) if p is not None})
    if len(pixels) < 2:
        width = SUB_BAND_FALLBACK_WIDTH
    else:
        gaps = np.diff(np.asarray(pixels, dtype=np.float64))
        positive = gaps[gaps > 0]
        gap = float(np.min(positive)) if positive.size else SUB_BAND_FALLBACK_WIDTH
        width = min(gap, SUB_BAND_MAX_WIDTH)
    return BandScale(series_names, (0.0, width), padding=SUB_BAND_PADDING_CONTINUOUS)


def position(x_scale: Scale, value: Any, *, center: bool = False) -> float | None:
    """Pixel for `value`; band scales optionally report the band centre."""
    pixel = x_scale(value)
    if pixel is None:
        return None
    if center and isinstance(x_scale, BandScale):
        return pixel + x_scale.bandwidth() / 2.0
    return pixel


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    ticks = np.arange(np.ceil(vmin / step) * step, vmax + 0.5 * step, step, dtype=np.float64)
    ticks = ticks[ticks <= vmax + step * 1e-9]
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    if abs_v != 0 and (abs_v >= 1e6 or abs_v < 1e-6):
        return f"{value:.4e}"

    decimals = _decimals_from_step(step) if step is not None else 6
    try:
        quantized = Decimal(str(value)).quantize(Decimal("1").scaleb(-decimals))
    except InvalidOperation:
        quantized = Decimal(str(value))
    out = format(quantized, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    return "0" if out == "-0" else out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)
    if round_result:
        bounds = ((1.5, 1.0), (3.0, 2.0), (7.0, 5.0))
        nice = next((n for limit, n in bounds if frac < limit), 10.0)
    else:
        bounds = ((1.0, 1.0), (2.0, 2.0), (5.0, 5.0))
        nice = next((n for limit, n in bounds if frac <= limit), 10.0)
    return float(nice * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    exp = Decimal(str(step)).normalize().as_tuple().exponent
    return min(12, max(0, -int(exp)))
