from __future__ import annotations

import datetime as dt
from decimal import Decimal
import math
from numbers import Real
from typing import Any, Iterable

import numpy as np


CoordinateValue = float | int | str

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


def to_epoch_ms(value: dt.date | dt.datetime) -> int:
    if isinstance(value, dt.datetime):
        moment = value if value.tzinfo is not None else value.replace(tzinfo=dt.timezone.utc)
    else:
        moment = dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
    delta = moment - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def to_datetime(ms: float) -> dt.datetime:
    return _EPOCH + dt.timedelta(milliseconds=float(ms))


def coordinate_value(value: Any) -> Any:
    """Canonical form used for every sort, comparison and domain key.

    Dates become epoch milliseconds; numpy scalars become Python numbers; everything else
    is returned unchanged.
    """
    if isinstance(value, (dt.date, dt.datetime)):
        return to_epoch_ms(value)
    if isinstance(value, np.datetime64):
        return int(value.astype("datetime64[ms]").astype(np.int64))
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Decimal):
        return float(value)
    return value


def numeric_value(value: Any) -> float | None:
    """Numeric reading of a point value, or None when the value cannot sit on a numeric axis."""
    if value is None or isinstance(value, (bool, np.bool_, str)):
        return None
    canonical = coordinate_value(value)
    if not isinstance(canonical, Real):
        return None
    out = float(canonical)
    if math.isnan(out):
        return None
    return out


def is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def unique_values(values: Iterable[Any]) -> list[Any]:
    """First-seen de-duplication by canonical value."""
    seen: dict[Any, None] = {}
    for raw in values:
        value = coordinate_value(raw)
        if value is None or (isinstance(value, float) and math.isnan(value)):
            continue
        seen.setdefault(value, None)
    return list(seen)


def sort_values(values: Iterable[Any]) -> list[Any]:
    """Deterministic total order for discrete domains.

    All numbers sort numerically, all strings lexically; a mix of types sorts lexically on
    the string form of each value.
    """
    items = list(values)
    if all(is_number(v) for v in items):
        return sorted(items)
    if all(isinstance(v, str) for v in items):
        return sorted(items)
    return sorted(items, key=lambda v: (str(v), type(v).__name__))
