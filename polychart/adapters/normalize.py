from __future__ import annotations

from collections.abc import Mapping, Sequence
import math
from typing import Any

import numpy as np

from polychart.errors import ChartDataError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


def series_from_records(
    records: Sequence[Mapping[str, Any]],
    *,
    group_key: str,
    name_key: str = "name",
    data_key: str = "data",
    fields: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    """Group flat records into chart series, one per distinct `group_key` value.

    Series keep the first-seen order of their group; points keep record order.
    """
    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise ChartDataError(f"records must be a list of mappings, got {type(records)!r}")
    grouped: dict[Any, list[dict[str, Any]]] = {}
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ChartDataError(f"record {index} is not a mapping: {record!r}")
        if group_key not in record:
            raise ChartDataError(f"record {index} has no `{group_key}` field")
        point = {
            key: _point_value(value)
            for key, value in record.items()
            if key != group_key and (fields is None or key in fields)
        }
        grouped.setdefault(record[group_key], []).append(point)
    return [{name_key: str(group), data_key: points} for group, points in grouped.items()]


def series_from_frame(
    frame: Any,
    *,
    group_key: str | None = None,
    name: str = "series",
    name_key: str = "name",
    data_key: str = "data",
    columns: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    """Long-format DataFrame to chart series; without `group_key` the frame is a single series."""
    if pd is None:
        raise ChartDataError("pandas is required for series_from_frame")
    if not isinstance(frame, pd.DataFrame):
        raise ChartDataError("`frame` must be a pandas DataFrame")
    wanted = list(columns) if columns is not None else [c for c in frame.columns if c != group_key]
    missing = [c for c in wanted if c not in frame.columns]
    if group_key is not None and group_key not in frame.columns:
        missing.append(group_key)
    if missing:
        raise ChartDataError(f"column not found: {', '.join(map(str, missing))}")

    selected = wanted + ([group_key] if group_key is not None else [])
    records = frame[selected].to_dict(orient="records")
    if group_key is None:
        points = [{key: _point_value(value) for key, value in record.items()} for record in records]
        return [{name_key: name, data_key: points}]
    return series_from_records(records, group_key=group_key, name_key=name_key, data_key=data_key)


def _point_value(value: Any) -> Any:
    if pd is not None and value is pd.NaT:
        return None
    if pd is not None and isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            return None
        return value.astype("datetime64[ms]").item()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value
