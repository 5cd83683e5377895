from __future__ import annotations

import datetime as dt
import unittest
from unittest import mock

from polychart.adapters import series_from_frame, series_from_records
from polychart.errors import ChartDataError

try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None


class RecordAdapterTests(unittest.TestCase):
    def test_records_group_in_first_seen_order(self) -> None:
        records = [
            {"region": "north", "day": 1, "sales": 3},
            {"region": "south", "day": 1, "sales": 5},
            {"region": "north", "day": 2, "sales": 4},
        ]
        series = series_from_records(records, group_key="region")
        self.assertEqual([s["name"] for s in series], ["north", "south"])
        self.assertEqual(series[0]["data"], [{"day": 1, "sales": 3}, {"day": 2, "sales": 4}])

    def test_fields_filter_and_custom_keys(self) -> None:
        records = [{"g": 1, "x": "a", "y": 2, "note": "skip"}]
        series = series_from_records(records, group_key="g", name_key="label", data_key="points", fields=["x", "y"])
        self.assertEqual(series, [{"label": "1", "points": [{"x": "a", "y": 2}]}])

    def test_bad_records(self) -> None:
        with self.assertRaises(ChartDataError):
            series_from_records("abc", group_key="g")
        with self.assertRaises(ChartDataError):
            series_from_records([{"x": 1}], group_key="g")
        with self.assertRaises(ChartDataError):
            series_from_records([3], group_key="g")


class FrameAdapterTests(unittest.TestCase):
    def test_missing_pandas_is_reported(self) -> None:
        with mock.patch("polychart.adapters.normalize.pd", None):
            with self.assertRaises(ChartDataError):
                series_from_frame(object())

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_frame_rejects_other_objects(self) -> None:
        with self.assertRaises(ChartDataError):
            series_from_frame([{"x": 1}])

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_frame_groups_and_converts_values(self) -> None:
        frame = pd.DataFrame(
            {
                "day": pd.to_datetime(["2024-01-01", "2024-01-02", "2024-01-01"]),
                "sales": [1.5, float("nan"), 3.0],
                "region": ["north", "north", "south"],
            }
        )
        series = series_from_frame(frame, group_key="region")
        self.assertEqual([s["name"] for s in series], ["north", "south"])
        first = series[0]["data"][0]
        self.assertEqual(first["day"], dt.datetime(2024, 1, 1))
        self.assertEqual(first["sales"], 1.5)
        self.assertIsNone(series[0]["data"][1]["sales"])

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_frame_without_group_is_one_series(self) -> None:
        frame = pd.DataFrame({"x": [1, 2], "y": [3, 4], "z": [0, 0]})
        (series,) = series_from_frame(frame, name="totals", columns=["x", "y"])
        self.assertEqual(series["name"], "totals")
        self.assertEqual(series["data"], [{"x": 1, "y": 3}, {"x": 2, "y": 4}])

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_missing_column(self) -> None:
        with self.assertRaises(ChartDataError):
            series_from_frame(pd.DataFrame({"x": [1]}), columns=["x", "y"])


if __name__ == "__main__":
    unittest.main()
