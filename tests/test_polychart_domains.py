from __future__ import annotations

import datetime as dt
import unittest

from polychart.coordinates import strategy_for
from polychart.domains import DiscreteDomain, ValueRange, aggregate_value_range
from polychart.errors import ChartConfigError
from polychart.series import ChartFeature, DataKeys, panel_variant
from polychart.values import sort_values, to_datetime, to_epoch_ms


XY = DataKeys(name="name", data="data", coordinates={"x": "x", "y": "y"})


def _series(name: str, *points: tuple[object, object]) -> dict[str, object]:
    return {"name": name, "data": [{"x": x, "y": y} for x, y in points]}


class DomainStrategyTests(unittest.TestCase):
    def test_value_range_always_contains_zero(self) -> None:
        strategy = strategy_for("cartesian")
        positive = strategy.value_range([_series("A", ("a", 2), ("b", 5))], XY, "grouped")
        negative = strategy.value_range([_series("A", ("a", -4), ("b", -1))], XY, "grouped")
        self.assertEqual(positive, ValueRange(0.0, 5.0))
        self.assertEqual(negative, ValueRange(-4.0, 0.0))

    def test_stacked_range_is_superset_of_grouped(self) -> None:
        strategy = strategy_for("cartesian")
        series = [_series("A", (1, 3)), _series("B", (1, 4)), _series("C", (1, -2))]
        grouped = strategy.value_range(series, XY, "grouped")
        stacked = strategy.value_range(series, XY, "stacked")
        self.assertEqual(grouped, ValueRange(-2.0, 4.0))
        self.assertEqual(stacked, ValueRange(-2.0, 7.0))
        self.assertLessEqual(stacked.vmin, grouped.vmin)
        self.assertGreaterEqual(stacked.vmax, grouped.vmax)

    def test_stacking_counts_first_point_per_key_only(self) -> None:
        series = [_series("A", ("a", 2), ("a", 9)), _series("B", ("a", 3))]
        raw = aggregate_value_range(series, XY, key_axes=("x",), value_axis="y", variant="stacked")
        self.assertEqual(raw, ValueRange(0.0, 5.0))

    def test_stacking_aligns_dates_by_instant(self) -> None:
        naive = dt.datetime(2024, 1, 1)
        aware = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
        series = [_series("A", (naive, 2)), _series("B", (aware, 3))]
        raw = aggregate_value_range(series, XY, key_axes=("x",), value_axis="y", variant="stacked")
        self.assertEqual(raw.vmax, 5.0)

    def test_merged_domains_follow_each_panel_variant(self) -> None:
        strategy = strategy_for("cartesian")
        merged = strategy.calculate_merged_domains(
            [[_series("A", ("a", 5), ("b", -3))], [_series("B", ("a", 2), ("b", 4))]],
            [XY, XY],
            ["grouped", "stacked"],
        )
        self.assertEqual(merged["y"], [ValueRange(-3.0, 5.0), ValueRange(0.0, 4.0)])

    def test_axes_domains_are_unique_and_sorted(self) -> None:
        strategy = strategy_for("cartesian")
        domains = strategy.calculate_axes_domains([_series("A", ("b", 1), ("a", 3), ("b", 2))], XY)
        self.assertEqual(domains["x"].values, ("a", "b"))
        self.assertEqual(domains["y"].values, (1, 2, 3))

    def test_date_domain_uses_epoch_milliseconds(self) -> None:
        later = dt.datetime(2024, 3, 1)
        earlier = dt.datetime(2024, 1, 1)
        domain = DiscreteDomain.from_values([later, earlier, later])
        self.assertEqual(domain.values, (to_epoch_ms(earlier), to_epoch_ms(later)))
        self.assertEqual(to_datetime(domain.values[0]), earlier.replace(tzinfo=dt.timezone.utc))

    def test_logarithmic_drops_non_positive_values_with_warning(self) -> None:
        strategy = strategy_for("logarithmic")
        series = [_series("A", ("a", 10), ("b", 1000), ("c", -5), ("d", 0))]
        with self.assertLogs("polychart.coordinates", level="WARNING") as logs:
            value_range = strategy.value_range(series, XY, "grouped")
        self.assertIn("2 non-positive", logs.output[0])
        self.assertEqual(value_range, ValueRange(0.0, 3.0))

    def test_logarithmic_range_contains_exponent_zero(self) -> None:
        strategy = strategy_for("logarithmic")
        value_range = strategy.value_range([_series("A", ("a", 0.01), ("b", 0.1))], XY, "grouped")
        self.assertEqual(value_range, ValueRange(-2.0, 0.0))

    def test_polar_value_axis_is_radius(self) -> None:
        keys = DataKeys(name="name", data="data", coordinates={"angle": "theta", "radius": "r"})
        series = [
            {"name": "A", "data": [{"theta": 0, "r": 2}, {"theta": 90, "r": 3}]},
            {"name": "B", "data": [{"theta": 0, "r": 1}]},
        ]
        strategy = strategy_for("polar")
        domains = strategy.panel_domains(series, keys, "stacked")
        self.assertEqual(domains.ranges["radius"], ValueRange(0.0, 3.0))
        self.assertEqual(domains.discrete["angle"].values, (0, 90))
        self.assertEqual(strategy.planar_axes(keys), ("angle", "radius"))

    def test_missing_axes_are_reported_per_system(self) -> None:
        self.assertEqual(strategy_for("polar").missing_axes(XY), ("angle", "radius"))
        self.assertEqual(strategy_for("cartesian").missing_axes(XY), ())
        single = DataKeys(name="name", data="data", coordinates={"p": "p"})
        self.assertTrue(strategy_for("parallel").missing_axes(single))

    def test_parallel_gives_every_dimension_a_range(self) -> None:
        keys = DataKeys(name="name", data="data", coordinates={"p": "p", "q": "q", "r": "r"})
        series = [{"name": "A", "data": [{"p": 1, "q": -2, "r": 8}, {"p": 4, "q": 3, "r": 9}]}]
        domains = strategy_for("parallel").panel_domains(series, keys, "grouped")
        self.assertEqual(domains.ranges["p"], ValueRange(0.0, 4.0))
        self.assertEqual(domains.ranges["q"], ValueRange(-2.0, 3.0))
        self.assertEqual(domains.ranges["r"], ValueRange(0.0, 9.0))
        self.assertEqual(strategy_for("parallel").planar_axes(keys), ("p", "q"))

    def test_systems_without_value_axis_refuse_value_ranges(self) -> None:
        keys = DataKeys(name="name", data="data", coordinates={"longitude": "lon", "latitude": "lat"})
        with self.assertRaises(ChartConfigError):
            strategy_for("geographic").value_range([], keys, "grouped")

    def test_categorical_axis_has_no_numeric_range(self) -> None:
        domains = strategy_for("cartesian").panel_domains([_series("A", ("a", 2))], XY, "grouped")
        self.assertNotIn("x", domains.ranges)
        self.assertEqual(domains.ranges["y"], ValueRange(0.0, 2.0))

    def test_unknown_coordinate_system_is_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            strategy_for("heatmap")

    def test_missing_data_key_yields_empty_domains(self) -> None:
        domains = strategy_for("cartesian").panel_domains([{"name": "A"}], XY, "grouped")
        self.assertEqual(domains.discrete["x"].values, ())
        self.assertTrue(domains.ranges["y"].is_empty)

    def test_panel_variant_reads_first_visible_bar(self) -> None:
        features = [
            ChartFeature("bar", hide=True, config={"variant": "overlapped"}),
            ChartFeature("bar", config={"variant": "stacked"}),
        ]
        self.assertEqual(panel_variant(features), "stacked")
        self.assertEqual(panel_variant([ChartFeature("line")]), "grouped")

    def test_mixed_values_sort_on_string_form(self) -> None:
        self.assertEqual(sort_values([10, 9, 2]), [2, 9, 10])
        self.assertEqual(sort_values(["b", "a"]), ["a", "b"])
        self.assertEqual(sort_values([10, "a", 9]), [10, 9, "a"])


if __name__ == "__main__":
    unittest.main()
