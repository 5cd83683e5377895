from __future__ import annotations

import datetime as dt
import math
import unittest

import numpy as np

from polychart import initialize_chart, new_host
from polychart.coordinates import strategy_for
from polychart.domains import DiscreteDomain, PanelDomains, ValueRange
from polychart.errors import ChartConfigError
from polychart.scales import (
    BandScale,
    LinearScale,
    OrdinalColorScale,
    TimeScale,
    create_scales,
    format_ticks_for_axis,
    generate_nice_ticks,
    position,
    sub_band_scale,
)
from polychart.series import DataKeys
from polychart.sync import synchronize


class SynchronizerTests(unittest.TestCase):
    def _panels(self) -> list[PanelDomains]:
        return [
            PanelDomains(discrete={"x": DiscreteDomain(("b", "a"))}, ranges={"y": ValueRange(-3.0, 5.0)}),
            PanelDomains(discrete={"x": DiscreteDomain(("c", "a"))}, ranges={"y": ValueRange(0.0, 4.0)}),
        ]

    def test_shared_domains_are_unions(self) -> None:
        synced = synchronize(True, True, self._panels())
        self.assertEqual(synced.shared_x.values, ("a", "b", "c"))
        self.assertEqual(synced.shared_y, ValueRange(-3.0, 5.0))
        for panel in synced.per_panel:
            self.assertEqual(panel.discrete["x"], synced.shared_x)
            self.assertEqual(panel.ranges["y"], synced.shared_y)

    def test_synchronization_is_idempotent(self) -> None:
        once = synchronize(True, True, self._panels())
        twice = synchronize(True, True, once.per_panel)
        self.assertEqual(once.per_panel, twice.per_panel)

    def test_unsynchronized_panels_keep_their_own_domains(self) -> None:
        synced = synchronize(False, False, self._panels())
        self.assertIsNone(synced.shared_x)
        self.assertIsNone(synced.shared_y)
        self.assertEqual(synced.per_panel[1].ranges["y"], ValueRange(0.0, 4.0))

    def test_mixed_discrete_values_merge_deterministically(self) -> None:
        panels = [
            PanelDomains(discrete={"x": DiscreteDomain((2, 1))}),
            PanelDomains(discrete={"x": DiscreteDomain(("a",))}),
        ]
        synced = synchronize(True, False, panels)
        self.assertEqual(synced.shared_x.values, (1, 2, "a"))

    def test_degenerate_domains_default_with_warning(self) -> None:
        with self.assertLogs("polychart.sync", level="WARNING") as logs:
            synced = synchronize(True, True, [PanelDomains()])
        self.assertEqual(synced.shared_x.values, (0, 1))
        self.assertEqual(synced.shared_y, ValueRange(0.0, 1.0))
        self.assertEqual(len(logs.output), 2)

    def test_results_never_contain_infinities(self) -> None:
        panels = [PanelDomains(ranges={"y": ValueRange.empty(), "size": ValueRange.empty()})]
        with self.assertLogs("polychart.sync", level="WARNING"):
            synced = synchronize(False, False, panels)
        self.assertTrue(synced.per_panel[0].ranges["y"].is_finite)
        self.assertEqual(synced.per_panel[0].ranges["size"], ValueRange(0.0, 1.0))

    def test_rendered_domains_never_contain_infinities(self) -> None:
        keys = {"name": "name", "data": "data", "coordinates": {"x": "x", "y": "y"}}
        config = {"width": 470, "height": 370, "syncX": True, "syncY": True}
        empty_panel = [[]]
        categorical_panel = [[{"name": "A", "data": [{"x": "a", "y": 1}]}]]
        with self.assertLogs("polychart", level="WARNING"):
            results = [
                initialize_chart(new_host(), data, [keys], [[]], config) for data in (empty_panel, categorical_panel)
            ]
        for result in results:
            for panel in result.domains.per_panel:
                for axis, value_range in panel.ranges.items():
                    self.assertTrue(value_range.is_finite, axis)
        self.assertNotIn("x", results[1].domains.per_panel[0].ranges)

    def test_single_panel_sync_matches_unsynchronized(self) -> None:
        keys = DataKeys(name="name", data="data", coordinates={"x": "x", "y": "y"})
        series = [{"name": "A", "data": [{"x": 1, "y": 5}, {"x": 2, "y": -3}]}]
        panel = strategy_for("cartesian").panel_domains(series, keys, "grouped")
        synced = synchronize(True, True, [panel])
        plain = synchronize(False, False, [panel])
        self.assertEqual(synced.per_panel, plain.per_panel)
        self.assertEqual(synced.shared_y, ValueRange(-3.0, 5.0))


class ScaleFactoryTests(unittest.TestCase):
    def test_date_axis_maps_extent_onto_width(self) -> None:
        start = dt.datetime(2024, 1, 1)
        end = dt.datetime(2024, 3, 1)
        scales = create_scales(DiscreteDomain.from_values([end, start]), ValueRange(0.0, 10.0), 400, 300, "date")
        self.assertIsInstance(scales.x, TimeScale)
        self.assertAlmostEqual(scales.x(start), 0.0)
        self.assertAlmostEqual(scales.x(end), 400.0)
        self.assertEqual(scales.x.domain_datetimes[0], start.replace(tzinfo=dt.timezone.utc))

    def test_value_axis_is_inverted(self) -> None:
        scales = create_scales(DiscreteDomain(("a",)), ValueRange(0.0, 10.0), 400, 300, None)
        self.assertAlmostEqual(scales.y(0), 300.0)
        self.assertAlmostEqual(scales.y(10), 0.0)
        self.assertAlmostEqual(scales.y.invert(150.0), 5.0)

    def test_band_scale_padding(self) -> None:
        scales = create_scales(DiscreteDomain(("a", "b", "c")), ValueRange(0.0, 1.0), 300, 100, "string")
        self.assertIsInstance(scales.x, BandScale)
        step = 300 / 3.1
        self.assertAlmostEqual(scales.x.step(), step)
        self.assertAlmostEqual(scales.x.bandwidth(), step * 0.9)
        self.assertAlmostEqual(scales.x("a"), (300 - step * 2.9) / 2)
        self.assertIsNone(scales.x("z"))

    def test_number_axis_without_values_defaults_to_unit_extent(self) -> None:
        scales = create_scales(DiscreteDomain(()), ValueRange(0.0, 1.0), 100, 100, "number")
        self.assertEqual(scales.x.domain, (0.0, 1.0))

    def test_invalid_x_type_is_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            create_scales(DiscreteDomain(("a",)), ValueRange(0.0, 1.0), 100, 100, "category")

    def test_log_transform_maps_in_exponent_space(self) -> None:
        scale = LinearScale((0.0, 3.0), (300.0, 0.0), transform=math.log10)
        self.assertAlmostEqual(scale(100), 100.0)
        self.assertIsNone(scale(0))
        self.assertIsNone(scale(-1))
        self.assertAlmostEqual(scale.baseline(), 300.0)
        self.assertEqual(scale.tick_labels(np.asarray([0.0, 1.0, 2.0])), ["1", "10", "100"])

    def test_baseline_is_clamped_into_range(self) -> None:
        scale = LinearScale((2.0, 6.0), (300.0, 0.0))
        self.assertAlmostEqual(scale.baseline(), 300.0)

    def test_sub_band_inside_band(self) -> None:
        x_scale = BandScale(("a", "b"), (0.0, 200.0))
        slots = sub_band_scale(x_scale, ["A", "B"], ["a", "b"])
        self.assertEqual(slots.range, (0.0, x_scale.bandwidth()))
        self.assertEqual(slots.padding, 0.05)

    def test_sub_band_on_continuous_axis_is_capped(self) -> None:
        x_scale = LinearScale((0.0, 100.0), (0.0, 1000.0))
        wide = sub_band_scale(x_scale, ["A"], [0, 10, 20])
        narrow = sub_band_scale(x_scale, ["A"], [0, 1, 3])
        single = sub_band_scale(x_scale, ["A"], [5])
        self.assertEqual(wide.range, (0.0, 50.0))
        self.assertEqual(narrow.range, (0.0, 10.0))
        self.assertEqual(single.range, (0.0, 20.0))
        self.assertEqual(wide.padding, 0.2)

    def test_position_centres_bands_only_on_request(self) -> None:
        x_scale = BandScale(("a",), (0.0, 110.0))
        self.assertAlmostEqual(position(x_scale, "a", center=True), x_scale("a") + x_scale.bandwidth() / 2)
        self.assertAlmostEqual(position(x_scale, "a"), x_scale("a"))

    def test_color_scale_follows_series_order(self) -> None:
        colors = OrdinalColorScale(["B", "A"])
        self.assertEqual(colors.domain, ("B", "A"))
        self.assertEqual(colors("B"), "#1f77b4")
        self.assertEqual(colors("A"), "#ff7f0e")
        self.assertEqual(colors("C"), "#2ca02c")

    def test_nice_ticks_and_labels(self) -> None:
        ticks = generate_nice_ticks(-3.0, 5.0, 10)
        self.assertEqual(float(ticks[0]), -3.0)
        self.assertIn(0.0, ticks.tolist())
        self.assertEqual(format_ticks_for_axis(np.asarray([20.0, 30.0, 40.0])), ["20", "30", "40"])


if __name__ == "__main__":
    unittest.main()
