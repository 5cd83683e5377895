from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

import numpy as np
from PIL import Image

from polychart import initialize_chart
from polychart.container import init_container, init_group
from polychart.errors import ChartError, MarginError
from polychart.export import rasterize, save_png, save_svg
from polychart.scene import Element, new_host, to_svg_markup, translate


KEYS = {"name": "name", "data": "data", "coordinates": {"x": "x", "y": "y"}}


def _bar_chart(**config: object) -> Element:
    host = new_host()
    data = [[{"name": "A", "data": [{"x": "a", "y": 4}, {"x": "b", "y": 2}]}]]
    features = [[{"feature": "grid"}, {"feature": "axis"}, {"feature": "bar"}, {"feature": "line"}]]
    initialize_chart(host, data, [KEYS], features, {"width": 470, "height": 370, **config})
    return host


class SceneTests(unittest.TestCase):
    def test_attribute_names_are_svg_style(self) -> None:
        root = Element("svg")
        root.append("line", class_="grid", stroke_width=2, x1=0.5)
        markup = to_svg_markup(root)
        self.assertIn('class="grid"', markup)
        self.assertIn('stroke-width="2"', markup)
        self.assertIn('x1="0.5"', markup)

    def test_join_enters_updates_and_exits(self) -> None:
        group = Element("g")
        enter, update = group.join("circle.dot", [1, 2, 3])
        self.assertEqual((len(enter), len(update)), (3, 0))
        kept = enter.nodes[0]
        enter, update = group.join("circle.dot", ["x"])
        self.assertEqual((len(enter), len(update)), (0, 1))
        self.assertIs(update.nodes[0], kept)
        self.assertEqual(kept.datum, "x")
        self.assertEqual(len(group.children), 1)

    def test_transform_offsets_accumulate(self) -> None:
        root = Element("svg")
        inner = root.append("g", transform=translate(10, 5)).append("g", transform="translate(2.5 4)")
        self.assertEqual(inner.transform_offset(), (12.5, 9.0))

    def test_dispatch_passes_bound_datum(self) -> None:
        node = Element("circle", datum={"x": 1})
        seen: list[object] = []
        node.on("mouseover", lambda event, datum: seen.append((event, datum)))
        self.assertTrue(node.dispatch("mouseover", "evt"))
        self.assertFalse(node.dispatch("click"))
        self.assertEqual(seen, [("evt", {"x": 1})])


class ContainerTests(unittest.TestCase):
    def test_non_merge_clears_host(self) -> None:
        host = new_host()
        host.append("svg")
        host.append("p")
        surface = init_container(host, 100, 50, False)
        self.assertEqual(host.children, [surface])
        self.assertEqual(surface.attrs["aria-label"], "Chart")

    def test_merge_without_surface_creates_one(self) -> None:
        host = new_host()
        host.append("p")
        surface = init_container(host, 100, 50, True)
        self.assertEqual(len(host.children), 2)
        self.assertIs(init_container(host, 100, 50, True), surface)

    def test_group_rejects_bad_margin(self) -> None:
        surface = init_container(new_host(), 100, 50, False)
        with self.assertRaises(MarginError):
            init_group(surface, {"top": 1, "right": 1, "bottom": 1})
        with self.assertRaises(MarginError):
            init_group(surface, {"top": 1, "right": 1, "bottom": 1, "left": None})


class ExportTests(unittest.TestCase):
    def test_rasterize_paints_bars(self) -> None:
        frame = rasterize(_bar_chart())
        self.assertEqual(frame.shape, (370, 470, 4))
        self.assertEqual(frame.dtype, np.uint8)
        self.assertTrue(np.any(frame[:, :, :3] != 255))
        self.assertTrue(np.all(frame[:, :, 3] == 255))

    def test_squashed_panels_stack_vertically(self) -> None:
        host = new_host()
        data = [
            [{"name": "A", "data": [{"x": "a", "y": 1}]}],
            [{"name": "B", "data": [{"x": "a", "y": 2}]}],
        ]
        initialize_chart(host, data, [KEYS, KEYS], [[], []], {"width": 300, "height": 400, "squash": True})
        self.assertEqual(rasterize(host).shape, (400, 300, 4))

    def test_rasterize_requires_a_surface(self) -> None:
        with self.assertRaises(ChartError):
            rasterize(new_host())

    def test_save_png_and_svg(self) -> None:
        host = _bar_chart()
        with tempfile.TemporaryDirectory() as tmp:
            png = save_png(host, Path(tmp) / "chart.png")
            svg = save_svg(host, Path(tmp) / "chart.svg")
            with Image.open(png) as image:
                self.assertEqual(image.size, (470, 370))
            text = svg.read_text(encoding="utf-8")
        self.assertTrue(text.startswith('<svg xmlns="http://www.w3.org/2000/svg"'))
        self.assertIn("bars-group", text)


if __name__ == "__main__":
    unittest.main()
