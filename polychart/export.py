from __future__ import annotations

import logging
from pathlib import Path
import re
from typing import Any

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont

from polychart.errors import ChartError
from polychart.scene import Element, parse_translate, to_svg_markup

LOGGER = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)
DEFAULT_INK = (0, 0, 0, 255)

_PATH_TOKEN = re.compile(r"([MLZ])|(-?\d+(?:\.\d+)?(?:e[-+]?\d+)?)", re.IGNORECASE)


def rasterize(host: Element) -> np.ndarray:
    """Paint every `svg` surface under `host` into one (H, W, 4) uint8 frame.

    Separate panel surfaces are stacked top to bottom in document order. Only translate()
    transforms are honoured; clip paths and rotated text are drawn unclipped and upright.
    """
    surfaces = [host] if host.tag == "svg" else list(host.select_all("svg"))
    if not surfaces:
        raise ChartError("nothing to rasterize: host holds no svg surface")

    width = max(int(round(float(s.attrs.get("width", 0)))) for s in surfaces)
    heights = [int(round(float(s.attrs.get("height", 0)))) for s in surfaces]
    if width <= 0 or sum(heights) <= 0:
        raise ChartError(f"surface size must be positive, got {width}x{sum(heights)}")

    # Blending only happens when an RGBA ink is drawn onto an RGB image.
    image = Image.new("RGB", (width, sum(heights)), color=BACKGROUND[:3])
    draw = ImageDraw.Draw(image, "RGBA")
    font = ImageFont.load_default()
    top = 0
    for surface, height in zip(surfaces, heights):
        for child in surface.children:
            _paint(draw, font, child, 0.0, float(top))
        top += height
    return np.asarray(image.convert("RGBA"), dtype=np.uint8).copy()


def save_png(host: Element, path: str | Path) -> Path:
    out_path = Path(path)
    Image.fromarray(rasterize(host)).save(out_path, format="PNG")
    LOGGER.info("chart written to %s", out_path)
    return out_path


def save_svg(host: Element, path: str | Path) -> Path:
    surface = host if host.tag == "svg" else host.select("svg")
    if surface is None:
        raise ChartError("nothing to export: host holds no svg surface")
    out_path = Path(path)
    markup = to_svg_markup(surface)
    if "xmlns" not in surface.attrs:
        markup = markup.replace("<svg", '<svg xmlns="http://www.w3.org/2000/svg"', 1)
    out_path.write_text(markup, encoding="utf-8")
    return out_path


def _paint(draw: ImageDraw.ImageDraw, font: Any, node: Element, ox: float, oy: float) -> None:
    if node.tag == "defs":
        return
    dx, dy = parse_translate(node.attrs.get("transform"))
    ox += dx
    oy += dy
    attrs = node.attrs
    if node.tag == "rect":
        x, y = ox + _f(attrs, "x"), oy + _f(attrs, "y")
        w, h = _f(attrs, "width"), _f(attrs, "height")
        fill = _color(attrs.get("fill", "black"), attrs.get("fill-opacity"))
        if fill is not None and w > 0 and h > 0:
            draw.rectangle((x, y, x + w, y + h), fill=fill)
    elif node.tag == "circle":
        cx, cy, r = ox + _f(attrs, "cx"), oy + _f(attrs, "cy"), _f(attrs, "r")
        fill = _color(attrs.get("fill", "black"), attrs.get("fill-opacity"))
        if fill is not None and r > 0:
            draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=fill)
    elif node.tag == "line":
        stroke = _color(attrs.get("stroke"), None)
        if stroke is not None:
            draw.line(
                ((ox + _f(attrs, "x1"), oy + _f(attrs, "y1")), (ox + _f(attrs, "x2"), oy + _f(attrs, "y2"))),
                fill=stroke,
                width=max(1, int(round(_f(attrs, "stroke-width", 1.0)))),
            )
    elif node.tag == "path":
        _paint_path(draw, node, ox, oy)
    elif node.tag == "text" and node.text:
        draw.text((ox + _f(attrs, "x"), oy + _f(attrs, "y")), node.text, fill=DEFAULT_INK, font=font)

    for child in node.children:
        _paint(draw, font, child, ox, oy)


def _paint_path(draw: ImageDraw.ImageDraw, node: Element, ox: float, oy: float) -> None:
    points, closed = _parse_path(str(node.attrs.get("d", "")))
    if len(points) < 2:
        return
    shifted = [(x + ox, y + oy) for x, y in points]
    fill = _color(node.attrs.get("fill", "black"), node.attrs.get("fill-opacity"))
    if closed and fill is not None:
        draw.polygon(shifted, fill=fill)
        return
    stroke = _color(node.attrs.get("stroke"), None)
    if stroke is not None:
        width = max(1, int(round(_f(node.attrs, "stroke-width", 1.0))))
        draw.line(shifted, fill=stroke, width=width, joint="curve")


def _parse_path(d: str) -> tuple[list[tuple[float, float]], bool]:
    """Absolute M/L/Z path data, the subset the line and area renderers emit."""
    numbers: list[float] = []
    closed = False
    for command, number in _PATH_TOKEN.findall(d):
        if number:
            numbers.append(float(number))
        elif command.upper() == "Z":
            closed = True
    points = list(zip(numbers[0::2], numbers[1::2]))
    return points, closed


def _color(raw: Any, opacity: Any) -> tuple[int, int, int, int] | None:
    if raw is None or raw == "none":
        return None
    if raw == "currentColor":
        rgb: tuple[int, ...] = DEFAULT_INK[:3]
    else:
        try:
            rgb = ImageColor.getrgb(str(raw))[:3]
        except ValueError:
            LOGGER.debug("unparseable color %r, using black", raw)
            rgb = DEFAULT_INK[:3]
    alpha = 255
    if opacity is not None:
        try:
            alpha = int(round(min(1.0, max(0.0, float(opacity))) * 255))
        except (TypeError, ValueError):
            alpha = 255
    return (rgb[0], rgb[1], rgb[2], alpha)


def _f(attrs: dict[str, Any], name: str, default: float = 0.0) -> float:
    try:
        return float(attrs.get(name, default))
    except (TypeError, ValueError):
        return default
