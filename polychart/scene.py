from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Sequence
import xml.etree.ElementTree as ET


EventHandler = Callable[[Any, Any], None]


@dataclass(eq=False)
class Element:
    """Retained scene node (a tiny DOM): tag, attributes, children, bound datum and handlers."""

    tag: str
    attrs: dict[str, Any] = field(default_factory=dict)
    children: list["Element"] = field(default_factory=list)
    parent: "Element | None" = field(default=None, repr=False)
    text: str | None = None
    datum: Any = None
    handlers: dict[str, EventHandler] = field(default_factory=dict, repr=False)

    def append(self, tag: str, **attrs: Any) -> "Element":
        child = Element(tag=tag, attrs={_attr_name(k): v for k, v in attrs.items()}, parent=self)
        self.children.append(child)
        return child

    def attr(self, name: str, value: Any) -> "Element":
        self.attrs[name] = value
        return self

    def set_text(self, text: str) -> "Element":
        self.text = text
        return self

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children.clear()

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    @property
    def classes(self) -> tuple[str, ...]:
        return tuple(str(self.attrs.get("class", "")).split())

    def matches(self, selector: str) -> bool:
        tag, _, cls = selector.partition(".")
        if tag and tag != self.tag:
            return False
        return not cls or cls in self.classes

    def iter(self) -> Iterator["Element"]:
        for child in self.children:
            yield child
            yield from child.iter()

    def select(self, selector: str) -> "Element | None":
        return next((node for node in self.iter() if node.matches(selector)), None)

    def select_all(self, selector: str) -> "Selection":
        return Selection(tuple(node for node in self.iter() if node.matches(selector)))

    def child_elements(self, selector: str) -> "Selection":
        return Selection(tuple(node for node in self.children if node.matches(selector)))

    def on(self, event: str, handler: EventHandler) -> "Element":
        self.handlers[event] = handler
        return self

    def dispatch(self, event: str, payload: Any = None) -> bool:
        handler = self.handlers.get(event)
        if handler is None:
            return False
        handler(payload, self.datum)
        return True

    def join(self, selector: str, data: Sequence[Any]) -> tuple["Selection", "Selection"]:
        """Reconcile direct children matching `selector` against `data` by index.

        Existing nodes are rebound (update), missing ones are created (enter) and surplus ones
        removed (exit). Returns (enter, update) selections.
        """
        tag, _, cls = selector.partition(".")
        existing = list(self.child_elements(selector))
        update: list[Element] = []
        enter: list[Element] = []
        for index, datum in enumerate(data):
            if index < len(existing):
                node = existing[index]
                update.append(node)
            else:
                node = self.append(tag or "g", **({"class": cls} if cls else {}))
                enter.append(node)
            node.datum = datum
        for node in existing[len(data):]:
            node.remove()
        return Selection(tuple(enter)), Selection(tuple(update))

    def transform_offset(self) -> tuple[float, float]:
        """Accumulated translate() offset of this node from the root."""
        x = y = 0.0
        node: Element | None = self
        while node is not None:
            dx, dy = parse_translate(node.attrs.get("transform"))
            x += dx
            y += dy
            node = node.parent
        return (x, y)

    def to_etree(self) -> ET.Element:
        node = ET.Element(self.tag, {k: _format_attr(v) for k, v in self.attrs.items() if v is not None})
        if self.text is not None:
            node.text = self.text
        for child in self.children:
            node.append(child.to_etree())
        return node


@dataclass(frozen=True)
class Selection:
    """Ordered group of elements; what feature renderers hand back for interactivity."""

    nodes: tuple[Element, ...] = ()

    def __iter__(self) -> Iterator[Element]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __add__(self, other: "Selection") -> "Selection":
        return Selection(self.nodes + other.nodes)

    def on(self, event: str, handler: EventHandler) -> "Selection":
        for node in self.nodes:
            node.on(event, handler)
        return self

    @classmethod
    def of(cls, nodes: Iterable[Element]) -> "Selection":
        return cls(tuple(nodes))


def new_host(**attrs: Any) -> Element:
    return Element(tag="div", attrs=dict(attrs))


def to_svg_markup(element: Element) -> str:
    return ET.tostring(element.to_etree(), encoding="unicode")


def translate(x: float, y: float) -> str:
    return f"translate({_num(x)},{_num(y)})"


def parse_translate(raw: Any) -> tuple[float, float]:
    if not isinstance(raw, str) or "translate(" not in raw:
        return (0.0, 0.0)
    inner = raw.split("translate(", 1)[1].split(")", 1)[0]
    parts = [p for p in inner.replace(",", " ").split() if p]
    try:
        x = float(parts[0]) if parts else 0.0
        y = float(parts[1]) if len(parts) > 1 else 0.0
    except ValueError:
        return (0.0, 0.0)
    return (x, y)


def _attr_name(name: str) -> str:
    if name == "class_":
        return "class"
    return name.replace("_", "-")


def _num(value: float) -> str:
    out = f"{float(value):.4f}".rstrip("0").rstrip(".")
    return "0" if out in ("", "-0") else out


def _format_attr(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _num(value)
    return str(value)
