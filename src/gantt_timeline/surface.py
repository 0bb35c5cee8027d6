from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Protocol, runtime_checkable

Handler = Callable[["PointerEvent"], None]

# Rough glyph metrics used to size text without a font engine.
CHAR_WIDTH = 7.0
TEXT_HEIGHT = 12.0


@runtime_checkable
class Renderer(Protocol):
    """
    Drawing capabilities the chart needs from its host surface.

    `listen` with a `None` target subscribes to gestures anywhere on the surface.
    """

    def create_shape(self, kind: str, attributes: dict[str, Any]) -> Any: ...

    def set_attribute(self, handle: Any, key: str, value: Any) -> None: ...

    def get_bounding_box(self, handle: Any) -> dict[str, float]: ...

    def listen(self, target: Any, gesture: str, handler: Handler) -> None: ...


REQUIRED_CAPABILITIES = ("create_shape", "set_attribute", "get_bounding_box", "listen")


def is_renderer(target: Any) -> bool:
    return all(callable(getattr(target, name, None)) for name in REQUIRED_CAPABILITIES)


@dataclass
class PointerEvent:
    """Pointer position in chart coordinates plus the shape under it."""

    x: float
    y: float
    target: Any = None
    current_target: Any = None
    stopped: bool = False

    def stop_propagation(self) -> None:
        self.stopped = True


@dataclass(eq=False)
class Shape:
    """Retained shape on a Canvas; serves as the renderer handle."""

    id: int
    kind: str
    attrs: dict[str, Any] = field(default_factory=dict)
    classes: list[str] = field(default_factory=list)
    parent: "Shape | None" = None
    children: list["Shape"] = field(default_factory=list)
    text: str = ""

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str) -> None:
        if name in self.classes:
            self.classes.remove(name)

    def walk(self) -> Iterator["Shape"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Shape({self.id}, {self.kind!r}, classes={self.classes})"


class Canvas:
    """
    In-memory retained-mode drawing surface.

    Shapes form a tree under `root`; `dispatch` delivers a pointer gesture to
    the target shape's listeners and then bubbles it up through its parents.
    """

    def __init__(self, width: float = 0, height: float = 0) -> None:
        self._ids = itertools.count(1)
        self.root = Shape(id=0, kind="svg", attrs={"width": width, "height": height}, classes=["gantt"])
        self._listeners: dict[tuple[int, str], list[Handler]] = {}

    # Renderer capabilities

    def create_shape(self, kind: str, attributes: dict[str, Any]) -> Shape:
        attributes = dict(attributes)
        parent = attributes.pop("append_to", None) or self.root
        classes = str(attributes.pop("class", "") or "").split()
        text = str(attributes.pop("text", "") or "")
        shape = Shape(id=next(self._ids), kind=kind, attrs=attributes, classes=classes, parent=parent, text=text)
        parent.children.append(shape)
        return shape

    def set_attribute(self, handle: Shape, key: str, value: Any) -> None:
        if key == "class":
            handle.classes = str(value or "").split()
        elif key == "text":
            handle.text = str(value)
        else:
            handle.attrs[key] = value

    def get_bounding_box(self, handle: Shape) -> dict[str, float]:
        if handle.kind == "text":
            width = len(handle.text) * CHAR_WIDTH
            return {
                "x": float(handle.attrs.get("x", 0)),
                "y": float(handle.attrs.get("y", 0)) - TEXT_HEIGHT / 2,
                "width": width,
                "height": TEXT_HEIGHT,
            }
        if handle.kind in ("g", "svg"):
            return self._union_box(handle)
        return {
            "x": float(handle.attrs.get("x", 0)),
            "y": float(handle.attrs.get("y", 0)),
            "width": float(handle.attrs.get("width", 0)),
            "height": float(handle.attrs.get("height", 0)),
        }

    def listen(self, target: Shape | None, gesture: str, handler: Handler) -> None:
        target = target or self.root
        for name in gesture.split():
            self._listeners.setdefault((target.id, name), []).append(handler)

    # Extras used by the chart and tests

    def get_attribute(self, handle: Shape, key: str, default: Any = None) -> Any:
        return handle.attrs.get(key, default)

    def dispatch(self, gesture: str, event: PointerEvent) -> PointerEvent:
        node = event.target or self.root
        while node is not None and not event.stopped:
            event.current_target = node
            for handler in list(self._listeners.get((node.id, gesture), [])):
                handler(event)
            node = node.parent
        return event

    def remove(self, handle: Shape) -> None:
        if handle.parent is not None and handle in handle.parent.children:
            handle.parent.children.remove(handle)
        for shape in handle.walk():
            for key in [k for k in self._listeners if k[0] == shape.id]:
                del self._listeners[key]
        handle.parent = None

    def clear(self) -> None:
        for child in list(self.root.children):
            self.remove(child)

    def find(self, class_name: str, root: Shape | None = None) -> list[Shape]:
        root = root or self.root
        return [shape for shape in root.walk() if shape.has_class(class_name)]

    def find_one(self, class_name: str, root: Shape | None = None) -> Shape | None:
        found = self.find(class_name, root)
        return found[0] if found else None

    def closest(self, handle: Shape | None, class_name: str) -> Shape | None:
        node = handle
        while node is not None:
            if node.has_class(class_name):
                return node
            node = node.parent
        return None

    def _union_box(self, handle: Shape) -> dict[str, float]:
        boxes = [self.get_bounding_box(child) for child in handle.children]
        if not boxes:
            return {"x": 0.0, "y": 0.0, "width": 0.0, "height": 0.0}
        x0 = min(b["x"] for b in boxes)
        y0 = min(b["y"] for b in boxes)
        x1 = max(b["x"] + b["width"] for b in boxes)
        y1 = max(b["y"] + b["height"] for b in boxes)
        return {"x": x0, "y": y0, "width": x1 - x0, "height": y1 - y0}


class ShapeGeometry:
    """
    Geometry accessor bound to one rectangle handle.

    Reads go through `get_bounding_box` and writes through `set_attribute`, so
    the renderer stays the single owner of what is on screen.
    """

    def __init__(self, renderer: Renderer, handle: Any) -> None:
        self.renderer = renderer
        self.handle = handle

    def _box(self) -> dict[str, float]:
        return self.renderer.get_bounding_box(self.handle)

    @property
    def x(self) -> float:
        return self._box()["x"]

    @x.setter
    def x(self, value: float) -> None:
        self.renderer.set_attribute(self.handle, "x", value)

    @property
    def y(self) -> float:
        return self._box()["y"]

    @y.setter
    def y(self, value: float) -> None:
        self.renderer.set_attribute(self.handle, "y", value)

    @property
    def width(self) -> float:
        return self._box()["width"]

    @width.setter
    def width(self, value: float) -> None:
        self.renderer.set_attribute(self.handle, "width", value)

    @property
    def height(self) -> float:
        return self._box()["height"]

    @property
    def end_x(self) -> float:
        box = self._box()
        return box["x"] + box["width"]
