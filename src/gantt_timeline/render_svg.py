from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import matplotlib

matplotlib.use("Agg")  # ensure headless, deterministic output
import matplotlib.path as mpath
import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch, PathPatch, Polygon, Rectangle

from .surface import Canvas, Shape

logger = logging.getLogger(__name__)

# One SVG user unit per point keeps canvas pixel coordinates unchanged.
DPI = 72
FONT_SIZE = 10
HEADER_FONT_SIZE = 11

# Fill/stroke per shape class, first match wins.
STYLES: dict[str, dict[str, object]] = {
    "grid-background": {"facecolor": "none", "edgecolor": "none"},
    "grid-header": {"facecolor": "#ffffff", "edgecolor": "#e0e0e0", "linewidth": 0.5},
    "grid-row": {"facecolor": "#ffffff", "edgecolor": "none"},
    "today-highlight": {"facecolor": "#fcf8e3", "edgecolor": "none"},
    "row-line": {"color": "#ebeff2", "linewidth": 1},
    "thick": {"color": "#c2c2c2", "linewidth": 1},
    "tick": {"color": "#e0e0e0", "linewidth": 0.5},
    "bar-invalid": {"facecolor": "none", "edgecolor": "#8d99a6", "linestyle": "--", "linewidth": 1},
    "bar": {"facecolor": "#b8c2cc", "edgecolor": "#8d99a6", "linewidth": 0},
    "bar-progress": {"facecolor": "#a3a3ff", "edgecolor": "none"},
    "arrow": {"color": "#666666", "linewidth": 1.4},
    "caret": {"facecolor": "#555555", "edgecolor": "none"},
    "lower-text": {"color": "#555555"},
    "upper-text": {"color": "#333333"},
    "big": {"color": "#555555"},
    "bar-label": {"color": "#ffffff"},
}

# Interaction affordances that are invisible until hovered.
HIDDEN_CLASSES = {"handle"}


def render_svg(canvas: Canvas, out_path: str, width: float | None = None, height: float | None = None) -> None:
    """
    Render the shapes of `canvas` to a static SVG file at `out_path`.

    Shapes are painted in tree order, so later layers (bars, header) sit on
    top of earlier ones (grid, arrows). Arc segments in arrow paths are drawn
    as quadratic curves through the corner they round.
    """

    width = float(width or canvas.root.attrs.get("width") or 0)
    height = float(height or canvas.root.attrs.get("height") or 0)
    if width <= 0 or height <= 0:
        raise ValueError("canvas has no drawable area")

    fig = plt.figure(figsize=(width / DPI, height / DPI), dpi=DPI)
    ax = fig.add_axes((0, 0, 1, 1))
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.axis("off")

    drawn = 0
    for zorder, shape in enumerate(_paintable(canvas.root)):
        if _draw_shape(ax, shape, zorder):
            drawn += 1
    logger.debug("Painted %d shapes into %s", drawn, out_path)

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, format="svg")
    plt.close(fig)


def _paintable(root: Shape) -> Iterator[Shape]:
    for shape in root.walk():
        if shape.attrs.get("display") == "none":
            continue
        if HIDDEN_CLASSES.intersection(shape.classes):
            continue
        yield shape


def _style(shape: Shape) -> dict[str, object]:
    for name, style in STYLES.items():
        if shape.has_class(name):
            return dict(style)
    return {}


def _draw_shape(ax, shape: Shape, zorder: int) -> bool:
    kind = shape.kind
    attrs = shape.attrs
    style = _style(shape)

    if kind == "rect":
        x, y = float(attrs.get("x", 0)), float(attrs.get("y", 0))
        w, h = float(attrs.get("width", 0)), float(attrs.get("height", 0))
        if w <= 0 or h <= 0:
            return False
        if attrs.get("fill") and style.get("facecolor") not in (None, "none"):
            style["facecolor"] = attrs["fill"]
        radius = float(attrs.get("rx", 0) or 0)
        if radius:
            patch = FancyBboxPatch((x, y), w, h, boxstyle=f"round,pad=0,rounding_size={radius}", **style)
        else:
            patch = Rectangle((x, y), w, h, **style)
        patch.set_zorder(zorder)
        ax.add_patch(patch)
        return True

    if kind == "line":
        ax.plot(
            [float(attrs["x1"]), float(attrs["x2"])],
            [float(attrs["y1"]), float(attrs["y2"])],
            zorder=zorder,
            **style,
        )
        return True

    if kind == "path":
        path = parse_path(str(attrs.get("d", "")))
        if path is None:
            return False
        color = style.pop("color", "#666666")
        patch = PathPatch(path, facecolor="none", edgecolor=color, zorder=zorder, **style)
        ax.add_patch(patch)
        return True

    if kind == "polygon":
        points = _polygon_points(attrs.get("points"))
        if len(points) < 3:
            return False
        patch = Polygon(points, closed=True, zorder=zorder, **style)
        ax.add_patch(patch)
        return True

    if kind == "text" and shape.text:
        # Labels inside a bar are white; everything else uses its class colour.
        inside_bar = shape.has_class("bar-label") and not shape.has_class("big")
        ax.text(
            float(attrs.get("x", 0)),
            float(attrs.get("y", 0)),
            shape.text,
            ha="left" if shape.has_class("big") else "center",
            va="center" if shape.has_class("bar-label") else "bottom",
            fontsize=HEADER_FONT_SIZE if shape.has_class("upper-text") else FONT_SIZE,
            color="#ffffff" if inside_bar else style.get("color", "#333333"),
            zorder=zorder,
        )
        return True

    return False


def _polygon_points(value) -> list[tuple[float, float]]:
    if not value:
        return []
    if isinstance(value, str):
        numbers = [float(v) for v in value.replace(",", " ").split()]
    else:
        numbers = []
        for item in value:
            if isinstance(item, (tuple, list)):
                numbers.extend(float(v) for v in item)
            else:
                numbers.append(float(item))
    return list(zip(numbers[0::2], numbers[1::2]))


def parse_path(d: str) -> mpath.Path | None:
    """
    Convert the SVG path subset used by the chart into a matplotlib Path.

    Supports absolute `M`, `L`, `A` (quarter arcs) and relative `v`.
    """

    tokens = d.replace(",", " ").split()
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    current = (0.0, 0.0)
    last_vertical = True
    i = 0
    while i < len(tokens):
        op = tokens[i]
        if op == "M":
            current = (float(tokens[i + 1]), float(tokens[i + 2]))
            vertices.append(current)
            codes.append(mpath.Path.MOVETO)
            i += 3
        elif op == "L":
            target = (float(tokens[i + 1]), float(tokens[i + 2]))
            last_vertical = target[0] == current[0]
            current = target
            vertices.append(current)
            codes.append(mpath.Path.LINETO)
            i += 3
        elif op == "v":
            current = (current[0], current[1] + float(tokens[i + 1]))
            last_vertical = True
            vertices.append(current)
            codes.append(mpath.Path.LINETO)
            i += 2
        elif op == "A":
            target = (float(tokens[i + 6]), float(tokens[i + 7]))
            # The corner keeps the incoming direction, then turns onto the outgoing one.
            corner = (current[0], target[1]) if last_vertical else (target[0], current[1])
            vertices.extend([corner, target])
            codes.extend([mpath.Path.CURVE3, mpath.Path.CURVE3])
            last_vertical = not last_vertical
            current = target
            i += 8
        else:
            raise ValueError(f"unsupported path command {op!r} in {d!r}")
    if not vertices:
        return None
    return mpath.Path(vertices, codes)
