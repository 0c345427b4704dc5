"""Pure coordinate helpers shared by the resolver, intersections and renderers.

Everything here works on plain ``(x, y)`` tuples in geometric units.  The
screen transforms mirror the renderer's convention: the origin sits in the
middle of the viewbox, ``y`` grows upwards, and pan/zoom is applied on top of
a uniform scale.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .constants import (
    HYPERBOLA_MIN_CONSTANT,
    HYPERBOLA_POINTS,
    HYPERBOLA_RENDER_RANGE_T,
    INITIAL_SCALE,
    SVG_VIEWBOX_HEIGHT,
    SVG_VIEWBOX_WIDTH,
)
from .model import HyperbolaForm, Point


def vec2(a: Sequence[float], b: Sequence[float]) -> Tuple[float, float]:
    return float(b[0]) - float(a[0]), float(b[1]) - float(a[1])


def dot2(a: Sequence[float], b: Sequence[float]) -> float:
    return float(a[0]) * float(b[0]) + float(a[1]) * float(b[1])


def cross2(a: Sequence[float], b: Sequence[float]) -> float:
    return float(a[0]) * float(b[1]) - float(a[1]) * float(b[0])


def norm_sq2(v: Sequence[float]) -> float:
    return dot2(v, v)


def norm2(v: Sequence[float]) -> float:
    return math.sqrt(max(norm_sq2(v), 0.0))


def lerp2(a: Sequence[float], b: Sequence[float], t: float) -> Point:
    return float(a[0]) + t * (float(b[0]) - float(a[0])), float(a[1]) + t * (float(b[1]) - float(a[1]))


def polar_point(center: Sequence[float], radius: float, angle: float) -> Point:
    """Point on the circle ``(center, radius)`` at ``angle`` radians."""

    return float(center[0]) + radius * math.cos(angle), float(center[1]) + radius * math.sin(angle)


@dataclass(frozen=True)
class ViewTransform:
    """Pan/zoom applied after the base scale (``k`` zoom, ``x``/``y`` pan in pixels)."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, point: Sequence[float]) -> Point:
        return float(point[0]) * self.k + self.x, float(point[1]) * self.k + self.y

    def invert(self, point: Sequence[float]) -> Point:
        return (float(point[0]) - self.x) / self.k, (float(point[1]) - self.y) / self.k


IDENTITY_VIEW = ViewTransform()


def to_screen(
    point: Sequence[float],
    *,
    width: float = SVG_VIEWBOX_WIDTH,
    height: float = SVG_VIEWBOX_HEIGHT,
    scale: float = INITIAL_SCALE,
) -> Point:
    """Geometric point to (un-zoomed) viewbox coordinates."""

    return width / 2 + float(point[0]) * scale, height / 2 - float(point[1]) * scale


def from_screen(
    screen_point: Sequence[float],
    view: ViewTransform = IDENTITY_VIEW,
    *,
    width: float = SVG_VIEWBOX_WIDTH,
    height: float = SVG_VIEWBOX_HEIGHT,
    scale: float = INITIAL_SCALE,
) -> Point:
    """Pointer position (zoomed viewbox coordinates) back to geometric units."""

    sx, sy = view.invert(screen_point)
    return (sx - width / 2) / scale, (height / 2 - sy) / scale


def zoom_by_factor(
    view: ViewTransform,
    factor: float,
    *,
    min_zoom: float,
    max_zoom: float,
    width: float = SVG_VIEWBOX_WIDTH,
    height: float = SVG_VIEWBOX_HEIGHT,
) -> ViewTransform:
    """Zoom about the viewbox centre, keeping the zoom level within bounds."""

    new_k = max(min_zoom, min(max_zoom, view.k * factor))
    center = (width / 2, height / 2)
    px, py = view.invert(center)
    return ViewTransform(k=new_k, x=center[0] - px * new_k, y=center[1] - py * new_k)


def sample_hyperbola(
    form: HyperbolaForm,
    center: Sequence[float],
    constant_value: float,
    *,
    t_range: float = HYPERBOLA_RENDER_RANGE_T,
    segments: int = HYPERBOLA_POINTS,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return both hyperbola branches as ``(segments + 1, 2)`` arrays."""

    t = np.linspace(-t_range, t_range, segments + 1)
    a = math.sqrt(max(HYPERBOLA_MIN_CONSTANT, constant_value))
    cx, cy = float(center[0]), float(center[1])
    along = a * np.cosh(t)
    across = a * np.sinh(t)
    if form is HyperbolaForm.X_SQUARED_MINUS_Y_SQUARED:
        first = np.column_stack((cx + along, cy + across))
        second = np.column_stack((cx - along, cy + across))
    else:
        first = np.column_stack((cx + across, cy + along))
        second = np.column_stack((cx + across, cy - along))
    return first, second


__all__ = [
    "IDENTITY_VIEW",
    "ViewTransform",
    "cross2",
    "dot2",
    "from_screen",
    "lerp2",
    "norm2",
    "norm_sq2",
    "polar_point",
    "sample_hyperbola",
    "to_screen",
    "vec2",
    "zoom_by_factor",
]
