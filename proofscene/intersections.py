"""Intersection points between lines, segments and circles.

All routines are stateless and return a list of zero, one or two points.
Degenerate configurations are reported as *no* points:

* parallel or coincident lines,
* a line given by two identical points,
* circles with (near) zero radius,
* coincident circles.

Segments restrict their solved line parameter to ``[0, 1]`` (with ``eps``
slack at the end points).
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

from .geometry import cross2, dot2, lerp2, norm2, norm_sq2, vec2
from .logging_utils import apply_debug_logging
from .model import (
    AppState,
    CircleObject,
    GeometricObject,
    HyperbolaObject,
    LineObject,
    Point,
    VectorObject,
)
from .resolver import effective_center, effective_radius

logger = logging.getLogger(__name__)

EPSILON = 1e-9


def _within_unit(t: float, eps: float) -> bool:
    return -eps <= t <= 1.0 + eps


def line_line(first: LineObject, second: LineObject, *, eps: float = EPSILON) -> List[Point]:
    d1 = vec2(first.p1, first.p2)
    d2 = vec2(second.p1, second.p2)
    denom = cross2(d1, d2)
    if abs(denom) < eps:
        # Parallel or collinear; overlapping collinear segments are not reported.
        return []
    diff = vec2(first.p1, second.p1)
    t = cross2(diff, d2) / denom
    u = cross2(diff, d1) / denom
    if first.bounded and not _within_unit(t, eps):
        return []
    if second.bounded and not _within_unit(u, eps):
        return []
    return [lerp2(first.p1, first.p2, t)]


def line_circle(
    line: LineObject, circle: CircleObject, state: AppState, *, eps: float = EPSILON
) -> List[Point]:
    center = effective_center(circle, state)
    radius = effective_radius(circle, state)
    if radius < eps:
        return []

    direction = vec2(line.p1, line.p2)
    a = norm_sq2(direction)
    if abs(a) < eps:
        return []
    offset = vec2(center, line.p1)
    b = 2.0 * dot2(direction, offset)
    c = norm_sq2(offset) - radius * radius
    disc = b * b - 4.0 * a * c

    if disc < -eps:
        return []
    if abs(disc) <= eps:
        roots = [-b / (2.0 * a)]
    else:
        root = math.sqrt(disc)
        roots = [(-b + root) / (2.0 * a), (-b - root) / (2.0 * a)]

    points: List[Point] = []
    for t in roots:
        if line.bounded and not _within_unit(t, eps):
            continue
        points.append(lerp2(line.p1, line.p2, t))
    return points


def circle_circle(
    first: CircleObject, second: CircleObject, state: AppState, *, eps: float = EPSILON
) -> List[Point]:
    c1 = effective_center(first, state)
    r1 = effective_radius(first, state)
    c2 = effective_center(second, state)
    r2 = effective_radius(second, state)
    if r1 < eps or r2 < eps:
        return []

    ex, ey = vec2(c1, c2)
    d_sq = norm_sq2((ex, ey))
    d = norm2((ex, ey))
    if d > r1 + r2 + eps or d < abs(r1 - r2) - eps:
        return []
    if d < eps:
        # Concentric: either coincident (infinitely many points) or nested.
        return []

    a = (r1 * r1 - r2 * r2 + d_sq) / (2.0 * d)
    h_sq = r1 * r1 - a * a
    if h_sq < -eps:
        return []
    h = math.sqrt(max(0.0, h_sq))

    mid = (c1[0] + a * ex / d, c1[1] + a * ey / d)
    perp = (-ey / d, ex / d)
    points = [(mid[0] + h * perp[0], mid[1] + h * perp[1])]
    if h > eps:
        points.append((mid[0] - h * perp[0], mid[1] - h * perp[1]))
    return points


def intersect(
    first: GeometricObject, second: GeometricObject, state: AppState, *, eps: float = EPSILON
) -> List[Point]:
    """Dispatch on the object kinds; unsupported pairs have no intersections."""

    if isinstance(first, (HyperbolaObject, VectorObject)) or isinstance(second, (HyperbolaObject, VectorObject)):
        return []
    if isinstance(first, CircleObject):
        if isinstance(second, CircleObject):
            return circle_circle(first, second, state, eps=eps)
        if isinstance(second, LineObject):
            return line_circle(second, first, state, eps=eps)
    elif isinstance(first, LineObject):
        if isinstance(second, CircleObject):
            return line_circle(first, second, state, eps=eps)
        if isinstance(second, LineObject):
            return line_line(first, second, eps=eps)
    raise TypeError(f"no intersection rule for {type(first).__name__} and {type(second).__name__}")


def visible_intersections(
    obj: GeometricObject, state: AppState, *, eps: float = EPSILON
) -> List[Point]:
    """Points for every target listed in ``obj.show_intersections_with``."""

    targets: Optional[List[str]] = getattr(obj, "show_intersections_with", None)
    points: List[Point] = []
    for target_id in targets or []:
        target = state.find(target_id)
        if target is None:
            logger.warning("Intersection target %s of %s no longer exists", target_id, obj.id)
            continue
        points.extend(intersect(obj, target, state, eps=eps))
    return points


apply_debug_logging(globals(), logger=logger)


__all__ = [
    "EPSILON",
    "circle_circle",
    "intersect",
    "line_circle",
    "line_line",
    "visible_intersections",
]
