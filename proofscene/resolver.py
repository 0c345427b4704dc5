"""Derived geometry: effective circle centres/radii and vector constructions.

The resolver only reads an :class:`~proofscene.model.AppState`.  Missing
parents, parameters or vectors are not errors here; the object falls back to
its stored fields and a warning is logged so the scene keeps rendering.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from .constants import DEFAULT_DIFFERENTIAL_ARC_ANGLE
from .expressions import evaluate
from .geometry import polar_point
from .logging_utils import apply_debug_logging
from .model import (
    AppState,
    CircleObject,
    ObjectId,
    ParametricCenter,
    Point,
    VectorCenter,
    VectorObject,
)

logger = logging.getLogger(__name__)

_VECTOR_EPS = 1e-6


def effective_radius(circle: CircleObject, state: AppState) -> float:
    """Radius after applying ``radial_function``; never negative."""

    base = max(0.0, circle.r)
    radial = circle.radial_function
    if radial is None:
        return base
    param = state.parameter(radial.parameter_id)
    if param is None:
        logger.warning(
            "Radial parameter %s missing for circle %s; using base radius",
            radial.parameter_id,
            circle.id,
        )
        return base
    value = evaluate(radial.expression, {"x": param.value})
    if value is None:
        return base
    return max(0.0, abs(value))


def effective_center(circle: CircleObject, state: AppState) -> Point:
    """Centre after following any ``center_on_curve`` chain.

    The chain is walked upwards to the first circle with a usable stored
    centre, then the polar offsets are applied from that root back down.
    """

    offsets: List[Tuple[CircleObject, float]] = []
    seen: Set[ObjectId] = set()
    current = circle
    while True:
        step = _parent_step(current, state, seen)
        if step is None:
            break
        seen.add(current.id)
        offsets.append(step)
        current = step[0]

    center = (current.cx, current.cy)
    for parent, angle in reversed(offsets):
        center = polar_point(center, effective_radius(parent, state), angle)
    return center


def _parent_step(
    circle: CircleObject, state: AppState, seen: Set[ObjectId]
) -> Optional[Tuple[CircleObject, float]]:
    """The parent circle and angle ``circle`` sits at, or ``None`` to use its stored centre."""

    link = circle.center_on_curve
    if link is None:
        return None
    if circle.id in seen:
        logger.warning("Cyclic centre-on-curve chain through %s; using stored centre", circle.id)
        return None

    parent = state.find(link.parent_id)
    if parent is None:
        logger.warning("Parent %s not found for circle %s", link.parent_id, circle.id)
        return None
    if not isinstance(parent, CircleObject):
        logger.warning(
            "Parent %s of circle %s is a %s, not a circle", parent.id, circle.id, parent.kind.value
        )
        return None

    angle = _link_angle(circle, link, state)
    if angle is None:
        return None
    return parent, angle


def _link_angle(circle: CircleObject, link, state: AppState) -> Optional[float]:
    if isinstance(link, ParametricCenter):
        param = state.parameter(link.parameter_id)
        if param is None:
            logger.warning("Position parameter %s missing for circle %s", link.parameter_id, circle.id)
            return None
        return param.value
    if isinstance(link, VectorCenter):
        vector = state.find_as(link.vector_id, VectorObject)
        if vector is None or vector.parent_id != link.parent_id:
            logger.warning(
                "Vector %s not found or not on %s for circle %s", link.vector_id, link.parent_id, circle.id
            )
            return None
        param = state.parameter(vector.angle_parameter_id)
        if param is None:
            logger.warning("Angle parameter %s missing for vector %s", vector.angle_parameter_id, vector.id)
            return None
        return param.value
    raise TypeError(f"unsupported centre-on-curve link {type(link).__name__}")


def check_cycle(editing_id: ObjectId, proposed_parent_id: Optional[ObjectId], state: AppState) -> bool:
    """Return ``True`` if centring ``editing_id`` on ``proposed_parent_id`` closes a cycle.

    Walks the ``center_on_curve.parent_id`` chain upwards from the proposed
    parent.  Reaching ``editing_id`` or revisiting any node counts as a cycle.
    """

    visited: Set[ObjectId] = set()
    current = proposed_parent_id
    while current:
        if current == editing_id or current in visited:
            return True
        visited.add(current)
        node = state.find(current)
        if isinstance(node, CircleObject) and node.center_on_curve is not None:
            current = node.center_on_curve.parent_id
        else:
            current = None
    return False


def discrete_trace_radii(circle: CircleObject, state: AppState) -> List[float]:
    """Radii of ``f(x)`` sampled evenly across the driving parameter's range."""

    radial = circle.radial_function
    if radial is None or not circle.show_discrete_traces:
        return []
    param = state.parameter(radial.parameter_id)
    if param is None:
        return []
    steps = max(1, circle.discrete_trace_steps)
    step_size = (param.max - param.min) / max(1, steps - 1)
    radii: List[float] = []
    for i in range(steps):
        value = evaluate(radial.expression, {"x": param.min + i * step_size})
        if value is not None and value >= 0:
            radii.append(value)
    return radii


@dataclass
class VectorGeometry:
    """Resolved construction of a vector drawn from its parent circle's centre."""

    origin: Point
    tip: Point
    angle: float
    radius: float
    foot_on_x: Point  # tip dropped vertically onto the centre's horizontal
    foot_on_y: Point  # tip moved horizontally onto the centre's vertical
    derivative_end: Optional[Point] = None
    arc_end: Optional[Point] = None
    arc_corner: Optional[Point] = None
    dx: Optional[float] = None
    dy: Optional[float] = None


def resolve_vector(vector: VectorObject, state: AppState) -> Optional[VectorGeometry]:
    parent = state.find_as(vector.parent_id, CircleObject)
    if parent is None:
        logger.warning("Parent circle %s not found for vector %s", vector.parent_id, vector.id)
        return None
    param = state.parameter(vector.angle_parameter_id)
    if param is None:
        logger.warning("Angle parameter %s missing for vector %s", vector.angle_parameter_id, vector.id)
        return None

    origin = effective_center(parent, state)
    radius = effective_radius(parent, state)
    angle = param.value
    tip = polar_point(origin, radius, angle)
    geometry = VectorGeometry(
        origin=origin,
        tip=tip,
        angle=angle,
        radius=radius,
        foot_on_x=(tip[0], origin[1]),
        foot_on_y=(origin[0], tip[1]),
    )
    if radius <= _VECTOR_EPS:
        return geometry

    if vector.show_derivative:
        geometry.derivative_end = (tip[0] - radius * math.sin(angle), tip[1] + radius * math.cos(angle))
    if vector.show_differentials:
        delta = vector.differential_arc_angle or DEFAULT_DIFFERENTIAL_ARC_ANGLE
        arc_end = polar_point(origin, radius, angle + delta)
        geometry.arc_end = arc_end
        geometry.arc_corner = (arc_end[0], tip[1])
        geometry.dx = arc_end[0] - tip[0]
        geometry.dy = arc_end[1] - tip[1]
    return geometry


apply_debug_logging(globals(), logger=logger)


__all__ = [
    "VectorGeometry",
    "check_cycle",
    "discrete_trace_radii",
    "effective_center",
    "effective_radius",
    "resolve_vector",
]
