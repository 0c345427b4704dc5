from __future__ import annotations

from dataclasses import fields
from typing import Any, Mapping, Optional

from .model import (
    AppState,
    CenterOnCurve,
    CircleObject,
    GeometricObject,
    ObjectId,
    ParametricCenter,
    VectorCenter,
    VectorObject,
)
from .resolver import check_cycle


class ValidationError(Exception):
    """Editor operation rejected; the scene was left untouched."""


class CyclicDependencyError(ValidationError):
    pass


_IMMUTABLE_FIELDS = {"id"}


def require_object(state: AppState, object_id: ObjectId) -> GeometricObject:
    obj = state.find(object_id)
    if obj is None:
        raise ValidationError(f'object "{object_id}" does not exist')
    return obj


def require_circle(state: AppState, object_id: ObjectId) -> CircleObject:
    obj = require_object(state, object_id)
    if not isinstance(obj, CircleObject):
        raise ValidationError(f'object "{object_id}" is a {obj.kind.value}, expected a circle')
    return obj


def validate_fields(obj: GeometricObject, updates: Mapping[str, Any]) -> None:
    known = {f.name for f in fields(obj)}
    for key in updates:
        if key in _IMMUTABLE_FIELDS:
            raise ValidationError(f'field "{key}" of {obj.kind.value} "{obj.id}" cannot be changed')
        if key not in known:
            raise ValidationError(f'{obj.kind.value} has no field "{key}"')


def validate_center_on_curve(
    state: AppState, circle_id: ObjectId, link: Optional[CenterOnCurve]
) -> None:
    """Reject a centre-on-curve assignment that dangles or closes a cycle."""

    if link is None:
        return
    if not isinstance(link, (ParametricCenter, VectorCenter)):
        raise ValidationError(f"unsupported centre-on-curve link {type(link).__name__}")
    if link.parent_id == circle_id:
        raise CyclicDependencyError("A circle cannot be centered on itself.")
    require_circle(state, link.parent_id)
    if check_cycle(circle_id, link.parent_id, state):
        raise CyclicDependencyError("This selection creates a circular dependency.")
    if isinstance(link, VectorCenter):
        vector = state.find_as(link.vector_id, VectorObject)
        if vector is None or vector.parent_id != link.parent_id:
            raise ValidationError(
                f'vector "{link.vector_id}" is not drawn on circle "{link.parent_id}"'
            )


__all__ = [
    "CyclicDependencyError",
    "ValidationError",
    "require_circle",
    "require_object",
    "validate_center_on_curve",
    "validate_fields",
]
