from dataclasses import dataclass
from typing import List

from .model import AppState, CircleObject, ParametricCenter, VectorCenter, VectorObject
from .resolver import check_cycle


@dataclass
class IntegrityWarning:
    object_id: str
    kind: str
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial string formatting
        return self.message


def _check_circle(state: AppState, circle: CircleObject) -> List[IntegrityWarning]:
    warnings: List[IntegrityWarning] = []
    if circle.radial_function is not None and state.parameter(circle.radial_function.parameter_id) is None:
        warnings.append(
            IntegrityWarning(
                circle.id,
                'missing_parameter',
                f'{circle.label}: radial parameter "{circle.radial_function.parameter_id}" does not exist',
            )
        )
    link = circle.center_on_curve
    if link is None:
        return warnings
    parent = state.find(link.parent_id)
    if not isinstance(parent, CircleObject):
        warnings.append(
            IntegrityWarning(circle.id, 'missing_parent', f'{circle.label}: parent circle "{link.parent_id}" does not exist')
        )
    elif check_cycle(circle.id, link.parent_id, state):
        warnings.append(
            IntegrityWarning(circle.id, 'cycle', f'{circle.label}: centre-on-curve chain is cyclic')
        )
    if isinstance(link, ParametricCenter) and state.parameter(link.parameter_id) is None:
        warnings.append(
            IntegrityWarning(
                circle.id,
                'missing_parameter',
                f'{circle.label}: position parameter "{link.parameter_id}" does not exist',
            )
        )
    elif isinstance(link, VectorCenter):
        vector = state.find_as(link.vector_id, VectorObject)
        if vector is None:
            warnings.append(
                IntegrityWarning(circle.id, 'missing_vector', f'{circle.label}: vector "{link.vector_id}" does not exist')
            )
        elif vector.parent_id != link.parent_id:
            warnings.append(
                IntegrityWarning(
                    circle.id,
                    'vector_parent_mismatch',
                    f'{circle.label}: vector "{vector.label}" is not drawn on "{link.parent_id}"',
                )
            )
    return warnings


def check_integrity(state: AppState) -> List[IntegrityWarning]:
    """List dangling references in ``state``; the state itself is not modified."""

    warnings: List[IntegrityWarning] = []
    for obj in state.objects:
        if isinstance(obj, CircleObject):
            warnings.extend(_check_circle(state, obj))
        elif isinstance(obj, VectorObject):
            if state.find_as(obj.parent_id, CircleObject) is None:
                warnings.append(
                    IntegrityWarning(obj.id, 'missing_parent', f'{obj.label}: parent circle "{obj.parent_id}" does not exist')
                )
            if state.parameter(obj.angle_parameter_id) is None:
                warnings.append(
                    IntegrityWarning(
                        obj.id,
                        'missing_parameter',
                        f'{obj.label}: angle parameter "{obj.angle_parameter_id}" does not exist',
                    )
                )
        for target_id in getattr(obj, 'show_intersections_with', None) or []:
            if state.find(target_id) is None:
                warnings.append(
                    IntegrityWarning(
                        obj.id,
                        'missing_intersection_target',
                        f'{obj.label}: intersection target "{target_id}" does not exist',
                    )
                )
    for param in state.parameters.values():
        if param.object_id and state.find(param.object_id) is None:
            warnings.append(
                IntegrityWarning(
                    param.object_id,
                    'orphan_parameter',
                    f'parameter "{param.label}" belongs to missing object "{param.object_id}"',
                )
            )
    return warnings


__all__ = ["IntegrityWarning", "check_integrity"]
