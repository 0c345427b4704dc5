"""Parameter lifecycle: which parameters an object needs, and keeping them in sync.

Every object update runs :func:`reconcile_parameters` on the parameter table
in the same transaction.  Parameters are created with role specific ranges
when a feature first needs one, dropped when no feature on the owning object
references them any more, and relabelled when the owner is renamed.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Dict, NamedTuple, Optional, TypeVar

from .constants import TWO_PI
from .model import (
    CircleObject,
    GeometricObject,
    ObjectId,
    Parameter,
    ParameterId,
    ParameterRole,
    ParametricCenter,
    VectorObject,
)

logger = logging.getLogger(__name__)

LABEL_JOINER = " for "


class RoleDefaults(NamedTuple):
    prefix: str
    value: float
    min: float
    max: float
    step: float
    id_template: str


ROLE_DEFAULTS: Dict[ParameterRole, RoleDefaults] = {
    ParameterRole.RADIAL_FUNCTION_X: RoleDefaults("x", 0.0, -5.0, 5.0, 0.1, "param_rf_{id}_x"),
    ParameterRole.CENTER_ON_CURVE_POSITION: RoleDefaults(
        "Position", 0.0, 0.0, TWO_PI, 0.01, "param_coc_{id}_pos"
    ),
    ParameterRole.VECTOR_ANGLE: RoleDefaults(
        "Angle", math.pi / 6, 0.0, TWO_PI, 0.01, "param_vec_{id}_angle"
    ),
}

O = TypeVar("O", bound=GeometricObject)


def parameter_label(role: ParameterRole, owner_label: str) -> str:
    return f"{ROLE_DEFAULTS[role].prefix}{LABEL_JOINER}{owner_label}"


def make_parameter(role: ParameterRole, parameter_id: ParameterId, owner: GeometricObject) -> Parameter:
    defaults = ROLE_DEFAULTS[role]
    return Parameter(
        id=parameter_id,
        label=parameter_label(role, owner.label),
        value=defaults.value,
        min=defaults.min,
        max=defaults.max,
        step=defaults.step,
        object_id=owner.id,
        role=role,
    )


def required_parameters(obj: GeometricObject) -> Dict[ParameterRole, ParameterId]:
    """Parameter ids the object's current configuration reads, by role."""

    required: Dict[ParameterRole, ParameterId] = {}
    if isinstance(obj, CircleObject):
        if obj.radial_function is not None and not obj.is_fixed_radius:
            required[ParameterRole.RADIAL_FUNCTION_X] = obj.radial_function.parameter_id
        if isinstance(obj.center_on_curve, ParametricCenter):
            required[ParameterRole.CENTER_ON_CURVE_POSITION] = obj.center_on_curve.parameter_id
    elif isinstance(obj, VectorObject):
        required[ParameterRole.VECTOR_ANGLE] = obj.angle_parameter_id
    return required


def _existing_for_role(
    parameters: Dict[ParameterId, Parameter], object_id: ObjectId, role: ParameterRole
) -> Optional[ParameterId]:
    for param in parameters.values():
        if param.object_id == object_id and param.role is role:
            return param.id
    return None


def _pick_id(
    parameters: Dict[ParameterId, Parameter], obj: GeometricObject, role: ParameterRole, *candidates: str
) -> ParameterId:
    for candidate in candidates:
        if candidate:
            return candidate
    existing = _existing_for_role(parameters, obj.id, role)
    if existing:
        return existing
    return ROLE_DEFAULTS[role].id_template.format(id=obj.id)


def assign_parameter_ids(
    obj: O, parameters: Dict[ParameterId, Parameter], original: Optional[GeometricObject] = None
) -> O:
    """Fill in empty parameter ids, reusing the ones already serving the role."""

    if isinstance(obj, CircleObject):
        old = original if isinstance(original, CircleObject) else None
        if obj.radial_function is not None and not obj.radial_function.parameter_id:
            old_id = old.radial_function.parameter_id if old and old.radial_function else ""
            pid = _pick_id(parameters, obj, ParameterRole.RADIAL_FUNCTION_X, old_id)
            obj = dataclasses.replace(obj, radial_function=dataclasses.replace(obj.radial_function, parameter_id=pid))
        link = obj.center_on_curve
        if isinstance(link, ParametricCenter) and not link.parameter_id:
            old_link = old.center_on_curve if old else None
            old_id = old_link.parameter_id if isinstance(old_link, ParametricCenter) else ""
            pid = _pick_id(parameters, obj, ParameterRole.CENTER_ON_CURVE_POSITION, old_id)
            obj = dataclasses.replace(obj, center_on_curve=dataclasses.replace(link, parameter_id=pid))
    elif isinstance(obj, VectorObject) and not obj.angle_parameter_id:
        pid = _pick_id(parameters, obj, ParameterRole.VECTOR_ANGLE)
        obj = dataclasses.replace(obj, angle_parameter_id=pid)
    return obj


def relabel(label: str, old_owner_label: str, new_owner_label: str) -> Optional[str]:
    """Rewrite ``"<prefix> for <old>"`` to ``"<prefix> for <new>"``.

    Returns ``None`` for labels that do not follow the pattern; those were
    customised by the user and are kept as they are.
    """

    idx = label.rfind(LABEL_JOINER)
    if idx == -1 or label[idx + len(LABEL_JOINER):] != old_owner_label:
        return None
    return f"{label[:idx]}{LABEL_JOINER}{new_owner_label}"


def reconcile_parameters(
    parameters: Dict[ParameterId, Parameter],
    updated: GeometricObject,
    original: Optional[GeometricObject] = None,
) -> Dict[ParameterId, Parameter]:
    """Return the parameter table matching ``updated``'s configuration.

    ``parameters`` is not modified.  ``updated`` must already have its
    parameter ids assigned (see :func:`assign_parameter_ids`).
    """

    result = dict(parameters)
    required = required_parameters(updated)
    required_ids = set(required.values())

    for role, pid in required.items():
        if pid not in result:
            result[pid] = make_parameter(role, pid, updated)
            logger.debug("Created %s parameter %s for %s", role.value, pid, updated.id)

    stale = set()
    if original is not None:
        stale.update(required_parameters(original).values())
    stale.update(
        param.id
        for param in result.values()
        if param.object_id == updated.id and param.role in ROLE_DEFAULTS
    )
    for pid in stale - required_ids:
        param = result.get(pid)
        if param is not None and param.object_id == updated.id:
            del result[pid]
            logger.debug("Dropped unused parameter %s of %s", pid, updated.id)

    if original is not None and original.label != updated.label:
        for pid, param in list(result.items()):
            if param.object_id != updated.id:
                continue
            new_label = relabel(param.label, original.label, updated.label)
            if new_label is not None:
                result[pid] = dataclasses.replace(param, label=new_label)

    return result


__all__ = [
    "LABEL_JOINER",
    "ROLE_DEFAULTS",
    "RoleDefaults",
    "assign_parameter_ids",
    "make_parameter",
    "parameter_label",
    "reconcile_parameters",
    "relabel",
    "required_parameters",
]
