"""Scene controller: the single writer of the live :class:`AppState`.

Every editor command builds the next object list and parameter table off to
the side and swaps both in at once, so no caller ever sees half of an update.
Invalid commands raise :class:`~proofscene.validate.ValidationError` before
anything is touched.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import random
import uuid
from typing import Any, Dict, List, Optional, Sequence

from .animation import (
    AnimationScheduler,
    FrameSource,
    ManualFrameSource,
    advance_parameters,
    default_speed,
    start_direction,
)
from .config import SceneConfig, get_scene_config
from .constants import (
    DEFAULT_DIFFERENTIAL_ARC_ANGLE,
    DEFAULT_OBJECT_COLOR,
    HYPERBOLA_COLOR,
    KNOWN_RADIAL_FUNCTIONS,
    MAX_DIFFERENTIAL_ARC_ANGLE,
    MIN_DIFFERENTIAL_ARC_ANGLE,
    UNIT_CIRCLE_LABEL,
)
from .geometry import ViewTransform, zoom_by_factor
from .history import History
from .integrity import IntegrityWarning, check_integrity
from .intersections import visible_intersections
from .model import (
    AppState,
    CircleObject,
    DrawingMode,
    GeometricObject,
    HyperbolaForm,
    HyperbolaObject,
    OBJECT_CLASSES,
    LineObject,
    ObjectId,
    ObjectType,
    Parameter,
    ParameterId,
    ParametricCenter,
    Point,
    RadialFunction,
    VectorCenter,
    VectorObject,
)
from .parameters import assign_parameter_ids, reconcile_parameters
from .resolver import VectorGeometry, effective_center, effective_radius, resolve_vector
from .validate import (
    ValidationError,
    require_circle,
    require_object,
    validate_center_on_curve,
    validate_fields,
)

logger = logging.getLogger(__name__)

_KIND_LABELS = {
    ObjectType.CIRCLE: "Circle",
    ObjectType.HYPERBOLA: "Hyperbola",
    ObjectType.LINE: "Line",
    ObjectType.LINE_SEGMENT: "Segment",
}

_ADD_OPTIONS = {
    ObjectType.CIRCLE: {
        "label", "color", "cx", "cy", "r", "is_fixed_radius", "is_radial", "expression",
        "show_discrete_traces", "discrete_trace_steps", "center_on_curve_parent_id",
    },
    ObjectType.HYPERBOLA: {"label", "color", "form", "cx", "cy", "constant_value"},
    ObjectType.LINE: {"label", "color", "p1", "p2"},
    ObjectType.LINE_SEGMENT: {"label", "color", "p1", "p2"},
    ObjectType.VECTOR: {"parent_id"},
}

_IMMUTABLE_VECTOR_FIELDS = {"parent_id", "angle_parameter_id"}


def new_object_id() -> ObjectId:
    return f"id_{uuid.uuid4().hex[:12]}"


def _as_point(value: Sequence[float]) -> Point:
    return float(value[0]), float(value[1])


class SceneController:
    """Owns the live scene, selection, drawing mode, history and animation loop."""

    def __init__(
        self,
        *,
        config: Optional[SceneConfig] = None,
        frames: Optional[FrameSource] = None,
        seed: Optional[int] = None,
        with_unit_circle: bool = True,
    ) -> None:
        self.config = copy.deepcopy(config) if config is not None else get_scene_config()
        self.state = AppState()
        self.history = History(self.config.history_capacity)
        self.selected_id: Optional[ObjectId] = None
        self.drawing_mode = DrawingMode.NONE
        self.drawing_points: List[Point] = []
        self.frames: FrameSource = frames or ManualFrameSource()
        self.animation = AnimationScheduler(
            self.frames, lambda: self.state.any_animating(), self.step_animation
        )
        self._rng = random.Random(seed)

        if with_unit_circle:
            unit = CircleObject(
                id=new_object_id(), label=UNIT_CIRCLE_LABEL, cx=0.0, cy=0.0, r=1.0, is_fixed_radius=True
            )
            self.state = AppState(objects=[unit], parameters={})
            self.selected_id = unit.id
        self.history.push(self.state.objects, self.state.parameters)

    # ------------------------------------------------------------------
    # state plumbing

    @property
    def objects(self) -> List[GeometricObject]:
        return self.state.objects

    @property
    def parameters(self) -> Dict[ParameterId, Parameter]:
        return self.state.parameters

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def _commit(
        self,
        objects: List[GeometricObject],
        parameters: Dict[ParameterId, Parameter],
        *,
        record: bool = True,
    ) -> None:
        self.state = AppState(objects=objects, parameters=parameters)
        if record:
            self.history.push(objects, parameters)
        self.animation.sync()

    def _require_parameter(self, parameter_id: ParameterId) -> Optional[Parameter]:
        param = self.state.parameter(parameter_id)
        if param is None:
            logger.warning("Parameter %s does not exist", parameter_id)
        return param

    # ------------------------------------------------------------------
    # object commands

    def add_object(self, kind: ObjectType, **options: Any) -> ObjectId:
        try:
            kind = ObjectType(kind)
        except ValueError:
            raise ValidationError(f"unknown object type {kind!r}") from None
        unknown = set(options) - _ADD_OPTIONS[kind]
        if unknown:
            raise ValidationError(f"unknown {kind.value} option(s): {', '.join(sorted(unknown))}")
        if kind is ObjectType.VECTOR:
            if "parent_id" not in options:
                raise ValidationError("a vector needs a parent_id")
            return self.add_vector_to_circle(options["parent_id"])

        object_id = new_object_id()
        label = options.get("label") or f"{_KIND_LABELS[kind]} {self.state.count_kind(kind) + 1}"
        color = options.get("color")
        if kind is ObjectType.CIRCLE:
            obj: GeometricObject = self._new_circle(object_id, label, color or DEFAULT_OBJECT_COLOR, options)
        elif kind is ObjectType.HYPERBOLA:
            obj = HyperbolaObject(
                id=object_id,
                label=label,
                color=color or HYPERBOLA_COLOR,
                form=HyperbolaForm(options.get("form", HyperbolaForm.X_SQUARED_MINUS_Y_SQUARED)),
                cx=float(options.get("cx", 0.0)),
                cy=float(options.get("cy", 0.0)),
                constant_value=max(self.config.min_hyperbola_constant, float(options.get("constant_value", 1.0))),
            )
        else:
            if "p1" not in options or "p2" not in options:
                raise ValidationError(f"a {kind.value} needs both p1 and p2")
            obj = OBJECT_CLASSES[kind](
                id=object_id,
                label=label,
                color=color or DEFAULT_OBJECT_COLOR,
                p1=_as_point(options["p1"]),
                p2=_as_point(options["p2"]),
            )

        obj = assign_parameter_ids(obj, self.state.parameters)
        parameters = reconcile_parameters(self.state.parameters, obj)
        self.selected_id = object_id
        self._commit(self.state.objects + [obj], parameters)
        logger.info("Added %s %s (%s)", kind.value, object_id, label)
        return object_id

    def _new_circle(self, object_id: ObjectId, label: str, color: str, options: Dict[str, Any]) -> CircleObject:
        is_fixed = bool(options.get("is_fixed_radius", False))
        radial: Optional[RadialFunction] = None
        if options.get("is_radial") and not is_fixed:
            radial = RadialFunction(expression=options.get("expression") or KNOWN_RADIAL_FUNCTIONS[0].expression)

        center: Optional[ParametricCenter] = None
        parent_id = options.get("center_on_curve_parent_id")
        if parent_id:
            require_circle(self.state, parent_id)
            center = ParametricCenter(parent_id=parent_id)

        cx = options.get("cx")
        cy = options.get("cy")
        r = options.get("r")
        return CircleObject(
            id=object_id,
            label=label,
            color=color,
            cx=float(cx) if cx is not None else self._rng.uniform(-2.0, 2.0),
            cy=float(cy) if cy is not None else self._rng.uniform(-2.0, 2.0),
            r=max(self.config.min_radius, float(r) if r is not None else self._rng.uniform(0.5, 1.0)),
            is_fixed_radius=is_fixed,
            radial_function=radial,
            center_on_curve=center,
            show_discrete_traces=bool(options.get("show_discrete_traces")) if radial else False,
            discrete_trace_steps=self._trace_steps(options.get("discrete_trace_steps")) if radial
            else self.config.default_trace_steps,
        )

    def _trace_steps(self, value: Any) -> int:
        try:
            steps = int(value)
        except (TypeError, ValueError):
            return self.config.default_trace_steps
        if self.config.min_trace_steps <= steps <= self.config.max_trace_steps:
            return steps
        return self.config.default_trace_steps

    def add_vector_to_circle(self, circle_id: ObjectId) -> ObjectId:
        circle = require_circle(self.state, circle_id)
        vector = VectorObject(
            id=new_object_id(),
            label=f"Vector on {circle.label or 'Circle'}",
            color=circle.color,
            parent_id=circle.id,
            show_perpendicular=True,
            differential_arc_angle=DEFAULT_DIFFERENTIAL_ARC_ANGLE,
        )
        vector = assign_parameter_ids(vector, self.state.parameters)
        parameters = reconcile_parameters(self.state.parameters, vector)
        self.selected_id = vector.id
        self._commit(self.state.objects + [vector], parameters)
        logger.info("Added vector %s on %s", vector.id, circle.id)
        return vector.id

    def update_object(self, object_id: ObjectId, **updates: Any) -> GeometricObject:
        """Apply a partial update plus parameter reconciliation as one step."""

        original = require_object(self.state, object_id)
        validate_fields(original, updates)
        if isinstance(original, VectorObject):
            frozen = _IMMUTABLE_VECTOR_FIELDS & set(updates)
            if frozen:
                raise ValidationError(f"vector field(s) {', '.join(sorted(frozen))} cannot be changed")

        obj = self._normalize_update(dataclasses.replace(original, **updates), updates)
        if isinstance(obj, CircleObject) and "center_on_curve" in updates:
            validate_center_on_curve(self.state, obj.id, obj.center_on_curve)

        obj = assign_parameter_ids(obj, self.state.parameters, original)
        parameters = reconcile_parameters(self.state.parameters, obj, original)
        objects = [obj if o.id == object_id else o for o in self.state.objects]
        self._commit(objects, parameters, record=not self.history.is_gesture_active())
        return obj

    def _normalize_update(self, obj: GeometricObject, updates: Dict[str, Any]) -> GeometricObject:
        if isinstance(obj, CircleObject):
            if "r" in updates and not obj.is_fixed_radius:
                obj.r = max(self.config.min_radius, float(obj.r))
            if "discrete_trace_steps" in updates:
                obj.discrete_trace_steps = self._trace_steps(obj.discrete_trace_steps)
            if isinstance(obj.radial_function, str):
                obj.radial_function = RadialFunction(expression=obj.radial_function)
            if obj.radial_function is not None and obj.is_fixed_radius:
                obj.radial_function = None
            if obj.radial_function is None:
                obj.show_discrete_traces = False
            obj.show_intersections_with = list(obj.show_intersections_with or [])
        elif isinstance(obj, HyperbolaObject):
            obj.form = HyperbolaForm(obj.form)
            obj.constant_value = max(self.config.min_hyperbola_constant, float(obj.constant_value))
        elif isinstance(obj, LineObject):
            obj.p1 = _as_point(obj.p1)
            obj.p2 = _as_point(obj.p2)
            obj.show_intersections_with = list(obj.show_intersections_with or [])
        elif isinstance(obj, VectorObject):
            if obj.differential_arc_angle is None:
                if obj.show_differentials:
                    obj.differential_arc_angle = DEFAULT_DIFFERENTIAL_ARC_ANGLE
            else:
                obj.differential_arc_angle = min(
                    MAX_DIFFERENTIAL_ARC_ANGLE, max(MIN_DIFFERENTIAL_ARC_ANGLE, float(obj.differential_arc_angle))
                )
        return obj

    def delete_object(self, object_id: ObjectId) -> None:
        target = require_object(self.state, object_id)
        removed = {object_id}
        drop_params = set()
        objects = list(self.state.objects)

        for idx, obj in enumerate(objects):
            if isinstance(target, CircleObject) and isinstance(obj, VectorObject) and obj.parent_id == object_id:
                removed.add(obj.id)
                drop_params.add(obj.angle_parameter_id)
            if not isinstance(obj, CircleObject) or obj.center_on_curve is None:
                continue
            link = obj.center_on_curve
            follows_deleted = link.parent_id == object_id or (
                isinstance(link, VectorCenter) and link.vector_id == object_id
            )
            if follows_deleted:
                objects[idx] = dataclasses.replace(obj, center_on_curve=None)
                if isinstance(link, ParametricCenter):
                    param = self.state.parameter(link.parameter_id)
                    if param is not None and param.object_id == obj.id:
                        drop_params.add(param.id)
                logger.info("Cleared centre-on-curve of %s after deleting %s", obj.id, object_id)

        if isinstance(target, VectorObject):
            drop_params.add(target.angle_parameter_id)
        drop_params.update(p.id for p in self.state.parameters.values() if p.object_id in removed)

        kept: List[GeometricObject] = []
        for obj in objects:
            if obj.id in removed:
                continue
            targets = getattr(obj, "show_intersections_with", None)
            if targets and removed.intersection(targets):
                obj = dataclasses.replace(obj, show_intersections_with=[t for t in targets if t not in removed])
            kept.append(obj)
        parameters = {pid: p for pid, p in self.state.parameters.items() if pid not in drop_params}

        if self.selected_id in removed:
            self.selected_id = None
        self._commit(kept, parameters)
        logger.info("Deleted %s (%d object(s), %d parameter(s))", object_id, len(removed), len(drop_params))

    def select(self, object_id: Optional[ObjectId]) -> None:
        if object_id is not None:
            require_object(self.state, object_id)
        self.selected_id = object_id

    # ------------------------------------------------------------------
    # parameters, gestures, animation

    def update_parameter(self, parameter_id: ParameterId, value: float) -> None:
        param = self._require_parameter(parameter_id)
        if param is None:
            return
        parameters = dict(self.state.parameters)
        parameters[parameter_id] = dataclasses.replace(
            param, value=float(value), is_animating=False, last_frame_time=None
        )
        record = not param.is_animating and not self.history.is_gesture_active(parameter_id)
        self._commit(self.state.objects, parameters, record=record)

    def begin_gesture(self, gesture_id: str) -> None:
        self.history.begin_gesture(gesture_id, self.state.objects, self.state.parameters)

    def end_gesture(self, gesture_id: str, final_value: Optional[float] = None) -> bool:
        """Finish a gesture; ``final_value`` is applied when ``gesture_id`` names a parameter."""

        if not self.history.is_gesture_active(gesture_id):
            logger.debug("Gesture %s is not active", gesture_id)
            return False
        parameters = self.state.parameters
        param = self.state.parameter(gesture_id)
        if param is not None and final_value is not None:
            parameters = dict(parameters)
            parameters[gesture_id] = dataclasses.replace(
                param, value=float(final_value), is_animating=False, last_frame_time=None
            )
            self._commit(self.state.objects, parameters, record=False)
        return self.history.end_gesture(gesture_id, self.state.objects, self.state.parameters)

    def toggle_animation(self, parameter_id: ParameterId) -> bool:
        """Start or stop animating a parameter; returns the new animating flag."""

        param = self._require_parameter(parameter_id)
        if param is None:
            return False
        parameters = dict(self.state.parameters)
        if param.is_animating:
            parameters[parameter_id] = dataclasses.replace(param, is_animating=False, last_frame_time=None)
            self._commit(self.state.objects, parameters)
            logger.info("Animation of %s stopped at %.6g", parameter_id, param.value)
            return False

        self.history.push(self.state.objects, self.state.parameters, skip_if_unchanged=True)
        parameters[parameter_id] = dataclasses.replace(
            param,
            is_animating=True,
            animation_direction=start_direction(param),
            animation_speed=param.animation_speed or default_speed(param, self.config.animation_sweep_seconds),
            last_frame_time=None,
        )
        self._commit(self.state.objects, parameters, record=False)
        logger.info("Animation of %s started (%s)", parameter_id, parameters[parameter_id].animation_direction.value)
        return True

    def step_animation(self, timestamp: float) -> List[ParameterId]:
        """Advance every animating parameter to ``timestamp`` as one batch."""

        parameters, finished = advance_parameters(
            self.state.parameters, timestamp, sweep_seconds=self.config.animation_sweep_seconds
        )
        self._commit(self.state.objects, parameters, record=False)
        if finished:
            self.history.push(self.state.objects, self.state.parameters)
            logger.info("Animation finished for %s", ", ".join(finished))
        return finished

    # ------------------------------------------------------------------
    # undo / redo

    def undo(self) -> bool:
        """Drop unrecorded changes (a running sweep, an open gesture) or step back one entry."""

        if self.history.matches_current(self.state.objects, self.state.parameters):
            entry = self.history.undo()
        else:
            entry = self.history.revert()
        if entry is None:
            return False
        self._restore(entry)
        return True

    def redo(self) -> bool:
        entry = self.history.redo()
        if entry is None:
            return False
        self._restore(entry)
        return True

    def _restore(self, entry: AppState) -> None:
        for pid, param in entry.parameters.items():
            if param.is_animating:
                # Re-establish the time baseline on the next frame.
                entry.parameters[pid] = dataclasses.replace(param, last_frame_time=None)
        self.state = entry
        self.selected_id = None
        self.drawing_mode = DrawingMode.NONE
        self.drawing_points = []
        self.animation.sync()
        logger.info("History moved to %d/%d", self.history.index + 1, len(self.history))

    # ------------------------------------------------------------------
    # point-by-point drawing of lines and segments

    def set_drawing_mode(self, kind: Optional[ObjectType]) -> None:
        if kind is None:
            self.drawing_mode = DrawingMode.NONE
        elif ObjectType(kind) is ObjectType.LINE:
            self.drawing_mode = DrawingMode.LINE_PT1
        elif ObjectType(kind) is ObjectType.LINE_SEGMENT:
            self.drawing_mode = DrawingMode.SEGMENT_PT1
        else:
            raise ValidationError(f"cannot draw a {ObjectType(kind).value} point by point")
        self.drawing_points = []

    def add_drawing_point(self, point: Sequence[float]) -> Optional[ObjectId]:
        """Collect a clicked point; the second one creates the line or segment."""

        mode = self.drawing_mode
        if mode is DrawingMode.NONE:
            return None
        points = self.drawing_points + [_as_point(point)]
        if mode is DrawingMode.LINE_PT1:
            self.drawing_mode, self.drawing_points = DrawingMode.LINE_PT2, points
            return None
        if mode is DrawingMode.SEGMENT_PT1:
            self.drawing_mode, self.drawing_points = DrawingMode.SEGMENT_PT2, points
            return None
        kind = ObjectType.LINE if mode is DrawingMode.LINE_PT2 else ObjectType.LINE_SEGMENT
        object_id = self.add_object(kind, p1=points[0], p2=points[1])
        self.drawing_mode = DrawingMode.NONE
        self.drawing_points = []
        return object_id

    # ------------------------------------------------------------------
    # read-only views for renderers

    def effective_center(self, object_id: ObjectId) -> Point:
        return effective_center(require_circle(self.state, object_id), self.state)

    def effective_radius(self, object_id: ObjectId) -> float:
        return effective_radius(require_circle(self.state, object_id), self.state)

    def intersections_for(self, object_id: ObjectId) -> List[Point]:
        return visible_intersections(require_object(self.state, object_id), self.state, eps=self.config.epsilon)

    def vector_geometry(self, object_id: ObjectId) -> Optional[VectorGeometry]:
        vector = require_object(self.state, object_id)
        if not isinstance(vector, VectorObject):
            raise ValidationError(f'object "{object_id}" is not a vector')
        return resolve_vector(vector, self.state)

    def zoom_view(self, view: ViewTransform, factor: float) -> ViewTransform:
        return zoom_by_factor(view, factor, min_zoom=self.config.min_zoom, max_zoom=self.config.max_zoom)

    def integrity_warnings(self) -> List[IntegrityWarning]:
        return check_integrity(self.state)


__all__ = ["SceneController", "new_object_id"]
