"""Scene data model: geometric objects, parameters and the application state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Type, TypeVar, Union

from .constants import DEFAULT_DIFFERENTIAL_ARC_ANGLE, DEFAULT_OBJECT_COLOR

Point = Tuple[float, float]
ObjectId = str
ParameterId = str


class ObjectType(str, Enum):
    CIRCLE = "circle"
    HYPERBOLA = "hyperbola"
    LINE = "line"
    LINE_SEGMENT = "lineSegment"
    VECTOR = "vector"


class HyperbolaForm(str, Enum):
    X_SQUARED_MINUS_Y_SQUARED = "x^2-y^2=k"
    Y_SQUARED_MINUS_X_SQUARED = "y^2-x^2=k"


class ParameterRole(str, Enum):
    RADIAL_FUNCTION_X = "radialFunctionX"
    CENTER_ON_CURVE_POSITION = "centerOnCurvePosition"
    VECTOR_ANGLE = "vectorAngle"
    GENERIC = "generic"


class AnimationDirection(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class DrawingMode(Enum):
    NONE = 0
    LINE_PT1 = 1
    LINE_PT2 = 2
    SEGMENT_PT1 = 3
    SEGMENT_PT2 = 4


@dataclass
class RadialFunction:
    """Radius override ``|f(x)|`` with ``x`` taken from a parameter."""

    expression: str
    parameter_id: ParameterId = ""


@dataclass
class ParametricCenter:
    """Centre sits on the parent circle at the angle held by ``parameter_id``."""

    parent_id: ObjectId
    parameter_id: ParameterId = ""


@dataclass
class VectorCenter:
    """Centre sits on the parent circle at the angle of one of its vectors."""

    parent_id: ObjectId
    vector_id: ObjectId


CenterOnCurve = Union[ParametricCenter, VectorCenter]


@dataclass
class GeometricObject:
    id: ObjectId
    label: str
    color: str = DEFAULT_OBJECT_COLOR

    kind: ClassVar[ObjectType]


@dataclass
class CircleObject(GeometricObject):
    kind: ClassVar[ObjectType] = ObjectType.CIRCLE

    cx: float = 0.0
    cy: float = 0.0
    r: float = 1.0
    is_fixed_radius: bool = False
    radial_function: Optional[RadialFunction] = None
    center_on_curve: Optional[CenterOnCurve] = None
    show_discrete_traces: bool = False
    discrete_trace_steps: int = 20
    show_intersections_with: List[ObjectId] = field(default_factory=list)


@dataclass
class HyperbolaObject(GeometricObject):
    kind: ClassVar[ObjectType] = ObjectType.HYPERBOLA

    form: HyperbolaForm = HyperbolaForm.X_SQUARED_MINUS_Y_SQUARED
    cx: float = 0.0
    cy: float = 0.0
    constant_value: float = 1.0


@dataclass
class LineObject(GeometricObject):
    """Infinite line through ``p1`` and ``p2``."""

    kind: ClassVar[ObjectType] = ObjectType.LINE

    p1: Point = (0.0, 0.0)
    p2: Point = (1.0, 0.0)
    show_intersections_with: List[ObjectId] = field(default_factory=list)

    @property
    def bounded(self) -> bool:
        return False


@dataclass
class LineSegmentObject(LineObject):
    """Segment between ``p1`` and ``p2``."""

    kind: ClassVar[ObjectType] = ObjectType.LINE_SEGMENT

    @property
    def bounded(self) -> bool:
        return True


@dataclass
class VectorObject(GeometricObject):
    kind: ClassVar[ObjectType] = ObjectType.VECTOR

    parent_id: ObjectId = ""
    angle_parameter_id: ParameterId = ""
    show_perpendicular: bool = True
    show_derivative: bool = False
    show_differentials: bool = False
    differential_arc_angle: Optional[float] = DEFAULT_DIFFERENTIAL_ARC_ANGLE


OBJECT_CLASSES: Dict[ObjectType, Type[GeometricObject]] = {
    ObjectType.CIRCLE: CircleObject,
    ObjectType.HYPERBOLA: HyperbolaObject,
    ObjectType.LINE: LineObject,
    ObjectType.LINE_SEGMENT: LineSegmentObject,
    ObjectType.VECTOR: VectorObject,
}


@dataclass
class Parameter:
    id: ParameterId
    label: str
    value: float
    min: float
    max: float
    step: float
    object_id: Optional[ObjectId] = None
    role: ParameterRole = ParameterRole.GENERIC
    is_animating: bool = False
    animation_speed: Optional[float] = None  # units per second
    animation_direction: AnimationDirection = AnimationDirection.FORWARD
    # Frame clock bookkeeping; not part of the scene content.
    last_frame_time: Optional[float] = field(default=None, compare=False)


T = TypeVar("T", bound=GeometricObject)


@dataclass
class AppState:
    """Objects in z-order plus the parameter table."""

    objects: List[GeometricObject] = field(default_factory=list)
    parameters: Dict[ParameterId, Parameter] = field(default_factory=dict)

    def find(self, object_id: Optional[ObjectId]) -> Optional[GeometricObject]:
        if not object_id:
            return None
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def find_as(self, object_id: Optional[ObjectId], cls: Type[T]) -> Optional[T]:
        obj = self.find(object_id)
        if isinstance(obj, cls):
            return obj
        return None

    def parameter(self, parameter_id: Optional[ParameterId]) -> Optional[Parameter]:
        if not parameter_id:
            return None
        return self.parameters.get(parameter_id)

    def of_kind(self, cls: Type[T]) -> Iterator[T]:
        for obj in self.objects:
            if isinstance(obj, cls):
                yield obj

    def count_kind(self, kind: ObjectType) -> int:
        return sum(1 for obj in self.objects if obj.kind is kind)

    def any_animating(self) -> bool:
        return any(param.is_animating for param in self.parameters.values())


HistoryEntry = AppState


__all__ = [
    "AnimationDirection",
    "AppState",
    "CenterOnCurve",
    "CircleObject",
    "DrawingMode",
    "GeometricObject",
    "HistoryEntry",
    "HyperbolaForm",
    "HyperbolaObject",
    "LineObject",
    "LineSegmentObject",
    "OBJECT_CLASSES",
    "ObjectId",
    "ObjectType",
    "Parameter",
    "ParameterId",
    "ParameterRole",
    "ParametricCenter",
    "Point",
    "RadialFunction",
    "VectorCenter",
    "VectorObject",
]
