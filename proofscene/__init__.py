from .model import (
    AppState,
    CircleObject,
    HyperbolaForm,
    HyperbolaObject,
    LineObject,
    LineSegmentObject,
    ObjectType,
    Parameter,
    ParameterRole,
    ParametricCenter,
    RadialFunction,
    VectorCenter,
    VectorObject,
)
from .config import SceneConfig, get_scene_config, set_scene_config
from .validate import ValidationError, CyclicDependencyError
from .integrity import check_integrity, IntegrityWarning
from .expressions import evaluate
from .resolver import (
    check_cycle,
    discrete_trace_radii,
    effective_center,
    effective_radius,
    resolve_vector,
    VectorGeometry,
)
from .intersections import intersect, visible_intersections
from .parameters import reconcile_parameters
from .history import History
from .animation import AnimationScheduler, FrameSource, ManualFrameSource, advance_parameters
from .scene import SceneController

__all__ = [
    'AppState',
    'CircleObject',
    'HyperbolaForm',
    'HyperbolaObject',
    'LineObject',
    'LineSegmentObject',
    'ObjectType',
    'Parameter',
    'ParameterRole',
    'ParametricCenter',
    'RadialFunction',
    'VectorCenter',
    'VectorObject',
    'SceneConfig',
    'get_scene_config',
    'set_scene_config',
    'ValidationError',
    'CyclicDependencyError',
    'check_integrity',
    'IntegrityWarning',
    'evaluate',
    'check_cycle',
    'discrete_trace_radii',
    'effective_center',
    'effective_radius',
    'resolve_vector',
    'VectorGeometry',
    'intersect',
    'visible_intersections',
    'reconcile_parameters',
    'History',
    'AnimationScheduler',
    'FrameSource',
    'ManualFrameSource',
    'advance_parameters',
    'SceneController',
]
