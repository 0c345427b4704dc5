import copy
import logging
import math

import pytest

from proofscene.animation import ManualFrameSource
from proofscene.config import SceneConfig
from proofscene.constants import HYPERBOLA_COLOR
from proofscene.geometry import ViewTransform
from proofscene.integrity import check_integrity
from proofscene.model import (
    DrawingMode,
    LineObject,
    LineSegmentObject,
    ObjectType,
    ParametricCenter,
    RadialFunction,
    VectorCenter,
)
from proofscene.scene import SceneController
from proofscene.validate import CyclicDependencyError, ValidationError


def make_controller(**kwargs):
    frames = ManualFrameSource()
    return SceneController(frames=frames, seed=7, **kwargs), frames


def unit_id(controller):
    return controller.objects[0].id


def radial_parameter(controller, circle_id):
    return controller.state.find(circle_id).radial_function.parameter_id


def run_frames(frames, step=0.25, limit=100.0):
    timestamp = 0.0
    while frames.pending and timestamp < limit:
        frames.fire(timestamp)
        timestamp += step


def test_initial_scene_has_unit_circle():
    controller, _ = make_controller()

    (unit,) = controller.objects
    assert unit.label == 'Unit Circle'
    assert unit.is_fixed_radius and unit.r == 1.0 and (unit.cx, unit.cy) == (0.0, 0.0)
    assert controller.selected_id == unit.id
    assert len(controller.history) == 1
    assert not controller.can_undo and not controller.can_redo


def test_empty_scene_still_records_initial_entry():
    controller, _ = make_controller(with_unit_circle=False)
    assert controller.objects == []
    assert len(controller.history) == 1


def test_add_circle_defaults():
    controller, _ = make_controller()

    cid = controller.add_object(ObjectType.CIRCLE)

    circle = controller.state.find(cid)
    assert circle.label == 'Circle 2'
    assert -2.0 <= circle.cx <= 2.0 and -2.0 <= circle.cy <= 2.0
    assert 0.5 <= circle.r <= 1.0
    assert controller.selected_id == cid
    assert len(controller.history) == 2
    assert controller.can_undo


def test_random_placement_follows_seed():
    first, _ = make_controller()
    second, _ = make_controller()

    a = first.state.find(first.add_object(ObjectType.CIRCLE))
    b = second.state.find(second.add_object(ObjectType.CIRCLE))

    assert (a.cx, a.cy, a.r) == (b.cx, b.cy, b.r)


def test_add_circle_floors_radius():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, r=0.0)
    assert controller.state.find(cid).r == 0.01


def test_add_radial_circle_creates_parameter():
    controller, _ = make_controller()

    cid = controller.add_object(ObjectType.CIRCLE, label='Wave', is_radial=True, expression='x^2')

    circle = controller.state.find(cid)
    assert circle.radial_function.expression == 'x^2'
    param = controller.parameters[circle.radial_function.parameter_id]
    assert param.label == 'x for Wave'
    assert (param.value, param.min, param.max) == (0.0, -5.0, 5.0)


def test_fixed_radius_circle_ignores_radial_options():
    controller, _ = make_controller()

    cid = controller.add_object(ObjectType.CIRCLE, is_fixed_radius=True, is_radial=True, show_discrete_traces=True)

    circle = controller.state.find(cid)
    assert circle.radial_function is None
    assert not circle.show_discrete_traces
    assert controller.parameters == {}


def test_add_circle_on_parent_curve():
    controller, _ = make_controller()

    cid = controller.add_object(ObjectType.CIRCLE, r=0.5, center_on_curve_parent_id=unit_id(controller))

    link = controller.state.find(cid).center_on_curve
    assert isinstance(link, ParametricCenter)
    assert controller.parameters[link.parameter_id].label == 'Position for Circle 2'
    assert controller.effective_center(cid) == pytest.approx((1.0, 0.0))


def test_add_circle_on_missing_parent_is_rejected():
    controller, _ = make_controller()

    with pytest.raises(ValidationError):
        controller.add_object(ObjectType.CIRCLE, center_on_curve_parent_id='nope')

    assert len(controller.objects) == 1
    assert len(controller.history) == 1


def test_add_hyperbola_floors_constant():
    controller, _ = make_controller()

    hid = controller.add_object(ObjectType.HYPERBOLA, constant_value=0.0)

    hyperbola = controller.state.find(hid)
    assert hyperbola.label == 'Hyperbola 1'
    assert hyperbola.constant_value == 0.01
    assert hyperbola.color == HYPERBOLA_COLOR


@pytest.mark.parametrize(
    'kind, options',
    [
        (ObjectType.LINE, {'p1': (0.0, 0.0)}),
        (ObjectType.CIRCLE, {'radius': 2.0}),
        (ObjectType.VECTOR, {}),
    ],
)
def test_add_object_rejects_bad_options(kind, options):
    controller, _ = make_controller()

    with pytest.raises(ValidationError):
        controller.add_object(kind, **options)

    assert len(controller.objects) == 1


def test_add_vector_to_circle():
    controller, _ = make_controller()
    unit = controller.objects[0]

    vid = controller.add_object(ObjectType.VECTOR, parent_id=unit.id)

    vector = controller.state.find(vid)
    assert vector.label == 'Vector on Unit Circle'
    assert vector.color == unit.color
    assert vector.show_perpendicular
    param = controller.parameters[vector.angle_parameter_id]
    assert param.label == 'Angle for Vector on Unit Circle'
    assert param.value == pytest.approx(math.pi / 6)
    assert controller.vector_geometry(vid).tip == pytest.approx((math.sqrt(3) / 2, 0.5))


def test_vector_needs_circle_parent():
    controller, _ = make_controller()
    lid = controller.add_object(ObjectType.LINE, p1=(0.0, 0.0), p2=(1.0, 0.0))

    with pytest.raises(ValidationError):
        controller.add_vector_to_circle(lid)


def test_update_object_normalises_circle_fields():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True, show_discrete_traces=True)

    controller.update_object(cid, r=-1.0, discrete_trace_steps=1000)
    circle = controller.state.find(cid)
    assert circle.r == 0.01
    assert circle.discrete_trace_steps == 20

    controller.update_object(cid, discrete_trace_steps=50)
    assert controller.state.find(cid).discrete_trace_steps == 50


def test_clearing_radial_function_clears_traces_and_parameter():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True, show_discrete_traces=True)

    controller.update_object(cid, radial_function=None)

    circle = controller.state.find(cid)
    assert not circle.show_discrete_traces
    assert controller.parameters == {}


def test_fixing_radius_drops_radial_function():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)

    controller.update_object(cid, is_fixed_radius=True)

    assert controller.state.find(cid).radial_function is None
    assert controller.parameters == {}


def test_radial_function_from_text_reuses_parameter():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.update_parameter(pid, 1.0)

    controller.update_object(cid, radial_function='cos(x)')

    circle = controller.state.find(cid)
    assert circle.radial_function == RadialFunction('cos(x)', pid)
    assert controller.effective_radius(cid) == pytest.approx(math.cos(1.0))


def test_rename_relabels_parameters():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)

    controller.update_object(cid, label='Petal')

    assert controller.parameters[radial_parameter(controller, cid)].label == 'x for Petal'


def test_update_object_does_not_touch_previous_instance():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, cx=0.0, cy=0.0)
    before = controller.state.find(cid)

    controller.update_object(cid, cx=5.0)

    assert before.cx == 0.0
    assert controller.state.find(cid).cx == 5.0


@pytest.mark.parametrize('updates', [{'id': 'other'}, {'radius': 3.0}, {'kind': 'line'}])
def test_update_object_rejects_bad_fields(updates):
    controller, _ = make_controller()
    before = copy.deepcopy(controller.state)

    with pytest.raises(ValidationError):
        controller.update_object(unit_id(controller), **updates)

    assert controller.state == before


def test_cycle_is_rejected_and_state_unchanged():
    controller, _ = make_controller()
    a = controller.add_object(ObjectType.CIRCLE, r=0.5, center_on_curve_parent_id=unit_id(controller))
    b = controller.add_object(ObjectType.CIRCLE, r=0.2, center_on_curve_parent_id=a)
    before = copy.deepcopy(controller.state)
    entries = len(controller.history)

    with pytest.raises(CyclicDependencyError, match='circular dependency'):
        controller.update_object(a, center_on_curve=ParametricCenter(parent_id=b))

    assert controller.state == before
    assert len(controller.history) == entries


def test_circle_cannot_centre_on_itself():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE)

    with pytest.raises(CyclicDependencyError, match='cannot be centered on itself'):
        controller.update_object(cid, center_on_curve=ParametricCenter(parent_id=cid))


def test_vector_link_must_match_parent():
    controller, _ = make_controller()
    vid = controller.add_vector_to_circle(unit_id(controller))
    cid = controller.add_object(ObjectType.CIRCLE)
    other = controller.add_object(ObjectType.CIRCLE)

    with pytest.raises(ValidationError, match='not drawn on'):
        controller.update_object(cid, center_on_curve=VectorCenter(parent_id=other, vector_id=vid))


def test_vector_centre_follows_vector():
    controller, _ = make_controller()
    unit = unit_id(controller)
    vid = controller.add_vector_to_circle(unit)
    cid = controller.add_object(ObjectType.CIRCLE, r=0.3)

    controller.update_object(cid, center_on_curve=VectorCenter(parent_id=unit, vector_id=vid))
    controller.update_parameter(controller.state.find(vid).angle_parameter_id, math.pi)

    assert controller.effective_center(cid) == pytest.approx((-1.0, 0.0))


def test_vector_parent_cannot_change():
    controller, _ = make_controller()
    vid = controller.add_vector_to_circle(unit_id(controller))
    cid = controller.add_object(ObjectType.CIRCLE)

    with pytest.raises(ValidationError):
        controller.update_object(vid, parent_id=cid)


def test_enabling_differentials_sets_default_arc():
    controller, _ = make_controller()
    vid = controller.add_vector_to_circle(unit_id(controller))

    controller.update_object(vid, show_differentials=True, differential_arc_angle=None)

    assert controller.state.find(vid).differential_arc_angle == 0.1


def test_undo_all_operations_restores_initial_state():
    controller, _ = make_controller()
    initial = copy.deepcopy(controller.state)

    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    controller.update_object(cid, label='Renamed')
    controller.add_vector_to_circle(cid)
    after = copy.deepcopy(controller.state)

    for _ in range(3):
        assert controller.undo()
    assert controller.state == initial
    assert not controller.undo()

    for _ in range(3):
        assert controller.redo()
    assert controller.state == after
    assert not controller.redo()


def test_new_operation_discards_redo():
    controller, _ = make_controller()
    controller.add_object(ObjectType.CIRCLE)
    controller.undo()

    controller.add_object(ObjectType.HYPERBOLA)

    assert not controller.can_redo


def test_undo_clears_transient_state():
    controller, _ = make_controller()
    controller.add_object(ObjectType.CIRCLE)
    controller.set_drawing_mode(ObjectType.LINE)
    controller.add_drawing_point((0.0, 0.0))

    controller.undo()

    assert controller.selected_id is None
    assert controller.drawing_mode is DrawingMode.NONE
    assert controller.drawing_points == []


def test_history_capacity_from_config():
    controller, _ = make_controller(config=SceneConfig(history_capacity=3))
    for _ in range(5):
        controller.add_object(ObjectType.CIRCLE)

    assert len(controller.history) == 3
    assert controller.undo() and controller.undo()
    assert not controller.undo()


@pytest.mark.parametrize('steps', [0, 1, 5])
def test_parameter_gesture_is_one_undo_step(steps):
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    entries = len(controller.history)

    controller.begin_gesture(pid)
    for i in range(steps):
        controller.update_parameter(pid, 0.5 * (i + 1))
    assert len(controller.history) == entries
    assert controller.end_gesture(pid, 4.0)

    assert len(controller.history) == entries + 1
    assert controller.parameters[pid].value == 4.0
    controller.undo()
    assert controller.parameters[pid].value == 0.0


def test_object_drag_gesture_is_one_undo_step():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, cx=0.0, cy=0.0)
    entries = len(controller.history)

    controller.begin_gesture('drag')
    controller.update_object(cid, cx=1.0)
    controller.update_object(cid, cx=2.0)
    assert controller.end_gesture('drag')

    assert len(controller.history) == entries + 1
    controller.undo()
    assert controller.state.find(cid).cx == 0.0


def test_end_of_unknown_gesture_is_noop():
    controller, _ = make_controller()
    assert not controller.end_gesture('nothing', 1.0)
    assert len(controller.history) == 1


def test_update_parameter_records_history():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    entries = len(controller.history)

    controller.update_parameter(pid, 1.0)
    controller.update_parameter(pid, 2.0)

    assert len(controller.history) == entries + 2


def test_update_unknown_parameter_is_logged_noop(caplog):
    controller, _ = make_controller()
    before = copy.deepcopy(controller.state)

    with caplog.at_level(logging.WARNING, logger='proofscene.scene'):
        controller.update_parameter('missing', 1.0)

    assert controller.state == before
    assert 'missing' in caplog.text


def test_animation_sweeps_from_min_to_max_once():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.update_parameter(pid, -5.0)
    entries = len(controller.history)

    assert controller.toggle_animation(pid)
    assert controller.animation.running

    seen = []
    timestamp = 0.0
    while frames.pending and timestamp < 20.0:
        frames.fire(timestamp)
        seen.append(controller.parameters[pid].value)
        timestamp += 0.25

    param = controller.parameters[pid]
    assert param.value == 5.0
    assert not param.is_animating
    assert max(seen) <= 5.0
    assert seen == sorted(seen)
    assert not controller.animation.running
    assert frames.pending == 0
    assert len(controller.history) == entries + 1

    controller.undo()
    assert controller.parameters[pid].value == -5.0
    assert not controller.parameters[pid].is_animating


def test_animation_from_max_runs_backward():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.update_parameter(pid, 5.0)

    controller.toggle_animation(pid)
    run_frames(frames)

    assert controller.parameters[pid].value == -5.0


def test_manual_stop_is_one_undo_step():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    entries = len(controller.history)

    controller.toggle_animation(pid)
    frames.fire(0.0)
    frames.fire(1.0)
    assert controller.parameters[pid].value == pytest.approx(2.0)
    assert not controller.toggle_animation(pid)

    assert frames.pending == 0
    assert len(controller.history) == entries + 1
    controller.undo()
    assert controller.parameters[pid].value == 0.0


def test_editing_animating_parameter_stops_it_without_history():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.toggle_animation(pid)
    frames.fire(0.0)
    entries = len(controller.history)

    controller.update_parameter(pid, 1.0)

    assert not controller.parameters[pid].is_animating
    assert controller.parameters[pid].value == 1.0
    assert len(controller.history) == entries
    assert frames.pending == 0


def test_restoring_animating_snapshot_resets_time_baseline():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.toggle_animation(pid)
    frames.fire(0.0)
    frames.fire(1.0)
    controller.update_object(cid, label='First')
    controller.update_object(cid, label='Second')

    controller.undo()

    param = controller.parameters[pid]
    assert param.is_animating
    assert param.last_frame_time is None
    assert controller.animation.running


def test_undo_during_sweep_returns_to_pre_activation_state():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    entries = len(controller.history)

    controller.toggle_animation(pid)
    frames.fire(0.0)
    frames.fire(1.0)
    assert controller.parameters[pid].value == pytest.approx(2.0)

    assert controller.undo()

    assert controller.state.find(cid) is not None
    param = controller.parameters[pid]
    assert param.value == 0.0
    assert not param.is_animating
    assert frames.pending == 0
    assert len(controller.history) == entries

    controller.undo()
    assert controller.state.find(cid) is None


def test_undo_after_editing_animating_parameter_keeps_previous_edit():
    controller, frames = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.toggle_animation(pid)
    frames.fire(0.0)
    frames.fire(1.0)
    controller.update_parameter(pid, 1.0)

    assert controller.undo()

    assert controller.state.find(cid) is not None
    assert controller.parameters[pid].value == 0.0
    assert not controller.parameters[pid].is_animating


def test_undo_during_gesture_drops_only_the_gesture():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, is_radial=True)
    pid = radial_parameter(controller, cid)
    controller.update_parameter(pid, 1.0)

    controller.begin_gesture(pid)
    controller.update_parameter(pid, 2.0)
    controller.update_parameter(pid, 3.0)
    assert controller.undo()

    assert controller.parameters[pid].value == 1.0
    assert not controller.history.is_gesture_active()
    assert not controller.end_gesture(pid, 4.0)

    controller.undo()
    assert controller.parameters[pid].value == 0.0
    controller.undo()
    assert controller.state.find(cid) is None


def test_delete_circle_cascades():
    controller, _ = make_controller()
    unit = unit_id(controller)
    cid = controller.add_object(ObjectType.CIRCLE, cx=0.0, cy=0.0, r=1.0)
    vid = controller.add_vector_to_circle(cid)
    angle = controller.state.find(vid).angle_parameter_id
    follower = controller.add_object(ObjectType.CIRCLE, r=0.2)
    controller.update_object(follower, center_on_curve=VectorCenter(parent_id=cid, vector_id=vid))
    rider = controller.add_object(ObjectType.CIRCLE, r=0.3, center_on_curve_parent_id=cid)
    position = controller.state.find(rider).center_on_curve.parameter_id
    controller.update_object(unit, show_intersections_with=[cid])
    controller.select(vid)

    controller.delete_object(cid)

    state = controller.state
    assert state.find(cid) is None
    assert state.find(vid) is None
    assert angle not in state.parameters
    assert position not in state.parameters
    assert state.find(follower).center_on_curve is None
    assert state.find(rider).center_on_curve is None
    assert state.find(unit).show_intersections_with == []
    assert controller.selected_id is None
    assert check_integrity(state) == []


def test_delete_followed_vector_clears_follower():
    controller, _ = make_controller()
    unit = unit_id(controller)
    vid = controller.add_vector_to_circle(unit)
    angle = controller.state.find(vid).angle_parameter_id
    follower = controller.add_object(ObjectType.CIRCLE, r=0.2)
    controller.update_object(follower, center_on_curve=VectorCenter(parent_id=unit, vector_id=vid))

    controller.delete_object(vid)

    assert controller.state.find(follower).center_on_curve is None
    assert angle not in controller.parameters
    assert controller.state.find(unit) is not None


def test_delete_is_undoable():
    controller, _ = make_controller()
    vid = controller.add_vector_to_circle(unit_id(controller))
    before = copy.deepcopy(controller.state)

    controller.delete_object(unit_id(controller))
    assert controller.objects == []

    controller.undo()
    assert controller.state == before
    assert controller.state.find(vid) is not None


def test_delete_unknown_object_is_rejected():
    controller, _ = make_controller()
    with pytest.raises(ValidationError):
        controller.delete_object('nope')


@pytest.mark.parametrize(
    'kind, cls, label',
    [(ObjectType.LINE, LineObject, 'Line 1'), (ObjectType.LINE_SEGMENT, LineSegmentObject, 'Segment 1')],
)
def test_drawing_two_points_creates_object(kind, cls, label):
    controller, _ = make_controller()
    entries = len(controller.history)

    controller.set_drawing_mode(kind)
    assert controller.add_drawing_point((0.0, 0.0)) is None
    assert controller.drawing_mode in (DrawingMode.LINE_PT2, DrawingMode.SEGMENT_PT2)
    oid = controller.add_drawing_point((1.0, 1.0))

    obj = controller.state.find(oid)
    assert type(obj) is cls
    assert obj.label == label
    assert (obj.p1, obj.p2) == ((0.0, 0.0), (1.0, 1.0))
    assert controller.drawing_mode is DrawingMode.NONE
    assert controller.selected_id == oid
    assert len(controller.history) == entries + 1


def test_drawing_point_without_mode_is_ignored():
    controller, _ = make_controller()
    assert controller.add_drawing_point((1.0, 1.0)) is None
    assert len(controller.objects) == 1


def test_only_lines_can_be_drawn_point_by_point():
    controller, _ = make_controller()
    with pytest.raises(ValidationError):
        controller.set_drawing_mode(ObjectType.CIRCLE)


def test_intersections_for_listed_targets():
    controller, _ = make_controller()
    cid = controller.add_object(ObjectType.CIRCLE, cx=1.0, cy=0.0, r=1.0)
    controller.update_object(cid, show_intersections_with=[unit_id(controller)])

    points = sorted(controller.intersections_for(cid))

    half = math.sqrt(3.0) / 2.0
    assert points == [pytest.approx((0.5, -half)), pytest.approx((0.5, half))]


def test_read_views_validate_ids():
    controller, _ = make_controller()
    lid = controller.add_object(ObjectType.LINE, p1=(0.0, 0.0), p2=(1.0, 0.0))

    with pytest.raises(ValidationError):
        controller.effective_center(lid)
    with pytest.raises(ValidationError):
        controller.vector_geometry(lid)
    with pytest.raises(ValidationError):
        controller.select('nope')


@pytest.mark.parametrize('requested, stored', [(0.001, 0.01), (0.3, 0.3), (2.0, 0.5)])
def test_differential_arc_angle_is_clamped(requested, stored):
    controller, _ = make_controller()
    vid = controller.add_vector_to_circle(unit_id(controller))

    controller.update_object(vid, show_differentials=True, differential_arc_angle=requested)

    assert controller.state.find(vid).differential_arc_angle == pytest.approx(stored)


def test_zoom_view_uses_configured_bounds():
    controller, _ = make_controller(config=SceneConfig(min_zoom=0.5, max_zoom=2.0))

    assert controller.zoom_view(ViewTransform(), 10.0).k == pytest.approx(2.0)
    assert controller.zoom_view(ViewTransform(), 0.1).k == pytest.approx(0.5)
