import argparse
import logging
import sys
from typing import Callable, Dict, Optional, Sequence

from proofscene import (
    CircleObject,
    ManualFrameSource,
    ObjectType,
    SceneController,
    VectorCenter,
    VectorObject,
    get_scene_config,
)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _unit_circle_id(controller: SceneController) -> str:
    return next(controller.state.of_kind(CircleObject)).id


def _build_intersections(controller: SceneController) -> None:
    unit = _unit_circle_id(controller)
    circle = controller.add_object(ObjectType.CIRCLE, cx=1.0, cy=0.0, r=1.0)
    line = controller.add_object(ObjectType.LINE, p1=(-3.0, 0.5), p2=(3.0, 0.5))
    segment = controller.add_object(ObjectType.LINE_SEGMENT, p1=(0.0, -2.0), p2=(0.0, 2.0))
    controller.update_object(circle, show_intersections_with=[unit, line, segment])
    controller.update_object(line, show_intersections_with=[unit, segment])


def _build_sweep(controller: SceneController) -> None:
    circle_id = controller.add_object(ObjectType.CIRCLE, cx=0.0, cy=0.0, is_radial=True, expression="sin(x)")
    circle = controller.state.find_as(circle_id, CircleObject)
    controller.toggle_animation(circle.radial_function.parameter_id)


def _build_chain(controller: SceneController) -> None:
    unit = _unit_circle_id(controller)
    rider = controller.add_object(ObjectType.CIRCLE, r=0.5, center_on_curve_parent_id=unit)
    controller.add_object(ObjectType.CIRCLE, r=0.25, center_on_curve_parent_id=rider)
    vector_id = controller.add_vector_to_circle(rider)
    follower = controller.add_object(ObjectType.CIRCLE, cx=0.0, cy=0.0, r=0.2)
    controller.update_object(follower, center_on_curve=VectorCenter(parent_id=rider, vector_id=vector_id))

    position = controller.state.find_as(rider, CircleObject).center_on_curve.parameter_id
    controller.toggle_animation(position)
    controller.toggle_animation(controller.state.find_as(vector_id, VectorObject).angle_parameter_id)


DEMOS: Dict[str, Callable[[SceneController], None]] = {
    "intersections": _build_intersections,
    "sweep": _build_sweep,
    "chain": _build_chain,
}


def _run_animation(frames: ManualFrameSource, fps: float, max_seconds: float) -> int:
    timestamp = 0.0
    count = 0
    while frames.pending and timestamp <= max_seconds:
        frames.fire(timestamp)
        timestamp += 1.0 / fps
        count += 1
    return count


def _print_scene(controller: SceneController) -> None:
    print("Objects:")
    for obj in controller.objects:
        if isinstance(obj, CircleObject):
            cx, cy = controller.effective_center(obj.id)
            radius = controller.effective_radius(obj.id)
            print(f"  {obj.label}: centre=({cx:.6f}, {cy:.6f}) r={radius:.6f}")
        elif isinstance(obj, VectorObject):
            geometry = controller.vector_geometry(obj.id)
            if geometry is None:
                print(f"  {obj.label}: (unresolved)")
            else:
                print(f"  {obj.label}: tip=({geometry.tip[0]:.6f}, {geometry.tip[1]:.6f}) angle={geometry.angle:.6f}")
        else:
            print(f"  {obj.label}: {obj.kind.value}")

    print("Parameters:")
    for param in controller.parameters.values():
        state = " (animating)" if param.is_animating else ""
        print(f"  {param.label}: {param.value:.6f}{state}")

    print("Intersections:")
    found = False
    for obj in controller.objects:
        if not getattr(obj, "show_intersections_with", None):
            continue
        for x, y in controller.intersections_for(obj.id):
            print(f"  {obj.label}: ({x:.6f}, {y:.6f})")
            found = True
    if not found:
        print("  (none)")

    print("Warnings:")
    warnings = controller.integrity_warnings()
    if warnings:
        for warning in warnings:
            print(f"  - {warning}")
    else:
        print("  (none)")

    print(f"History: {controller.history.index + 1}/{len(controller.history)}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a headless proof scene demo")
    parser.add_argument(
        "--demo",
        choices=sorted(DEMOS),
        default="intersections",
        help="Scene to build (default: intersections)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=60.0,
        help="Simulated frame rate for animations (default: 60)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=123,
        help="Random seed for object placement (default: 123)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    if args.fps <= 0:
        logger.error("Frame rate must be positive")
        raise SystemExit(2)

    config = get_scene_config()
    frames = ManualFrameSource()
    controller = SceneController(config=config, frames=frames, seed=args.seed)

    logger.info("Building %s demo", args.demo)
    DEMOS[args.demo](controller)

    # Every animation reaches a bound within one sweep; allow one spare second.
    frame_count = _run_animation(frames, args.fps, config.animation_sweep_seconds + 1.0)
    if frame_count:
        logger.info("Ran %d animation frame(s)", frame_count)

    print(f"Demo: {args.demo}")
    _print_scene(controller)


if __name__ == "__main__":
    main(sys.argv[1:])
